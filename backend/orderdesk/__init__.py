# backend/orderdesk/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(test_config: dict | None = None) -> Flask:
    """
    Application factory.

    ``test_config`` overrides are applied before the extensions bind, so a
    test database URI takes effect.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.admin import admin_bp
    from .routes.dashboard import dashboard_bp
    from .routes.customers import customers_bp
    from .routes.products import products_bp
    from .routes.inventory import inventory_bp
    from .routes.orders import orders_bp
    from .routes.invoices import invoices_bp
    from .routes.payments import payments_bp
    from .routes.shipping import shipping_bp
    from .routes.fulfillment import fulfillment_bp
    from .routes.customizations import customizations_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(shipping_bp)
    app.register_blueprint(fulfillment_bp)
    app.register_blueprint(customizations_bp)

    allowed_origins = set(app.config.get("CORS_ALLOWED_ORIGINS", []))

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
