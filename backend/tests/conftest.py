"""
Pytest fixtures for OrderDesk backend tests.

Every test gets a fresh app bound to its own in-memory SQLite database with
reference data seeded, one user per role, and bearer-token headers.
"""

import pytest

from orderdesk import create_app
from orderdesk.extensions import db
from orderdesk.models import Customer
from orderdesk.services import order_service, products_service, session_service
from orderdesk.services.auth_service import create_user
from orderdesk.services.seed_service import seed_reference_data


PASSWORD = "Password123!"


@pytest.fixture(scope='function')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        seed_reference_data()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def customer(app):
    """The customer the client user belongs to."""
    c = Customer(
        company_name="Acme Retail",
        contact_name="Alice Buyer",
        email="alice@acme.test",
        phone="555-0100",
        address="1 Main St",
        city="Springfield",
        state="IL",
        zip_code="62701",
        is_active=True,
    )
    db.session.add(c)
    db.session.commit()
    return c


@pytest.fixture(scope='function')
def other_customer(app):
    c = Customer(company_name="Beta Wholesale", contact_name="Bob Other", email="bob@beta.test", is_active=True)
    db.session.add(c)
    db.session.commit()
    return c


@pytest.fixture(scope='function')
def users(app, customer):
    """role -> User, one active user per role."""
    created = {}
    for role in ("admin", "sales", "ops", "finance"):
        created[role] = create_user(
            email=f"{role}@orderdesk.test",
            password=PASSWORD,
            role=role,
            full_name=f"{role.title()} User",
        )
    created["client"] = create_user(
        email="client@orderdesk.test",
        password=PASSWORD,
        role="client",
        full_name="Client User",
        customer_id=customer.id,
    )
    return created


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(user) -> dict:
    _, token = session_service.create_session(user_id=user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def admin_headers(users):
    return headers_for(users["admin"])


@pytest.fixture(scope='function')
def sales_headers(users):
    return headers_for(users["sales"])


@pytest.fixture(scope='function')
def ops_headers(users):
    return headers_for(users["ops"])


@pytest.fixture(scope='function')
def finance_headers(users):
    return headers_for(users["finance"])


@pytest.fixture(scope='function')
def client_headers(users):
    return headers_for(users["client"])


@pytest.fixture(scope='function')
def mug(app):
    """Customizable product with 50 units on hand, price $12.50."""
    return products_service.create_product(
        patch={
            "sku": "MUG-001",
            "name": "Ceramic Mug",
            "category": "Drinkware",
            "base_price_cents": 1250,
            "min_stock_level": 10,
            "is_customizable": True,
        },
        initial_stock=50,
    )


@pytest.fixture(scope='function')
def pen(app):
    """Non-customizable product with no stock, price $2.00."""
    return products_service.create_product(
        patch={
            "sku": "PEN-001",
            "name": "Ballpoint Pen",
            "category": "Stationery",
            "base_price_cents": 200,
            "min_stock_level": 5,
            "is_customizable": False,
        },
    )


@pytest.fixture(scope='function')
def make_order(users):
    """Factory: create an order through the service and set its status."""
    def _make(customer_id, items, status="confirmed"):
        order = order_service.create_order(
            customer_id=customer_id,
            items=items,
            user_id=users["sales"].id,
        )
        if status != order.status:
            order_service.update_order(order.id, {"status": status}, user_id=users["sales"].id)
        return db.session.get(type(order), order.id)
    return _make
