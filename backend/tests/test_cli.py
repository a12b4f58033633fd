"""
CLI command tests (flask system / users / invoices / sessions).
"""

from datetime import date

from orderdesk.extensions import db
from orderdesk.models import Invoice, PaymentTerm, User
from orderdesk.services import invoice_service


def run(app, *args):
    return app.test_cli_runner().invoke(args=list(args))


class TestSystemInit:

    def test_init_is_idempotent(self, app):
        first = run(app, "system", "init")
        assert first.exit_code == 0, first.output
        assert db.session.query(User).count() == 5
        client_user = db.session.query(User).filter_by(role="client").one()
        assert client_user.customer.company_name == "Demo Client Co"

        second = run(app, "system", "init")
        assert second.exit_code == 0, second.output
        assert "already exists" in second.output
        assert db.session.query(User).count() == 5
        assert db.session.query(PaymentTerm).count() == 5

    def test_init_without_demo_users(self, app):
        result = run(app, "system", "init", "--no-demo-users")
        assert result.exit_code == 0
        assert db.session.query(User).count() == 0

    def test_demo_login(self, app, client):
        run(app, "system", "init")
        resp = client.post("/api/auth/login", json={"email": "client@orderdesk.local", "password": "Password123!"})
        assert resp.status_code == 200
        assert resp.get_json()["shell"] == "portal"


class TestUserCommands:

    def test_create_and_list(self, app):
        result = run(
            app, "users", "create",
            "--email", "Pat@Example.com",
            "--password", "Password123!",
            "--role", "finance",
            "--full-name", "Pat Doe",
        )
        assert result.exit_code == 0, result.output
        assert db.session.query(User).filter_by(email="pat@example.com").one().role == "finance"

        listing = run(app, "users", "list", "--role", "finance")
        assert "pat@example.com" in listing.output

    def test_client_requires_customer(self, app):
        result = run(
            app, "users", "create",
            "--email", "c@example.com",
            "--password", "Password123!",
            "--role", "client",
        )
        assert result.exit_code != 0
        assert "linked to a customer" in result.output

    def test_weak_password(self, app):
        result = run(app, "users", "create", "--email", "w@example.com", "--password", "short", "--role", "sales")
        assert result.exit_code != 0


class TestInvoiceCommands:

    def test_mark_overdue(self, app, customer, mug, make_order):
        order = make_order(customer.id, [{"product_id": mug["id"], "quantity": 1}])
        invoice = invoice_service.create_invoice(order_id=order.id, payment_terms="Net 15", issue_date=date(2024, 1, 1))
        invoice_service.update_invoice(invoice.id, {"status": "sent"})

        result = run(app, "invoices", "mark-overdue", "--as-of", "2024-01-16")
        assert result.exit_code == 0, result.output
        assert "Marked 0 invoice(s)" in result.output

        result = run(app, "invoices", "mark-overdue", "--as-of", "2024-01-17")
        assert "Marked 1 invoice(s)" in result.output
        assert invoice.invoice_number in result.output
        db.session.expire_all()
        assert db.session.get(Invoice, invoice.id).status == "overdue"

    def test_bad_date(self, app):
        result = run(app, "invoices", "mark-overdue", "--as-of", "someday")
        assert result.exit_code != 0


class TestMaintenanceCommands:

    def test_session_cleanup(self, app, ops_headers):
        result = run(app, "sessions", "cleanup", "--retention-days", "0")
        assert result.exit_code == 0
        assert "Deleted 0 session(s)" in result.output
