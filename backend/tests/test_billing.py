"""
Invoice and payment tests.
"""

from datetime import date

import pytest

from orderdesk.extensions import db
from orderdesk.models import Invoice
from orderdesk.services import invoice_service, payment_service
from orderdesk.services.invoice_service import InvoiceConflictError, InvoiceError
from orderdesk.services.payment_service import PaymentError


@pytest.fixture
def confirmed_order(customer, mug, make_order):
    return make_order(customer.id, [{"product_id": mug["id"], "quantity": 4}])


@pytest.fixture
def sent_invoice(app, users, confirmed_order):
    invoice = invoice_service.create_invoice(
        order_id=confirmed_order.id,
        user_id=users["finance"].id,
        payment_terms="Net 30",
        issue_date=date(2024, 1, 1),
    )
    invoice_service.update_invoice(invoice.id, {"status": "sent"}, user_id=users["finance"].id)
    return db.session.get(Invoice, invoice.id)


class TestInvoiceForm:

    def test_due_date_from_term(self, client, finance_headers, confirmed_order):
        resp = client.post("/api/invoices", headers=finance_headers, json={
            "order_id": confirmed_order.id,
            "payment_terms": "Net 30",
            "issue_date": "2024-01-01",
            "notes": "Thanks for your business",
        })
        assert resp.status_code == 201
        invoice = resp.get_json()["invoice"]
        assert invoice["status"] == "draft"
        assert invoice["invoice_number"].startswith("INV-")
        assert invoice["issue_date"] == "2024-01-01"
        assert invoice["due_date"] == "2024-01-31"
        assert invoice["subtotal_cents"] == 5000
        assert invoice["total_amount_cents"] == 5000
        assert invoice["notes"] == "Thanks for your business"

    @pytest.mark.parametrize(
        "term,due",
        [
            ("Due on Receipt", date(2024, 2, 28)),
            ("Net 15", date(2024, 3, 14)),
            ("Net 60", date(2024, 4, 28)),
        ],
    )
    def test_calendar_arithmetic(self, app, users, confirmed_order, term, due):
        invoice = invoice_service.create_invoice(
            order_id=confirmed_order.id,
            payment_terms=term,
            issue_date=date(2024, 2, 28),
            user_id=users["finance"].id,
        )
        assert invoice.due_date == due

    def test_second_invoice_conflicts(self, client, finance_headers, confirmed_order):
        first = client.post("/api/invoices", headers=finance_headers, json={"order_id": confirmed_order.id})
        assert first.status_code == 201
        second = client.post("/api/invoices/generate", headers=finance_headers, json={"order_id": confirmed_order.id})
        assert second.status_code == 409
        assert db.session.query(Invoice).count() == 1

    def test_generate_uses_default_term(self, client, finance_headers, confirmed_order):
        resp = client.post("/api/invoices/generate", headers=finance_headers, json={"order_id": confirmed_order.id})
        assert resp.status_code == 201
        assert resp.get_json()["invoice"]["payment_terms"] == "Net 30"

    def test_pending_order_not_invoiceable(self, app, users, customer, mug, make_order):
        order = make_order(customer.id, [{"product_id": mug["id"], "quantity": 1}], status="pending")
        with pytest.raises(InvoiceError) as exc:
            invoice_service.generate_invoice_from_order(order.id, user_id=users["finance"].id)
        assert not isinstance(exc.value, InvoiceConflictError)

    def test_unknown_term_rejected(self, client, finance_headers, confirmed_order):
        resp = client.post("/api/invoices", headers=finance_headers, json={
            "order_id": confirmed_order.id,
            "payment_terms": "Net 999",
        })
        assert resp.status_code == 400
        assert db.session.query(Invoice).count() == 0

    def test_eligible_orders_exclude_invoiced(self, client, finance_headers, confirmed_order, customer, mug, make_order):
        other = make_order(customer.id, [{"product_id": mug["id"], "quantity": 1}])
        invoice_service.generate_invoice_from_order(confirmed_order.id)
        body = client.get("/api/invoices/eligible-orders", headers=finance_headers).get_json()
        assert [o["id"] for o in body["orders"]] == [other.id]


class TestInvoiceEdits:

    def test_changing_term_recomputes_due_date(self, client, finance_headers, sent_invoice):
        resp = client.patch(f"/api/invoices/{sent_invoice.id}", headers=finance_headers, json={"payment_terms": "Net 45"})
        assert resp.status_code == 200
        assert resp.get_json()["invoice"]["due_date"] == "2024-02-15"

    def test_due_before_issue_rejected(self, client, finance_headers, sent_invoice):
        resp = client.patch(f"/api/invoices/{sent_invoice.id}", headers=finance_headers, json={"due_date": "2023-12-01"})
        assert resp.status_code == 400

    def test_marking_paid_stamps_date(self, client, finance_headers, sent_invoice):
        resp = client.patch(f"/api/invoices/{sent_invoice.id}", headers=finance_headers, json={"status": "paid"})
        assert resp.get_json()["invoice"]["paid_date"] is not None


class TestOverdue:

    def test_mark_overdue(self, app, sent_invoice):
        flipped = invoice_service.mark_overdue_invoices(as_of=date(2024, 2, 1))
        assert [i.id for i in flipped] == [sent_invoice.id]
        assert db.session.get(Invoice, sent_invoice.id).status == "overdue"

    def test_not_overdue_on_due_date(self, app, sent_invoice):
        assert invoice_service.mark_overdue_invoices(as_of=date(2024, 1, 31)) == []

    def test_draft_never_overdue(self, app, users, customer, mug, make_order):
        order = make_order(customer.id, [{"product_id": mug["id"], "quantity": 1}])
        invoice_service.create_invoice(order_id=order.id, issue_date=date(2020, 1, 1))
        assert invoice_service.mark_overdue_invoices(as_of=date(2024, 1, 1)) == []


class TestPayments:

    def test_record_payment(self, client, finance_headers, sent_invoice):
        resp = client.post("/api/payments", headers=finance_headers, json={
            "invoice_id": sent_invoice.id,
            "amount_cents": 2000,
            "payment_method": "upi",
            "transaction_id": "UPI-123",
        })
        assert resp.status_code == 201
        payment = resp.get_json()["payment"]
        assert payment["payment_status"] == "completed"

        detail = client.get(f"/api/invoices/{sent_invoice.id}", headers=finance_headers).get_json()["invoice"]
        assert detail["paid_cents"] == 2000
        assert detail["balance_cents"] == 3000
        # recording money does not settle the invoice by itself
        assert detail["status"] == "sent"

    @pytest.mark.parametrize(
        "amount,method",
        [(0, "upi"), (-5, "upi"), (100, "bitcoin")],
    )
    def test_invalid_payment(self, client, finance_headers, sent_invoice, amount, method):
        resp = client.post("/api/payments", headers=finance_headers, json={
            "invoice_id": sent_invoice.id,
            "amount_cents": amount,
            "payment_method": method,
        })
        assert resp.status_code == 400

    def test_payment_on_missing_invoice(self, client, finance_headers, app):
        resp = client.post("/api/payments", headers=finance_headers, json={
            "invoice_id": 999,
            "amount_cents": 100,
            "payment_method": "neft",
        })
        assert resp.status_code == 404

    def test_cancelled_invoice_refuses_payment(self, app, users, sent_invoice):
        invoice_service.update_invoice(sent_invoice.id, {"status": "cancelled"})
        with pytest.raises(PaymentError):
            payment_service.record_payment(invoice_id=sent_invoice.id, amount_cents=100, payment_method="cheque")


class TestBillingView:

    def test_summary_and_client_scope(self, client, finance_headers, client_headers, sent_invoice,
                                      other_customer, mug, make_order):
        theirs = make_order(other_customer.id, [{"product_id": mug["id"], "quantity": 1}])
        invoice_service.generate_invoice_from_order(theirs.id)
        invoice_service.update_invoice(sent_invoice.id, {"status": "paid"})

        summary = client.get("/api/billing", headers=finance_headers).get_json()["summary"]
        assert summary["total_invoiced_cents"] == 5000 + 1250
        assert summary["total_paid_cents"] == 5000
        assert summary["total_outstanding_cents"] == 1250

        resp = client.get("/api/invoices", headers=client_headers)
        assert [i["id"] for i in resp.get_json()["invoices"]] == [sent_invoice.id]
