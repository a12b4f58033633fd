# Overview: Flask API routes for billing, payment terms and invoices; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..permissions import page_actions
from ..services import invoice_service, payment_service, reporting_service
from ..services.invoice_service import InvoiceError, InvoiceConflictError
from ..services.lifecycle_service import LifecycleError
from ..validation import require_fields, parse_int, parse_optional_date, ValidationError
from ..decorators import require_auth, require_capability


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api")


@invoices_bp.get("/billing")
@require_auth
@require_capability("billing.view")
def billing_route(ctx):
    """Invoice totals (invoiced, paid, outstanding, overdue) plus both lists."""
    data = reporting_service.billing_view(customer_id=ctx.customer_id)
    data["actions"] = page_actions(ctx.role, "billing")
    return jsonify(data), 200


@invoices_bp.get("/payment-terms")
@require_auth
@require_capability("invoices.view")
def payment_terms_route(ctx):
    terms = invoice_service.list_payment_terms()
    return jsonify({
        "payment_terms": [t.to_dict() for t in terms],
        "default": current_app.config.get("DEFAULT_PAYMENT_TERM"),
    }), 200


@invoices_bp.get("/invoices")
@require_auth
@require_capability("invoices.view")
def list_invoices_route(ctx):
    invoices = invoice_service.list_invoices(
        customer_id=ctx.customer_id,
        status=request.args.get("status"),
    )
    return jsonify({
        "invoices": [i.to_dict() for i in invoices],
        "count": len(invoices),
        "actions": page_actions(ctx.role, "invoices"),
    }), 200


@invoices_bp.get("/invoices/eligible-orders")
@require_auth
@require_capability("invoices.manage")
def invoice_eligible_orders_route(ctx):
    """Orders the invoice form may pick: invoiceable status, no invoice yet."""
    orders = invoice_service.eligible_orders()
    return jsonify({"orders": [o.to_dict(include_items=True) for o in orders]}), 200


def _invoice_error(e: InvoiceError):
    status = 409 if isinstance(e, InvoiceConflictError) else 400
    return jsonify({"error": str(e), "details": e.details}), status


@invoices_bp.post("/invoices")
@require_auth
@require_capability("invoices.manage")
def create_invoice_route(ctx):
    """
    Invoice form: order_id, payment_terms, issue_date, notes, terms_conditions.

    The due date is issue_date + the term's days.
    """
    data = request.get_json(silent=True) or {}

    try:
        require_fields(data, "order_id")
        order_id = parse_int(data["order_id"], "order_id", minimum=1)
        issue_date = parse_optional_date(data.get("issue_date"), "issue_date")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        invoice = invoice_service.create_invoice(
            order_id=order_id,
            user_id=ctx.user_id,
            payment_terms=data.get("payment_terms"),
            issue_date=issue_date,
            notes=data.get("notes"),
            terms_conditions=data.get("terms_conditions"),
        )
    except InvoiceError as e:
        return _invoice_error(e)
    except Exception:
        current_app.logger.exception("Failed to create invoice")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"invoice": invoice.to_dict()}), 201


@invoices_bp.post("/invoices/generate")
@require_auth
@require_capability("invoices.manage")
def generate_invoice_route(ctx):
    """Draft invoice from an order with the default term, issued today."""
    data = request.get_json(silent=True) or {}

    try:
        require_fields(data, "order_id")
        order_id = parse_int(data["order_id"], "order_id", minimum=1)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        invoice = invoice_service.generate_invoice_from_order(order_id, user_id=ctx.user_id)
    except InvoiceError as e:
        return _invoice_error(e)
    except Exception:
        current_app.logger.exception("Failed to generate invoice")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"invoice": invoice.to_dict()}), 201


@invoices_bp.get("/invoices/<int:invoice_id>")
@require_auth
@require_capability("invoices.view")
def get_invoice_route(invoice_id: int, ctx):
    invoice = invoice_service.get_invoice(invoice_id, customer_id=ctx.customer_id)
    if invoice is None:
        return jsonify({"error": "Invoice not found"}), 404

    paid = payment_service.paid_total_cents(invoice)
    data = invoice.to_dict()
    data["order"] = invoice.order.to_dict(include_items=True) if invoice.order else None
    data["customer"] = invoice.customer.to_dict() if invoice.customer else None
    data["payments"] = [p.to_dict() for p in invoice.payments]
    data["paid_cents"] = paid
    data["balance_cents"] = int(invoice.total_amount_cents or 0) - paid
    return jsonify({"invoice": data, "actions": page_actions(ctx.role, "invoices")}), 200


@invoices_bp.patch("/invoices/<int:invoice_id>")
@require_auth
@require_capability("invoices.manage")
def update_invoice_route(invoice_id: int, ctx):
    """Editable: status, payment_terms, issue_date, due_date, notes, terms_conditions."""
    data = request.get_json(silent=True) or {}
    allowed = {"status", "payment_terms", "issue_date", "due_date", "notes", "terms_conditions"}
    unknown = sorted(set(data) - allowed)
    if unknown:
        return jsonify({"error": f"Field not allowed: {', '.join(unknown)}"}), 400

    patch = dict(data)
    try:
        for key in ("issue_date", "due_date"):
            if key in patch:
                patch[key] = parse_optional_date(patch[key], key)
        if "issue_date" in patch and patch["issue_date"] is None:
            raise ValidationError("issue_date cannot be null")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        invoice = invoice_service.update_invoice(invoice_id, patch, user_id=ctx.user_id)
    except (InvoiceError, LifecycleError) as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to update invoice")
        return jsonify({"error": "Internal server error"}), 500

    if invoice is None:
        return jsonify({"error": "Invoice not found"}), 404
    return jsonify({"invoice": invoice.to_dict()}), 200
