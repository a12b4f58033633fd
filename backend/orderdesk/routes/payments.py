# Overview: Flask API routes for payments; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..permissions import page_actions
from ..services import invoice_service, payment_service
from ..services.payment_service import PaymentError
from ..services.lifecycle_service import LifecycleError
from ..time_utils import parse_iso_datetime
from ..validation import require_fields, parse_int, ValidationError
from ..decorators import require_auth, require_capability


payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


@payments_bp.get("")
@require_auth
@require_capability("payments.view")
def list_payments_route(ctx):
    payments = payment_service.list_payments(
        customer_id=ctx.customer_id,
        invoice_id=request.args.get("invoice_id", type=int),
    )
    return jsonify({
        "payments": [p.to_dict() for p in payments],
        "count": len(payments),
        "actions": page_actions(ctx.role, "payments"),
    }), 200


@payments_bp.post("")
@require_auth
@require_capability("payments.record")
def record_payment_route(ctx):
    """
    Body: invoice_id, amount_cents, payment_method, optional payment_status,
    transaction_id, payment_date (ISO-8601), notes.
    """
    data = request.get_json(silent=True) or {}

    try:
        require_fields(data, "invoice_id", "amount_cents", "payment_method")
        invoice_id = parse_int(data["invoice_id"], "invoice_id", minimum=1)
        amount_cents = parse_int(data["amount_cents"], "amount_cents", minimum=1)
        payment_date = None
        if data.get("payment_date"):
            try:
                payment_date = parse_iso_datetime(str(data["payment_date"]))
            except ValueError:
                raise ValidationError("payment_date must be an ISO-8601 datetime")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if invoice_service.get_invoice(invoice_id) is None:
        return jsonify({"error": "Invoice not found"}), 404

    try:
        payment = payment_service.record_payment(
            invoice_id=invoice_id,
            amount_cents=amount_cents,
            payment_method=data["payment_method"],
            user_id=ctx.user_id,
            payment_status=data.get("payment_status"),
            transaction_id=data.get("transaction_id"),
            payment_date=payment_date,
            notes=data.get("notes"),
        )
    except (PaymentError, LifecycleError) as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to record payment")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"payment": payment.to_dict()}), 201
