# Overview: Service-layer operations for reference data; idempotent seeding of terms, carriers and sequences.

from __future__ import annotations

from ..extensions import db
from ..models import PaymentTerm, ShippingCarrier
from .document_service import ensure_document_sequences


DEFAULT_PAYMENT_TERMS = (
    ("Due on Receipt", 0),
    ("Net 15", 15),
    ("Net 30", 30),
    ("Net 45", 45),
    ("Net 60", 60),
)

# (code, name, supported services)
DEFAULT_CARRIERS = (
    ("ups", "UPS", ["ground", "express", "overnight"]),
    ("fedex", "FedEx", ["ground", "express", "overnight"]),
    ("usps", "USPS", ["standard", "priority", "express"]),
    ("dhl", "DHL", ["express", "international"]),
)


def seed_payment_terms() -> int:
    """Insert missing default terms. Returns count created."""
    existing = {name for (name,) in db.session.query(PaymentTerm.name).all()}
    created = 0
    for name, days in DEFAULT_PAYMENT_TERMS:
        if name in existing:
            continue
        db.session.add(PaymentTerm(name=name, days=days, is_active=True))
        created += 1
    db.session.commit()
    return created


def seed_carriers() -> int:
    existing = {code for (code,) in db.session.query(ShippingCarrier.code).all()}
    created = 0
    for code, name, services in DEFAULT_CARRIERS:
        if code in existing:
            continue
        db.session.add(ShippingCarrier(code=code, name=name, supported_services=list(services), is_active=True))
        created += 1
    db.session.commit()
    return created


def seed_reference_data() -> dict[str, int]:
    """Payment terms, carriers and document sequences; safe to re-run."""
    return {
        "payment_terms": seed_payment_terms(),
        "carriers": seed_carriers(),
        "document_sequences": ensure_document_sequences(),
    }
