# Overview: Declarative role -> capability table; the single source of truth for access.

from .helpers import get_all_capability_codes


ROLE_ADMIN = "admin"
ROLE_SALES = "sales"
ROLE_OPS = "ops"
ROLE_FINANCE = "finance"
ROLE_CLIENT = "client"

ROLES = (ROLE_ADMIN, ROLE_SALES, ROLE_OPS, ROLE_FINANCE, ROLE_CLIENT)
STAFF_ROLES = (ROLE_ADMIN, ROLE_SALES, ROLE_OPS, ROLE_FINANCE)

SHELL_PORTAL = "portal"
SHELL_BACK_OFFICE = "back_office"


# Every signed-in staff member can open these pages.
_BACK_OFFICE_BASE = {
    "dashboard.view",
    "support.view",
    "orders.view",
    "products.view",
    "shipping.view",
    "customizations.view",
    "billing.view",
    "invoices.view",
    "payments.view",
}

ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    ROLE_ADMIN: frozenset(get_all_capability_codes()),
    ROLE_SALES: frozenset(_BACK_OFFICE_BASE | {
        "orders.create",
        "orders.manage",
        "customers.view",
        "customers.manage",
        "customizations.create",
        "customizations.comment_internal",
    }),
    ROLE_OPS: frozenset(_BACK_OFFICE_BASE | {
        "products.manage",
        "inventory.view",
        "inventory.adjust",
        "fulfillment.view",
        "fulfillment.manage",
        "shipping.manage",
        "customizations.create",
        "customizations.review",
        "customizations.comment_internal",
        "analytics.view",
    }),
    ROLE_FINANCE: frozenset(_BACK_OFFICE_BASE | {
        "inventory.view",
        "invoices.manage",
        "payments.record",
        "analytics.view",
    }),
    # Client rows are additionally scoped to the user's own customer record.
    ROLE_CLIENT: frozenset({
        "dashboard.view",
        "support.view",
        "orders.view",
        "orders.create",
        "products.view",
        "shipping.view",
        "customizations.view",
        "customizations.create",
        "invoices.view",
        "payments.view",
    }),
}


def capabilities_for(role: str | None) -> frozenset[str]:
    """Unknown or missing roles get nothing (fail closed)."""
    if not role:
        return frozenset()
    return ROLE_CAPABILITIES.get(role, frozenset())


def has_capability(role: str | None, capability: str) -> bool:
    return capability in capabilities_for(role)


def shell_for(role: str | None) -> str:
    return SHELL_PORTAL if role == ROLE_CLIENT else SHELL_BACK_OFFICE


def is_client(role: str | None) -> bool:
    return role == ROLE_CLIENT


def roles_with(capability: str) -> list[str]:
    return [role for role in ROLES if capability in ROLE_CAPABILITIES[role]]
