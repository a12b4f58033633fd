# Overview: Navigation entries and page actions, each gated by one capability.

"""
Navigation is data, not per-page branching: each entry names the capability
it requires, and ``navigation_for`` filters by the caller's role. The portal
shell (clients) and the back-office shell (staff) have separate menus.
"""

from __future__ import annotations

from dataclasses import dataclass

from .roles import capabilities_for, shell_for, SHELL_PORTAL, SHELL_BACK_OFFICE


@dataclass(frozen=True)
class NavItem:
    key: str
    label: str
    path: str
    section: str
    capability: str

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "path": self.path,
            "section": self.section,
        }


BACK_OFFICE_NAV = (
    NavItem("dashboard", "Dashboard", "/dashboard", "main", "dashboard.view"),
    NavItem("orders", "Orders", "/orders", "sales", "orders.view"),
    NavItem("customers", "Customers", "/customers", "sales", "customers.view"),
    NavItem("products", "Products", "/products", "catalog", "products.manage"),
    NavItem("inventory", "Inventory", "/inventory", "catalog", "inventory.view"),
    NavItem("fulfillment", "Fulfillment", "/fulfillment", "operations", "fulfillment.view"),
    NavItem("shipping", "Shipping", "/shipping", "operations", "shipping.view"),
    NavItem("customizations", "Customizations", "/customizations", "operations", "customizations.view"),
    NavItem("billing", "Billing", "/billing", "finance", "billing.view"),
    NavItem("invoices", "Invoices", "/invoices", "finance", "invoices.view"),
    NavItem("payments", "Payments", "/payments", "finance", "payments.view"),
    NavItem("analytics", "Analytics", "/analytics", "insights", "analytics.view"),
    NavItem("users", "Users", "/admin/users", "admin", "users.manage"),
    NavItem("support", "Support", "/support", "help", "support.view"),
)

PORTAL_NAV = (
    NavItem("dashboard", "Dashboard", "/dashboard", "main", "dashboard.view"),
    NavItem("place_order", "Place Order", "/orders/new", "orders", "orders.create"),
    NavItem("my_orders", "My Orders", "/orders", "orders", "orders.view"),
    NavItem("track_shipments", "Track Shipments", "/shipping", "orders", "shipping.view"),
    NavItem("personalize", "Personalize Orders", "/customizations", "customization", "customizations.view"),
    NavItem("invoices", "Invoices", "/invoices", "billing", "invoices.view"),
    NavItem("support", "Support", "/support", "support", "support.view"),
)

NAV_BY_SHELL = {
    SHELL_BACK_OFFICE: BACK_OFFICE_NAV,
    SHELL_PORTAL: PORTAL_NAV,
}


# page -> (action, capability); an action renders only if the role holds it
PAGE_ACTIONS: dict[str, tuple[tuple[str, str], ...]] = {
    "orders": (("create", "orders.create"), ("edit", "orders.manage")),
    "customers": (("create", "customers.manage"), ("edit", "customers.manage")),
    "products": (("create", "products.manage"), ("edit", "products.manage")),
    "inventory": (("adjust", "inventory.adjust"),),
    "invoices": (("create", "invoices.manage"), ("edit", "invoices.manage")),
    "payments": (("record", "payments.record"),),
    "billing": (("create_invoice", "invoices.manage"), ("record_payment", "payments.record")),
    "shipping": (("create", "shipping.manage"), ("edit", "shipping.manage")),
    "fulfillment": (("create", "fulfillment.manage"), ("edit", "fulfillment.manage")),
    "customizations": (
        ("create", "customizations.create"),
        ("review", "customizations.review"),
        ("comment_internal", "customizations.comment_internal"),
    ),
}


def navigation_for(role: str | None) -> list[dict]:
    granted = capabilities_for(role)
    items = NAV_BY_SHELL[shell_for(role)]
    return [item.to_dict() for item in items if item.capability in granted]


def page_actions(role: str | None, page: str) -> dict[str, bool]:
    granted = capabilities_for(role)
    return {action: capability in granted for action, capability in PAGE_ACTIONS.get(page, ())}
