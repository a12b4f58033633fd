# Overview: All capability definitions organized by category.
# Each capability is defined as: (code, name, description, category)

from .categories import CapabilityCategory


# -- DASHBOARD / SUPPORT --

GENERAL_CAPABILITIES = [
    (
        "dashboard.view",
        "View Dashboard",
        "Landing page with order, revenue and customization summaries",
        CapabilityCategory.DASHBOARD,
    ),
    (
        "support.view",
        "View Support",
        "Support contact page",
        CapabilityCategory.SUPPORT,
    ),
]


# -- ORDERS --

ORDER_CAPABILITIES = [
    (
        "orders.view",
        "View Orders",
        "List and open orders (clients see only their own)",
        CapabilityCategory.ORDERS,
    ),
    (
        "orders.create",
        "Create Orders",
        "Place new orders through the order form",
        CapabilityCategory.ORDERS,
    ),
    (
        "orders.manage",
        "Manage Orders",
        "Edit orders, change order and line status, pick any customer",
        CapabilityCategory.ORDERS,
    ),
]


# -- CUSTOMERS --

CUSTOMER_CAPABILITIES = [
    (
        "customers.view",
        "View Customers",
        "Customer directory",
        CapabilityCategory.CUSTOMERS,
    ),
    (
        "customers.manage",
        "Manage Customers",
        "Create and edit customers",
        CapabilityCategory.CUSTOMERS,
    ),
]


# -- CATALOG / INVENTORY --

CATALOG_CAPABILITIES = [
    (
        "products.view",
        "View Products",
        "Browse the product catalog",
        CapabilityCategory.CATALOG,
    ),
    (
        "products.manage",
        "Manage Products",
        "Create and edit products",
        CapabilityCategory.CATALOG,
    ),
]

INVENTORY_CAPABILITIES = [
    (
        "inventory.view",
        "View Inventory",
        "Stock levels, low-stock alerts and recent movements",
        CapabilityCategory.INVENTORY,
    ),
    (
        "inventory.adjust",
        "Adjust Inventory",
        "Record stock in, stock out and set-to adjustments",
        CapabilityCategory.INVENTORY,
    ),
]


# -- FULFILLMENT / SHIPPING --

FULFILLMENT_CAPABILITIES = [
    (
        "fulfillment.view",
        "View Fulfillment",
        "Pick/pack/label task board",
        CapabilityCategory.FULFILLMENT,
    ),
    (
        "fulfillment.manage",
        "Manage Fulfillment",
        "Create fulfillment tasks and update their status",
        CapabilityCategory.FULFILLMENT,
    ),
]

SHIPPING_CAPABILITIES = [
    (
        "shipping.view",
        "View Shipments",
        "Track shipments (clients see only their own)",
        CapabilityCategory.SHIPPING,
    ),
    (
        "shipping.manage",
        "Manage Shipments",
        "Create shipments and update tracking/status",
        CapabilityCategory.SHIPPING,
    ),
]


# -- CUSTOMIZATIONS --

CUSTOMIZATION_CAPABILITIES = [
    (
        "customizations.view",
        "View Customizations",
        "Customization requests (clients see only their own)",
        CapabilityCategory.CUSTOMIZATIONS,
    ),
    (
        "customizations.create",
        "Request Customizations",
        "Submit a customization request for an order line",
        CapabilityCategory.CUSTOMIZATIONS,
    ),
    (
        "customizations.review",
        "Review Customizations",
        "Review requests, assign work and advance workflow steps",
        CapabilityCategory.CUSTOMIZATIONS,
    ),
    (
        "customizations.comment_internal",
        "Internal Comments",
        "Read and write internal comments on customization requests",
        CapabilityCategory.CUSTOMIZATIONS,
    ),
]


# -- BILLING --

BILLING_CAPABILITIES = [
    (
        "billing.view",
        "View Billing",
        "Billing overview with invoiced, paid and outstanding totals",
        CapabilityCategory.BILLING,
    ),
    (
        "invoices.view",
        "View Invoices",
        "List and open invoices (clients see only their own)",
        CapabilityCategory.BILLING,
    ),
    (
        "invoices.manage",
        "Manage Invoices",
        "Generate invoices from orders and edit invoice status/terms",
        CapabilityCategory.BILLING,
    ),
    (
        "payments.view",
        "View Payments",
        "Payment history (clients see only their own)",
        CapabilityCategory.BILLING,
    ),
    (
        "payments.record",
        "Record Payments",
        "Record a payment against an invoice",
        CapabilityCategory.BILLING,
    ),
]


# -- ANALYTICS / USERS --

ANALYTICS_CAPABILITIES = [
    (
        "analytics.view",
        "View Analytics",
        "Revenue, customer, inventory and payment analytics",
        CapabilityCategory.ANALYTICS,
    ),
]

USER_CAPABILITIES = [
    (
        "users.manage",
        "Manage Users",
        "Create users, set roles and deactivate accounts",
        CapabilityCategory.USERS,
    ),
]


CAPABILITY_DEFINITIONS = (
    GENERAL_CAPABILITIES
    + ORDER_CAPABILITIES
    + CUSTOMER_CAPABILITIES
    + CATALOG_CAPABILITIES
    + INVENTORY_CAPABILITIES
    + FULFILLMENT_CAPABILITIES
    + SHIPPING_CAPABILITIES
    + CUSTOMIZATION_CAPABILITIES
    + BILLING_CAPABILITIES
    + ANALYTICS_CAPABILITIES
    + USER_CAPABILITIES
)
