# Overview: Capability category constants for grouping related capabilities.


class CapabilityCategory:
    """Capability categories for organization and UI display."""
    DASHBOARD = "DASHBOARD"
    ORDERS = "ORDERS"
    CUSTOMERS = "CUSTOMERS"
    CATALOG = "CATALOG"
    INVENTORY = "INVENTORY"
    FULFILLMENT = "FULFILLMENT"
    SHIPPING = "SHIPPING"
    CUSTOMIZATIONS = "CUSTOMIZATIONS"
    BILLING = "BILLING"
    ANALYTICS = "ANALYTICS"
    SUPPORT = "SUPPORT"
    USERS = "USERS"
