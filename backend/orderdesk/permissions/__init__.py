# Overview: Capability system package.
# Re-exports all public APIs so callers import from orderdesk.permissions.

from .categories import CapabilityCategory
from .definitions import (
    CAPABILITY_DEFINITIONS,
    GENERAL_CAPABILITIES,
    ORDER_CAPABILITIES,
    CUSTOMER_CAPABILITIES,
    CATALOG_CAPABILITIES,
    INVENTORY_CAPABILITIES,
    FULFILLMENT_CAPABILITIES,
    SHIPPING_CAPABILITIES,
    CUSTOMIZATION_CAPABILITIES,
    BILLING_CAPABILITIES,
    ANALYTICS_CAPABILITIES,
    USER_CAPABILITIES,
)
from .helpers import (
    get_all_capability_codes,
    get_capabilities_by_category,
    get_capability_definition,
    validate_capability_code,
    describe_capabilities,
)
from .roles import (
    ROLES,
    STAFF_ROLES,
    ROLE_ADMIN,
    ROLE_SALES,
    ROLE_OPS,
    ROLE_FINANCE,
    ROLE_CLIENT,
    SHELL_PORTAL,
    SHELL_BACK_OFFICE,
    ROLE_CAPABILITIES,
    capabilities_for,
    has_capability,
    shell_for,
    is_client,
    roles_with,
)
from .navigation import NavItem, navigation_for, page_actions

__all__ = [
    "CapabilityCategory",
    "CAPABILITY_DEFINITIONS",
    "GENERAL_CAPABILITIES",
    "ORDER_CAPABILITIES",
    "CUSTOMER_CAPABILITIES",
    "CATALOG_CAPABILITIES",
    "INVENTORY_CAPABILITIES",
    "FULFILLMENT_CAPABILITIES",
    "SHIPPING_CAPABILITIES",
    "CUSTOMIZATION_CAPABILITIES",
    "BILLING_CAPABILITIES",
    "ANALYTICS_CAPABILITIES",
    "USER_CAPABILITIES",
    "get_all_capability_codes",
    "get_capabilities_by_category",
    "get_capability_definition",
    "validate_capability_code",
    "describe_capabilities",
    "ROLES",
    "STAFF_ROLES",
    "ROLE_ADMIN",
    "ROLE_SALES",
    "ROLE_OPS",
    "ROLE_FINANCE",
    "ROLE_CLIENT",
    "SHELL_PORTAL",
    "SHELL_BACK_OFFICE",
    "ROLE_CAPABILITIES",
    "capabilities_for",
    "has_capability",
    "shell_for",
    "is_client",
    "roles_with",
    "NavItem",
    "navigation_for",
    "page_actions",
]
