# fieldops/core/features.py

from __future__ import annotations

import enum


class FeatureModule(str, enum.Enum):
    WORK_ORDERS = "work_orders"
    CALENDAR = "calendar"
    PROPERTIES = "properties"
    FORMS = "forms"
    REPORTS = "reports"
    APPOINTMENTS = "appointments"
    INVOICING = "invoicing"
    INVENTORY = "inventory"
    CUSTOMER_PORTAL = "customer_portal"
    POS = "pos"
    FILES = "files"


ALL_MODULES: tuple[FeatureModule, ...] = tuple(FeatureModule)

# Usable by free-tier accounts (subject to usage quotas)
FREE_TIER_FEATURES: frozenset[str] = frozenset(
    {
        FeatureModule.WORK_ORDERS.value,
        FeatureModule.PROPERTIES.value,
        FeatureModule.FORMS.value,
        FeatureModule.CALENDAR.value,
    }
)

# Completely locked for free-tier accounts.
# "customers" is gated like a module but has no org_features row.
PREMIUM_ONLY_FEATURES: frozenset[str] = frozenset(
    {
        FeatureModule.INVOICING.value,
        FeatureModule.INVENTORY.value,
        FeatureModule.REPORTS.value,
        FeatureModule.FILES.value,
        FeatureModule.POS.value,
        FeatureModule.CUSTOMER_PORTAL.value,
        "customers",
    }
)

MODULE_LABELS: dict[str, str] = {
    "work_orders": "Work Orders",
    "calendar": "Calendar",
    "properties": "Properties",
    "forms": "Forms",
    "reports": "Reports",
    "appointments": "Appointments",
    "invoicing": "Invoicing",
    "inventory": "Inventory",
    "customer_portal": "Customer Portal",
    "pos": "Point of Sale",
    "files": "Files",
    "customers": "Customers",
}


def normalize_feature(value: str | None) -> str:
    return (value or "").strip().lower()


def parse_module(value) -> FeatureModule:
    """
    Accepts a FeatureModule or its string value (any case/whitespace).
    Raises ValueError for names outside the module enumeration.
    """
    if isinstance(value, FeatureModule):
        return value
    name = normalize_feature(value)
    try:
        return FeatureModule(name)
    except ValueError:
        raise ValueError(f"Unknown feature module: {value!r}") from None


def module_label(module) -> str:
    name = module.value if isinstance(module, FeatureModule) else normalize_feature(module)
    return MODULE_LABELS.get(name) or name.replace("_", " ").title()
