from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, Optional

from fieldops.core.feature_cache import FeatureFlag, enabled_modules, get_feature_config
from fieldops.core.features import FeatureModule, normalize_feature, parse_module
from fieldops.core.tier_resolver import AccessDecision


@dataclass(frozen=True)
class NavItem:
    module: FeatureModule
    label: str
    path: str
    icon: str
    is_locked: bool = False


# Declaration order is display order.
NAV_ITEMS: tuple[NavItem, ...] = (
    NavItem(FeatureModule.WORK_ORDERS, "Work Orders", "/work-orders", "clipboard"),
    NavItem(FeatureModule.PROPERTIES, "Property Info", "/property-info", "building"),
    NavItem(FeatureModule.FORMS, "Forms", "/forms", "file-text"),
    NavItem(FeatureModule.INVOICING, "Invoices", "/invoices", "file-invoice"),
    NavItem(FeatureModule.INVENTORY, "Inventory", "/inventory", "package"),
    NavItem(FeatureModule.REPORTS, "Reports", "/reports", "bar-chart"),
    NavItem(FeatureModule.FILES, "Files", "/files", "folder"),
    NavItem(FeatureModule.CUSTOMER_PORTAL, "Portal", "/portal", "users"),
)

ALWAYS_ENABLED_PATHS = frozenset({"/dashboard", "/profile", "/org-admin"})
CALENDAR_PATH = "/calendar"


class ModuleResolver:
    """
    Answers "is this module switched on for this user".

    Organizations with flag rows use those rows. Users without an
    organization fall back to the modules saved in their preferences.
    """

    def __init__(
        self,
        flags: Optional[list[FeatureFlag]] = None,
        *,
        has_org: bool = False,
        user_modules: Optional[Iterable[str]] = None,
    ) -> None:
        self.flags = list(flags or [])
        self.has_org = has_org
        self.user_modules = [normalize_feature(m) for m in (user_modules or [])]

    def has_feature(self, module) -> bool:
        name = parse_module(module).value
        if self.flags:
            return name in enabled_modules(self.flags)
        if not self.has_org:
            return name in self.user_modules
        return False

    def get_feature_config(self, module) -> dict[str, Any]:
        return get_feature_config(self.flags, module)

    def available_modules(self) -> list[str]:
        """Enabled module names, in flag order (org) or pick order (standalone)."""
        known = {m.value for m in FeatureModule}
        if self.flags:
            return [name for name in enabled_modules(self.flags) if name in known]
        if not self.has_org:
            seen: list[str] = []
            for name in self.user_modules:
                if name in known and name not in seen:
                    seen.append(name)
            return seen
        return []


def project_navigation(resolver: ModuleResolver, decision: AccessDecision) -> list[NavItem]:
    items = []
    for item in NAV_ITEMS:
        if not resolver.has_feature(item.module):
            continue
        label = item.label
        if item.module is FeatureModule.WORK_ORDERS:
            label = resolver.get_feature_config(item.module).get("display_name") or label
        items.append(replace(item, label=label, is_locked=not decision.can_access_feature(item.module)))
    return items


def is_route_enabled(path: str, resolver: ModuleResolver) -> bool:
    p = (path or "").strip()
    if len(p) > 1:
        p = p.rstrip("/")

    if p in ALWAYS_ENABLED_PATHS:
        return True

    # Calendar has no nav tab (header icon only)
    if p == CALENDAR_PATH:
        return resolver.has_feature(FeatureModule.CALENDAR)

    for item in NAV_ITEMS:
        if item.path == p:
            return resolver.has_feature(item.module)
    return False
