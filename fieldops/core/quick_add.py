from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from fieldops.core.features import FeatureModule, module_label, normalize_feature, parse_module
from fieldops.core.navigation import ModuleResolver
from fieldops.core.tier_resolver import AccessDecision

DEFAULT_FREE_TIER_LIMIT = 2

LIMIT_NOTIFICATION_TITLE = "Free Tier Limit"
EMPTY_SELECTION_WARNING = (
    "No Quick Add items selected. Select at least one item or the Quick Add button will not appear."
)


@dataclass(frozen=True)
class QuickAddAction:
    module: FeatureModule
    path: str
    label: str


# module -> (path, default label)
QUICK_ADD_ACTIONS: dict[FeatureModule, tuple[str, str]] = {
    FeatureModule.WORK_ORDERS: ("/work-orders", "Work Order"),
    FeatureModule.PROPERTIES: ("/property-info", "Property"),
    FeatureModule.FORMS: ("/forms", "Form"),
    FeatureModule.CALENDAR: ("/calendar", "Event"),
    FeatureModule.APPOINTMENTS: ("/appointments", "Appointment"),
    FeatureModule.INVENTORY: ("/inventory", "Inventory Item"),
    FeatureModule.INVOICING: ("/invoices", "Invoice"),
    FeatureModule.REPORTS: ("/reports", "Report"),
    FeatureModule.FILES: ("/files", "File"),
    FeatureModule.CUSTOMER_PORTAL: ("/portal", "Portal Access"),
    FeatureModule.POS: ("/pos", "Sale"),
}


@dataclass(frozen=True)
class Notification:
    title: str
    message: str
    level: str = "info"


@dataclass(frozen=True)
class ToggleResult:
    selection: list[str]
    notification: Optional[Notification] = None

    @property
    def rejected(self) -> bool:
        return self.notification is not None


class QuickAddLimitExceeded(ValueError):
    def __init__(self, limit: int, requested: int):
        self.limit = limit
        self.requested = requested
        super().__init__(limit_message(limit))


class QuickAddFeatureLocked(ValueError):
    def __init__(self, module: FeatureModule):
        self.module = module
        super().__init__(f"{module_label(module)} requires an approved account or organization membership.")


def limit_message(limit: int) -> str:
    return (
        f"Free accounts can only have {limit} Quick Add items. "
        "Upgrade for unlimited access!"
    )


def _unique(items: Iterable[str]) -> list[str]:
    out: list[str] = []
    for item in items:
        name = parse_module(item).value
        if name not in out:
            out.append(name)
    return out


def _ensure_unlocked(name: str, decision: AccessDecision) -> None:
    if not decision.can_access_feature(name):
        raise QuickAddFeatureLocked(FeatureModule(name))


def default_selection(available: list[str], decision: AccessDecision, limit: int = DEFAULT_FREE_TIER_LIMIT) -> list[str]:
    unlocked = [name for name in available if decision.can_access_feature(name)]
    if decision.has_premium_access():
        return unlocked
    return unlocked[:limit]


def toggle_item(
    selection: list[str],
    item,
    decision: AccessDecision,
    limit: int = DEFAULT_FREE_TIER_LIMIT,
) -> ToggleResult:
    """
    Remove ``item`` if selected, otherwise add it. Adding past the free-tier
    cap leaves the selection unchanged and returns a rejection notification.
    Adding a module the tier locks raises QuickAddFeatureLocked; removing one
    is always allowed.
    """
    name = parse_module(item).value
    current = list(selection)

    if name in current:
        return ToggleResult(selection=[s for s in current if s != name])

    _ensure_unlocked(name, decision)

    if not decision.has_premium_access() and len(current) >= limit:
        return ToggleResult(
            selection=current,
            notification=Notification(title=LIMIT_NOTIFICATION_TITLE, message=limit_message(limit)),
        )

    return ToggleResult(selection=current + [name])


def validate_selection(items: Iterable[str], decision: AccessDecision, limit: int = DEFAULT_FREE_TIER_LIMIT) -> list[str]:
    """
    Normalize a full replacement selection. Raises ValueError for unknown
    modules, QuickAddFeatureLocked for modules the tier locks and
    QuickAddLimitExceeded when a free-tier selection is too long.
    """
    cleaned = _unique(items)
    for name in cleaned:
        _ensure_unlocked(name, decision)
    if not decision.has_premium_access() and len(cleaned) > limit:
        raise QuickAddLimitExceeded(limit=limit, requested=len(cleaned))
    return cleaned


def build_actions(
    resolver: ModuleResolver,
    decision: AccessDecision,
    quick_add_enabled: bool = True,
    selected: Optional[list[str]] = None,
) -> list[QuickAddAction]:
    """
    Actions for every enabled, unlocked module that has one, narrowed to the
    saved selection. ``selected=None`` means the user never customised it.
    Disabled quick-add, or an enabled one with an empty selection, yields
    nothing.
    """
    if not quick_add_enabled:
        return []
    if selected is not None and not selected:
        return []

    chosen = {normalize_feature(s) for s in (selected or [])}
    actions = []
    for name in resolver.available_modules():
        module = FeatureModule(name)
        if module not in QUICK_ADD_ACTIONS:
            continue
        if chosen and name not in chosen:
            continue
        if not decision.can_access_feature(module):
            continue
        path, default_label = QUICK_ADD_ACTIONS[module]
        label = resolver.get_feature_config(module).get("display_name") or default_label
        actions.append(QuickAddAction(module=module, path=path, label=label))
    return actions


def selection_warning(quick_add_enabled: bool, selection: list[str]) -> Optional[str]:
    if quick_add_enabled and not selection:
        return EMPTY_SELECTION_WARNING
    return None
