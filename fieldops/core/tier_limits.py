# ============================
# FILE: fieldops/core/tier_limits.py
# Canonical free-tier usage quotas
# ============================
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from fieldops.core.tier_resolver import AccessDecision


class QuotaResource(str, enum.Enum):
    WORK_ORDERS = "work_orders"
    PROPERTIES = "properties"
    FORMS = "forms"
    CALENDAR_EVENTS = "calendar_events"


@dataclass(frozen=True)
class FreeTierLimit:
    max_items: int


# Free accounts (not approved inside an organization):
# - 3 work orders
# - 2 properties
# - 2 forms
# - 5 calendar events
FREE_TIER_LIMITS: dict[str, FreeTierLimit] = {
    QuotaResource.WORK_ORDERS.value: FreeTierLimit(max_items=3),
    QuotaResource.PROPERTIES.value: FreeTierLimit(max_items=2),
    QuotaResource.FORMS.value: FreeTierLimit(max_items=2),
    QuotaResource.CALENDAR_EVENTS.value: FreeTierLimit(max_items=5),
}


def normalize_resource(value) -> str:
    v = getattr(value, "value", value)
    return (v or "").strip().lower()


def get_limit_for_resource(resource) -> int:
    """
    Max items a free account may hold for the resource.
    Raises ValueError for unknown resources.
    """
    r = normalize_resource(resource)
    if r not in FREE_TIER_LIMITS:
        raise ValueError(f"Unknown quota resource: {resource!r}")
    return FREE_TIER_LIMITS[r].max_items


@dataclass(frozen=True)
class UsageReport:
    """
    Usage snapshot for one user. ``unlimited`` means the decision bypasses quotas
    and every check below passes.
    """

    usage: dict[str, int]
    unlimited: bool

    def _used(self, resource) -> int:
        return int(self.usage.get(normalize_resource(resource), 0))

    def can_create(self, resource) -> bool:
        if self.unlimited:
            return True
        return self._used(resource) < get_limit_for_resource(resource)

    def is_at_limit(self, resource) -> bool:
        if self.unlimited:
            return False
        return self._used(resource) >= get_limit_for_resource(resource)

    def remaining(self, resource) -> Optional[int]:
        """None means unlimited."""
        if self.unlimited:
            return None
        return max(0, get_limit_for_resource(resource) - self._used(resource))

    def usage_percent(self, resource) -> float:
        if self.unlimited:
            return 0.0
        return (self._used(resource) / get_limit_for_resource(resource)) * 100


def build_usage_report(decision: AccessDecision, usage: dict[str, int]) -> UsageReport:
    return UsageReport(
        usage={r: int(usage.get(r, 0)) for r in FREE_TIER_LIMITS},
        unlimited=decision.bypasses_usage_limits(),
    )
