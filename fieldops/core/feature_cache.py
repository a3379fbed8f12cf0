"""
Per-organization feature-flag cache.

Entries younger than ``stale_after`` are served as-is. Older entries are
re-fetched on the next read; if that fetch fails the stale copy is served
until ``expire_after``, after which it is discarded and the failure
propagates to the caller.

Reads are not coordinated: two concurrent misses both fetch and the last one
to complete wins. The cache only promises to eventually reflect the last
successful fetch.
"""
from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from fieldops.core.features import parse_module

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[list["FeatureFlag"]]]


@dataclass(frozen=True)
class FeatureFlag:
    org_id: uuid.UUID
    module: str
    enabled: bool
    config: dict[str, Any] = field(default_factory=dict)


@dataclass
class _Entry:
    flags: list[FeatureFlag]
    fetched_at: float


class FeatureFlagCache:
    def __init__(
        self,
        stale_after: float = 10 * 60,
        expire_after: float = 30 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if stale_after <= 0:
            raise ValueError("stale_after must be positive")
        if expire_after < stale_after:
            raise ValueError("expire_after must be >= stale_after")
        self.stale_after = stale_after
        self.expire_after = expire_after
        self._clock = clock
        self._entries: dict[uuid.UUID, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _age(self, entry: _Entry) -> float:
        return self._clock() - entry.fetched_at

    def peek(self, org_id: uuid.UUID) -> Optional[list[FeatureFlag]]:
        """Cached flags without fetching; None when absent or expired."""
        entry = self._entries.get(org_id)
        if entry is None or self._age(entry) >= self.expire_after:
            return None
        return list(entry.flags)

    def prime(self, org_id: uuid.UUID, flags: list[FeatureFlag]) -> None:
        self._entries[org_id] = _Entry(flags=list(flags), fetched_at=self._clock())

    def invalidate(self, org_id: Optional[uuid.UUID]) -> bool:
        if org_id is None:
            return False
        removed = self._entries.pop(org_id, None) is not None
        logger.debug("Feature cache invalidated for org %s (had entry: %s)", org_id, removed)
        return removed

    def clear(self) -> None:
        self._entries.clear()

    async def get(self, org_id: Optional[uuid.UUID], loader: Loader) -> list[FeatureFlag]:
        if org_id is None:
            return []

        entry = self._entries.get(org_id)
        if entry is not None:
            age = self._age(entry)
            if age < self.stale_after:
                logger.debug("Feature cache hit for org %s (age %.1fs)", org_id, age)
                return list(entry.flags)
            if age >= self.expire_after:
                logger.debug("Feature cache entry for org %s expired (age %.1fs)", org_id, age)
                del self._entries[org_id]
                entry = None

        try:
            flags = list(await loader())
        except Exception:
            if entry is None:
                raise
            logger.exception("Refreshing feature flags for org %s failed; serving stale entry", org_id)
            return list(entry.flags)

        self.prime(org_id, flags)
        logger.debug("Feature cache filled for org %s (%d flags)", org_id, len(flags))
        return list(flags)


# ---------------------------------------------------------
# Lookups over a flag list
# ---------------------------------------------------------
def _find(flags: Optional[list[FeatureFlag]], module) -> Optional[FeatureFlag]:
    if not flags:
        return None
    name = parse_module(module).value
    for flag in flags:
        if flag.module == name:
            return flag
    return None


def has_feature(flags: Optional[list[FeatureFlag]], module) -> bool:
    flag = _find(flags, module)
    return bool(flag and flag.enabled)


def get_feature_config(flags: Optional[list[FeatureFlag]], module) -> dict[str, Any]:
    flag = _find(flags, module)
    return dict(flag.config) if flag and flag.config else {}


def enabled_modules(flags: Optional[list[FeatureFlag]]) -> list[str]:
    return [f.module for f in (flags or []) if f.enabled]
