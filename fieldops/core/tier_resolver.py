from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.core.features import (
    ALL_MODULES,
    FREE_TIER_FEATURES,
    PREMIUM_ONLY_FEATURES,
    normalize_feature,
)
from fieldops.crud.profile import get_profile
from fieldops.models.profile import ApprovalStatus

logger = logging.getLogger(__name__)


class AccessTier(str, enum.Enum):
    FREE = "free"
    ORGANIZATION = "organization"
    SUPER_ADMIN = "super_admin"


@dataclass(frozen=True)
class AccessDecision:
    """
    Per-user access decision. Every gate (navigation, quick-add, route guards,
    quotas) asks this object; nothing else decides access.
    """

    user_id: Optional[uuid.UUID]
    is_approved: bool = False
    has_org: bool = False
    is_super_admin: bool = False
    organization_id: Optional[uuid.UUID] = None
    active_org_id: Optional[uuid.UUID] = None
    # False when the profile could not be confirmed; nothing is accessible then
    resolved: bool = True

    @classmethod
    def denied(cls, user_id: Optional[uuid.UUID] = None) -> "AccessDecision":
        """Fail-closed decision: no premium access and no feature access at all."""
        return cls(user_id=user_id, resolved=False)

    @property
    def tier(self) -> AccessTier:
        if self.is_super_admin:
            return AccessTier.SUPER_ADMIN
        if self.has_premium_access():
            return AccessTier.ORGANIZATION
        return AccessTier.FREE

    @property
    def effective_org_id(self) -> Optional[uuid.UUID]:
        return self.active_org_id or self.organization_id

    def has_premium_access(self) -> bool:
        return self.is_approved or self.has_org or self.is_super_admin

    def can_access_feature(self, feature) -> bool:
        # super admin short-circuits, even for names outside the catalogue
        if self.is_super_admin:
            return True
        if self.has_premium_access():
            return True
        if not self.resolved:
            return False
        return _feature_name(feature) in FREE_TIER_FEATURES

    def is_premium_only(self, feature) -> bool:
        return _feature_name(feature) in PREMIUM_ONLY_FEATURES

    def bypasses_usage_limits(self) -> bool:
        """
        Quotas only lift for approved users working inside an organization.
        Approval alone, or org membership alone, still counts as free usage.
        """
        if self.is_super_admin:
            return True
        return self.is_approved and self.effective_org_id is not None

    def feature_matrix(self) -> dict[str, bool]:
        names = [m.value for m in ALL_MODULES] + sorted(PREMIUM_ONLY_FEATURES - {m.value for m in ALL_MODULES})
        return {name: self.can_access_feature(name) for name in names}


def _feature_name(feature) -> str:
    v = getattr(feature, "value", None)
    if isinstance(v, str):
        return v
    return normalize_feature(feature)


def resolve_access(profile) -> AccessDecision:
    """
    Build an AccessDecision from a profile row (or any object exposing the
    same attributes). A missing profile yields the fail-closed decision.
    """
    if profile is None:
        return AccessDecision.denied()

    status = getattr(profile, "approval_status", None)
    status = getattr(status, "value", status)
    organization_id = getattr(profile, "organization_id", None)
    active_org_id = getattr(profile, "active_org_id", None)

    return AccessDecision(
        user_id=getattr(profile, "id", None),
        is_approved=(str(status or "").strip().lower() == ApprovalStatus.APPROVED.value),
        # same org the flags and quotas are read for
        has_org=(active_org_id or organization_id) is not None,
        is_super_admin=bool(getattr(profile, "is_super_admin", False)),
        organization_id=organization_id,
        active_org_id=active_org_id,
    )


async def load_access(db: AsyncSession, user_id: Optional[uuid.UUID]) -> AccessDecision:
    """
    Fetch the profile once and evaluate it.

    Fails closed: no user, no profile, or a data-store error all produce the
    denied decision. Errors are logged, never retried.
    """
    if user_id is None:
        return AccessDecision.denied()

    try:
        profile = await get_profile(db, user_id)
    except SQLAlchemyError:
        logger.exception("Access check failed for user %s; denying premium access", user_id)
        return AccessDecision.denied(user_id)

    if profile is None:
        logger.warning("No profile for user %s; denying premium access", user_id)
        return AccessDecision.denied(user_id)

    return resolve_access(profile)
