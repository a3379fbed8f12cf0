from __future__ import annotations

import logging
import uuid
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.api.deps.auth import get_current_user_id
from fieldops.core.feature_cache import FeatureFlag, FeatureFlagCache
from fieldops.core.features import module_label, parse_module
from fieldops.core.navigation import ModuleResolver
from fieldops.core.tier_limits import build_usage_report, get_limit_for_resource, normalize_resource
from fieldops.core.tier_resolver import AccessDecision, load_access
from fieldops.crud.org_feature import list_org_features
from fieldops.crud.usage import count_usage
from fieldops.crud.user_preference import get_user_preferences
from fieldops.db.session import get_db

logger = logging.getLogger(__name__)


def get_feature_cache(request: Request) -> FeatureFlagCache:
    return request.app.state.feature_cache


async def get_access(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> AccessDecision:
    """
    The single access decision for the request. Profile is re-read every
    request, so org/approval changes apply without a new session.
    """
    return await load_access(db, user_id)


async def load_org_flags(
    db: AsyncSession,
    cache: FeatureFlagCache,
    org_id: Optional[uuid.UUID],
) -> list[FeatureFlag]:
    """
    Cached flags for an org. A failed fetch with nothing usable cached means
    "no modules enabled".
    """
    if org_id is None:
        return []
    try:
        return await cache.get(org_id, lambda: list_org_features(db, org_id))
    except SQLAlchemyError:
        logger.exception("Loading feature flags for org %s failed; treating all modules as disabled", org_id)
        return []


async def get_module_resolver(
    decision: AccessDecision = Depends(get_access),
    db: AsyncSession = Depends(get_db),
    cache: FeatureFlagCache = Depends(get_feature_cache),
) -> ModuleResolver:
    org_id = decision.effective_org_id
    flags = await load_org_flags(db, cache, org_id)

    user_modules: list[str] = []
    if org_id is None and decision.user_id is not None and decision.resolved:
        try:
            prefs = await get_user_preferences(db, decision.user_id)
        except SQLAlchemyError:
            logger.exception("Loading module picks for user %s failed", decision.user_id)
            prefs = None
        if prefs is not None:
            user_modules = list(prefs.enabled_modules or [])

    return ModuleResolver(flags, has_org=org_id is not None, user_modules=user_modules)


def require_feature(module) -> Callable:
    """
    Route guard for a module:
      - module switched off for the user -> 404 feature_disabled
      - module on but the tier forbids it -> 403 feature_locked
    Super admins pass both checks.
    """
    target = parse_module(module)

    async def _checker(
        decision: AccessDecision = Depends(get_access),
        resolver: ModuleResolver = Depends(get_module_resolver),
    ) -> AccessDecision:
        if decision.is_super_admin:
            return decision

        if not resolver.has_feature(target):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={
                    "code": "feature_disabled",
                    "message": f"{module_label(target)} is not enabled for your account.",
                    "module": target.value,
                },
            )

        if not decision.can_access_feature(target):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": "feature_locked",
                    "message": f"{module_label(target)} requires an approved account or organization membership.",
                    "module": target.value,
                    "premium_only": decision.is_premium_only(target),
                },
            )

        return decision

    return _checker


def require_quota(resource) -> Callable:
    """
    Server-side free-tier quota check before creating a resource.
    """
    r = normalize_resource(resource)
    limit = get_limit_for_resource(r)

    async def _checker(
        decision: AccessDecision = Depends(get_access),
        db: AsyncSession = Depends(get_db),
    ) -> AccessDecision:
        if decision.bypasses_usage_limits():
            return decision

        if decision.user_id is None or not decision.resolved:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "profile_not_found", "message": "Account could not be verified."},
            )

        try:
            usage = await count_usage(db, decision.user_id, decision.effective_org_id)
        except SQLAlchemyError:
            logger.exception("Counting usage for user %s failed", decision.user_id)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail={"code": "data_store_unavailable", "message": "Could not verify usage limits."},
            )

        report = build_usage_report(decision, usage)
        if not report.can_create(r):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "FREE_TIER_LIMIT_EXCEEDED",
                    "code": "FREE_TIER_LIMIT_EXCEEDED",
                    "message": "Free tier limit reached. Upgrade to create more.",
                    "resource": r,
                    "limit": limit,
                    "used": usage.get(r, 0),
                },
            )

        return decision

    return _checker
