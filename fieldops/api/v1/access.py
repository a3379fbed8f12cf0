# fieldops/api/v1/access.py
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.api.deps.access import get_access, get_module_resolver, require_feature, require_quota
from fieldops.core.features import normalize_feature, parse_module
from fieldops.core.navigation import ModuleResolver, is_route_enabled, project_navigation
from fieldops.core.tier_limits import FREE_TIER_LIMITS, QuotaResource, build_usage_report
from fieldops.core.tier_resolver import AccessDecision
from fieldops.crud.usage import count_usage
from fieldops.db.session import get_db
from fieldops.schemas.access import (
    AccessOut,
    FeatureAccessOut,
    ModuleGuardOut,
    NavItemOut,
    RouteCheckOut,
    UsageItemOut,
    UsageOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/access", tags=["access"])


def _parse_module_or_422(module: str):
    try:
        return parse_module(module)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"code": "unknown_module", "message": str(e)},
        )


@router.get("/me", response_model=AccessOut)
async def my_access(decision: AccessDecision = Depends(get_access)) -> AccessOut:
    return AccessOut(
        user_id=decision.user_id,
        tier=decision.tier.value,
        has_premium_access=decision.has_premium_access(),
        is_approved=decision.is_approved,
        has_org=decision.has_org,
        is_super_admin=decision.is_super_admin,
        organization_id=decision.organization_id,
        features=decision.feature_matrix(),
    )


@router.get("/features/{feature}", response_model=FeatureAccessOut)
async def check_feature(
    feature: str,
    decision: AccessDecision = Depends(get_access),
) -> FeatureAccessOut:
    """
    Any feature name is accepted; unknown names are simply not on the free list.
    """
    name = normalize_feature(feature)
    return FeatureAccessOut(
        feature=name,
        allowed=decision.can_access_feature(name),
        premium_only=decision.is_premium_only(name),
    )


@router.get("/navigation", response_model=List[NavItemOut])
async def navigation(
    decision: AccessDecision = Depends(get_access),
    resolver: ModuleResolver = Depends(get_module_resolver),
):
    return [
        NavItemOut(
            module=item.module.value,
            label=item.label,
            path=item.path,
            icon=item.icon,
            is_locked=item.is_locked,
        )
        for item in project_navigation(resolver, decision)
    ]


@router.get("/routes", response_model=RouteCheckOut)
async def check_route(
    path: str = Query(..., min_length=1),
    resolver: ModuleResolver = Depends(get_module_resolver),
) -> RouteCheckOut:
    return RouteCheckOut(path=path, enabled=is_route_enabled(path, resolver))


@router.get("/modules/{module}/guard", response_model=ModuleGuardOut)
async def guard_module(
    module: str,
    decision: AccessDecision = Depends(get_access),
    resolver: ModuleResolver = Depends(get_module_resolver),
) -> ModuleGuardOut:
    target = _parse_module_or_422(module)
    # Same checks as the require_feature() dependency used on module routes.
    await require_feature(target)(decision=decision, resolver=resolver)
    return ModuleGuardOut(module=target.value)


@router.get("/usage", response_model=UsageOut)
async def usage(
    decision: AccessDecision = Depends(get_access),
    db: AsyncSession = Depends(get_db),
) -> UsageOut:
    counts: dict[str, int] = {}
    if decision.user_id is not None and not decision.bypasses_usage_limits():
        try:
            counts = await count_usage(db, decision.user_id, decision.effective_org_id)
        except SQLAlchemyError:
            logger.exception("Counting usage for user %s failed", decision.user_id)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail={"code": "data_store_unavailable", "message": "Could not load usage."},
            )

    report = build_usage_report(decision, counts)
    items = [
        UsageItemOut(
            resource=resource,
            used=report.usage[resource],
            limit=limit.max_items,
            remaining=report.remaining(resource),
            percent=report.usage_percent(resource),
            at_limit=report.is_at_limit(resource),
        )
        for resource, limit in FREE_TIER_LIMITS.items()
    ]
    return UsageOut(unlimited=report.unlimited, items=items)


@router.get("/usage/{resource}/check")
async def check_quota(
    resource: QuotaResource,
    decision: AccessDecision = Depends(get_access),
    db: AsyncSession = Depends(get_db),
):
    """
    Pre-create check: 200 when another item may be created, 403 FREE_TIER_LIMIT_EXCEEDED otherwise.
    """
    await require_quota(resource)(decision=decision, db=db)
    return {"status": "ok", "resource": resource.value}
