# fieldops/api/v1/preferences.py
from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.api.deps.access import get_access, get_module_resolver
from fieldops.core.config import settings
from fieldops.core.navigation import ModuleResolver
from fieldops.core.quick_add import (
    QuickAddFeatureLocked,
    QuickAddLimitExceeded,
    build_actions,
    default_selection,
    selection_warning,
    toggle_item,
    validate_selection,
)
from fieldops.core.tier_resolver import AccessDecision
from fieldops.crud.user_preference import get_user_preferences, upsert_user_preferences
from fieldops.db.session import get_db
from fieldops.schemas.preferences import (
    ModulePicksOut,
    ModulePicksUpdate,
    QuickAddActionOut,
    QuickAddOut,
    QuickAddToggle,
    QuickAddToggleOut,
    QuickAddUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/preferences", tags=["preferences"])


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------
def _require_user(decision: AccessDecision) -> uuid.UUID:
    if decision.user_id is None or not decision.resolved:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "profile_not_found", "message": "No profile exists for this user."},
        )
    return decision.user_id


def _quick_add_limit(decision: AccessDecision) -> Optional[int]:
    return None if decision.has_premium_access() else settings.QUICK_ADD_FREE_TIER_LIMIT


async def _load_prefs(db: AsyncSession, user_id: uuid.UUID, workspace_id: Optional[uuid.UUID]):
    try:
        return await get_user_preferences(db, user_id, workspace_id)
    except SQLAlchemyError:
        logger.exception("Loading preferences for user %s failed", user_id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "data_store_unavailable", "message": "Failed to load preferences."},
        )


async def _save_prefs(db: AsyncSession, user_id: uuid.UUID, workspace_id: Optional[uuid.UUID], **fields):
    try:
        prefs = await upsert_user_preferences(db, user_id, workspace_id, **fields)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Saving preferences for user %s failed", user_id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "data_store_unavailable", "message": "Failed to save preferences."},
        )
    return prefs


def _is_customized(prefs) -> bool:
    # NULL items: quick-add never saved (row may exist for module picks only)
    return prefs is not None and prefs.quick_add_items is not None


def _locked_error(e: QuickAddFeatureLocked, decision: AccessDecision) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={
            "code": "feature_locked",
            "message": str(e),
            "module": e.module.value,
            "premium_only": decision.is_premium_only(e.module),
        },
    )


def _quick_add_view(
    decision: AccessDecision,
    resolver: ModuleResolver,
    workspace_id: Optional[uuid.UUID],
    prefs,
) -> QuickAddOut:
    available = resolver.available_modules()
    limit = _quick_add_limit(decision)

    enabled = bool(prefs.quick_add_enabled) if prefs is not None else True
    customized = _is_customized(prefs)
    if customized:
        items = list(prefs.quick_add_items)
    else:
        items = default_selection(available, decision, settings.QUICK_ADD_FREE_TIER_LIMIT)

    actions = build_actions(resolver, decision, enabled, items)
    return QuickAddOut(
        workspace_id=workspace_id,
        quick_add_enabled=enabled,
        quick_add_items=items,
        customized=customized,
        limit=limit,
        available=available,
        actions=[QuickAddActionOut(module=a.module.value, path=a.path, label=a.label) for a in actions],
        warning=selection_warning(enabled, items),
    )


# ---------------------------------------------------------
# Quick add
# ---------------------------------------------------------
@router.get("/quick-add", response_model=QuickAddOut)
async def get_quick_add(
    workspace_id: Optional[uuid.UUID] = Query(default=None),
    decision: AccessDecision = Depends(get_access),
    resolver: ModuleResolver = Depends(get_module_resolver),
    db: AsyncSession = Depends(get_db),
) -> QuickAddOut:
    user_id = _require_user(decision)
    prefs = await _load_prefs(db, user_id, workspace_id)
    return _quick_add_view(decision, resolver, workspace_id, prefs)


@router.put("/quick-add", response_model=QuickAddOut)
async def save_quick_add(
    payload: QuickAddUpdate,
    decision: AccessDecision = Depends(get_access),
    resolver: ModuleResolver = Depends(get_module_resolver),
    db: AsyncSession = Depends(get_db),
) -> QuickAddOut:
    user_id = _require_user(decision)

    try:
        items = validate_selection(payload.quick_add_items, decision, settings.QUICK_ADD_FREE_TIER_LIMIT)
    except QuickAddFeatureLocked as e:
        raise _locked_error(e, decision)
    except QuickAddLimitExceeded as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "code": "QUICK_ADD_LIMIT_EXCEEDED",
                "message": str(e),
                "limit": e.limit,
                "requested": e.requested,
            },
        )

    prefs = await _save_prefs(
        db,
        user_id,
        payload.workspace_id,
        quick_add_enabled=payload.quick_add_enabled,
        quick_add_items=items,
    )
    return _quick_add_view(decision, resolver, payload.workspace_id, prefs)


@router.post("/quick-add/toggle", response_model=QuickAddToggleOut)
async def toggle_quick_add_item(
    payload: QuickAddToggle,
    decision: AccessDecision = Depends(get_access),
    resolver: ModuleResolver = Depends(get_module_resolver),
    db: AsyncSession = Depends(get_db),
) -> QuickAddToggleOut:
    """
    Add or remove one item. Past the free-tier cap nothing is written and the
    rejection notification comes back in the 403 detail.
    """
    user_id = _require_user(decision)
    prefs = await _load_prefs(db, user_id, payload.workspace_id)

    if _is_customized(prefs):
        current = list(prefs.quick_add_items)
    else:
        current = default_selection(resolver.available_modules(), decision, settings.QUICK_ADD_FREE_TIER_LIMIT)

    try:
        result = toggle_item(current, payload.item, decision, settings.QUICK_ADD_FREE_TIER_LIMIT)
    except QuickAddFeatureLocked as e:
        raise _locked_error(e, decision)
    if result.rejected:
        logger.info("Quick add toggle rejected for user %s: free tier cap reached", user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "code": "QUICK_ADD_LIMIT_EXCEEDED",
                "message": result.notification.message,
                "limit": settings.QUICK_ADD_FREE_TIER_LIMIT,
                "quick_add_items": result.selection,
                "notification": {
                    "title": result.notification.title,
                    "message": result.notification.message,
                    "level": result.notification.level,
                },
            },
        )

    prefs = await _save_prefs(db, user_id, payload.workspace_id, quick_add_items=result.selection)
    return QuickAddToggleOut(quick_add_items=list(prefs.quick_add_items), notification=None)


# ---------------------------------------------------------
# Module picks (users without an organization)
# ---------------------------------------------------------
@router.get("/modules", response_model=ModulePicksOut)
async def get_module_picks(
    decision: AccessDecision = Depends(get_access),
    db: AsyncSession = Depends(get_db),
) -> ModulePicksOut:
    user_id = _require_user(decision)
    prefs = await _load_prefs(db, user_id, None)
    return ModulePicksOut(enabled_modules=list(prefs.enabled_modules or []) if prefs else [])


@router.put("/modules", response_model=ModulePicksOut)
async def save_module_picks(
    payload: ModulePicksUpdate,
    decision: AccessDecision = Depends(get_access),
    db: AsyncSession = Depends(get_db),
) -> ModulePicksOut:
    user_id = _require_user(decision)
    prefs = await _save_prefs(db, user_id, None, enabled_modules=payload.enabled_modules)
    return ModulePicksOut(enabled_modules=list(prefs.enabled_modules))
