# fieldops/api/v1/org_features.py
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.api.deps.access import get_feature_cache, load_org_flags
from fieldops.api.deps.org import get_feature_manager_org, get_readable_org
from fieldops.core.feature_cache import FeatureFlagCache
from fieldops.core.features import ALL_MODULES, parse_module
from fieldops.crud.org_feature import enable_modules, list_org_features, upsert_org_feature
from fieldops.db.session import get_db
from fieldops.models.organization import Organization
from fieldops.schemas.org_feature import OrgFeatureConfigUpdate, OrgFeatureOut, OrgFeatureToggle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orgs/{org_id}/features", tags=["org-features"])


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------
def _module_or_422(module: str) -> str:
    try:
        return parse_module(module).value
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"code": "unknown_module", "message": str(e)},
        )


async def _commit_and_reload(
    db: AsyncSession,
    cache: FeatureFlagCache,
    org: Organization,
    action: str,
) -> List[OrgFeatureOut]:
    """
    Commit the pending flag writes, drop the org's cache entry and return the
    fresh rows (which also re-primes the cache).
    """
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to %s for org %s", action, org.id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "data_store_unavailable", "message": f"Failed to {action}."},
        )

    cache.invalidate(org.id)
    logger.info("Org %s: %s", org.id, action)
    flags = await load_org_flags(db, cache, org.id)
    return [OrgFeatureOut(org_id=f.org_id, module=f.module, enabled=f.enabled, config=f.config) for f in flags]


# ---------------------------------------------------------
# Reads
# ---------------------------------------------------------
@router.get("", response_model=List[OrgFeatureOut])
async def list_features(
    org: Organization = Depends(get_readable_org),
    db: AsyncSession = Depends(get_db),
    cache: FeatureFlagCache = Depends(get_feature_cache),
):
    flags = await load_org_flags(db, cache, org.id)
    return [OrgFeatureOut(org_id=f.org_id, module=f.module, enabled=f.enabled, config=f.config) for f in flags]


@router.post("/refresh", response_model=List[OrgFeatureOut])
async def refresh_features(
    org: Organization = Depends(get_readable_org),
    db: AsyncSession = Depends(get_db),
    cache: FeatureFlagCache = Depends(get_feature_cache),
):
    """
    Explicit invalidation: the next read goes to the data store.
    """
    cache.invalidate(org.id)
    try:
        flags = await list_org_features(db, org.id)
    except SQLAlchemyError:
        logger.exception("Refreshing feature flags for org %s failed", org.id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "data_store_unavailable", "message": "Failed to refresh features."},
        )
    cache.prime(org.id, flags)
    return [OrgFeatureOut(org_id=f.org_id, module=f.module, enabled=f.enabled, config=f.config) for f in flags]


# ---------------------------------------------------------
# Administration
# ---------------------------------------------------------
@router.put("/{module}", response_model=List[OrgFeatureOut])
async def toggle_feature(
    module: str,
    payload: OrgFeatureToggle,
    org: Organization = Depends(get_feature_manager_org),
    db: AsyncSession = Depends(get_db),
    cache: FeatureFlagCache = Depends(get_feature_cache),
):
    name = _module_or_422(module)
    try:
        await upsert_org_feature(db, org.id, name, enabled=payload.enabled)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to toggle %s for org %s", name, org.id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "data_store_unavailable", "message": "Failed to update feature."},
        )
    state = "enable" if payload.enabled else "disable"
    return await _commit_and_reload(db, cache, org, f"{state} {name}")


@router.put("/{module}/config", response_model=List[OrgFeatureOut])
async def update_feature_config(
    module: str,
    payload: OrgFeatureConfigUpdate,
    org: Organization = Depends(get_feature_manager_org),
    db: AsyncSession = Depends(get_db),
    cache: FeatureFlagCache = Depends(get_feature_cache),
):
    """
    Saving a module's config also enables it.
    """
    name = _module_or_422(module)
    try:
        await upsert_org_feature(db, org.id, name, enabled=True, config=payload.config)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to save %s config for org %s", name, org.id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "data_store_unavailable", "message": "Failed to save configuration."},
        )
    return await _commit_and_reload(db, cache, org, f"configure {name}")


@router.post("/enable-all", response_model=List[OrgFeatureOut])
async def enable_all_features(
    org: Organization = Depends(get_feature_manager_org),
    db: AsyncSession = Depends(get_db),
    cache: FeatureFlagCache = Depends(get_feature_cache),
):
    try:
        await enable_modules(db, org.id, [m.value for m in ALL_MODULES])
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to enable all features for org %s", org.id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "data_store_unavailable", "message": "Failed to enable some features."},
        )
    return await _commit_and_reload(db, cache, org, "enable all modules")
