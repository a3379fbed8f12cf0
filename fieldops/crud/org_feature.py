# fieldops/crud/org_feature.py
from __future__ import annotations

import uuid
from typing import Any, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.core.feature_cache import FeatureFlag
from fieldops.models.org_feature import OrgFeature


def to_flag(row: OrgFeature) -> FeatureFlag:
    return FeatureFlag(
        org_id=row.org_id,
        module=row.module,
        enabled=bool(row.enabled),
        config=dict(row.config or {}),
    )


async def list_org_features(db: AsyncSession, org_id: uuid.UUID) -> list[FeatureFlag]:
    """
    All flag rows for one organization, detached from the session so they can
    live in the feature cache.
    """
    stmt = select(OrgFeature).where(OrgFeature.org_id == org_id).order_by(OrgFeature.module)
    res = await db.execute(stmt)
    return [to_flag(row) for row in res.scalars().all()]


async def upsert_org_feature(
    db: AsyncSession,
    org_id: uuid.UUID,
    module: str,
    *,
    enabled: bool,
    config: Optional[dict[str, Any]] = None,
) -> OrgFeature:
    """
    Insert or update the single (org_id, module) row. Does not commit.
    config=None keeps the stored config.
    """
    stmt = (
        select(OrgFeature)
        .where(OrgFeature.org_id == org_id)
        .where(OrgFeature.module == module)
    )
    row = (await db.execute(stmt)).scalar_one_or_none()

    if row is None:
        row = OrgFeature(org_id=org_id, module=module, enabled=enabled, config=dict(config or {}))
        db.add(row)
    else:
        row.enabled = enabled
        if config is not None:
            row.config = dict(config)

    await db.flush()
    return row


async def enable_modules(db: AsyncSession, org_id: uuid.UUID, modules: Iterable[str]) -> None:
    for module in modules:
        await upsert_org_feature(db, org_id, module, enabled=True)
