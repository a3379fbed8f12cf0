# fieldops/crud/usage.py
from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.core.tier_limits import QuotaResource
from fieldops.models.usage import calendar_events, form_templates, properties, work_orders


async def _count(db: AsyncSession, stmt) -> int:
    res = await db.execute(stmt)
    return int(res.scalar() or 0)


async def count_work_orders(db: AsyncSession, user_id: uuid.UUID, org_id: Optional[uuid.UUID]) -> int:
    stmt = select(func.count(work_orders.c.id))
    if org_id is not None:
        stmt = stmt.where(work_orders.c.organization_id == org_id)
    else:
        stmt = stmt.where(work_orders.c.user_id == user_id).where(work_orders.c.organization_id.is_(None))
    return await _count(db, stmt)


async def count_properties(db: AsyncSession, user_id: uuid.UUID) -> int:
    stmt = select(func.count(properties.c.id)).where(properties.c.user_id == user_id)
    return await _count(db, stmt)


async def count_forms(db: AsyncSession, user_id: uuid.UUID, org_id: Optional[uuid.UUID]) -> int:
    """
    Org members count organization-scoped templates; free users count their own
    user-scoped templates outside any org.
    """
    stmt = select(func.count(form_templates.c.id))
    if org_id is not None:
        stmt = stmt.where(form_templates.c.org_id == org_id).where(form_templates.c.scope == "organization")
    else:
        stmt = (
            stmt.where(form_templates.c.created_by == user_id)
            .where(form_templates.c.org_id.is_(None))
            .where(form_templates.c.scope == "user")
        )
    return await _count(db, stmt)


async def count_calendar_events(db: AsyncSession, user_id: uuid.UUID, org_id: Optional[uuid.UUID]) -> int:
    stmt = select(func.count(calendar_events.c.id))
    if org_id is not None:
        stmt = stmt.where(calendar_events.c.organization_id == org_id)
    else:
        stmt = stmt.where(calendar_events.c.created_by == user_id).where(calendar_events.c.organization_id.is_(None))
    return await _count(db, stmt)


async def count_usage(db: AsyncSession, user_id: uuid.UUID, org_id: Optional[uuid.UUID]) -> dict[str, int]:
    return {
        QuotaResource.WORK_ORDERS.value: await count_work_orders(db, user_id, org_id),
        QuotaResource.PROPERTIES.value: await count_properties(db, user_id),
        QuotaResource.FORMS.value: await count_forms(db, user_id, org_id),
        QuotaResource.CALENDAR_EVENTS.value: await count_calendar_events(db, user_id, org_id),
    }
