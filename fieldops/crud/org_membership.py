# fieldops/crud/org_membership.py
from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.models.org_membership import OrgMembership


async def get_org_membership(
    db: AsyncSession,
    org_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Optional[OrgMembership]:
    """
    Explicit membership row for (org, user). Roles are stored lowercase:
    "owner", "admin", "staff", "viewer".
    """
    stmt = (
        select(OrgMembership)
        .where(OrgMembership.org_id == org_id)
        .where(OrgMembership.user_id == user_id)
    )
    res = await db.execute(stmt)
    return res.scalar_one_or_none()
