# fieldops/crud/profile.py
from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.models.profile import Profile


async def get_profile(db: AsyncSession, user_id: uuid.UUID) -> Optional[Profile]:
    stmt = select(Profile).where(Profile.id == user_id)
    res = await db.execute(stmt)
    return res.scalar_one_or_none()
