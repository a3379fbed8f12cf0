# fieldops/crud/user_preference.py
from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.models.user_preference import UserPreference

logger = logging.getLogger(__name__)


def _scope(stmt, user_id: uuid.UUID, workspace_id: Optional[uuid.UUID]):
    stmt = stmt.where(UserPreference.user_id == user_id)
    if workspace_id is None:
        return stmt.where(UserPreference.workspace_id.is_(None))
    return stmt.where(UserPreference.workspace_id == workspace_id)


async def get_user_preferences(
    db: AsyncSession,
    user_id: uuid.UUID,
    workspace_id: Optional[uuid.UUID] = None,
) -> Optional[UserPreference]:
    res = await db.execute(_scope(select(UserPreference), user_id, workspace_id))
    return res.scalar_one_or_none()


async def _create_user_preferences(
    db: AsyncSession,
    user_id: uuid.UUID,
    workspace_id: Optional[uuid.UUID],
) -> UserPreference:
    """
    Insert an empty row. If a concurrent request inserted it first, the
    session is rolled back and that row is returned instead.
    """
    prefs = UserPreference(
        user_id=user_id,
        workspace_id=workspace_id,
        quick_add_enabled=True,
        quick_add_items=None,
        enabled_modules=[],
    )
    db.add(prefs)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        logger.info("Preferences for user %s (workspace %s) created concurrently; reusing row", user_id, workspace_id)
        existing = await get_user_preferences(db, user_id, workspace_id)
        if existing is None:
            raise
        return existing
    return prefs


async def upsert_user_preferences(
    db: AsyncSession,
    user_id: uuid.UUID,
    workspace_id: Optional[uuid.UUID] = None,
    *,
    quick_add_enabled: Optional[bool] = None,
    quick_add_items: Optional[list[str]] = None,
    enabled_modules: Optional[list[str]] = None,
) -> UserPreference:
    """
    Update the preference row for (user, workspace), creating it if missing.
    Fields left as None keep their stored (or default) value; quick-add items
    stay NULL until a quick-add save. Does not commit.
    """
    prefs = await get_user_preferences(db, user_id, workspace_id)
    if prefs is None:
        prefs = await _create_user_preferences(db, user_id, workspace_id)

    if quick_add_enabled is not None:
        prefs.quick_add_enabled = quick_add_enabled
    if quick_add_items is not None:
        prefs.quick_add_items = list(quick_add_items)
    if enabled_modules is not None:
        prefs.enabled_modules = list(enabled_modules)

    await db.flush()
    return prefs
