from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from fieldops.core.config import settings

# asyncpg rejects sslmode/channel_binding, so the cleaned URL is used.
DATABASE_URL_ASYNC = settings.DATABASE_URL_ASYNC_CLEAN


def _engine_options(url: str) -> dict[str, Any]:
    """
    Pool tuning for the hosted Postgres. SQLite (local runs, tests) keeps the
    dialect's own pool.
    """
    if make_url(url).get_backend_name() == "sqlite":
        return {}
    return {
        "pool_pre_ping": True,  # profile/flag reads must not hit a dead connection
        "pool_recycle": 300,
    }


engine: AsyncEngine = create_async_engine(
    DATABASE_URL_ASYNC,
    echo=False,
    future=True,
    **_engine_options(DATABASE_URL_ASYNC),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    One AsyncSession per request; every gate in the request shares it.
    """
    async with AsyncSessionLocal() as session:
        yield session
