"""
Alembic migration environment.
Uses DATABASE_URL_SYNC from settings and the fieldops model metadata.
"""
from logging.config import fileConfig

from sqlalchemy import create_engine, pool
from alembic import context

from fieldops.core.config import settings
from fieldops.db.base import Base
import fieldops.models  # noqa: F401  # register models

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# Resource tables are owned by the hosted store; only counted here.
EXTERNAL_TABLES = {"work_orders", "properties", "form_templates", "calendar_events"}


def include_object(obj, name, type_, reflected, compare_to):
    if type_ == "table" and name in EXTERNAL_TABLES:
        return False
    return True


def get_url() -> str:
    url = settings.DATABASE_URL_SYNC
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def run_migrations_offline() -> None:
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        include_object=include_object,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(get_url(), poolclass=pool.NullPool)

    try:
        with connectable.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                include_object=include_object,
            )

            with context.begin_transaction():
                context.run_migrations()
    finally:
        connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
