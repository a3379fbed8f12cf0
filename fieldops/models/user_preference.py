# fieldops/models/user_preference.py

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from fieldops.db.base import Base


class UserPreference(Base):
    __tablename__ = "user_preferences"
    __table_args__ = (
        UniqueConstraint("user_id", "workspace_id", name="uq_user_preferences_user_workspace"),
        # NULLs compare distinct, so user-wide rows need their own unique index
        Index(
            "uq_user_preferences_user_default",
            "user_id",
            unique=True,
            postgresql_where=text("workspace_id IS NULL"),
            sqlite_where=text("workspace_id IS NULL"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # NULL = user-wide defaults
    workspace_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    quick_add_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # NULL = never customised; the default selection applies
    quick_add_items: Mapped[Optional[list[str]]] = mapped_column(JSON(none_as_null=True), nullable=True, default=None)

    # Modules picked by users without an organization (no org_features rows to consult)
    enabled_modules: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
