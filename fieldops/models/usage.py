# fieldops/models/usage.py
#
# Count-only views of the resource tables owned by the data store.
# Only the columns the free-tier quota queries filter on are mapped.

from sqlalchemy import Column, ForeignKey, String, Table, Uuid

from fieldops.db.base import Base

work_orders = Table(
    "work_orders",
    Base.metadata,
    Column("id", Uuid, primary_key=True),
    Column("user_id", Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
    Column("organization_id", Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=True),
)

# properties carry no org column; always counted per user
properties = Table(
    "properties",
    Base.metadata,
    Column("id", Uuid, primary_key=True),
    Column("user_id", Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
)

form_templates = Table(
    "form_templates",
    Base.metadata,
    Column("id", Uuid, primary_key=True),
    Column("created_by", Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
    Column("org_id", Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=True),
    # user | organization
    Column("scope", String(20), nullable=False),
)

calendar_events = Table(
    "calendar_events",
    Base.metadata,
    Column("id", Uuid, primary_key=True),
    Column("created_by", Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
    Column("organization_id", Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=True),
)
