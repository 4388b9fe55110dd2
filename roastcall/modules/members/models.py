# Roster table: members
# group_id -> groups.id, ON DELETE CASCADE (needs PRAGMA foreign_keys=ON, see database/client.py)

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Table, false

from roastcall.database.base import metadata
from roastcall.modules.groups.models import CREATED_AT_DEFAULT

members = Table(
    "members",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("group_id", Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("name", String, nullable=False),
    Column("checked_in", Boolean, nullable=False, server_default=false()),
    Column("created_at", String, nullable=False, server_default=CREATED_AT_DEFAULT),
    sqlite_autoincrement=True,
)
