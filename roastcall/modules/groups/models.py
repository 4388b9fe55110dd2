# Roster table: groups
# Members reference this table and are removed with it (see members/models.py)

from sqlalchemy import Column, Integer, String, Table, text

from roastcall.database.base import metadata

# Millisecond UTC timestamps, assigned by the store on insert.
CREATED_AT_DEFAULT = text("(strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))")

groups = Table(
    "groups",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String, nullable=False),
    Column("created_at", String, nullable=False, server_default=CREATED_AT_DEFAULT),
    sqlite_autoincrement=True,  # ids are never reused
)
