import logging
from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Engine

from roastcall.config.settings import settings
from roastcall.core.errors import NoFieldsProvided, NotFound
from roastcall.core.names import clean_name
from roastcall.database.schema import ensure_schema
from roastcall.modules.groups.models import groups
from roastcall.modules.members.models import members
from roastcall.modules.members.schemas import MemberResponse, MemberUpdate

logger = logging.getLogger(__name__)


class MemberService:
    def __init__(self, engine: Engine):
        self.engine = engine

    def get_member(self, member_id: int) -> MemberResponse:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(members).where(members.c.id == member_id)
            ).mappings().first()
        if row is None:
            raise NotFound("Member not found")
        return MemberResponse(**row)

    def create_member(self, group_id: int, name: str = None) -> MemberResponse:
        """Add a member to a group"""
        ensure_schema(self.engine)
        with self.engine.begin() as conn:
            # Verify group exists
            exists = conn.execute(
                select(groups.c.id).where(groups.c.id == group_id)
            ).first()
            if exists is None:
                raise NotFound("Group not found")
            result = conn.execute(
                insert(members).values(
                    group_id=group_id,
                    name=clean_name(name, settings.default_member_name),
                )
            )
            member_id = result.inserted_primary_key[0]
        logger.info(f"Created member {member_id} in group {group_id}")
        return self.get_member(member_id)

    def update_member(self, member_id: int, updates: MemberUpdate) -> MemberResponse:
        """Write only the fields present in `updates`, then read the row back"""
        if not updates.has_fields():
            raise NoFieldsProvided("No fields to update")
        ensure_schema(self.engine)
        columns = updates.to_columns()
        if not columns:
            # Only a blank name was sent; nothing to write.
            return self.get_member(member_id)
        with self.engine.begin() as conn:
            result = conn.execute(
                update(members).where(members.c.id == member_id).values(**columns)
            )
        if result.rowcount == 0:
            raise NotFound("Member not found")
        logger.info(f"Updated member {member_id}: {sorted(columns)}")
        return self.get_member(member_id)

    def delete_member(self, member_id: int) -> bool:
        ensure_schema(self.engine)
        with self.engine.begin() as conn:
            result = conn.execute(delete(members).where(members.c.id == member_id))
        logger.info(f"Deleted member {member_id} (rows affected: {result.rowcount})")
        return result.rowcount > 0
