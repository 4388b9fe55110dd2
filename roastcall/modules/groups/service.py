import logging
from collections import defaultdict
from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Engine
from typing import Dict, List

from roastcall.config.settings import settings
from roastcall.core.errors import NotFound
from roastcall.core.names import clean_name, rename_value
from roastcall.database.schema import ensure_schema
from roastcall.modules.groups.models import groups
from roastcall.modules.groups.schemas import GroupResponse, GroupWithMembers
from roastcall.modules.members.models import members
from roastcall.modules.members.schemas import MemberResponse

logger = logging.getLogger(__name__)


class GroupService:
    def __init__(self, engine: Engine):
        self.engine = engine

    def list_all(self) -> List[GroupWithMembers]:
        """Every group with its members, both ordered by creation time.

        Groups and members are fetched in two queries and stitched together
        here instead of joining in SQL.
        """
        ensure_schema(self.engine)
        with self.engine.connect() as conn:
            group_rows = conn.execute(
                select(groups).order_by(groups.c.created_at.asc(), groups.c.id.asc())
            ).mappings().all()
            member_rows = conn.execute(
                select(members).order_by(members.c.created_at.asc(), members.c.id.asc())
            ).mappings().all()

        members_by_group: Dict[int, List[MemberResponse]] = defaultdict(list)
        for row in member_rows:
            members_by_group[row["group_id"]].append(MemberResponse(**row))

        return [
            GroupWithMembers(**row, members=tuple(members_by_group.get(row["id"], ())))
            for row in group_rows
        ]

    def get_group(self, group_id: int) -> GroupResponse:
        """Get group by ID"""
        with self.engine.connect() as conn:
            row = conn.execute(
                select(groups).where(groups.c.id == group_id)
            ).mappings().first()
        if row is None:
            raise NotFound("Group not found")
        return GroupResponse(**row)

    def create_group(self, name: str = None) -> GroupWithMembers:
        """Create a new group; a blank name falls back to the placeholder"""
        ensure_schema(self.engine)
        with self.engine.begin() as conn:
            result = conn.execute(
                insert(groups).values(name=clean_name(name, settings.default_group_name))
            )
            group_id = result.inserted_primary_key[0]
        logger.info(f"Created group {group_id}")
        group = self.get_group(group_id)
        return GroupWithMembers(**group.model_dump(), members=())

    def rename_group(self, group_id: int, name: str) -> GroupResponse:
        """Rename a group. A blank name leaves the group untouched."""
        ensure_schema(self.engine)
        new_name = rename_value(name)
        if new_name is None:
            return self.get_group(group_id)
        with self.engine.begin() as conn:
            result = conn.execute(
                update(groups).where(groups.c.id == group_id).values(name=new_name)
            )
        if result.rowcount == 0:
            raise NotFound("Group not found")
        logger.info(f"Renamed group {group_id}")
        return self.get_group(group_id)

    def delete_group(self, group_id: int) -> bool:
        """Delete group; its members go with it through the FK cascade"""
        ensure_schema(self.engine)
        with self.engine.begin() as conn:
            result = conn.execute(delete(groups).where(groups.c.id == group_id))
        logger.info(f"Deleted group {group_id} (rows affected: {result.rowcount})")
        return result.rowcount > 0
