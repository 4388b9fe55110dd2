"""
Core dependencies shared by the route modules
"""

from fastapi import Depends
from sqlalchemy.engine import Engine

from roastcall.database.client import get_engine
from roastcall.modules.groups.service import GroupService
from roastcall.modules.members.service import MemberService


def get_group_service(engine: Engine = Depends(get_engine)) -> GroupService:
    return GroupService(engine)


def get_member_service(engine: Engine = Depends(get_engine)) -> MemberService:
    return MemberService(engine)
