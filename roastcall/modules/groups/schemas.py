from pydantic import BaseModel, ConfigDict
from typing import Optional, Tuple
from datetime import datetime

from roastcall.modules.members.schemas import MemberResponse


class GroupCreate(BaseModel):
    name: Optional[str] = None


class GroupUpdate(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None


class GroupRename(BaseModel):
    name: Optional[str] = None


class GroupResponse(BaseModel):
    id: int
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, frozen=True)


class GroupWithMembers(GroupResponse):
    members: Tuple[MemberResponse, ...] = ()


class OkResponse(BaseModel):
    ok: bool = True
