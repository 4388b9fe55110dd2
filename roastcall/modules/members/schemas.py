from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, Optional
from datetime import datetime

from roastcall.core.names import rename_value


class MemberCreate(BaseModel):
    group_id: Optional[int] = None
    name: Optional[str] = None


class MemberAdd(BaseModel):
    name: Optional[str] = None


class MemberUpdate(BaseModel):
    """Partial update: only the fields that are set are written."""
    name: Optional[str] = None
    checked_in: Optional[bool] = None

    def has_fields(self) -> bool:
        return self.name is not None or self.checked_in is not None

    def to_columns(self) -> Dict[str, Any]:
        """Column values to write; a blank name is dropped rather than stored."""
        columns: Dict[str, Any] = {}
        name = rename_value(self.name)
        if name is not None:
            columns["name"] = name
        if self.checked_in is not None:
            columns["checked_in"] = self.checked_in
        return columns


class MemberUpdateRequest(MemberUpdate):
    id: Optional[int] = None


class MemberResponse(BaseModel):
    id: int
    group_id: int
    name: str
    checked_in: bool = False
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, frozen=True)
