from fastapi import APIRouter, Depends
from typing import Optional

from roastcall.core.errors import raise_http_error, require
from roastcall.core.dependencies import get_member_service
from roastcall.modules.groups.schemas import OkResponse
from roastcall.modules.members.schemas import (
    MemberCreate, MemberResponse, MemberUpdate, MemberUpdateRequest
)
from roastcall.modules.members.service import MemberService

router = APIRouter(prefix="/members", tags=["members"])


@router.post("", response_model=MemberResponse, status_code=201)
async def create_member(
    member_data: MemberCreate,
    service: MemberService = Depends(get_member_service)
):
    """Add a member to the group named in the body"""
    try:
        require(member_data.group_id, "group_id is required")
        return service.create_member(member_data.group_id, member_data.name)
    except Exception as e:
        raise_http_error(e, "POST /members")


@router.put("", response_model=MemberResponse)
async def update_member(
    member_data: MemberUpdateRequest,
    service: MemberService = Depends(get_member_service)
):
    """Update a member's name and/or check-in flag"""
    try:
        require(member_data.id, "id is required")
        updates = MemberUpdate(name=member_data.name, checked_in=member_data.checked_in)
        return service.update_member(member_data.id, updates)
    except Exception as e:
        raise_http_error(e, "PUT /members")


@router.delete("", response_model=OkResponse)
async def delete_member(
    id: Optional[int] = None,
    service: MemberService = Depends(get_member_service)
):
    """Remove a member (?id=N)"""
    try:
        require(id, "id is required")
        service.delete_member(id)
        return OkResponse()
    except Exception as e:
        raise_http_error(e, "DELETE /members")


@router.put("/{member_id}", response_model=MemberResponse)
async def edit_member(
    member_id: int,
    updates: MemberUpdate,
    service: MemberService = Depends(get_member_service)
):
    try:
        return service.update_member(member_id, updates)
    except Exception as e:
        raise_http_error(e, f"PUT /members/{member_id}")


@router.delete("/{member_id}", response_model=OkResponse)
async def remove_member(
    member_id: int,
    service: MemberService = Depends(get_member_service)
):
    try:
        service.delete_member(member_id)
        return OkResponse()
    except Exception as e:
        raise_http_error(e, f"DELETE /members/{member_id}")
