from fastapi import APIRouter, Depends, Response
from typing import List, Optional

from roastcall.core.errors import raise_http_error, require
from roastcall.core.dependencies import get_group_service, get_member_service
from roastcall.modules.groups.export import build_checkin_csv, report_filename
from roastcall.modules.groups.schemas import (
    GroupCreate, GroupUpdate, GroupRename, GroupResponse, GroupWithMembers, OkResponse
)
from roastcall.modules.groups.service import GroupService
from roastcall.modules.members.schemas import MemberAdd, MemberResponse
from roastcall.modules.members.service import MemberService

router = APIRouter(prefix="/groups", tags=["groups"])


@router.get("", response_model=List[GroupWithMembers])
async def list_groups(service: GroupService = Depends(get_group_service)):
    """List every group with its members"""
    try:
        return service.list_all()
    except Exception as e:
        raise_http_error(e, "GET /groups")


@router.post("", response_model=GroupWithMembers, status_code=201)
async def create_group(
    group_data: Optional[GroupCreate] = None,
    service: GroupService = Depends(get_group_service)
):
    """Create a new group; the body is optional"""
    try:
        return service.create_group(group_data.name if group_data else None)
    except Exception as e:
        raise_http_error(e, "POST /groups")


@router.put("", response_model=GroupResponse)
async def update_group(
    group_data: GroupUpdate,
    service: GroupService = Depends(get_group_service)
):
    """Rename a group identified in the body"""
    try:
        require(group_data.id and group_data.name, "id and name are required")
        return service.rename_group(group_data.id, group_data.name)
    except Exception as e:
        raise_http_error(e, "PUT /groups")


@router.delete("", response_model=OkResponse)
async def delete_group(
    id: Optional[int] = None,
    service: GroupService = Depends(get_group_service)
):
    """Delete a group (?id=N) and, by cascade, its members"""
    try:
        require(id, "id is required")
        service.delete_group(id)
        return OkResponse()
    except Exception as e:
        raise_http_error(e, "DELETE /groups")


@router.get("/export")
async def export_groups(service: GroupService = Depends(get_group_service)):
    """Download the check-in report as CSV"""
    try:
        body = build_checkin_csv(service.list_all())
    except Exception as e:
        raise_http_error(e, "GET /groups/export")
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{report_filename()}"'},
    )


@router.put("/{group_id}", response_model=GroupResponse)
async def rename_group(
    group_id: int,
    group_data: GroupRename,
    service: GroupService = Depends(get_group_service)
):
    """Rename a group identified in the path"""
    try:
        require(group_data.name, "name is required")
        return service.rename_group(group_id, group_data.name)
    except Exception as e:
        raise_http_error(e, f"PUT /groups/{group_id}")


@router.delete("/{group_id}", response_model=OkResponse)
async def remove_group(
    group_id: int,
    service: GroupService = Depends(get_group_service)
):
    try:
        service.delete_group(group_id)
        return OkResponse()
    except Exception as e:
        raise_http_error(e, f"DELETE /groups/{group_id}")


@router.post("/{group_id}/members", response_model=MemberResponse, status_code=201)
async def add_member(
    group_id: int,
    member_data: Optional[MemberAdd] = None,
    service: MemberService = Depends(get_member_service)
):
    """Add a member to the group in the path"""
    try:
        return service.create_member(group_id, member_data.name if member_data else None)
    except Exception as e:
        raise_http_error(e, f"POST /groups/{group_id}/members")
