"""
Pure patch functions over an immutable snapshot.

A snapshot is a tuple of frozen GroupWithMembers models. Every function
returns a new tuple and leaves its input untouched, so a held reference to
an older snapshot is always a valid rollback target.
"""

from typing import Any, Callable, Tuple

from roastcall.modules.groups.schemas import GroupResponse, GroupWithMembers
from roastcall.modules.members.schemas import MemberResponse

Snapshot = Tuple[GroupWithMembers, ...]


def _map_group(snapshot: Snapshot, group_id: int, fn: Callable[[GroupWithMembers], GroupWithMembers]) -> Snapshot:
    return tuple(fn(g) if g.id == group_id else g for g in snapshot)


def append_group(snapshot: Snapshot, group: GroupWithMembers) -> Snapshot:
    return snapshot + (group,)


def replace_group(snapshot: Snapshot, group_id: int, group: GroupWithMembers) -> Snapshot:
    return _map_group(snapshot, group_id, lambda _: group)


def merge_group(snapshot: Snapshot, group_id: int, group: GroupResponse) -> Snapshot:
    """Overlay the server's group fields while keeping the cached members"""
    fields = group.model_dump(include={"id", "name", "created_at"})
    return _map_group(snapshot, group_id, lambda g: g.model_copy(update=fields))


def rename_group(snapshot: Snapshot, group_id: int, name: str) -> Snapshot:
    return _map_group(snapshot, group_id, lambda g: g.model_copy(update={"name": name}))


def drop_group(snapshot: Snapshot, group_id: int) -> Snapshot:
    return tuple(g for g in snapshot if g.id != group_id)


def append_member(snapshot: Snapshot, group_id: int, member: MemberResponse) -> Snapshot:
    return _map_group(
        snapshot, group_id,
        lambda g: g.model_copy(update={"members": g.members + (member,)}),
    )


def replace_member(snapshot: Snapshot, group_id: int, member_id: int, member: MemberResponse) -> Snapshot:
    return _map_group(
        snapshot, group_id,
        lambda g: g.model_copy(update={
            "members": tuple(member if m.id == member_id else m for m in g.members)
        }),
    )


def patch_member(snapshot: Snapshot, group_id: int, member_id: int, **changes: Any) -> Snapshot:
    return _map_group(
        snapshot, group_id,
        lambda g: g.model_copy(update={
            "members": tuple(m.model_copy(update=changes) if m.id == member_id else m for m in g.members)
        }),
    )


def drop_member(snapshot: Snapshot, group_id: int, member_id: int) -> Snapshot:
    return _map_group(
        snapshot, group_id,
        lambda g: g.model_copy(update={"members": tuple(m for m in g.members if m.id != member_id)}),
    )
