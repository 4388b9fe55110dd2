"""
Read-only projections of a snapshot for the dashboard: search and check-in totals
"""

from pydantic import BaseModel
from typing import List

from roastcall.sync.snapshot import Snapshot


class GroupCheckin(BaseModel):
    group_id: int
    name: str
    total: int
    checked_in: int


class CheckinSummary(BaseModel):
    total_members: int
    total_checked_in: int
    groups: List[GroupCheckin]


def filter_groups(snapshot: Snapshot, query: str) -> Snapshot:
    """Groups whose name, or any member's name, contains `query` (case-insensitive)"""
    needle = (query or "").strip().lower()
    if not needle:
        return snapshot
    return tuple(
        g for g in snapshot
        if needle in g.name.lower() or any(needle in m.name.lower() for m in g.members)
    )


def checkin_summary(snapshot: Snapshot) -> CheckinSummary:
    per_group = [
        GroupCheckin(
            group_id=g.id,
            name=g.name,
            total=len(g.members),
            checked_in=sum(1 for m in g.members if m.checked_in),
        )
        for g in snapshot
    ]
    return CheckinSummary(
        total_members=sum(g.total for g in per_group),
        total_checked_in=sum(g.checked_in for g in per_group),
        groups=per_group,
    )
