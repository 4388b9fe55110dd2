"""
CSV check-in report that stage managers download from the dashboard
"""

import csv
import io
from datetime import date
from typing import Iterable, Optional

from roastcall.modules.groups.schemas import GroupWithMembers

CSV_HEADER = ("Group", "Member", "Checked In")


def build_checkin_csv(groups: Iterable[GroupWithMembers]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for group in groups:
        for member in group.members:
            writer.writerow((group.name, member.name, "Yes" if member.checked_in else "No"))
    return buffer.getvalue()


def report_filename(day: Optional[date] = None) -> str:
    return f"checkin-report-{(day or date.today()).isoformat()}.csv"
