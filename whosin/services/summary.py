"""Pure aggregation of responses for display. No I/O."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ..models import AttendanceStatus, RollCall, RollCallResponse
from ..schemas.roll_call import StatusCounts

SECTION_ORDER = (AttendanceStatus.IN, AttendanceStatus.OUT, AttendanceStatus.MAYBE)


@dataclass(frozen=True)
class SummaryLine:
    name: str
    reason: str = ""


@dataclass(frozen=True)
class StatusSection:
    status: AttendanceStatus
    lines: list[SummaryLine] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.lines)


def group_by_status(responses: Iterable[RollCallResponse]) -> dict[AttendanceStatus, list[RollCallResponse]]:
    grouped: dict[AttendanceStatus, list[RollCallResponse]] = {}
    for response in responses:
        grouped.setdefault(AttendanceStatus(response.status), []).append(response)
    return grouped


def short_summary(responses: Iterable[RollCallResponse]) -> StatusCounts:
    grouped = group_by_status(responses)
    return StatusCounts(
        in_count=len(grouped.get(AttendanceStatus.IN, [])),
        out_count=len(grouped.get(AttendanceStatus.OUT, [])),
        maybe_count=len(grouped.get(AttendanceStatus.MAYBE, [])),
    )


def full_summary(responses: Iterable[RollCallResponse]) -> list[StatusSection]:
    """Sections for In, Out and Maybe in that order, first responder first.

    Empty sections are left out, so an empty list means nobody answered yet.
    """
    grouped = group_by_status(responses)
    sections = []
    for status in SECTION_ORDER:
        members = grouped.get(status)
        if not members:
            continue
        ordered = sorted(members, key=lambda response: (response.updated_at, response.id))
        sections.append(
            StatusSection(
                status=status,
                lines=[SummaryLine(name=r.user_name or "", reason=r.reason or "") for r in ordered],
            )
        )
    return sections


def uses_short_summary(roll_call: RollCall) -> bool:
    return bool(roll_call.quiet)


def summarize(roll_call: RollCall, responses: Sequence[RollCallResponse]) -> StatusCounts | list[StatusSection]:
    if uses_short_summary(roll_call):
        return short_summary(responses)
    return full_summary(responses)
