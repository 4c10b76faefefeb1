from __future__ import annotations

from typing import Sequence

from ..models import AttendanceStatus, RollCall, RollCallResponse
from ..schemas.roll_call import StatusCounts
from .summary import StatusSection, full_summary, short_summary, summarize

COMMANDS = (
    "start_roll_call",
    "end_roll_call",
    "set_title",
    "shh",
    "louder",
    "in",
    "out",
    "maybe",
    "set_in_for",
    "set_out_for",
    "set_maybe_for",
    "whos_in",
    "available_commands",
)

AVAILABLE_COMMANDS = "Available commands:\n" + "\n".join(f" 🍺 /{command}" for command in COMMANDS)

NO_RESPONSES = "No responses yet. 😢"

_ANNOUNCEMENTS = {
    AttendanceStatus.IN: "{} is in!",
    AttendanceStatus.OUT: "{} is out!",
    AttendanceStatus.MAYBE: "{} might come!",
}

_SECTION_TITLES = {
    AttendanceStatus.IN: "In",
    AttendanceStatus.OUT: "Out",
    AttendanceStatus.MAYBE: "Maybe",
}


def render_announcement(name: str, status: AttendanceStatus) -> str:
    return _ANNOUNCEMENTS[AttendanceStatus(status)].format(name)


def render_counts(counts: StatusCounts) -> str:
    return f"Total: {counts.in_count} in, {counts.out_count} out, {counts.maybe_count} might come."


def render_sections(sections: Sequence[StatusSection]) -> str:
    if not sections:
        return NO_RESPONSES

    blocks = []
    for section in sections:
        lines = [f"{_SECTION_TITLES[section.status]} ({section.count})"]
        for line in section.lines:
            lines.append(f" - {line.name} ({line.reason})" if line.reason else f" - {line.name}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def render_responses_short(responses: Sequence[RollCallResponse]) -> str:
    return render_counts(short_summary(responses))


def render_responses_full(responses: Sequence[RollCallResponse]) -> str:
    return render_sections(full_summary(responses))


def render_responses(roll_call: RollCall, responses: Sequence[RollCallResponse]) -> str:
    summary = summarize(roll_call, responses)
    if isinstance(summary, StatusCounts):
        return render_counts(summary)
    return render_sections(summary)
