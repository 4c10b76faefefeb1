from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from .roll_call import RollCall
    from .roll_call_response import RollCallResponse

CallId = int
ResponseId = int
ChatId = int
UserId = int


class CallWithResponses(NamedTuple):
    """Point-in-time read of a roll call and its responses."""

    call: "RollCall"
    responses: list["RollCallResponse"]
