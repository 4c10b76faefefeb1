"""Turns chat text into typed commands for the bot."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Union

from ..models import AttendanceStatus

COMMAND_PATTERN = re.compile(r"^(/[^@\s]+)(@\S*)?\s*(.*)$", re.DOTALL)
NAME_REASON_PATTERN = re.compile(r"^(\S+)\s*(.*)$", re.DOTALL)


@dataclass(frozen=True)
class ChatCommand:
    chat_id: int
    user_id: int
    username: str
    command: str
    params: str = ""


@dataclass(frozen=True)
class StartRollCall:
    chat_id: int
    title: str


@dataclass(frozen=True)
class EndRollCall:
    chat_id: int


@dataclass(frozen=True)
class UpdateTitle:
    chat_id: int
    title: str


@dataclass(frozen=True)
class UpdateQuiet:
    chat_id: int
    quiet: bool


@dataclass(frozen=True)
class UpdateAttendanceSelf:
    chat_id: int
    user_id: int
    username: str
    status: AttendanceStatus
    reason: str


@dataclass(frozen=True)
class UpdateAttendanceFor:
    chat_id: int
    username: str
    status: AttendanceStatus
    reason: str


@dataclass(frozen=True)
class GetAllAttendances:
    chat_id: int


@dataclass(frozen=True)
class ListAvailableCommands:
    pass


Command = Union[
    StartRollCall,
    EndRollCall,
    UpdateTitle,
    UpdateQuiet,
    UpdateAttendanceSelf,
    UpdateAttendanceFor,
    GetAllAttendances,
    ListAvailableCommands,
]


class CommandParseError(Exception):
    pass


class MissingTitle(CommandParseError):
    pass


class MissingUsername(CommandParseError):
    pass


class InvalidCommand(CommandParseError):
    def __init__(self, command: str):
        super().__init__(f"Invalid command ({command})")
        self.command = command


SELF_STATUS_COMMANDS = {
    "/in": AttendanceStatus.IN,
    "/out": AttendanceStatus.OUT,
    "/maybe": AttendanceStatus.MAYBE,
}

FOR_STATUS_COMMANDS = {
    "/set_in_for": AttendanceStatus.IN,
    "/set_out_for": AttendanceStatus.OUT,
    "/set_maybe_for": AttendanceStatus.MAYBE,
}


def parse_message(chat_id: int, user_id: int, username: str, text: str | None) -> Optional[ChatCommand]:
    """Split ``/command@bot params`` into its parts; plain chatter yields ``None``."""
    if not text:
        return None
    match = COMMAND_PATTERN.match(text)
    if not match:
        return None
    return ChatCommand(
        chat_id=chat_id,
        user_id=user_id,
        username=username,
        command=match.group(1),
        params=match.group(3).rstrip(),
    )


def parse_command(chat_command: ChatCommand) -> Command:
    chat_id = chat_command.chat_id
    command = chat_command.command
    params = chat_command.params

    if command == "/start_roll_call":
        return StartRollCall(chat_id=chat_id, title=params)
    if command == "/end_roll_call":
        return EndRollCall(chat_id=chat_id)
    if command == "/set_title":
        if not params:
            raise MissingTitle("missing title")
        return UpdateTitle(chat_id=chat_id, title=params)
    if command == "/shh":
        return UpdateQuiet(chat_id=chat_id, quiet=True)
    if command == "/louder":
        return UpdateQuiet(chat_id=chat_id, quiet=False)
    if command in SELF_STATUS_COMMANDS:
        return UpdateAttendanceSelf(
            chat_id=chat_id,
            user_id=chat_command.user_id,
            username=chat_command.username,
            status=SELF_STATUS_COMMANDS[command],
            reason=params,
        )
    if command in FOR_STATUS_COMMANDS:
        name, reason = _split_name_and_reason(params)
        return UpdateAttendanceFor(
            chat_id=chat_id,
            username=name,
            status=FOR_STATUS_COMMANDS[command],
            reason=reason,
        )
    if command == "/whos_in":
        return GetAllAttendances(chat_id=chat_id)
    if command in ("/available_commands", "/start"):
        return ListAvailableCommands()
    raise InvalidCommand(command)


def _split_name_and_reason(params: str) -> tuple[str, str]:
    match = NAME_REASON_PATTERN.match(params)
    if not match:
        raise MissingUsername("missing username")
    return match.group(1), match.group(2)
