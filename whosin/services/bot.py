from __future__ import annotations

import logging
from typing import Optional

from ..errors import StorageError
from ..repository import Repository
from ..schemas.roll_call import Attendance
from . import views
from .commands import (
    ChatCommand,
    Command,
    CommandParseError,
    EndRollCall,
    GetAllAttendances,
    InvalidCommand,
    ListAvailableCommands,
    MissingTitle,
    MissingUsername,
    StartRollCall,
    UpdateAttendanceFor,
    UpdateAttendanceSelf,
    UpdateQuiet,
    UpdateTitle,
    parse_command,
)

logger = logging.getLogger(__name__)

NO_CALL_IN_PROGRESS = "No roll call in progress."
GENERIC_ERROR = "An error has occurred."


class WhosInBot:
    def __init__(self, repository: Repository):
        self.repository = repository

    def handle(self, chat_command: ChatCommand) -> Optional[str]:
        try:
            command = parse_command(chat_command)
        except CommandParseError as exc:
            return self.handle_parse_error(exc)

        try:
            return self.handle_command(command)
        except StorageError:
            logger.exception(
                "Failed to handle %s in chat %s for user %s",
                chat_command.command,
                chat_command.chat_id,
                chat_command.user_id,
            )
            return GENERIC_ERROR

    def handle_command(self, command: Command) -> str:
        if isinstance(command, StartRollCall):
            logger.info("Starting roll call with title '%s'", command.title)
            self.repository.create_call(command.chat_id, command.title)
            return "Roll call started."

        if isinstance(command, EndRollCall):
            logger.info("Ending roll call")
            if self.repository.close_call(command.chat_id) is None:
                return NO_CALL_IN_PROGRESS
            return "Roll call ended."

        if isinstance(command, UpdateTitle):
            logger.info("Updating roll call title to '%s'", command.title)
            if self.repository.update_title(command.chat_id, command.title) is None:
                return NO_CALL_IN_PROGRESS
            return "Roll call title set."

        if isinstance(command, UpdateQuiet):
            logger.info("Updating roll call quiet to '%s'", command.quiet)
            snapshot = self.repository.set_quiet(command.chat_id, command.quiet)
            if snapshot is None:
                return NO_CALL_IN_PROGRESS
            if command.quiet:
                return "Ok fine, I'll be quiet. 🤐"
            return f"Sure. 😃\n\n{views.render_responses(snapshot.call, snapshot.responses)}"

        if isinstance(command, UpdateAttendanceSelf):
            logger.info("Setting own attendance for %s to '%s'", command.username, command.status)
            snapshot = self.repository.record_response_self(
                command.chat_id,
                command.user_id,
                command.username,
                Attendance(status=command.status, reason=command.reason),
            )
            return self._render_attendance(snapshot, command.username, command.status)

        if isinstance(command, UpdateAttendanceFor):
            logger.info("Setting attendance for %s to '%s'", command.username, command.status)
            snapshot = self.repository.record_response_for(
                command.chat_id,
                command.username,
                Attendance(status=command.status, reason=command.reason),
            )
            return self._render_attendance(snapshot, command.username, command.status)

        if isinstance(command, GetAllAttendances):
            snapshot = self.repository.get_snapshot(command.chat_id)
            if snapshot is None:
                return NO_CALL_IN_PROGRESS
            return f"{snapshot.call.title}\n\n{views.render_responses_full(snapshot.responses)}"

        if isinstance(command, ListAvailableCommands):
            return views.AVAILABLE_COMMANDS

        raise TypeError(f"Unhandled command {command!r}")

    def handle_parse_error(self, error: CommandParseError) -> str:
        if isinstance(error, MissingTitle):
            return "Please provide a title."
        if isinstance(error, MissingUsername):
            return "Please provide the person's name."
        if isinstance(error, InvalidCommand):
            logger.debug("Ignoring unknown command %s", error.command)
        return "I don't understand that."

    @staticmethod
    def _render_attendance(snapshot, username: str, status) -> str:
        if snapshot is None:
            return NO_CALL_IN_PROGRESS
        announcement = views.render_announcement(username, status)
        return f"{announcement}\n\n{views.render_responses(snapshot.call, snapshot.responses)}"
