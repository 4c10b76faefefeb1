"""The capability interface the command layer talks to.

``SqlRepository`` runs every operation in exactly one database transaction and
turns SQLAlchemy failures into ``StorageError``. ``InMemoryRepository`` keeps the
same rules in plain Python so handlers can be exercised without a database.
"""

from __future__ import annotations

import itertools
from typing import Callable, Optional, Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .errors import StorageError
from .models import CallStatus, CallWithResponses, RollCall, RollCallResponse
from .models.roll_call import utcnow
from .schemas.roll_call import Attendance
from .services import responses as response_service
from .services import roll_calls as roll_call_service
from .services.tokens import token_for_named, token_for_self


T = TypeVar("T")


class Repository(Protocol):
    def create_call(self, conversation_id: int, title: str) -> RollCall: ...

    def close_call(self, conversation_id: int) -> Optional[RollCall]: ...

    def update_title(self, conversation_id: int, title: str) -> Optional[RollCall]: ...

    def set_quiet(self, conversation_id: int, quiet: bool) -> Optional[CallWithResponses]: ...

    def record_response_self(
        self, conversation_id: int, user_id: int, display_name: str, attendance: Attendance
    ) -> Optional[CallWithResponses]: ...

    def record_response_for(
        self, conversation_id: int, display_name: str, attendance: Attendance
    ) -> Optional[CallWithResponses]: ...

    def get_snapshot(self, conversation_id: int) -> Optional[CallWithResponses]: ...


class SqlRepository:
    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def create_call(self, conversation_id: int, title: str) -> RollCall:
        return self._transaction(lambda db: roll_call_service.create_call(db, conversation_id, title))

    def close_call(self, conversation_id: int) -> Optional[RollCall]:
        return self._transaction(lambda db: roll_call_service.close_call(db, conversation_id))

    def update_title(self, conversation_id: int, title: str) -> Optional[RollCall]:
        return self._transaction(lambda db: roll_call_service.update_title(db, conversation_id, title))

    def set_quiet(self, conversation_id: int, quiet: bool) -> Optional[CallWithResponses]:
        result = self._transaction(lambda db: roll_call_service.set_quiet(db, conversation_id, quiet))
        return _as_snapshot(result)

    def record_response_self(
        self, conversation_id: int, user_id: int, display_name: str, attendance: Attendance
    ) -> Optional[CallWithResponses]:
        token = token_for_self(user_id)
        result = self._transaction(
            lambda db: response_service.upsert_response(
                db, conversation_id, token, user_id, display_name, attendance
            )
        )
        return _as_snapshot(result)

    def record_response_for(
        self, conversation_id: int, display_name: str, attendance: Attendance
    ) -> Optional[CallWithResponses]:
        token = token_for_named(display_name)
        result = self._transaction(
            lambda db: response_service.upsert_response(
                db, conversation_id, token, None, display_name, attendance
            )
        )
        return _as_snapshot(result)

    def get_snapshot(self, conversation_id: int) -> Optional[CallWithResponses]:
        return _as_snapshot(self._transaction(lambda db: response_service.get_snapshot(db, conversation_id)))

    def _transaction(self, operation: Callable[[Session], T]) -> T:
        try:
            with self._session_factory() as db, db.begin():
                return operation(db)
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc


def _as_snapshot(result) -> Optional[CallWithResponses]:
    if result is None:
        return None
    call, responses = result
    return CallWithResponses(call, responses)


class InMemoryRepository:
    """Dictionary-backed repository with the same observable behaviour as ``SqlRepository``."""

    def __init__(self, closed_calls_to_keep: int = roll_call_service.CLOSED_CALLS_TO_KEEP):
        self.closed_calls_to_keep = closed_calls_to_keep
        self.calls: dict[int, RollCall] = {}
        self.responses: dict[int, RollCallResponse] = {}
        self._call_ids = itertools.count(1)
        self._response_ids = itertools.count(1)

    def create_call(self, conversation_id: int, title: str) -> RollCall:
        now = utcnow()
        for call in self._conversation_calls(conversation_id):
            if call.status != CallStatus.CLOSED:
                call.status = CallStatus.CLOSED
                call.updated_at = now

        closed = sorted(
            (c for c in self._conversation_calls(conversation_id) if c.status == CallStatus.CLOSED),
            key=lambda c: (c.created_at, c.id),
            reverse=True,
        )
        for stale in closed[self.closed_calls_to_keep:]:
            self._delete_call(stale.id)

        call = RollCall(
            id=next(self._call_ids),
            conversation_id=conversation_id,
            status=CallStatus.OPEN,
            title=title,
            quiet=False,
            created_at=now,
            updated_at=now,
        )
        self.calls[call.id] = call
        return _copy_call(call)

    def close_call(self, conversation_id: int) -> Optional[RollCall]:
        return self._update_current(conversation_id, status=CallStatus.CLOSED)

    def update_title(self, conversation_id: int, title: str) -> Optional[RollCall]:
        return self._update_current(conversation_id, title=title)

    def set_quiet(self, conversation_id: int, quiet: bool) -> Optional[CallWithResponses]:
        call = self._update_current(conversation_id, quiet=quiet)
        if call is None:
            return None
        return CallWithResponses(call, self._responses_for(call.id))

    def record_response_self(
        self, conversation_id: int, user_id: int, display_name: str, attendance: Attendance
    ) -> Optional[CallWithResponses]:
        return self._upsert(conversation_id, token_for_self(user_id), user_id, display_name, attendance)

    def record_response_for(
        self, conversation_id: int, display_name: str, attendance: Attendance
    ) -> Optional[CallWithResponses]:
        return self._upsert(conversation_id, token_for_named(display_name), None, display_name, attendance)

    def get_snapshot(self, conversation_id: int) -> Optional[CallWithResponses]:
        call = self._current(conversation_id)
        if call is None:
            return None
        return CallWithResponses(_copy_call(call), self._responses_for(call.id))

    def _conversation_calls(self, conversation_id: int) -> list[RollCall]:
        return [c for c in self.calls.values() if c.conversation_id == conversation_id]

    def _current(self, conversation_id: int) -> Optional[RollCall]:
        open_calls = [c for c in self._conversation_calls(conversation_id) if c.status == CallStatus.OPEN]
        if not open_calls:
            return None
        return max(open_calls, key=lambda c: (c.updated_at, c.id))

    def _update_current(self, conversation_id: int, **changes) -> Optional[RollCall]:
        call = self._current(conversation_id)
        if call is None:
            return None
        for key, value in changes.items():
            setattr(call, key, value)
        call.updated_at = utcnow()
        return _copy_call(call)

    def _delete_call(self, call_id: int) -> None:
        del self.calls[call_id]
        for response_id in [r.id for r in self.responses.values() if r.roll_call_id == call_id]:
            del self.responses[response_id]

    def _upsert(
        self,
        conversation_id: int,
        token: str,
        user_id: Optional[int],
        display_name: str,
        attendance: Attendance,
    ) -> Optional[CallWithResponses]:
        call = self._current(conversation_id)
        if call is None:
            return None

        now = utcnow()
        existing = next(
            (r for r in self.responses.values() if r.roll_call_id == call.id and r.dedup_token == token),
            None,
        )
        if existing is None:
            response = RollCallResponse(
                id=next(self._response_ids),
                roll_call_id=call.id,
                dedup_token=token,
                user_id=user_id,
                user_name=display_name,
                status=attendance.status,
                reason=attendance.reason,
                created_at=now,
                updated_at=now,
            )
            self.responses[response.id] = response
        else:
            existing.user_name = display_name
            existing.status = attendance.status
            existing.reason = attendance.reason
            existing.updated_at = now
        return CallWithResponses(_copy_call(call), self._responses_for(call.id))

    def _responses_for(self, call_id: int) -> list[RollCallResponse]:
        matching = [r for r in self.responses.values() if r.roll_call_id == call_id]
        matching.sort(key=lambda r: (r.updated_at, r.id), reverse=True)
        return [_copy_response(r) for r in matching]


def _copy_call(call: RollCall) -> RollCall:
    return RollCall(**{column.key: getattr(call, column.key) for column in RollCall.__table__.columns})


def _copy_response(response: RollCallResponse) -> RollCallResponse:
    return RollCallResponse(
        **{column.key: getattr(response, column.key) for column in RollCallResponse.__table__.columns}
    )
