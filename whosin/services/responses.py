"""Attendance responses recorded against the open roll call of a conversation."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from ..errors import StorageError
from ..models import RollCall, RollCallResponse
from ..models.roll_call import utcnow
from ..schemas.roll_call import Attendance
from . import roll_calls as roll_call_service

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def get_responses(db: Session, roll_call_id: int) -> list[RollCallResponse]:
    return list(
        db.scalars(
            select(RollCallResponse)
            .where(RollCallResponse.roll_call_id == roll_call_id)
            .order_by(RollCallResponse.updated_at.desc(), RollCallResponse.id.desc())
            .execution_options(populate_existing=True)
        )
    )


def get_snapshot(db: Session, conversation_id: int) -> tuple[RollCall, list[RollCallResponse]] | None:
    roll_call = roll_call_service.find_current_open(db, conversation_id)
    if roll_call is None:
        return None
    return roll_call, get_responses(db, roll_call.id)


def upsert_response(
    db: Session,
    conversation_id: int,
    dedup_token: str,
    user_id: int | None,
    user_name: str,
    attendance: Attendance,
) -> tuple[RollCall, list[RollCallResponse]] | None:
    roll_call = roll_call_service.find_current_open(db, conversation_id)
    if roll_call is None:
        return None

    dialect = db.get_bind().dialect.name
    try:
        insert = _UPSERT_DIALECTS[dialect]
    except KeyError:
        raise StorageError(f"Upsert is not supported on {dialect}") from None

    now = utcnow()
    statement = insert(RollCallResponse).values(
        roll_call_id=roll_call.id,
        dedup_token=dedup_token,
        user_id=user_id,
        user_name=user_name,
        status=attendance.status,
        reason=attendance.reason,
        created_at=now,
        updated_at=now,
    )
    statement = statement.on_conflict_do_update(
        index_elements=[RollCallResponse.roll_call_id, RollCallResponse.dedup_token],
        set_={
            "user_name": statement.excluded.user_name,
            "status": statement.excluded.status,
            "reason": statement.excluded.reason,
            "updated_at": statement.excluded.updated_at,
        },
    )
    db.execute(statement)
    logger.debug("Recorded %s response for call %s", attendance.status, roll_call.id)

    return roll_call, get_responses(db, roll_call.id)
