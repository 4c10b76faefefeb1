"""Roll-call lifecycle inside a single conversation.

Every function here runs inside a transaction owned by the caller (see
``whosin.repository``); nothing commits on its own.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, select, text, update
from sqlalchemy.orm import Session

from ..models import CallStatus, RollCall, RollCallResponse
from ..models.roll_call import utcnow
from . import responses as response_service

logger = logging.getLogger(__name__)

CLOSED_CALLS_TO_KEEP = 10


def create_call(db: Session, conversation_id: int, title: str) -> RollCall:
    """Close whatever is open, prune history and open a fresh call."""
    lock_conversation(db, conversation_id)
    close_open_calls(db, conversation_id)
    prune_closed_calls(db, conversation_id)
    return insert_call(db, conversation_id, title)


def lock_conversation(db: Session, conversation_id: int) -> None:
    # Concurrent creators for one conversation queue here until the holder commits.
    if db.get_bind().dialect.name == "postgresql":
        db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": conversation_id})


def close_open_calls(db: Session, conversation_id: int) -> int:
    result = db.execute(
        update(RollCall)
        .where(
            RollCall.conversation_id == conversation_id,
            RollCall.status != CallStatus.CLOSED,
        )
        .values(status=CallStatus.CLOSED, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    logger.debug("Closed %s open calls in conversation %s", result.rowcount, conversation_id)
    return result.rowcount


def prune_closed_calls(db: Session, conversation_id: int, keep: int = CLOSED_CALLS_TO_KEEP) -> int:
    kept_ids = (
        select(RollCall.id)
        .where(
            RollCall.conversation_id == conversation_id,
            RollCall.status == CallStatus.CLOSED,
        )
        .order_by(RollCall.created_at.desc(), RollCall.id.desc())
        .limit(keep)
    )
    kept = list(db.scalars(kept_ids))
    if len(kept) < keep:
        return 0

    stale_ids = list(
        db.scalars(
            select(RollCall.id).where(
                RollCall.conversation_id == conversation_id,
                RollCall.status == CallStatus.CLOSED,
                RollCall.id.not_in(kept),
            )
        )
    )
    if not stale_ids:
        return 0

    db.execute(
        delete(RollCallResponse)
        .where(RollCallResponse.roll_call_id.in_(stale_ids))
        .execution_options(synchronize_session=False)
    )
    result = db.execute(
        delete(RollCall).where(RollCall.id.in_(stale_ids)).execution_options(synchronize_session=False)
    )
    logger.debug("Deleted %s old closed calls in conversation %s", result.rowcount, conversation_id)
    return result.rowcount


def insert_call(db: Session, conversation_id: int, title: str) -> RollCall:
    now = utcnow()
    roll_call = RollCall(
        conversation_id=conversation_id,
        status=CallStatus.OPEN,
        title=title,
        quiet=False,
        created_at=now,
        updated_at=now,
    )
    db.add(roll_call)
    db.flush()
    logger.debug("Inserted new call %s in conversation %s", roll_call.id, conversation_id)
    return roll_call


def find_current_open(db: Session, conversation_id: int) -> RollCall | None:
    return db.scalars(
        select(RollCall)
        .where(
            RollCall.conversation_id == conversation_id,
            RollCall.status == CallStatus.OPEN,
        )
        .order_by(RollCall.updated_at.desc(), RollCall.id.desc())
        .limit(1)
    ).first()


def close_call(db: Session, conversation_id: int) -> RollCall | None:
    return _update_current_call(db, conversation_id, status=CallStatus.CLOSED)


def update_title(db: Session, conversation_id: int, title: str) -> RollCall | None:
    return _update_current_call(db, conversation_id, title=title)


def set_quiet(db: Session, conversation_id: int, quiet: bool) -> tuple[RollCall, list[RollCallResponse]] | None:
    roll_call = _update_current_call(db, conversation_id, quiet=quiet)
    if roll_call is None:
        return None
    return roll_call, response_service.get_responses(db, roll_call.id)


def _update_current_call(db: Session, conversation_id: int, **changes) -> RollCall | None:
    call_id = db.scalar(
        select(RollCall.id)
        .where(
            RollCall.conversation_id == conversation_id,
            RollCall.status == CallStatus.OPEN,
        )
        .order_by(RollCall.updated_at.desc(), RollCall.id.desc())
        .limit(1)
    )
    if call_id is None:
        return None

    # Zero rows matched means a concurrent create superseded the call.
    result = db.execute(
        update(RollCall)
        .where(RollCall.id == call_id, RollCall.status == CallStatus.OPEN)
        .values(updated_at=utcnow(), **changes)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.debug("Call %s was closed before it could be updated", call_id)
        return None

    roll_call = db.get(RollCall, call_id, populate_existing=True)
    logger.debug("Updated call %s with %s", call_id, sorted(changes))
    return roll_call
