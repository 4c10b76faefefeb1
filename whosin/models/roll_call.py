from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Boolean, Column, DateTime, Enum, Index, Integer, Text, text
from sqlalchemy.orm import relationship

from . import Base
from .status import CallStatus

call_status_enum = Enum(
    CallStatus,
    name="call_status",
    native_enum=False,
    length=16,
    values_callable=lambda members: [member.value for member in members],
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RollCall(Base):
    __tablename__ = "roll_calls"
    __table_args__ = (
        Index("ix_roll_calls_conversation_status", "conversation_id", "status"),
        Index(
            "uq_roll_calls_one_open_per_conversation",
            "conversation_id",
            unique=True,
            postgresql_where=text("status = 'OPEN'"),
            sqlite_where=text("status = 'OPEN'"),
        ),
    )

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    conversation_id = Column(BigInteger, nullable=False)
    status = Column(call_status_enum, nullable=False, default=CallStatus.OPEN)
    title = Column(Text, nullable=False, default="")
    quiet = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    responses = relationship(
        "RollCallResponse",
        back_populates="roll_call",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return (
            f"RollCall(id={self.id!r}, conversation_id={self.conversation_id!r}, "
            f"status={self.status!s}, title={self.title!r}, quiet={self.quiet!r})"
        )
