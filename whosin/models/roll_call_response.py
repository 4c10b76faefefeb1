from __future__ import annotations

from sqlalchemy import BigInteger, Column, DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from . import Base
from .roll_call import utcnow
from .status import AttendanceStatus

attendance_status_enum = Enum(
    AttendanceStatus,
    name="attendance_status",
    native_enum=False,
    length=16,
    values_callable=lambda members: [member.value for member in members],
)


class RollCallResponse(Base):
    __tablename__ = "roll_call_responses"
    __table_args__ = (UniqueConstraint("roll_call_id", "dedup_token", name="uq_roll_call_response_token"),)

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    roll_call_id = Column(BigInteger, ForeignKey("roll_calls.id", ondelete="CASCADE"), nullable=False, index=True)
    dedup_token = Column(String(128), nullable=False)
    user_id = Column(BigInteger, nullable=True)
    user_name = Column(Text, nullable=True)
    status = Column(attendance_status_enum, nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    roll_call = relationship("RollCall", back_populates="responses")

    def __repr__(self) -> str:
        return (
            f"RollCallResponse(id={self.id!r}, roll_call_id={self.roll_call_id!r}, "
            f"user_name={self.user_name!r}, status={self.status!s})"
        )
