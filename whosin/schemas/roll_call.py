from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..models import AttendanceStatus, CallStatus


class Attendance(BaseModel):
    """What a responder said: a status plus a free-text reason."""

    status: AttendanceStatus
    reason: str = ""

    model_config = ConfigDict(frozen=True)


class StatusCounts(BaseModel):
    in_count: int = 0
    out_count: int = 0
    maybe_count: int = 0


class RollCallRead(BaseModel):
    id: int
    conversation_id: int
    status: CallStatus
    title: str
    quiet: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RollCallResponseRead(BaseModel):
    id: int
    user_id: int | None
    user_name: str | None
    status: AttendanceStatus
    reason: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RollCallSnapshot(BaseModel):
    roll_call: RollCallRead | None = None
    responses: list[RollCallResponseRead] = Field(default_factory=list)
    counts: StatusCounts = Field(default_factory=StatusCounts)
