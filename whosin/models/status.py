from __future__ import annotations

import enum


class CallStatus(str, enum.Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"

    def __str__(self) -> str:
        return self.value


class AttendanceStatus(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"
    MAYBE = "MAYBE"

    def __str__(self) -> str:
        return self.value
