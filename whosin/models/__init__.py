from sqlalchemy.orm import declarative_base

Base = declarative_base()

from .status import AttendanceStatus, CallStatus  # noqa: E402,F401
from .aliases import CallId, CallWithResponses, ChatId, ResponseId, UserId  # noqa: E402,F401
from .roll_call import RollCall  # noqa: E402,F401
from .roll_call_response import RollCallResponse  # noqa: E402,F401
