"""Booking enums. Stored and serialized as lowercase values, parsed case-insensitively."""

from enum import Enum

from ..errors import InvalidInputError


class _LowercaseEnum(str, Enum):
    @classmethod
    def from_value(cls, value):
        if isinstance(value, cls):
            return value
        normalized = (value or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        code, label = _PARSE_ERRORS[cls]
        allowed = ", ".join(m.value for m in cls)
        raise InvalidInputError(f"Invalid {label}: {value}. Allowed values: {allowed}", code=code)


class BookingStatus(_LowercaseEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class JobSize(_LowercaseEnum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class TimeSlot(_LowercaseEnum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    FLEXIBLE = "flexible"


_PARSE_ERRORS = {
    BookingStatus: ("INVALID_STATUS", "status"),
    JobSize: ("INVALID_JOB_SIZE", "job size"),
    TimeSlot: ("INVALID_TIME_SLOT", "time slot"),
}
