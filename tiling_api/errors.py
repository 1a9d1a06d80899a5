"""
Business and infrastructure errors.

Every error carries a stable machine-readable code and a human message; the
handlers registered in main.py render them as JSON with the matching HTTP
status. Nothing here should ever carry a stack trace or SQL to the client.
"""

from typing import Any, Optional


class BookingAppError(Exception):
    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details


class NotFoundError(BookingAppError):
    status_code = 404
    code = "NOT_FOUND"

    @classmethod
    def for_entity(cls, entity: str, field: str, value: Any) -> "NotFoundError":
        return cls(f"{entity} not found with {field}: {value}")


class ConflictError(BookingAppError):
    status_code = 409
    code = "CONFLICT"


class RatingExistsError(ConflictError):
    code = "RATING_EXISTS"


class ReferenceGenerationFailedError(ConflictError):
    code = "REFERENCE_GENERATION_FAILED"


class InvalidInputError(BookingAppError):
    status_code = 400
    code = "INVALID_INPUT"


class InvalidFileError(BookingAppError):
    status_code = 400
    code = "INVALID_FILE"


class DateBlockedError(BookingAppError):
    status_code = 400
    code = "DATE_BLOCKED"

    def __init__(self, day):
        super().__init__(f"The selected date {day.isoformat()} is not available for booking")
        self.day = day


class InvalidTransitionError(BookingAppError):
    status_code = 400
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, from_status: str, to_status: str):
        super().__init__(f"Cannot transition from {from_status.upper()} to {to_status.upper()}")
        self.from_status = from_status
        self.to_status = to_status


class AuthenticationError(BookingAppError):
    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, message: str, headers: Optional[dict] = None):
        super().__init__(message)
        self.headers = headers


class PermissionDeniedError(BookingAppError):
    status_code = 403
    code = "FORBIDDEN"


class InternalError(BookingAppError):
    status_code = 500
    code = "INTERNAL_ERROR"


class FileStorageError(InternalError):
    code = "FILE_STORAGE_ERROR"
