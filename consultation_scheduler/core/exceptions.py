"""Error taxonomy raised by the scheduling engine.

Every error carries a short ``kind`` used in API responses and the HTTP
status it maps to. The engine performs all checks before mutating, so a
raised error always leaves engine state untouched.
"""
from fastapi import status


class SchedulingError(Exception):
    kind = "SchedulingError"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str = "Scheduling operation failed"):
        super().__init__(detail)
        self.detail = detail


class InvalidRangeError(SchedulingError):
    kind = "InvalidRange"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str = "End time must be after start time"):
        super().__init__(detail)


class NotFoundError(SchedulingError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(detail)


class AlreadyBookedError(SchedulingError):
    kind = "AlreadyBooked"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, detail: str = "Slot is already booked"):
        super().__init__(detail)


class ForbiddenError(SchedulingError):
    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(detail)


class InvalidTransitionError(SchedulingError):
    """Only raised when strict status transitions are enabled."""
    kind = "InvalidTransition"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, detail: str = "Status transition not allowed"):
        super().__init__(detail)
