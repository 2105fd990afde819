from typing import Optional


class SpaBookingError(Exception):
    """Base error. Carries the HTTP status the API layer answers with."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(SpaBookingError):
    status_code = 400


class ScheduleConflictError(SpaBookingError):
    """
    Day-off rejections answer 400, overlaps 409.
    """
    status_code = 409


class NotFoundError(SpaBookingError):
    status_code = 404


class StorageError(SpaBookingError):
    status_code = 500


class NotificationError(SpaBookingError):
    # Logged only, never mapped to a response
    status_code = 500
