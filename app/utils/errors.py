"""
Error taxonomy for the booking pipeline.
Every error carries the HTTP status it is rendered with.
"""
from fastapi import status


class BookingError(Exception):
    """Base class for errors rendered as {"error": message}"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SubmissionValidationError(BookingError):
    """Rejected upload or malformed body"""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(BookingError):
    status_code = status.HTTP_401_UNAUTHORIZED


class StorageError(BookingError):
    """The booking store could not be read or written"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class NotificationError(BookingError):
    """An email could not be delivered to the transport"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class StoreNotReadyError(BookingError):
    """Raised when the store is used before connect() or after close()"""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
