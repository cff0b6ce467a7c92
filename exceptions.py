"""Errors raised by the booking and identity operations.

Each error carries the HTTP status it maps to and the generic message shown
to the client. Details go to the server log only.
"""


class BookingError(Exception):
    """Base class for all application errors."""

    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message=None, detail=None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.detail = detail


class InvalidInput(BookingError):
    status_code = 400
    message = "Invalid input"


class InvalidFormat(InvalidInput):
    message = "Invalid admission number format"


class DuplicateKey(InvalidInput):
    message = "Admission number already registered"


class Unauthorized(BookingError):
    status_code = 401
    message = "Invalid admission number or password"


class NotFound(BookingError):
    status_code = 400
    message = "Invalid bus ID"


class SeatsUnavailable(BookingError):
    status_code = 400
    message = "Seats are unavailable"


class StorageError(BookingError):
    """A read or write against the database failed."""
