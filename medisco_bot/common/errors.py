"""Failure types raised by the backend client and the booking flow."""

from typing import Optional


class ServiceUnavailable(Exception):
    """A hospital backend call failed (transport error or HTTP status >= 400)."""

    def __init__(self, reason: str, status: Optional[int] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.status = status


class TeachingSaveError(ServiceUnavailable):
    """The backend refused to record a learned fact."""


class BookingValidationError(ValueError):
    """The appointment draft is missing something the next step needs."""
