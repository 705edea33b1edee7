"""
Error types shared by the gateway client, the services and the API layer.
"""
from typing import Any, Optional


class GatewayError(Exception):
    """A call to the managed backend failed. Carries the backend's own error fields."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details

    def __repr__(self):
        return f"<{type(self).__name__} {self.status_code} {self.code}: {self.message}>"


class RecordNotFound(GatewayError):
    """A single-row read matched no row."""


class GatewayResponseError(GatewayError):
    """The backend answered with a payload that does not match the expected schema."""


class BookingValidationError(ValueError):
    """A reservation draft is incomplete or inconsistent. Raised before any backend call."""


class RoomUnavailableError(Exception):
    """The room is already booked for part of the requested range."""


class BillingValidationError(ValueError):
    """A payment, refund or invoice change would leave the books inconsistent."""


class RefundPermissionError(Exception):
    """Only managers and admins approve refunds."""
