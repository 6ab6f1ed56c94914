"""Standard error codes for the booking widget.

All endpoints and services use these error codes for consistent error
responses. Residency verification is an enhancement, never a gate: read
paths degrade on upstream failure instead of raising these errors.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes returned by the widget API."""

    # Request errors
    INVALID_REQUEST = "ERR_INVALID_REQUEST"
    INVALID_EMAIL = "ERR_INVALID_EMAIL"
    NO_NIGHTS_SELECTED = "ERR_NO_NIGHTS_SELECTED"
    RATE_LIMITED = "ERR_RATE_LIMITED"

    # Bot check errors
    VERIFICATION_REQUIRED = "ERR_VERIFICATION_REQUIRED"
    VERIFICATION_FAILED = "ERR_VERIFICATION_FAILED"

    # Upstream errors
    UPSTREAM_UNAVAILABLE = "ERR_UPSTREAM_UNAVAILABLE"
    BOOKING_FAILED = "ERR_BOOKING_FAILED"
    BOOKING_NOT_FOUND = "ERR_BOOKING_NOT_FOUND"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_REQUEST: "The request is missing required information",
    ErrorCode.INVALID_EMAIL: "Invalid email address",
    ErrorCode.NO_NIGHTS_SELECTED: "Choose a table or 'no table needed' for at least one night",
    ErrorCode.RATE_LIMITED: "Rate limit exceeded",
    ErrorCode.VERIFICATION_REQUIRED: "Verification required",
    ErrorCode.VERIFICATION_FAILED: "Verification failed",
    ErrorCode.UPSTREAM_UNAVAILABLE: "The booking system is temporarily unavailable",
    ErrorCode.BOOKING_FAILED: "Failed to create booking",
    ErrorCode.BOOKING_NOT_FOUND: "Booking not found",
}

# Recovery suggestions shown alongside the message
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.INVALID_REQUEST: "Check the request parameters and try again",
    ErrorCode.INVALID_EMAIL: "Check the email address and try again",
    ErrorCode.NO_NIGHTS_SELECTED: "Select a time or mark 'no table needed' on a night",
    ErrorCode.RATE_LIMITED: "Wait a minute and try again",
    ErrorCode.VERIFICATION_REQUIRED: "Complete the bot check and resubmit",
    ErrorCode.VERIFICATION_FAILED: "Refresh the page and try again",
    ErrorCode.UPSTREAM_UNAVAILABLE: "Try again shortly or call the restaurant",
    ErrorCode.BOOKING_FAILED: "Try again or call the restaurant",
    ErrorCode.BOOKING_NOT_FOUND: "Check the booking reference",
}


class ErrorResponse(BaseModel):
    """Standard error response body.

    All endpoints return this format when a request cannot be served.
    """

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class WidgetError(Exception):
    """Exception raised by widget operations.

    Caught by the API exception handler and converted to an ErrorResponse.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse."""
        return ErrorResponse.from_code(self.code, self.details)


class UpstreamError(Exception):
    """Raised when the property system or reservation system call fails.

    Covers transport errors, non-2xx responses (including rate limiting and
    authorization failures), unparseable bodies, missing credentials and
    explicit ``success: false`` envelopes.
    """

    def __init__(
        self,
        message: str,
        *,
        service: str,
        status_code: int | None = None,
    ) -> None:
        """Initialize with message and origin.

        Args:
            message: Human-readable error message.
            service: Upstream service name ("newbook", "resos", "turnstile").
            status_code: HTTP status returned by the upstream, if any.
        """
        super().__init__(message)
        self.service = service
        self.status_code = status_code
