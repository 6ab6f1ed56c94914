"""FastAPI exception handlers for converting WidgetError to HTTP responses.

The ErrorCode-to-HTTP status mapping follows REST conventions:
- 400 Bad Request: Missing or malformed input, missing bot check token
- 403 Forbidden: Bot check rejected
- 404 Not Found: Booking not found
- 422 Unprocessable Entity: Request validation (malformed dates, missing fields)
- 429 Too Many Requests: Rate limiting
- 502 Bad Gateway: The reservation or property system failed a write

Usage:
    from api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_429_TOO_MANY_REQUESTS,
    HTTP_502_BAD_GATEWAY,
)

from api.models.common import format_validation_errors
from tablebook.models.errors import ErrorCode, ErrorResponse, UpstreamError, WidgetError

logger = logging.getLogger(__name__)

# Map ErrorCode to HTTP status codes
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_REQUEST: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_EMAIL: HTTP_400_BAD_REQUEST,
    ErrorCode.NO_NIGHTS_SELECTED: HTTP_400_BAD_REQUEST,
    ErrorCode.VERIFICATION_REQUIRED: HTTP_400_BAD_REQUEST,
    ErrorCode.VERIFICATION_FAILED: HTTP_403_FORBIDDEN,
    ErrorCode.BOOKING_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.RATE_LIMITED: HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.UPSTREAM_UNAVAILABLE: HTTP_502_BAD_GATEWAY,
    ErrorCode.BOOKING_FAILED: HTTP_502_BAD_GATEWAY,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode, defaulting to 400."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def widget_error_handler(request: Request, exc: WidgetError) -> JSONResponse:
    """Convert a WidgetError to its ErrorResponse body and status."""
    return JSONResponse(
        status_code=get_http_status_for_error(exc.code),
        content=exc.to_error_response().model_dump(mode="json"),
    )


async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    """Report an unhandled upstream failure as 502.

    Read paths degrade before reaching here; this covers reads with nothing
    to degrade to (opening hours, times) and writes.
    """
    logger.warning("Upstream %s failure on %s: %s", exc.service, request.url.path, exc)
    error = ErrorResponse.from_code(
        ErrorCode.UPSTREAM_UNAVAILABLE, details={"service": exc.service}
    )
    return JSONResponse(status_code=HTTP_502_BAD_GATEWAY, content=error.model_dump(mode="json"))


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Wrap request validation errors (malformed dates, missing fields) in the error envelope."""
    return JSONResponse(
        status_code=422,
        content=format_validation_errors(list(exc.errors())).model_dump(mode="json"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(WidgetError, widget_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(UpstreamError, upstream_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
