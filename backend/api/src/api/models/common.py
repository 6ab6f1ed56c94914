"""Envelopes shared by every widget endpoint.

Failures all use the ErrorResponse shape from tablebook.models.errors; the
422 variant here adds one entry per rejected form field so the widget can
highlight it.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tablebook.models.errors import ErrorCode, ErrorResponse

__all__ = [
    "ErrorCode",
    "ErrorResponse",
    "FieldError",
    "SuccessMessage",
    "ValidationErrorResponse",
    "format_validation_errors",
]


class FieldError(BaseModel):
    """One rejected field of a widget request."""

    model_config = ConfigDict(strict=True)

    loc: list[str | int] = Field(..., examples=[["body", "bookings", 1, "date"]])
    field: str = Field(
        ...,
        description="Dotted field path without the request part, e.g. ``bookings.1.date``",
        examples=["bookings.1.date"],
    )
    msg: str = Field(..., examples=["Input should be a valid date"])
    type: str = Field(..., examples=["date_from_datetime_parsing"])


class ValidationErrorResponse(BaseModel):
    """HTTP 422 body, in the ErrorResponse envelope."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: str = "ERR_VALIDATION"
    message: str = "Request validation failed"
    recovery: str = "Check the details you entered and try again"
    details: list[FieldError] = Field(default_factory=list)


class SuccessMessage(BaseModel):
    model_config = ConfigDict(strict=True)

    success: bool = True
    message: str


def _field_path(loc: list[str | int]) -> str:
    parts = loc[1:] if loc and loc[0] in ("body", "query", "path") else loc
    return ".".join(str(part) for part in parts)


def format_validation_errors(errors: list[dict[str, Any]]) -> ValidationErrorResponse:
    """Build the 422 body from FastAPI's RequestValidationError.errors()."""
    details = []
    for error in errors:
        loc = [part if isinstance(part, int) else str(part) for part in error.get("loc", [])]
        details.append(
            FieldError(
                loc=loc,
                field=_field_path(loc),
                msg=str(error.get("msg", "")),
                type=str(error.get("type", "")),
            )
        )
    return ValidationErrorResponse(details=details)
