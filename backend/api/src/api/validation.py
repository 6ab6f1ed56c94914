"""Request checks shared by the booking and resident endpoints.

Each check raises a WidgetError, which the exception handlers turn into the
standard error envelope.
"""

import datetime as dt

from tablebook.config import WidgetConfig
from tablebook.models.errors import ErrorCode, WidgetError
from tablebook.services.names import is_valid_email


def check_booking_date(date: dt.date, config: WidgetConfig) -> None:
    """Reject dates in the past or beyond the booking window."""
    today = dt.date.today()
    if date < today or date > today + dt.timedelta(days=config.max_booking_window_days):
        raise WidgetError(
            ErrorCode.INVALID_REQUEST,
            details={"reason": "Date is outside the booking window"},
        )


def check_party_size(people: int, config: WidgetConfig) -> None:
    if people > config.max_party_size:
        raise WidgetError(
            ErrorCode.INVALID_REQUEST,
            details={"reason": f"Party size is limited to {config.max_party_size}"},
        )


def check_email(email: str) -> None:
    if not is_valid_email(email):
        raise WidgetError(ErrorCode.INVALID_EMAIL)
