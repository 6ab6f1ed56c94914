"""Pytest configuration and fixtures for the table booking widget backend tests.

This module provides reusable fixtures for testing:
- Environment defaults (fake AWS credentials for moto)
- Stay record factories
- Fake property and reservation system gateways built from AsyncMock
- Widget configuration with the custom field mapping filled in
"""

import datetime as dt
import os
from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import AsyncMock

import pytest

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("TABLEBOOK_ENVIRONMENT", "test")

# Only set fake credentials for moto if no real credentials are present
if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from tablebook.config import WidgetConfig  # noqa: E402
from tablebook.models import GuestCandidate, StayRecord, StayStatus  # noqa: E402
from tablebook.services.ssm_service import reset_ssm_service  # noqa: E402
from tablebook.services.stay_records import StayRecordSource  # noqa: E402

# === Test Constants ===

STAY_DATE = dt.date(2025, 7, 15)


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Reset cached service singletons before and after each test."""
    from api.dependencies import reset_services

    reset_services()
    reset_ssm_service()
    yield
    reset_services()
    reset_ssm_service()


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"


# === Configuration Fixtures ===


@pytest.fixture
def widget_config() -> WidgetConfig:
    """Widget configuration with the reservation custom field mapping set."""
    return WidgetConfig(
        environment="test",
        restaurant_phone="01234 567890",
        hotel_guest_field_id="cf_hotel_guest",
        hotel_guest_yes_choice_id="choice_yes",
        booking_ref_field_id="cf_booking_ref",
        default_closeout_message="Fully booked online. Call us on {phone}.",
    )


@pytest.fixture
def stay_date() -> dt.date:
    return STAY_DATE


# === Stay Record Factories ===


@pytest.fixture
def make_guest() -> Callable[..., GuestCandidate]:
    """Factory for guests on a stay record."""

    def _make(
        first_name: str = "Jane",
        last_name: str = "Smith",
        email: str = "jane@example.com",
        phone: str = "07700 900123",
        **kwargs: Any,
    ) -> GuestCandidate:
        return GuestCandidate(
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_stay(make_guest: Callable[..., GuestCandidate]) -> Callable[..., StayRecord]:
    """Factory for stay records spanning STAY_DATE.

    Pass ``guests=[...]`` for full control; otherwise the primary guest is
    built from ``first_name``/``last_name``/``email``/``phone``.
    """

    def _make(
        stay_id: int = 1001,
        *,
        guests: list[GuestCandidate] | None = None,
        first_name: str = "Jane",
        last_name: str = "Smith",
        email: str = "jane@example.com",
        phone: str = "07700 900123",
        check_in: dt.date = STAY_DATE - dt.timedelta(days=1),
        check_out: dt.date = STAY_DATE + dt.timedelta(days=2),
        status: StayStatus = StayStatus.ACTIVE,
        **kwargs: Any,
    ) -> StayRecord:
        if guests is None:
            guests = [
                make_guest(
                    first_name=first_name,
                    last_name=last_name,
                    email=email,
                    phone=phone,
                    is_primary=True,
                )
            ]
        kwargs.setdefault("room_label", "12")
        kwargs.setdefault("occupancy", 2)
        return StayRecord(
            stay_id=stay_id,
            guests=guests,
            check_in=check_in,
            check_out=check_out,
            status=status,
            **kwargs,
        )

    return _make


# === Gateway Fixtures ===


@pytest.fixture
def stay_gateway() -> AsyncMock:
    """Fake property system client; staying list empty by default."""
    gateway = AsyncMock()
    gateway.list_staying.return_value = []
    gateway.get_booking.return_value = None
    gateway.set_custom_field.return_value = None
    return gateway


@pytest.fixture
def stay_source(stay_gateway: AsyncMock) -> StayRecordSource:
    return StayRecordSource(stay_gateway, ttl_seconds=300)


@pytest.fixture
def reservations() -> AsyncMock:
    """Fake reservation system client; no bookings, no hours by default."""
    client = AsyncMock()
    client.get_bookings_for_date.return_value = []
    client.get_opening_hours.return_value = []
    client.get_available_times.return_value = []
    client.create_booking.return_value = "bk_1"
    return client
