"""Fixtures for API route tests.

Routes run against real services wired to the AsyncMock gateways from the
top-level conftest; the bot check is off and rate limits are generous.
"""

from collections.abc import Generator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from api.dependencies import (
    get_availability_service,
    get_batch_coordinator,
    get_booking_service,
    get_config,
    get_group_coordinator,
    get_rate_limiter,
    get_resident_lookup,
    get_resident_matcher,
    get_turnstile_verifier,
)
from api.main import app
from tablebook.config import WidgetConfig
from tablebook.models import RateLimitGroup
from tablebook.services.availability import AvailabilityService
from tablebook.services.bookings import BookingService, BookingSubmitter
from tablebook.services.duplicate_checker import DuplicateChecker
from tablebook.services.group_coordinator import GroupCoordinator
from tablebook.services.rate_limiter import RateLimiter
from tablebook.services.resident_lookup import ResidentLookup
from tablebook.services.resident_matcher import ResidentMatcher
from tablebook.services.stay_planner import BatchBookingCoordinator
from tablebook.services.stay_records import StayRecordSource
from tablebook.services.turnstile import TurnstileVerifier


@pytest.fixture
def rate_limiter() -> RateLimiter:
    return RateLimiter({group: 1000 for group in RateLimitGroup})


@pytest.fixture
def client(
    widget_config: WidgetConfig,
    stay_source: StayRecordSource,
    stay_gateway: AsyncMock,
    reservations: AsyncMock,
    rate_limiter: RateLimiter,
) -> Generator[TestClient, None, None]:
    """Test client with every service provider overridden."""
    submitter = BookingSubmitter(reservations, widget_config)
    overrides = {
        get_config: lambda: widget_config,
        get_rate_limiter: lambda: rate_limiter,
        get_turnstile_verifier: lambda: TurnstileVerifier(widget_config, secret=""),
        get_resident_matcher: lambda: ResidentMatcher(stay_source),
        get_resident_lookup: lambda: ResidentLookup(stay_source),
        get_group_coordinator: lambda: GroupCoordinator(
            stay_source, reservations, booking_ref_field_id=widget_config.booking_ref_field_id
        ),
        get_availability_service: lambda: AvailabilityService(reservations, widget_config),
        get_booking_service: lambda: BookingService(submitter, DuplicateChecker(reservations)),
        get_batch_coordinator: lambda: BatchBookingCoordinator(
            submitter, stay_gateway, widget_config
        ),
    }
    app.dependency_overrides.update(overrides)
    yield TestClient(app)
    app.dependency_overrides.clear()
