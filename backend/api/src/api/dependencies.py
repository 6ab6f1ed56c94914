"""FastAPI dependency injection providers for widget services.

Service instances are created lazily and cached with @lru_cache, so a Lambda
container builds each one once. The stay-record cache and rate limiter
counters live on these singletons.

Usage in routes:
    from api.dependencies import get_resident_matcher

    @router.post("/check-resident")
    async def check_resident(
        matcher: ResidentMatcher = Depends(get_resident_matcher),
    ):
        ...

Service Dependency Graph:
    WidgetConfig (from TABLEBOOK_* environment variables)
    NewBookClient
        └── StayRecordSource
                ├── ResidentMatcher
                ├── ResidentLookup
                └── GroupCoordinator (+ ResosClient)
    ResosClient
        ├── AvailabilityService
        ├── DuplicateChecker
        └── BookingSubmitter
                ├── BookingService (+ DuplicateChecker)
                └── BatchBookingCoordinator (+ NewBookClient)

Testing:
    Override providers with app.dependency_overrides, and use
    reset_services() to clear cached instances between tests.
"""

from collections.abc import Awaitable, Callable
from functools import lru_cache

from fastapi import Depends, Request

from tablebook.config import WidgetConfig
from tablebook.models import ErrorCode, RateLimitGroup, WidgetError
from tablebook.services.availability import AvailabilityService
from tablebook.services.bookings import BookingService, BookingSubmitter
from tablebook.services.duplicate_checker import DuplicateChecker
from tablebook.services.group_coordinator import GroupCoordinator
from tablebook.services.newbook_client import NewBookClient
from tablebook.services.rate_limiter import RateLimiter, client_address
from tablebook.services.resident_lookup import ResidentLookup
from tablebook.services.resident_matcher import ResidentMatcher
from tablebook.services.resos_client import ResosClient
from tablebook.services.stay_planner import BatchBookingCoordinator
from tablebook.services.stay_records import StayRecordSource
from tablebook.services.turnstile import TurnstileVerifier


@lru_cache
def get_config() -> WidgetConfig:
    """Get the widget configuration, read once from the environment."""
    return WidgetConfig.from_env()


@lru_cache
def get_newbook_client() -> NewBookClient:
    return NewBookClient(get_config())


@lru_cache
def get_resos_client() -> ResosClient:
    return ResosClient(get_config())


@lru_cache
def get_stay_record_source() -> StayRecordSource:
    """Get the cached staying list source.

    Returns:
        StayRecordSource with the configured cache TTL.
    """
    return StayRecordSource(
        get_newbook_client(),
        ttl_seconds=get_config().stay_cache_ttl_seconds,
    )


@lru_cache
def get_resident_matcher() -> ResidentMatcher:
    return ResidentMatcher(get_stay_record_source())


@lru_cache
def get_resident_lookup() -> ResidentLookup:
    return ResidentLookup(get_stay_record_source())


@lru_cache
def get_group_coordinator() -> GroupCoordinator:
    return GroupCoordinator(
        get_stay_record_source(),
        get_resos_client(),
        booking_ref_field_id=get_config().booking_ref_field_id,
    )


@lru_cache
def get_availability_service() -> AvailabilityService:
    return AvailabilityService(get_resos_client(), get_config())


@lru_cache
def get_duplicate_checker() -> DuplicateChecker:
    return DuplicateChecker(get_resos_client())


@lru_cache
def get_booking_submitter() -> BookingSubmitter:
    return BookingSubmitter(get_resos_client(), get_config())


@lru_cache
def get_booking_service() -> BookingService:
    """Get cached BookingService instance.

    Returns:
        BookingService with the duplicate guard wired in.
    """
    return BookingService(get_booking_submitter(), get_duplicate_checker())


@lru_cache
def get_batch_coordinator() -> BatchBookingCoordinator:
    return BatchBookingCoordinator(
        get_booking_submitter(),
        get_newbook_client(),
        get_config(),
    )


@lru_cache
def get_rate_limiter() -> RateLimiter:
    return RateLimiter.from_config(get_config())


@lru_cache
def get_turnstile_verifier() -> TurnstileVerifier:
    return TurnstileVerifier(get_config())


def get_client_address(request: Request) -> str:
    """Client address behind Cloudflare and API Gateway."""
    peer = request.client.host if request.client else None
    return client_address(request.headers, peer)


def rate_limit(group: RateLimitGroup) -> Callable[..., Awaitable[None]]:
    """Build a dependency enforcing the rate limit for an endpoint group.

    Example:
        @router.post("/check-resident", dependencies=[Depends(rate_limit(RateLimitGroup.RESIDENT))])
    """

    async def _check(
        address: str = Depends(get_client_address),
        limiter: RateLimiter = Depends(get_rate_limiter),
    ) -> None:
        if not limiter.check(address, group):
            raise WidgetError(ErrorCode.RATE_LIMITED)

    return _check


def reset_services() -> None:
    """Clear all cached service instances.

    Example:
        @pytest.fixture(autouse=True)
        def reset_state():
            yield
            reset_services()
    """
    for provider in (
        get_config,
        get_newbook_client,
        get_resos_client,
        get_stay_record_source,
        get_resident_matcher,
        get_resident_lookup,
        get_group_coordinator,
        get_availability_service,
        get_duplicate_checker,
        get_booking_submitter,
        get_booking_service,
        get_batch_coordinator,
        get_rate_limiter,
        get_turnstile_verifier,
    ):
        provider.cache_clear()
