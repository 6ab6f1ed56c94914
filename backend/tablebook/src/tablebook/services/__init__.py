"""Backend services for the restaurant booking widget."""

from .availability import AvailabilityService
from .bookings import BookingService, BookingSubmitter
from .duplicate_checker import DuplicateChecker
from .group_coordinator import GroupCoordinator, choose_group_prompt
from .newbook_client import NewBookClient
from .rate_limiter import RateLimiter, client_address
from .resident_lookup import ResidentLookup
from .resident_matcher import ResidentMatcher
from .resos_client import ResosClient
from .ssm_service import SSMService, SSMServiceError, get_ssm_service
from .stay_planner import BatchBookingCoordinator, StayPlanner, upsell_nights
from .stay_records import StayRecordSource
from .turnstile import TurnstileVerifier

__all__ = [
    "AvailabilityService",
    "BatchBookingCoordinator",
    "BookingService",
    "BookingSubmitter",
    "DuplicateChecker",
    "GroupCoordinator",
    "NewBookClient",
    "RateLimiter",
    "ResidentLookup",
    "ResidentMatcher",
    "ResosClient",
    "SSMService",
    "SSMServiceError",
    "StayPlanner",
    "StayRecordSource",
    "TurnstileVerifier",
    "choose_group_prompt",
    "client_address",
    "get_ssm_service",
    "upsell_nights",
]
