"""Pydantic models for the restaurant booking widget."""

from .booking import (
    BookingCreated,
    CustomFieldValue,
    DuplicateCheckResult,
    GuestIdentity,
    NightOutcome,
    NightPlan,
    NoTableOutcome,
    ReservationSummary,
    StaySubmissionResult,
)
from .enums import (
    GroupPrompt,
    MatchTier,
    NightStatus,
    RateLimitGroup,
    StayStatus,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    ErrorCode,
    ErrorResponse,
    UpstreamError,
    WidgetError,
)
from .group import ExistingTable, GroupCheckResult, GroupPromptDecision
from .matching import (
    LinkVerification,
    MatchResult,
    PhoneVerification,
    ReferenceVerification,
    ResidentProfile,
)
from .periods import ClosingMarkers, DateAvailability, ServicePeriod, TimeSlots
from .stay import GuestCandidate, StayRecord, StaySummary

__all__ = [
    # Enums
    "GroupPrompt",
    "MatchTier",
    "NightStatus",
    "RateLimitGroup",
    "StayStatus",
    # Stay records
    "GuestCandidate",
    "StayRecord",
    "StaySummary",
    # Matching
    "LinkVerification",
    "MatchResult",
    "PhoneVerification",
    "ReferenceVerification",
    "ResidentProfile",
    # Groups
    "ExistingTable",
    "GroupCheckResult",
    "GroupPromptDecision",
    # Bookings
    "BookingCreated",
    "CustomFieldValue",
    "DuplicateCheckResult",
    "GuestIdentity",
    "NightOutcome",
    "NightPlan",
    "NoTableOutcome",
    "ReservationSummary",
    "StaySubmissionResult",
    # Service periods
    "ClosingMarkers",
    "DateAvailability",
    "ServicePeriod",
    "TimeSlots",
    # Errors
    "ErrorCode",
    "ErrorResponse",
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "UpstreamError",
    "WidgetError",
]
