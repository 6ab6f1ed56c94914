"""Enumeration types for booking widget data models."""

from enum import Enum, IntEnum


class StayStatus(str, Enum):
    """Status of a hotel stay record."""

    ACTIVE = "active"
    CANCELLED = "cancelled"


class MatchTier(IntEnum):
    """Confidence that a restaurant guest is a specific hotel resident."""

    UNAVAILABLE = 0  # Staying list could not be fetched
    CONFIRMED = 1  # Surname and email match
    SURNAME_ONLY = 2  # Surname matches, needs phone or reference
    NO_MATCH = 3  # Nothing matched, reference entry only


class NightStatus(str, Enum):
    """Planning status of one night of a resident's stay."""

    PENDING = "pending"
    SELECTED = "selected"
    NO_TABLE = "no_table"
    ALREADY_BOOKED = "already_booked"


class GroupPrompt(str, Enum):
    """Question shown to a resident whose stay is part of a group."""

    EXISTING_GROUP_TABLE = "existing_group_table"
    EXISTING_INDIVIDUAL_TABLES = "existing_individual_tables"
    BOOKING_FOR_GROUP = "booking_for_group"
    PARTIAL_GROUP = "partial_group"


class RateLimitGroup(str, Enum):
    """Rate limit bucket for an endpoint."""

    READ = "read"
    WRITE = "write"
    RESIDENT = "resident"
