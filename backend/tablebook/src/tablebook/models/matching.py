"""Resident matching and verification results."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from .enums import MatchTier
from .stay import StayRecord


class MatchResult(BaseModel):
    """Outcome of matching a guest identity against the staying list."""

    model_config = ConfigDict(strict=True, frozen=True)

    tier: MatchTier
    record: StayRecord | None = None
    phone_on_file: bool = False
    message: str | None = Field(
        default=None,
        description="Diagnostic note, e.g. 'staying_list_unavailable'",
    )
    reference: str | None = Field(
        default=None,
        description="Unverified booking reference the guest entered",
    )

    @property
    def is_confirmed(self) -> bool:
        return self.tier == MatchTier.CONFIRMED and self.record is not None

    @property
    def booking_id(self) -> int | None:
        return self.record.stay_id if self.record else None

    @classmethod
    def unavailable(cls) -> "MatchResult":
        return cls(tier=MatchTier.UNAVAILABLE, message="staying_list_unavailable")

    @classmethod
    def no_match(cls, reference: str | None = None) -> "MatchResult":
        return cls(tier=MatchTier.NO_MATCH, reference=reference)

    @classmethod
    def confirmed(cls, record: StayRecord) -> "MatchResult":
        return cls(tier=MatchTier.CONFIRMED, record=record)


class PhoneVerification(BaseModel):
    """Result of verifying a Tier 2 match by phone number."""

    model_config = ConfigDict(strict=True, frozen=True)

    verified: bool
    record: StayRecord | None = None


class ReferenceVerification(BaseModel):
    """Result of verifying a manually entered booking reference."""

    model_config = ConfigDict(strict=True, frozen=True)

    verified: bool
    record: StayRecord | None = None
    is_agent_match: bool = Field(
        default=False,
        description="Matched a travel agent's reference rather than our own ID",
    )
    agent_name: str | None = None

    @property
    def internal_booking_id(self) -> int | None:
        """Our own stay ID, regardless of which reference the guest typed."""
        return self.record.stay_id if self.record else None


class ResidentProfile(BaseModel):
    """Resident details returned by direct link verification."""

    model_config = ConfigDict(strict=True, frozen=True)

    booking_id: int
    guest_name: str = ""
    guest_email: str = ""
    guest_phone: str = ""
    room: str = ""
    check_in: dt.date
    check_out: dt.date
    nights: list[dt.date] = Field(default_factory=list)
    occupancy: int = 0
    group_id: int | None = None


class LinkVerification(BaseModel):
    """Result of verifying a resident arriving from a direct link."""

    model_config = ConfigDict(strict=True, frozen=True)

    verified: bool
    profile: ResidentProfile | None = None
    error: str | None = None
