"""Resident matching against the hotel staying list.

A restaurant guest types a name, email and optionally a phone number. The
matcher decides how confident we are that they are a hotel resident:

    Tier 1  surname and email match a stay's primary guest
    Tier 2  surname matches but email does not; needs phone or reference
    Tier 3  no surname matched
    Tier 0  the staying list could not be fetched

Only the primary guest of each stay takes part in name, email and phone
matching. Matching never blocks a booking: every failure degrades to a
plain, unverified guest.
"""

import datetime as dt
from typing import TYPE_CHECKING

from tablebook.models import (
    MatchResult,
    MatchTier,
    PhoneVerification,
    ReferenceVerification,
    StayRecord,
)
from tablebook.utils.logging import get_logger, log_resident_match

from .names import normalise_phone, same_text, split_name

if TYPE_CHECKING:
    from .stay_records import StayRecordSource

logger = get_logger(__name__)


class ResidentMatcher:
    """Matches guest identities to stay records for a date."""

    def __init__(self, stays: "StayRecordSource") -> None:
        """Initialize the matcher.

        Args:
            stays: Cached staying list source
        """
        self.stays = stays

    async def match(
        self,
        date: dt.date,
        name: str,
        email: str,
        phone: str = "",
    ) -> MatchResult:
        """Match a guest identity against the stays on a date.

        The first record matching on both surname and email wins, even if a
        later record would also qualify. Among surname-only matches the first
        whose primary guest's first name also matches is preferred, else the
        first encountered.

        Args:
            date: Night the guest wants a table
            name: Full name as typed
            email: Email as typed
            phone: Phone as typed (unused for tiering)

        Returns:
            MatchResult with the tier and, for Tiers 1 and 2, the stay record
        """
        records = await self.stays.get_staying(date)
        if records is None:
            log_resident_match(logger, "match", date=date, tier=MatchTier.UNAVAILABLE)
            return MatchResult.unavailable()

        first_name, last_name = split_name(name)
        surname_matches: list[StayRecord] = []

        for record in records:
            primary = record.primary_guest
            if primary is None:
                continue
            surname_match = same_text(primary.last_name, last_name)
            email_match = same_text(primary.email, email)
            if surname_match and email_match:
                log_resident_match(
                    logger, "match", date=date, tier=MatchTier.CONFIRMED,
                    booking_id=record.stay_id,
                )
                return MatchResult.confirmed(record)
            if surname_match:
                surname_matches.append(record)

        if not surname_matches:
            log_resident_match(logger, "match", date=date, tier=MatchTier.NO_MATCH)
            return MatchResult.no_match()

        best = next(
            (
                r for r in surname_matches
                if r.primary_guest is not None
                and same_text(r.primary_guest.first_name, first_name)
            ),
            surname_matches[0],
        )
        phone_on_file = bool(best.primary_guest and best.primary_guest.phone.strip())
        log_resident_match(
            logger, "match", date=date, tier=MatchTier.SURNAME_ONLY,
            booking_id=best.stay_id, candidates=len(surname_matches),
        )
        return MatchResult(
            tier=MatchTier.SURNAME_ONLY,
            record=best,
            phone_on_file=phone_on_file,
        )

    async def verify_phone(self, date: dt.date, name: str, phone: str) -> PhoneVerification:
        """Confirm a surname match with the phone number on file.

        Succeeds on the first stay whose primary guest's surname matches and
        whose phone has the same nine-digit suffix.
        """
        records = await self.stays.get_staying(date)
        phone_suffix = normalise_phone(phone)
        if records is None or not phone_suffix:
            log_resident_match(logger, "verify_phone", date=date, verified=False)
            return PhoneVerification(verified=False)

        last_name = split_name(name).last
        for record in records:
            primary = record.primary_guest
            if primary is None or not same_text(primary.last_name, last_name):
                continue
            if normalise_phone(primary.phone) == phone_suffix:
                log_resident_match(
                    logger, "verify_phone", date=date, booking_id=record.stay_id,
                    verified=True,
                )
                return PhoneVerification(verified=True, record=record)

        log_resident_match(logger, "verify_phone", date=date, verified=False)
        return PhoneVerification(verified=False)

    async def verify_reference(self, date: dt.date, reference: str) -> ReferenceVerification:
        """Confirm residency with a booking reference.

        The reference may be our own stay ID or the external reference from a
        travel agent. An external reference on an agent booking is flagged as
        an agent match; either way the record carries our internal ID.
        """
        records = await self.stays.get_staying(date)
        reference = reference.strip()
        if records is None or not reference:
            log_resident_match(logger, "verify_reference", date=date, verified=False)
            return ReferenceVerification(verified=False)

        for record in records:
            if str(record.stay_id) == reference:
                log_resident_match(
                    logger, "verify_reference", date=date, booking_id=record.stay_id,
                    verified=True,
                )
                return ReferenceVerification(verified=True, record=record)

            external = (record.reference_code or "").strip()
            if external and external == reference:
                is_agent = record.is_agent_booking
                log_resident_match(
                    logger, "verify_reference", date=date, booking_id=record.stay_id,
                    verified=True, agent=is_agent,
                )
                return ReferenceVerification(
                    verified=True,
                    record=record,
                    is_agent_match=is_agent,
                    agent_name=record.travel_agent_name if is_agent else None,
                )

        log_resident_match(logger, "verify_reference", date=date, verified=False)
        return ReferenceVerification(verified=False)
