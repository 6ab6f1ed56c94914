"""Group stay coordination.

Guests travelling together hold separate stays sharing a group ID. Before a
group member books a table we look for tables other members already hold,
so the group does not end up with duplicate tables without anyone noticing.
"""

import datetime as dt
from typing import TYPE_CHECKING, Protocol

from tablebook.models import (
    ExistingTable,
    GroupCheckResult,
    GroupPrompt,
    GroupPromptDecision,
    ReservationSummary,
    UpstreamError,
)
from tablebook.utils.logging import get_logger

if TYPE_CHECKING:
    from .stay_records import StayRecordSource

logger = get_logger(__name__)

GROUP_TABLE_NOTE = "Part of group - other members may already have tables booked"
SEPARATE_BOOKINGS_NOTE = "Guest says other group members booking separately"
FOR_GROUP_NOTE = "Guest confirmed booking is for their group"


class ReservationGateway(Protocol):
    async def get_bookings_for_date(self, date: dt.date) -> list[ReservationSummary]: ...


class GroupCoordinator:
    """Works out group state for a matched resident."""

    def __init__(
        self,
        stays: "StayRecordSource",
        reservations: ReservationGateway,
        booking_ref_field_id: str,
    ) -> None:
        """Initialize the coordinator.

        Args:
            stays: Cached staying list source
            reservations: Reservation system client
            booking_ref_field_id: Custom field holding the stay ID on table bookings
        """
        self.stays = stays
        self.reservations = reservations
        self.booking_ref_field_id = booking_ref_field_id

    async def check_group(
        self,
        date: dt.date,
        booking_id: int,
        group_id: int | None,
        covers: int,
    ) -> GroupCheckResult:
        """Group state for a resident's stay on a date.

        No group ID returns immediately without any lookup. Fewer than two
        active members sharing the group is not a group. Tables are found by
        matching the booking reference custom field of the date's table
        bookings against the stay IDs of the other members.
        """
        if not group_id:
            return GroupCheckResult.not_group()

        records = await self.stays.get_staying(date)
        if records is None:
            return GroupCheckResult.not_group()

        members = [r for r in records if r.is_active and r.group_id == group_id]
        if len(members) < 2:
            return GroupCheckResult.not_group()

        own = next((m for m in members if m.stay_id == booking_id), None)
        other_ids = {str(m.stay_id) for m in members if m.stay_id != booking_id}

        existing: list[ExistingTable] = []
        try:
            bookings = await self.reservations.get_bookings_for_date(date)
        except UpstreamError as e:
            logger.warning("Group table lookup failed for %s: %s", date.isoformat(), e)
            bookings = []

        for reservation in bookings:
            ref = reservation.custom_field(self.booking_ref_field_id)
            if ref and ref in other_ids:
                existing.append(ExistingTable(stay_id=ref, covers=reservation.people))

        logger.info(
            "Group check: group=%s members=%d existing_tables=%d covers=%d",
            group_id, len(members), len(existing), covers,
        )
        return GroupCheckResult(
            is_group=True,
            group_size=len(members),
            total_group_occupancy=sum(m.occupancy for m in members),
            this_guest_occupancy=own.occupancy if own else 0,
            existing_tables=existing,
        )


def choose_group_prompt(
    result: GroupCheckResult,
    covers: int,
    occupancy: int | None = None,
) -> GroupPromptDecision | None:
    """Pick the question to ask a group member.

    A table bigger than one member's own party suggests the whole group is
    already booked; several smaller tables suggest members book individually.
    With no tables yet, the party size tells us whether this booking is for
    the group or just the guest. None of the branches block the booking.

    Args:
        result: Group check for the guest
        covers: Party size the guest selected
        occupancy: Guest's own stay occupancy (defaults to the group check's)

    Returns:
        The prompt and note to attach, or None if the guest is not in a group
    """
    if not result.is_group:
        return None

    own = result.this_guest_occupancy if occupancy is None else occupancy
    if result.existing_tables:
        if any(table.covers > own for table in result.existing_tables):
            return GroupPromptDecision(prompt=GroupPrompt.EXISTING_GROUP_TABLE, note=GROUP_TABLE_NOTE)
        return GroupPromptDecision(
            prompt=GroupPrompt.EXISTING_INDIVIDUAL_TABLES, note=SEPARATE_BOOKINGS_NOTE
        )
    if covers > own:
        return GroupPromptDecision(prompt=GroupPrompt.BOOKING_FOR_GROUP, note=FOR_GROUP_NOTE)
    return GroupPromptDecision(prompt=GroupPrompt.PARTIAL_GROUP, note=SEPARATE_BOOKINGS_NOTE)
