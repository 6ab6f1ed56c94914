"""Unit tests for group stay coordination.

Tests for:
- GroupCoordinator.check_group() membership and existing tables
- choose_group_prompt() branch selection
"""

import datetime as dt
from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest

from tablebook.models import (
    ExistingTable,
    GroupCheckResult,
    GroupPrompt,
    ReservationSummary,
    StayRecord,
    StayStatus,
    UpstreamError,
)
from tablebook.services.group_coordinator import (
    FOR_GROUP_NOTE,
    GROUP_TABLE_NOTE,
    SEPARATE_BOOKINGS_NOTE,
    GroupCoordinator,
    choose_group_prompt,
)
from tablebook.services.stay_records import StayRecordSource

REF_FIELD = "cf_booking_ref"


@pytest.fixture
def coordinator(stay_source: StayRecordSource, reservations: AsyncMock) -> GroupCoordinator:
    return GroupCoordinator(stay_source, reservations, booking_ref_field_id=REF_FIELD)


@pytest.fixture
def group_stays(make_stay: Callable[..., StayRecord]) -> list[StayRecord]:
    return [
        make_stay(1, group_id=9, occupancy=2),
        make_stay(2, group_id=9, occupancy=3, last_name="Brown"),
        make_stay(3, group_id=9, occupancy=1, last_name="Green"),
        make_stay(4, group_id=None, occupancy=2, last_name="Solo"),
    ]


class TestCheckGroup:
    """Tests for GroupCoordinator.check_group()."""

    @pytest.mark.asyncio
    async def test_no_group_id_skips_lookup(
        self,
        coordinator: GroupCoordinator,
        stay_gateway: AsyncMock,
        reservations: AsyncMock,
        stay_date: dt.date,
    ) -> None:
        result = await coordinator.check_group(stay_date, 1, None, 2)

        assert result == GroupCheckResult.not_group()
        stay_gateway.list_staying.assert_not_awaited()
        reservations.get_bookings_for_date.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_group_with_existing_table(
        self,
        coordinator: GroupCoordinator,
        stay_gateway: AsyncMock,
        reservations: AsyncMock,
        group_stays: list[StayRecord],
        stay_date: dt.date,
    ) -> None:
        """Tables booked under other members' stay IDs are found."""
        # Arrange
        stay_gateway.list_staying.return_value = group_stays
        reservations.get_bookings_for_date.return_value = [
            ReservationSummary(people=6, custom_fields={REF_FIELD: "2"}),
            ReservationSummary(people=2, custom_fields={REF_FIELD: "1"}),
            ReservationSummary(people=4, custom_fields={REF_FIELD: "4"}),
            ReservationSummary(people=2),
        ]

        # Act
        result = await coordinator.check_group(stay_date, 1, 9, 2)

        # Assert
        assert result.is_group is True
        assert result.group_size == 3
        assert result.total_group_occupancy == 6
        assert result.this_guest_occupancy == 2
        assert result.existing_tables == [ExistingTable(stay_id="2", covers=6)]

    @pytest.mark.asyncio
    async def test_cancelled_members_excluded(
        self,
        coordinator: GroupCoordinator,
        stay_gateway: AsyncMock,
        make_stay: Callable[..., StayRecord],
        stay_date: dt.date,
    ) -> None:
        """A group of one active stay is not a group."""
        stay_gateway.list_staying.return_value = [
            make_stay(1, group_id=9),
            make_stay(2, group_id=9, status=StayStatus.CANCELLED),
        ]

        result = await coordinator.check_group(stay_date, 1, 9, 2)

        assert result.is_group is False

    @pytest.mark.asyncio
    async def test_unreachable_staying_list(
        self,
        coordinator: GroupCoordinator,
        stay_gateway: AsyncMock,
        stay_date: dt.date,
    ) -> None:
        stay_gateway.list_staying.side_effect = UpstreamError("down", service="newbook")

        result = await coordinator.check_group(stay_date, 1, 9, 2)

        assert result.is_group is False

    @pytest.mark.asyncio
    async def test_table_lookup_failure_still_reports_group(
        self,
        coordinator: GroupCoordinator,
        stay_gateway: AsyncMock,
        reservations: AsyncMock,
        group_stays: list[StayRecord],
        stay_date: dt.date,
    ) -> None:
        stay_gateway.list_staying.return_value = group_stays
        reservations.get_bookings_for_date.side_effect = UpstreamError("down", service="resos")

        result = await coordinator.check_group(stay_date, 1, 9, 2)

        assert result.is_group is True
        assert result.existing_tables == []


class TestChooseGroupPrompt:
    """Tests for choose_group_prompt()."""

    def group(self, *tables: ExistingTable, own: int = 2) -> GroupCheckResult:
        return GroupCheckResult(
            is_group=True,
            group_size=3,
            total_group_occupancy=6,
            this_guest_occupancy=own,
            existing_tables=list(tables),
        )

    def test_not_a_group(self) -> None:
        assert choose_group_prompt(GroupCheckResult.not_group(), 2) is None

    def test_big_existing_table_is_group_table(self) -> None:
        decision = choose_group_prompt(self.group(ExistingTable(stay_id="2", covers=6)), 2)

        assert decision is not None
        assert decision.prompt == GroupPrompt.EXISTING_GROUP_TABLE
        assert decision.note == GROUP_TABLE_NOTE

    def test_small_tables_are_individual(self) -> None:
        decision = choose_group_prompt(
            self.group(
                ExistingTable(stay_id="2", covers=2),
                ExistingTable(stay_id="3", covers=1),
            ),
            2,
        )

        assert decision is not None
        assert decision.prompt == GroupPrompt.EXISTING_INDIVIDUAL_TABLES
        assert decision.note == SEPARATE_BOOKINGS_NOTE

    def test_covers_above_own_occupancy_is_for_group(self) -> None:
        decision = choose_group_prompt(self.group(), 6)

        assert decision is not None
        assert decision.prompt == GroupPrompt.BOOKING_FOR_GROUP
        assert decision.note == FOR_GROUP_NOTE

    def test_own_party_is_partial_group(self) -> None:
        decision = choose_group_prompt(self.group(), 2)

        assert decision is not None
        assert decision.prompt == GroupPrompt.PARTIAL_GROUP

    def test_explicit_occupancy_overrides(self) -> None:
        decision = choose_group_prompt(self.group(own=2), 4, occupancy=5)

        assert decision is not None
        assert decision.prompt == GroupPrompt.PARTIAL_GROUP
