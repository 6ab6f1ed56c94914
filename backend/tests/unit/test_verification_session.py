"""Unit tests for the asyncio verification session.

These run the real debounce timer with a shortened interval.
"""

import asyncio
import datetime as dt
from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest

from tablebook.flow.session import VerificationSession
from tablebook.flow.verification import PHONE_UNAVAILABLE, VerificationStage
from tablebook.models import (
    MatchResult,
    MatchTier,
    PhoneVerification,
    StayRecord,
    UpstreamError,
)

DATE = dt.date(2025, 7, 15)
DEBOUNCE = 0.2


@pytest.fixture
def gateway() -> AsyncMock:
    gateway = AsyncMock()
    gateway.match.return_value = MatchResult.no_match()
    return gateway


class TestDebounce:
    @pytest.mark.asyncio
    async def test_edits_within_debounce_make_one_call(self, gateway: AsyncMock) -> None:
        """Typing again before the quiet period ends restarts the timer."""
        # Arrange
        session = VerificationSession(gateway, debounce_seconds=DEBOUNCE)

        # Act
        session.update_identity("Jane Smith", "jane@example.com", DATE)
        await asyncio.sleep(DEBOUNCE / 2)
        session.update_identity("Jane Smith", "jane.smith@example.com", DATE)
        await session.settle()

        # Assert
        gateway.match.assert_awaited_once_with(
            DATE, "Jane Smith", "jane.smith@example.com", ""
        )

    @pytest.mark.asyncio
    async def test_no_call_before_debounce(self, gateway: AsyncMock) -> None:
        session = VerificationSession(gateway, debounce_seconds=DEBOUNCE)

        session.update_identity("Jane Smith", "jane@example.com", DATE)
        await asyncio.sleep(DEBOUNCE / 4)

        gateway.match.assert_not_awaited()
        await session.close()

    @pytest.mark.asyncio
    async def test_incomplete_identity_cancels_pending_check(self, gateway: AsyncMock) -> None:
        session = VerificationSession(gateway, debounce_seconds=DEBOUNCE)

        session.update_identity("Jane Smith", "jane@example.com", DATE)
        session.update_identity("Jane Smith", "jane@", DATE)
        await session.settle()

        gateway.match.assert_not_awaited()


class TestOutcomes:
    @pytest.mark.asyncio
    async def test_confirmed_match_reported(
        self,
        gateway: AsyncMock,
        make_stay: Callable[..., StayRecord],
    ) -> None:
        stay = make_stay(1001)
        gateway.match.return_value = MatchResult.confirmed(stay)
        reported: list[MatchResult] = []
        session = VerificationSession(
            gateway, debounce_seconds=0.01, on_matched=reported.append
        )

        session.update_identity("Jane Smith", "jane@example.com", DATE)
        state = await session.settle()

        assert state.stage == VerificationStage.AUTO_MATCHED
        assert [r.booking_id for r in reported] == [1001]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [UpstreamError("down", service="widget-api"), RuntimeError("boom")],
    )
    async def test_backend_failure_degrades_to_no_match(
        self, gateway: AsyncMock, error: Exception
    ) -> None:
        gateway.match.side_effect = error
        session = VerificationSession(gateway, debounce_seconds=0.01)

        session.update_identity("Jane Smith", "jane@example.com", DATE)
        state = await session.settle()

        assert state.stage == VerificationStage.NO_MATCH

    @pytest.mark.asyncio
    async def test_phone_flow(
        self,
        gateway: AsyncMock,
        make_stay: Callable[..., StayRecord],
    ) -> None:
        """Surname match, phone prompt, then phone verification."""
        stay = make_stay(1001)
        gateway.match.return_value = MatchResult(
            tier=MatchTier.SURNAME_ONLY, record=stay, phone_on_file=True
        )
        gateway.verify_phone.return_value = PhoneVerification(verified=True, record=stay)
        reported: list[MatchResult] = []
        session = VerificationSession(
            gateway, debounce_seconds=0.01, on_matched=reported.append
        )

        session.update_identity("Jane Smith", "other@example.com", DATE)
        assert (await session.settle()).stage == VerificationStage.PHONE_PROMPT

        session.submit_phone("07700 900123")
        state = await session.settle()

        assert state.stage == VerificationStage.PHONE_VERIFIED
        gateway.verify_phone.assert_awaited_once_with(DATE, "Jane Smith", "07700 900123")
        assert reported[0].tier == MatchTier.CONFIRMED

    @pytest.mark.asyncio
    async def test_phone_error_reported(
        self,
        gateway: AsyncMock,
        make_stay: Callable[..., StayRecord],
    ) -> None:
        gateway.match.return_value = MatchResult(
            tier=MatchTier.SURNAME_ONLY, record=make_stay(1), phone_on_file=True
        )
        gateway.verify_phone.side_effect = UpstreamError("down", service="newbook")
        errors: list[str] = []
        session = VerificationSession(gateway, debounce_seconds=0.01, on_error=errors.append)

        session.update_identity("Jane Smith", "other@example.com", DATE)
        await session.settle()
        session.submit_phone("07700 900123")
        state = await session.settle()

        assert state.stage == VerificationStage.MANUAL_ENTRY
        assert errors == [PHONE_UNAVAILABLE]

    @pytest.mark.asyncio
    async def test_unexpected_phone_error_offers_reference(
        self,
        gateway: AsyncMock,
        make_stay: Callable[..., StayRecord],
    ) -> None:
        gateway.match.return_value = MatchResult(
            tier=MatchTier.SURNAME_ONLY, record=make_stay(1), phone_on_file=True
        )
        gateway.verify_phone.side_effect = KeyError("phone")
        session = VerificationSession(gateway, debounce_seconds=0.01)

        session.update_identity("Jane Smith", "other@example.com", DATE)
        await session.settle()
        session.submit_phone("07700 900123")
        state = await session.settle()

        assert state.stage == VerificationStage.MANUAL_ENTRY

    @pytest.mark.asyncio
    async def test_unexpected_reference_error_is_unverified(self, gateway: AsyncMock) -> None:
        gateway.verify_reference.side_effect = ValueError("bad payload")
        session = VerificationSession(gateway, debounce_seconds=0.01)

        session.update_identity("Jane Smith", "jane@example.com", DATE)
        assert (await session.settle()).stage == VerificationStage.NO_MATCH
        session.submit_reference("1001")
        state = await session.settle()

        assert state.stage == VerificationStage.UNVERIFIED

    @pytest.mark.asyncio
    async def test_decline_stops_checking(self, gateway: AsyncMock) -> None:
        session = VerificationSession(gateway, debounce_seconds=DEBOUNCE)

        session.update_identity("Jane Smith", "jane@example.com", DATE)
        session.decline()
        await session.settle()

        assert session.state.stage == VerificationStage.DECLINED
        gateway.match.assert_not_awaited()
