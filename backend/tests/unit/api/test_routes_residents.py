"""Unit tests for resident API routes.

Tests for:
- POST /api/check-resident - Tiered matching
- POST /api/verify-resident-phone / verify-resident-reference
- POST /api/verify-resident - Direct link verification
- POST /api/check-group - Group state and prompt
"""

import datetime as dt
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from starlette.status import HTTP_200_OK, HTTP_400_BAD_REQUEST

from tablebook.models import ReservationSummary, StayRecord, UpstreamError

DATE = (dt.date.today() + dt.timedelta(days=7)).isoformat()


class TestCheckResident:
    """Tests for POST /api/check-resident."""

    def test_confirmed_match_hides_contact_details(
        self,
        client: TestClient,
        stay_gateway: AsyncMock,
        make_stay: Callable[..., StayRecord],
    ) -> None:
        """Tier 1 returns the stay summary but never the guest's email or phone."""
        stay_gateway.list_staying.return_value = [make_stay(1001)]

        response = client.post(
            "/api/check-resident",
            json={"date": DATE, "name": "Jane Smith", "email": "JANE@example.com"},
        )

        assert response.status_code == HTTP_200_OK
        data = response.json()
        assert data["match_tier"] == 1
        assert data["stay"]["booking_id"] == 1001
        assert data["stay"]["nights"] == ["2025-07-14", "2025-07-15", "2025-07-16"]
        assert "jane@example.com" not in response.text
        assert "07700" not in response.text

    def test_surname_only_match(
        self,
        client: TestClient,
        stay_gateway: AsyncMock,
        make_stay: Callable[..., StayRecord],
    ) -> None:
        stay_gateway.list_staying.return_value = [make_stay(1001)]

        response = client.post(
            "/api/check-resident",
            json={"date": DATE, "name": "Jane Smith", "email": "other@example.com"},
        )

        data = response.json()
        assert data["match_tier"] == 2
        assert data["phone_on_file"] is True

    def test_staying_list_unavailable(self, client: TestClient, stay_gateway: AsyncMock) -> None:
        stay_gateway.list_staying.side_effect = UpstreamError("down", service="newbook")

        response = client.post("/api/check-resident", json={"date": DATE, "name": "Jane Smith"})

        assert response.status_code == HTTP_200_OK
        assert response.json()["match_tier"] == 0
        assert response.json()["message"] == "staying_list_unavailable"


class TestVerifyResidentPhone:
    def test_phone_confirms_stay(
        self,
        client: TestClient,
        stay_gateway: AsyncMock,
        make_stay: Callable[..., StayRecord],
    ) -> None:
        stay_gateway.list_staying.return_value = [make_stay(1001)]

        response = client.post(
            "/api/verify-resident-phone",
            json={"date": DATE, "name": "Jane Smith", "phone": "+44 7700 900123"},
        )

        data = response.json()
        assert data["verified"] is True
        assert data["stay"]["booking_id"] == 1001

    def test_wrong_phone(
        self,
        client: TestClient,
        stay_gateway: AsyncMock,
        make_stay: Callable[..., StayRecord],
    ) -> None:
        stay_gateway.list_staying.return_value = [make_stay(1001)]

        response = client.post(
            "/api/verify-resident-phone",
            json={"date": DATE, "name": "Jane Smith", "phone": "07700 111111"},
        )

        assert response.json() == {"verified": False, "stay": None}


class TestVerifyResidentReference:
    def test_travel_agent_reference(
        self,
        client: TestClient,
        stay_gateway: AsyncMock,
        make_stay: Callable[..., StayRecord],
    ) -> None:
        stay_gateway.list_staying.return_value = [
            make_stay(1001, reference_code="BDC-998877", travel_agent_name="Booking.com")
        ]

        response = client.post(
            "/api/verify-resident-reference", json={"date": DATE, "reference": " BDC-998877 "}
        )

        data = response.json()
        assert data["verified"] is True
        assert data["ota_match"] is True
        assert data["travel_agent_name"] == "Booking.com"
        assert data["internal_booking_id"] == 1001

    def test_own_booking_id(
        self,
        client: TestClient,
        stay_gateway: AsyncMock,
        make_stay: Callable[..., StayRecord],
    ) -> None:
        stay_gateway.list_staying.return_value = [make_stay(1001)]

        response = client.post(
            "/api/verify-resident-reference", json={"date": DATE, "reference": "1001"}
        )

        data = response.json()
        assert data["verified"] is True
        assert data["ota_match"] is False
        assert data["internal_booking_id"] == 1001


class TestVerifyResident:
    """Tests for POST /api/verify-resident."""

    def test_verified_by_surname(
        self,
        client: TestClient,
        stay_gateway: AsyncMock,
        make_stay: Callable[..., StayRecord],
    ) -> None:
        stay_gateway.get_booking.return_value = make_stay(1001)

        response = client.post("/api/verify-resident", json={"bid": 1001, "surname": "smith"})

        data = response.json()
        assert data["verified"] is True
        assert data["profile"]["booking_id"] == 1001
        stay_gateway.get_booking.assert_awaited_once_with(1001)

    def test_booking_not_found(self, client: TestClient) -> None:
        response = client.post("/api/verify-resident", json={"bid": 9999, "surname": "Smith"})

        assert response.status_code == HTTP_200_OK
        assert response.json() == {
            "verified": False,
            "profile": None,
            "error": "Booking not found.",
        }

    def test_second_factor_required(self, client: TestClient) -> None:
        response = client.post("/api/verify-resident", json={"bid": 1001})

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "ERR_INVALID_REQUEST"


class TestCheckGroup:
    """Tests for POST /api/check-group."""

    def test_not_a_group(self, client: TestClient, stay_gateway: AsyncMock) -> None:
        response = client.post(
            "/api/check-group", json={"date": DATE, "booking_id": 1001, "covers": 2}
        )

        data = response.json()
        assert data["is_group"] is False
        assert data["prompt"] is None
        stay_gateway.list_staying.assert_not_awaited()

    def test_existing_group_table(
        self,
        client: TestClient,
        stay_gateway: AsyncMock,
        reservations: AsyncMock,
        make_stay: Callable[..., StayRecord],
    ) -> None:
        """Another member's table bigger than this party suggests a group table."""
        stay_gateway.list_staying.return_value = [
            make_stay(1001, group_id=77),
            make_stay(1002, group_id=77, last_name="Jones", email="b@example.com"),
        ]
        reservations.get_bookings_for_date.return_value = [
            ReservationSummary(people=4, custom_fields={"cf_booking_ref": "1002"})
        ]

        response = client.post(
            "/api/check-group",
            json={"date": DATE, "booking_id": 1001, "group_id": 77, "covers": 2},
        )

        data = response.json()
        assert data["is_group"] is True
        assert data["group_size"] == 2
        assert data["total_group_occupancy"] == 4
        assert data["existing_tables"] == [{"stay_id": "1002", "covers": 4}]
        assert data["prompt"] == "existing_group_table"
        assert data["note"]


class TestBookingWindow:
    """Dates the widget could never book are refused before any lookup."""

    @pytest.mark.parametrize(
        ("path", "body"),
        [
            ("/api/check-resident", {"name": "Jane Smith", "email": "jane@example.com"}),
            ("/api/verify-resident-phone", {"name": "Jane Smith", "phone": "07700 900123"}),
            ("/api/verify-resident-reference", {"reference": "1001"}),
            ("/api/check-group", {"booking_id": 1001, "group_id": 77, "covers": 2}),
        ],
    )
    @pytest.mark.parametrize("days", [-1, 400])
    def test_date_outside_window(
        self,
        client: TestClient,
        stay_gateway: AsyncMock,
        path: str,
        body: dict[str, Any],
        days: int,
    ) -> None:
        date = (dt.date.today() + dt.timedelta(days=days)).isoformat()

        response = client.post(path, json={**body, "date": date})

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "ERR_INVALID_REQUEST"
        stay_gateway.list_staying.assert_not_awaited()

    def test_today_accepted(self, client: TestClient, stay_gateway: AsyncMock) -> None:
        response = client.post(
            "/api/check-resident",
            json={"date": dt.date.today().isoformat(), "name": "Jane Smith"},
        )

        assert response.status_code == HTTP_200_OK
        stay_gateway.list_staying.assert_awaited_once_with(dt.date.today())
