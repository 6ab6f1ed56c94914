"""Tests for the FastAPI application wiring.

Covers the health check, correlation IDs, the error envelopes and rate
limiting shared by every router.
"""

import datetime as dt
import logging
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_rate_limiter
from api.main import app
from tablebook.models import RateLimitGroup, UpstreamError
from tablebook.services.rate_limiter import RateLimiter


class TestHealthCheck:
    """Tests for the /api/ping health check endpoint."""

    def test_ping_returns_ok(self):
        response = TestClient(app).get("/api/ping")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "tablebook-api"
        assert "timestamp" in data


class TestCorrelationId:
    def test_echoes_supplied_id(self):
        response = TestClient(app).get("/api/ping", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_generates_id(self):
        response = TestClient(app).get("/api/ping")

        assert response.headers["X-Correlation-ID"]

    @pytest.mark.parametrize("supplied", ["bad id; rm -rf", "x" * 65])
    def test_unsafe_id_replaced(self, supplied: str):
        response = TestClient(app).get("/api/ping", headers={"X-Correlation-ID": supplied})

        echoed = response.headers["X-Correlation-ID"]
        assert echoed
        assert echoed != supplied

    def test_request_logged(self, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.INFO, logger="api.middleware.correlation"):
            TestClient(app).get("/api/ping", headers={"X-Correlation-ID": "abc-123"})

        assert any("GET /api/ping -> 200" in r.getMessage() for r in caplog.records)


class TestRoutesRegistered:
    """Tests that all expected routes are registered."""

    def test_widget_routes(self):
        paths = {route.path for route in app.routes}

        assert {
            "/api/opening-hours",
            "/api/available-times",
            "/api/available-times-multi",
            "/api/check-resident",
            "/api/verify-resident-phone",
            "/api/verify-resident-reference",
            "/api/verify-resident",
            "/api/check-group",
            "/api/create-booking",
            "/api/create-bookings-batch",
            "/api/mark-no-table",
            "/api/plan-stay",
        } <= paths


class TestErrorEnvelopes:
    def test_validation_error(self, client: TestClient):
        """Malformed input gets the 422 envelope with field locations."""
        response = client.post("/api/available-times", json={"date": "15/07/2025", "people": 0})

        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["error_code"] == "ERR_VALIDATION"
        locations = [detail["loc"] for detail in data["details"]]
        assert ["body", "date"] in locations
        assert ["body", "people"] in locations
        fields = {detail["field"] for detail in data["details"]}
        assert {"date", "people"} <= fields

    def test_upstream_failure(self, client: TestClient, reservations: AsyncMock):
        reservations.get_opening_hours.side_effect = UpstreamError(
            "resOS API returned status 503", service="resos", status_code=503
        )

        response = client.get("/api/opening-hours", params={"date": "2025-07-15"})

        assert response.status_code == 502
        data = response.json()
        assert data["error_code"] == "ERR_UPSTREAM_UNAVAILABLE"
        assert data["details"] == {"service": "resos"}


class TestRateLimiting:
    def test_rate_limited_after_limit(self, client: TestClient):
        """Limits are per group: exhausting reads does not block resident checks."""
        limited = RateLimiter({RateLimitGroup.READ: 2})
        app.dependency_overrides[get_rate_limiter] = lambda: limited

        statuses = [
            client.get("/api/opening-hours", params={"date": "2025-07-15"}).status_code
            for _ in range(3)
        ]
        resident = client.post(
            "/api/check-resident",
            json={"date": (dt.date.today() + dt.timedelta(days=7)).isoformat(), "name": "Jane Smith"},
        )

        assert statuses == [200, 200, 429]
        assert resident.status_code == 200

    def test_rate_limited_body(self, client: TestClient, rate_limiter: RateLimiter):
        for _ in range(1000):
            rate_limiter.check("0.0.0.0", RateLimitGroup.WRITE)

        response = client.post("/api/mark-no-table", json={"booking_id": 1, "dates": ["2025-07-15"]})

        assert response.status_code == 429
        assert response.json()["error_code"] == "ERR_RATE_LIMITED"
