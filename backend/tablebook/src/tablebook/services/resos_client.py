"""resOS reservation system client.

Opening hours, bookable times, existing bookings and booking creation.
Authenticated with HTTP Basic auth using the API key as username and an
empty password. The API key is read from SSM Parameter Store.
"""

import datetime as dt
import logging
import re
from typing import Any

import httpx

from tablebook.config import WidgetConfig
from tablebook.models import ReservationSummary, UpstreamError

from .ssm_service import SSMService, SSMServiceError, get_ssm_service, parameter_path

logger = logging.getLogger(__name__)

SERVICE = "resos"
BOOKINGS_PAGE_SIZE = 100

_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
_PHONE_CHARS = re.compile(r"[^\d+]")


def format_phone(phone: str | None) -> str:
    """Format a UK phone number in international form.

    ``07700 900123`` becomes ``+447700900123``; numbers already starting
    with ``+`` are only stripped of formatting.
    """
    if not phone:
        return ""
    cleaned = _PHONE_CHARS.sub("", phone)
    if not cleaned:
        return ""
    if cleaned.startswith("+"):
        return cleaned
    if cleaned.startswith("0"):
        cleaned = cleaned[1:]
    return f"+44{cleaned}"


def filter_opening_hours(periods: list[dict[str, Any]], date: dt.date) -> list[dict[str, Any]]:
    """Select the periods that apply on a date.

    Special events dated for the day replace every regular period. Otherwise
    regular periods active on that weekday (or with no weekday restriction)
    apply.
    """
    weekday = _WEEKDAYS[date.weekday()]
    special: list[dict[str, Any]] = []
    regular: list[dict[str, Any]] = []

    for period in periods:
        if not isinstance(period, dict):
            continue
        if period.get("isSpecial"):
            if str(period.get("specialDate") or "")[:10] == date.isoformat():
                special.append(period)
            continue
        active_days = period.get("activeDays")
        if not active_days or active_days.get(weekday):
            regular.append(period)

    return special or regular


def parse_reservation(raw: dict[str, Any]) -> ReservationSummary:
    """Parse a resOS booking into the fields the widget reads."""
    guest = raw.get("guest") if isinstance(raw.get("guest"), dict) else {}
    fields: dict[str, str] = {}
    for field in raw.get("customFields") or []:
        if not isinstance(field, dict):
            continue
        field_id = field.get("_id")
        value = field.get("value")
        if field_id and isinstance(value, (str, int)):
            fields[str(field_id)] = str(value).strip()

    try:
        people = int(raw.get("people") or 0)
    except (TypeError, ValueError):
        people = 0

    return ReservationSummary(
        reservation_id=str(raw.get("_id") or ""),
        time=str(raw.get("time") or ""),
        people=people,
        guest_name=str(guest.get("name") or ""),
        guest_email=str(guest.get("email") or ""),
        guest_phone=str(guest.get("phone") or ""),
        custom_fields=fields,
    )


def parse_created_id(result: Any) -> str:
    """Extract the new booking ID from a create response.

    resOS answers with either the bare ID (sometimes JSON-quoted) or an
    object carrying ``_id``.
    """
    if isinstance(result, str):
        return result.strip().strip('"')
    if isinstance(result, dict):
        return str(result.get("_id") or "")
    return ""


class ResosClient:
    """Async client for the resOS v1 API.

    Usage:
        client = ResosClient(config)
        periods = await client.get_opening_hours(dt.date(2025, 6, 1))
    """

    def __init__(
        self,
        config: WidgetConfig,
        *,
        ssm: SSMService | None = None,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Widget configuration (base URL, timeout)
            ssm: SSM service for the API key (defaults to the shared instance)
            api_key: Explicit API key, bypassing SSM
            transport: Optional httpx transport, used by tests
        """
        self._config = config
        self._ssm = ssm
        self._api_key = api_key
        self._transport = transport

    def _get_api_key(self) -> str:
        """Get the API key from SSM (lazy initialization).

        Raises:
            UpstreamError: If the key cannot be retrieved.
        """
        if not self._api_key:
            ssm = self._ssm or get_ssm_service()
            try:
                self._api_key = ssm.get_parameter(
                    parameter_path(self._config.environment, "resos", "api_key")
                )
            except SSMServiceError as e:
                raise UpstreamError(
                    f"resOS API key is not configured: {e}", service=SERVICE
                ) from e
        return self._api_key

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> Any:
        """Send a request and decode the body.

        Bodies that are not JSON are returned as text; some endpoints answer
        with a plain string.

        Raises:
            UpstreamError: On transport failure or a non-2xx status.
        """
        api_key = self._get_api_key()
        url = f"{self._config.resos_base_url.rstrip('/')}{endpoint}"

        async with httpx.AsyncClient(
            timeout=self._config.resos_timeout_seconds,
            transport=self._transport,
        ) as client:
            try:
                response = await client.request(
                    method, url, params=params, json=body, auth=(api_key, "")
                )
            except httpx.HTTPError as e:
                logger.warning("resOS %s %s failed: %s", method, endpoint, e)
                raise UpstreamError(f"resOS request failed: {e}", service=SERVICE) from e

        if not response.is_success:
            raise UpstreamError(
                f"resOS API returned status {response.status_code}",
                service=SERVICE,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            return response.text

    async def get_opening_hours(self, date: dt.date | None = None) -> list[dict[str, Any]]:
        """Opening hours, filtered to those that apply on ``date`` if given."""
        result = await self._request(
            "GET",
            "/openingHours",
            params={"showDeleted": "false", "onlySpecial": "false"},
        )
        if not isinstance(result, list):
            return []
        if date is None:
            return result
        return filter_opening_hours(result, date)

    async def get_available_times(
        self,
        date: dt.date,
        people: int,
        opening_hour_id: str | None = None,
        *,
        only_bookable_online: bool = True,
    ) -> list[dict[str, Any]]:
        """Bookable times, one entry per opening hour."""
        params: dict[str, Any] = {
            "date": date.isoformat(),
            "people": people,
            "onlyBookableOnline": "true" if only_bookable_online else "false",
        }
        if opening_hour_id:
            params["openingHourId"] = opening_hour_id
        result = await self._request("GET", "/bookingFlow/times", params=params)
        return result if isinstance(result, list) else []

    async def get_bookings_for_date(self, date: dt.date) -> list[ReservationSummary]:
        """All bookings on a date, following pagination."""
        day = date.isoformat()
        bookings: list[ReservationSummary] = []
        skip = 0
        while True:
            page = await self._request(
                "GET",
                "/bookings",
                params={
                    "fromDateTime": f"{day}T00:00:00",
                    "toDateTime": f"{day}T23:59:59",
                    "limit": BOOKINGS_PAGE_SIZE,
                    "skip": skip,
                },
            )
            if not isinstance(page, list):
                break
            bookings.extend(parse_reservation(b) for b in page if isinstance(b, dict))
            if len(page) < BOOKINGS_PAGE_SIZE:
                break
            skip += BOOKINGS_PAGE_SIZE
        return bookings

    async def create_booking(self, payload: dict[str, Any]) -> str:
        """Create a booking and return its ID.

        Raises:
            UpstreamError: If creation fails or no ID comes back.
        """
        result = await self._request("POST", "/bookings", body=payload)
        booking_id = parse_created_id(result)
        if not booking_id:
            raise UpstreamError("resOS returned no booking ID", service=SERVICE)
        return booking_id

    async def get_custom_fields(self) -> list[dict[str, Any]]:
        """Custom field definitions."""
        result = await self._request("GET", "/customFields")
        return result if isinstance(result, list) else []
