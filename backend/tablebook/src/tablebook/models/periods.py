"""Restaurant service periods and time slots."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ClosingMarkers(BaseModel):
    """Annotations extracted from a service period name."""

    model_config = ConfigDict(strict=True, frozen=True)

    resident_only: bool = False
    display_message: str | None = None
    clean_name: str = ""


class ServicePeriod(BaseModel):
    """A service period (e.g. lunch, dinner) on a date."""

    model_config = ConfigDict(strict=True, frozen=True, populate_by_name=True)

    id: str
    name: str
    from_time: str = Field(default="", alias="from")
    to_time: str = Field(default="", alias="to")
    is_special: bool = False
    resident_only: bool = False
    display_message: str | None = None
    times: list[str] = Field(default_factory=list)

    def is_closed_for(self, *, resident: bool) -> bool:
        """Residents bypass closures; everyone else is turned away by any marker."""
        if resident:
            return False
        return self.resident_only or bool(self.display_message)


class TimeSlots(BaseModel):
    """Bookable times for one period plus the custom fields the guest must fill."""

    model_config = ConfigDict(strict=True, frozen=True)

    times: list[str] = Field(default_factory=list)
    active_custom_fields: list[dict[str, Any]] = Field(default_factory=list)


class DateAvailability(BaseModel):
    """Periods and times for one night in the stay planner."""

    model_config = ConfigDict(strict=True, frozen=True)

    error: bool = False
    periods: list[ServicePeriod] = Field(default_factory=list)
