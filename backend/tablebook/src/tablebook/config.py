"""Widget configuration.

A single immutable value built once at startup and passed to the services
that need it. Secrets are not part of it: API credentials are read from SSM
Parameter Store by the clients themselves.
"""

import os

from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "TABLEBOOK_"


class WidgetConfig(BaseModel):
    """Settings for the booking widget backend."""

    model_config = ConfigDict(frozen=True)

    environment: str = "dev"

    # Restaurant
    restaurant_phone: str = ""
    max_party_size: int = Field(default=12, ge=1)
    max_booking_window_days: int = Field(default=90, ge=1)
    turnstile_site_key: str = ""

    # Matching and planning
    stay_cache_ttl_seconds: float = Field(default=300.0, ge=0)
    verification_debounce_seconds: float = Field(default=0.8, ge=0)
    max_batch_nights: int = Field(default=14, ge=1)

    # Reservation system custom field mapping
    hotel_guest_field_id: str = ""
    hotel_guest_yes_choice_id: str = ""
    booking_ref_field_id: str = ""
    default_closeout_message: str = ""

    # Upstream systems
    newbook_region: str = "au"
    newbook_base_url: str = "https://api.newbook.cloud/rest"
    resos_base_url: str = "https://api.resos.com/v1"
    newbook_timeout_seconds: float = 15.0
    resos_timeout_seconds: float = 30.0
    no_table_field_name: str = "Restaurant Status"

    # Requests per minute per client address
    rate_limit_read: int = 30
    rate_limit_write: int = 5
    rate_limit_resident: int = 10

    def closeout_message(self) -> str | None:
        """Default closeout message with the restaurant phone filled in."""
        if not self.default_closeout_message:
            return None
        return self.default_closeout_message.replace("{phone}", self.restaurant_phone)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "WidgetConfig":
        """Build configuration from ``TABLEBOOK_*`` environment variables.

        ``ENVIRONMENT`` is honoured for the environment name when
        ``TABLEBOOK_ENVIRONMENT`` is not set. Unset variables keep their
        defaults.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            WidgetConfig built from the environment
        """
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for name in cls.model_fields:
            raw = env.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        if "environment" not in values and env.get("ENVIRONMENT"):
            values["environment"] = env["ENVIRONMENT"]
        return cls.model_validate(values)
