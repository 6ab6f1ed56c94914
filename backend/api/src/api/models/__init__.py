"""API-specific request/response models.

This package contains Pydantic models specific to the REST API layer.
These models define request bodies and response schemas for endpoints.

Domain models (StaySummary, ServicePeriod, NightOutcome, etc.) are in
tablebook.models and should be reused here where appropriate.

Modules:
- common: Shared response wrappers and error models
- periods: Opening hours and available times models
- residents: Resident matching, verification and group models
- bookings: Single, batch and stay plan booking models
"""

__all__: list[str] = []
