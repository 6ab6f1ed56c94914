"""Group stay models."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import GroupPrompt


class ExistingTable(BaseModel):
    """A restaurant booking already held by another member of the group."""

    model_config = ConfigDict(strict=True, frozen=True)

    stay_id: str = Field(..., description="Group member's stay booking ID, as recorded on the table booking")
    covers: int = Field(default=0, ge=0)


class GroupCheckResult(BaseModel):
    """Group state for a matched resident on a date.

    Derived per request, never cached.
    """

    model_config = ConfigDict(strict=True, frozen=True)

    is_group: bool
    group_size: int = 0
    total_group_occupancy: int = 0
    this_guest_occupancy: int = 0
    existing_tables: list[ExistingTable] = Field(default_factory=list)

    @classmethod
    def not_group(cls) -> "GroupCheckResult":
        return cls(is_group=False)


class GroupPromptDecision(BaseModel):
    """Which group question to ask, and the note attached if the guest agrees."""

    model_config = ConfigDict(strict=True, frozen=True)

    prompt: GroupPrompt
    note: str
