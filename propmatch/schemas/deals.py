"""Deal request schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from propmatch.models.enums import DealStage, DealType, FurnishingStatus


class DealCriteriaPayload(BaseModel):
    """Structured search criteria stored on the deal."""

    model_config = ConfigDict(extra="allow")

    rooms: int | None = Field(default=None, ge=0, le=100)
    bedrooms: int | None = Field(default=None, ge=0, le=100)
    surface: float | None = Field(default=None, gt=0)
    surface_min: float | None = Field(default=None, gt=0)
    surface_max: float | None = Field(default=None, gt=0)
    features: list[str] = Field(default_factory=list, max_length=50)
    furnishing_status: FurnishingStatus | None = None

    @model_validator(mode="after")
    def check_surface_range(self) -> "DealCriteriaPayload":
        if self.surface_min is not None and self.surface_max is not None and self.surface_min > self.surface_max:
            raise ValueError("surface_min must be <= surface_max")
        return self


def _check_budget(budget_min: float | None, budget_max: float | None) -> None:
    if budget_min is not None and budget_max is not None and budget_min > budget_max:
        raise ValueError("budget_min must be <= budget_max")


class DealCreateRequest(BaseModel):
    contact_id: int | None = Field(default=None, ge=1)
    type: DealType = DealType.PURCHASE
    budget_min: float | None = Field(default=None, ge=0)
    budget_max: float | None = Field(default=None, ge=0)
    location_zone: str | None = Field(default=None, max_length=255)
    criteria: DealCriteriaPayload | None = None
    expected_value: float | None = Field(default=None, ge=0)
    probability: int | None = Field(default=None, ge=0, le=100)
    assigned_to_user_id: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def check_budget(self) -> "DealCreateRequest":
        _check_budget(self.budget_min, self.budget_max)
        return self


class DealUpdateRequest(BaseModel):
    """Partial update; only fields explicitly sent are applied.

    ``version`` must equal the stored version of the deal.
    """

    version: int = Field(ge=1)
    stage: DealStage | None = None
    type: DealType | None = None
    budget_min: float | None = Field(default=None, ge=0)
    budget_max: float | None = Field(default=None, ge=0)
    location_zone: str | None = Field(default=None, max_length=255)
    criteria: DealCriteriaPayload | None = None
    expected_value: float | None = Field(default=None, ge=0)
    probability: int | None = Field(default=None, ge=0, le=100)
    assigned_to_user_id: int | None = Field(default=None, ge=1)
    closed_reason: str | None = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def check_budget(self) -> "DealUpdateRequest":
        _check_budget(self.budget_min, self.budget_max)
        return self


class DealStageUpdateRequest(BaseModel):
    stage: DealStage
    version: int = Field(ge=1)
    closed_reason: str | None = Field(default=None, max_length=2000)

