"""Matching and shortlist request schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator


class RankMatchesQuery(BaseModel):
    threshold: int = Field(default=40, ge=0, le=100)
    limit: int = Field(default=10, ge=1, strict=True)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    radius_m: float | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def check_geo_filter(self) -> "RankMatchesQuery":
        geo = (self.latitude, self.longitude, self.radius_m)
        if any(value is not None for value in geo) and any(value is None for value in geo):
            raise ValueError("latitude, longitude and radius_m must be provided together")
        return self

    @property
    def near(self) -> tuple[float, float] | None:
        if self.latitude is None or self.longitude is None:
            return None
        return self.latitude, self.longitude


class ShortlistAddRequest(BaseModel):
    property_id: int = Field(ge=1)
    match_score: int = Field(ge=0, le=100)
    match_explanation: dict[str, Any] | None = None
    source_owner_contact_id: int | None = Field(default=None, ge=1)
