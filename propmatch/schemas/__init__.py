"""Pydantic schemas validating input to the exposed operations."""

from propmatch.schemas.deals import (
    DealCreateRequest,
    DealCriteriaPayload,
    DealStageUpdateRequest,
    DealUpdateRequest,
)
from propmatch.schemas.matching import RankMatchesQuery, ShortlistAddRequest

__all__ = [
    "DealCreateRequest",
    "DealCriteriaPayload",
    "DealStageUpdateRequest",
    "DealUpdateRequest",
    "RankMatchesQuery",
    "ShortlistAddRequest",
]
