"""Deal-to-property match scoring.

Weights (sum to 100):
- Budget (30): price inside the deal's budget bounds, linear decay outside.
- Location (25): exact zone, or 40% when one zone name contains the other.
- Size (25): room counts and surface, split evenly when both are requested.
- Features (20): share of required feature tags present on the property.

Absence of a constraint is a perfect fit. Missing property data degrades the
affected factor to its minimum; scoring never raises.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from propmatch.scoring._coerce import (
    read,
    round_half_up,
    to_count,
    to_positive,
    to_tags,
    to_text,
)


@dataclass(frozen=True)
class DealCriteria:
    budget_min: float | None = None
    budget_max: float | None = None
    location_zone: str | None = None
    rooms: int | None = None
    bedrooms: int | None = None
    surface: float | None = None
    surface_min: float | None = None
    surface_max: float | None = None
    features: tuple[str, ...] = ()

    @classmethod
    def from_deal(cls, deal: Any) -> "DealCriteria":
        """Build criteria from a Deal row, a mapping, or any object with deal attributes."""
        if isinstance(deal, DealCriteria):
            return deal
        criteria = read(deal, "criteria_json", "criteria", "criteriaJson")
        if not isinstance(criteria, Mapping):
            criteria = {}
        return cls(
            budget_min=to_positive(read(deal, "budget_min", "budgetMin")),
            budget_max=to_positive(read(deal, "budget_max", "budgetMax")),
            location_zone=to_text(read(deal, "location_zone", "locationZone")),
            rooms=to_count(read(criteria, "rooms", "rooms_min", "roomsMin")),
            bedrooms=to_count(read(criteria, "bedrooms", "bedrooms_min", "bedroomsMin")),
            surface=to_positive(read(criteria, "surface", "surface_area", "surfaceArea")),
            surface_min=to_positive(read(criteria, "surface_min", "surfaceAreaMin")),
            surface_max=to_positive(read(criteria, "surface_max", "surfaceAreaMax")),
            features=to_tags(read(criteria, "features", "extras")) or (),
        )

    @property
    def has_budget(self) -> bool:
        return self.budget_min is not None or self.budget_max is not None


@dataclass(frozen=True)
class PropertyAttributes:
    price: float | None = None
    location_zone: str | None = None
    surface_area: float | None = None
    rooms: int | None = None
    bedrooms: int | None = None
    features: tuple[str, ...] | None = None

    @classmethod
    def from_property(cls, prop: Any) -> "PropertyAttributes":
        if isinstance(prop, PropertyAttributes):
            return prop
        extra = read(prop, "type_specific_data", "typeSpecificData")
        features = read(extra, "features") if isinstance(extra, Mapping) else None
        if features is None and isinstance(prop, Mapping):
            features = prop.get("features")
        return cls(
            price=to_positive(read(prop, "price")),
            location_zone=to_text(read(prop, "location_zone", "locationZone")),
            surface_area=to_positive(read(prop, "surface_area", "surfaceArea", "surface")),
            rooms=to_count(read(prop, "rooms")),
            bedrooms=to_count(read(prop, "bedrooms")),
            features=to_tags(features),
        )


@dataclass
class MatchScore:
    total: int
    factors: dict[str, int] = field(default_factory=dict)
    explanation_text: str = ""

    def as_explanation(self) -> dict[str, Any]:
        """JSON-ready explanation stored alongside shortlist entries."""
        return {**self.factors, "breakdown": self.explanation_text}


class MatchScorer:
    """Deterministic, explainable deal/property scorer."""

    WEIGHT_BUDGET = 30
    WEIGHT_LOCATION = 25
    WEIGHT_SIZE = 25
    WEIGHT_FEATURES = 20

    PARTIAL_ZONE_RATIO = 0.4

    # Keyed by how many rooms the property has beyond the request.
    ROOM_SURPLUS_RATIOS = {0: 1.0, 1: 0.65, 2: 0.30}
    # Keyed by how many rooms the property is short of the request.
    ROOM_DEFICIT_RATIOS = {0: 1.0, 1: 0.65}

    LABELS = (
        ("budget", "Budget", WEIGHT_BUDGET),
        ("location", "Zone", WEIGHT_LOCATION),
        ("size", "Size", WEIGHT_SIZE),
        ("features", "Features", WEIGHT_FEATURES),
    )

    def score(self, deal: Any, prop: Any) -> MatchScore:
        criteria = DealCriteria.from_deal(deal)
        attributes = PropertyAttributes.from_property(prop)

        factors = {
            "budget": self.budget_fit(criteria, attributes),
            "location": self.location_fit(criteria, attributes),
            "size": self.size_fit(criteria, attributes),
            "features": self.features_fit(criteria, attributes),
        }
        total = max(0, min(100, sum(factors.values())))
        return MatchScore(total=total, factors=factors, explanation_text=self.explain(factors))

    def budget_fit(self, criteria: DealCriteria, attributes: PropertyAttributes) -> int:
        if not criteria.has_budget:
            return self.WEIGHT_BUDGET
        price = attributes.price
        if price is None:
            return 0

        ratio = 1.0
        if criteria.budget_min is not None and price < criteria.budget_min:
            ratio = max(0.0, 1 - (criteria.budget_min - price) / criteria.budget_min)
        elif criteria.budget_max is not None and price > criteria.budget_max:
            ratio = max(0.0, 1 - (price - criteria.budget_max) / criteria.budget_max)
        return round_half_up(self.WEIGHT_BUDGET * ratio)

    def location_fit(self, criteria: DealCriteria, attributes: PropertyAttributes) -> int:
        if not criteria.location_zone:
            return self.WEIGHT_LOCATION
        if not attributes.location_zone:
            return 0

        wanted = criteria.location_zone.lower()
        actual = attributes.location_zone.lower()
        if wanted == actual:
            return self.WEIGHT_LOCATION
        if wanted in actual or actual in wanted:
            return round_half_up(self.WEIGHT_LOCATION * self.PARTIAL_ZONE_RATIO)
        return 0

    def size_fit(self, criteria: DealCriteria, attributes: PropertyAttributes) -> int:
        room_ratios = []
        if criteria.rooms is not None:
            room_ratios.append(self.room_ratio(criteria.rooms, attributes.rooms))
        if criteria.bedrooms is not None:
            room_ratios.append(self.room_ratio(criteria.bedrooms, attributes.bedrooms))

        parts = []
        if room_ratios:
            parts.append(sum(room_ratios) / len(room_ratios))
        surface = self.surface_ratio(criteria, attributes.surface_area)
        if surface is not None:
            parts.append(surface)

        if not parts:
            return self.WEIGHT_SIZE
        return round_half_up(self.WEIGHT_SIZE * sum(parts) / len(parts))

    def room_ratio(self, wanted: int, actual: int | None) -> float:
        if actual is None:
            return 0.0
        difference = actual - wanted
        if difference >= 0:
            return self.ROOM_SURPLUS_RATIOS.get(difference, 0.0)
        return self.ROOM_DEFICIT_RATIOS.get(-difference, 0.0)

    @staticmethod
    def surface_ratio(criteria: DealCriteria, actual: float | None) -> float | None:
        """Surface sub-score, or None when the deal has no surface criteria."""
        if criteria.surface is not None:
            if actual is None:
                return 0.0
            return max(0.0, 1 - abs(actual - criteria.surface) / criteria.surface)

        if criteria.surface_min is None and criteria.surface_max is None:
            return None
        if actual is None:
            return 0.0
        if criteria.surface_min is not None and actual < criteria.surface_min:
            return max(0.0, 1 - (criteria.surface_min - actual) / criteria.surface_min)
        if criteria.surface_max is not None and actual > criteria.surface_max:
            return max(0.0, 1 - (actual - criteria.surface_max) / criteria.surface_max)
        return 1.0

    def features_fit(self, criteria: DealCriteria, attributes: PropertyAttributes) -> int:
        if not criteria.features:
            return self.WEIGHT_FEATURES
        if attributes.features is None:
            return 0

        matched = len(set(criteria.features) & set(attributes.features))
        return round_half_up(self.WEIGHT_FEATURES * matched / len(criteria.features))

    def explain(self, factors: dict[str, int]) -> str:
        parts = [
            f"{label}: {factors[key]}/{weight}"
            for key, label, weight in self.LABELS
            if factors.get(key, 0) > 0
        ]
        return ", ".join(parts) or "No matches"


_default_scorer = MatchScorer()


def score_match(deal: Any, prop: Any) -> MatchScore:
    """Score one deal against one property with the default weights."""
    return _default_scorer.score(deal, prop)
