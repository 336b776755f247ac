"""Listing completeness scoring used by the publication gate."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from propmatch.scoring._coerce import read, round_half_up, to_float, to_positive, to_snake, to_text

QUALITY_WEIGHTS = {
    "required_fields": 0.4,
    "media": 0.3,
    "geolocation": 0.2,
    "description": 0.1,
}

MAX_LISTED_MISSING_FIELDS = 5

# (min words, min characters, score), best tier first.
DESCRIPTION_TIERS = (
    (200, 1000, 1.0),
    (100, 500, 0.8),
    (50, 250, 0.6),
    (20, 100, 0.4),
)

# (min media items, score) once a primary photo exists.
MEDIA_TIERS = (
    (10, 1.0),
    (5, 0.8),
    (3, 0.6),
)


@dataclass
class QualityResult:
    score: int
    suggestions: list[str] = field(default_factory=list)
    breakdown: dict[str, int] = field(default_factory=dict)


def _field_definitions(template: Any) -> list[Mapping[str, Any]]:
    definitions = read(template, "field_definitions", "fieldDefinitions")
    if not isinstance(definitions, list):
        return []
    return [definition for definition in definitions if isinstance(definition, Mapping)]


def _required_fields(template: Any) -> list[Mapping[str, Any]]:
    return [
        definition
        for definition in _field_definitions(template)
        if definition.get("required") and (definition.get("key") or definition.get("name"))
    ]


def _resolve(prop: Any, path: str) -> Any:
    segments = path.split(".")
    head = segments[0]
    value = read(prop, head, to_snake(head))
    if value is None:
        extra = read(prop, "type_specific_data", "typeSpecificData")
        if isinstance(extra, Mapping):
            value = read(extra, head, to_snake(head))
    for segment in segments[1:]:
        if value is None:
            break
        value = read(value, segment, to_snake(segment))
    return value


def _is_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) > 0
    return True


def _missing_field_labels(prop: Any, template: Any) -> list[str]:
    missing = []
    for definition in _required_fields(template):
        key = str(definition.get("key") or definition.get("name"))
        if not _is_filled(_resolve(prop, key)):
            missing.append(str(definition.get("label") or key))
    return missing


def required_fields_completion(prop: Any, template: Any) -> float:
    """Share of the template's required fields that carry a value."""
    required = _required_fields(template)
    if not required:
        return 1.0
    missing = _missing_field_labels(prop, template)
    return (len(required) - len(missing)) / len(required)


def _media_items(prop: Any) -> list[Any]:
    """Media that still count towards the listing; soft-deleted items are skipped."""
    media = read(prop, "media")
    if media is None:
        return []
    return [item for item in media if read(item, "deleted_at", "deletedAt") is None]


def media_score(media: list[Any]) -> float:
    if not media:
        return 0.0
    if not any(read(item, "is_primary", "isPrimary") for item in media):
        return 0.3
    for minimum, score in MEDIA_TIERS:
        if len(media) >= minimum:
            return score
    return 0.4


def geolocation_score(prop: Any) -> float:
    latitude = to_float(read(prop, "latitude"))
    longitude = to_float(read(prop, "longitude"))
    if latitude is None or longitude is None:
        return 0.0
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        return 0.0
    return 1.0


def _word_count(description: str | None) -> int:
    return len(description.split()) if description else 0


def description_score(description: str | None) -> float:
    if not description:
        return 0.0
    words = _word_count(description)
    characters = len(description)
    for min_words, min_chars, score in DESCRIPTION_TIERS:
        if words >= min_words and characters >= min_chars:
            return score
    return 0.2


def build_suggestions(prop: Any, template: Any, breakdown: Mapping[str, float]) -> list[str]:
    suggestions: list[str] = []

    if breakdown["required_fields"] < 1.0:
        missing = _missing_field_labels(prop, template)
        if missing:
            listed = ", ".join(missing[:MAX_LISTED_MISSING_FIELDS])
            more = "..." if len(missing) > MAX_LISTED_MISSING_FIELDS else ""
            suggestions.append(f"Complete the required fields: {listed}{more}")

    if breakdown["media"] < 0.5:
        media = _media_items(prop)
        if not media:
            suggestions.append("Add at least one primary photo of the property")
        else:
            if not any(read(item, "is_primary", "isPrimary") for item in media):
                suggestions.append("Set a primary photo")
            if len(media) < 5:
                suggestions.append(f"Add more photos (recommended: at least 5, currently: {len(media)})")

    if breakdown["geolocation"] < 1.0:
        suggestions.append("Add geolocation (latitude/longitude) to show the property on the map")

    if breakdown["description"] < 0.6:
        words = _word_count(to_text(read(prop, "description")))
        if words == 0:
            suggestions.append("Add a description of the property")
        elif words < 50:
            suggestions.append(f"Expand the description (recommended: at least 100 words, currently: {words})")
        elif words < 100:
            suggestions.append(
                f"Add more detail to the description (recommended: at least 200 words, currently: {words})"
            )

    if to_positive(read(prop, "price")) is None:
        suggestions.append("Add a price to improve visibility")
    if not to_text(read(prop, "address")):
        suggestions.append("Add the full address of the property")
    if not to_text(read(prop, "location_zone", "locationZone")):
        suggestions.append("Add the zone/neighbourhood to make the property easier to find")

    return suggestions


def score_quality(prop: Any, template: Any = None) -> QualityResult:
    """Score a listing's completeness against its type template.

    ``template`` may be a PropertyTypeTemplate row, a mapping with
    ``field_definitions``, or None (every field optional). Never raises.
    """
    components = {
        "required_fields": required_fields_completion(prop, template),
        "media": media_score(_media_items(prop)),
        "geolocation": geolocation_score(prop),
        "description": description_score(to_text(read(prop, "description"))),
    }
    total = sum(components[name] * weight for name, weight in QUALITY_WEIGHTS.items())

    return QualityResult(
        score=max(0, min(100, round_half_up(total * 100))),
        suggestions=build_suggestions(prop, template, components),
        breakdown={name: round_half_up(value * 100) for name, value in components.items()},
    )
