"""Tolerant readers shared by the pure scorers.

Scorers receive ORM rows, plain mappings or ad-hoc objects. Everything here
returns ``None`` for missing or unparseable input instead of raising.
"""

from __future__ import annotations

import enum
import math
import re
from collections.abc import Iterable, Mapping
from typing import Any

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def read(source: Any, *names: str) -> Any:
    """Return the first non-None value among ``names`` on a mapping or object."""
    if source is None:
        return None
    for name in names:
        if isinstance(source, Mapping):
            value = source.get(name)
        else:
            value = getattr(source, name, None)
        if value is not None:
            return value
    return None


def to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def to_positive(value: Any) -> float | None:
    number = to_float(value)
    if number is None or number <= 0:
        return None
    return number


def to_count(value: Any) -> int | None:
    number = to_positive(value)
    if number is None:
        return None
    return int(round(number))


def to_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, enum.Enum):
        value = value.value
    text = str(value).strip()
    return text or None


def to_tags(value: Any) -> tuple[str, ...] | None:
    """Normalise a tag collection; ``None`` means no tag data at all."""
    if value is None:
        return None
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    elif isinstance(value, Mapping):
        # {"pool": true, "garden": false} style payloads.
        items = [key for key, enabled in value.items() if enabled]
    elif isinstance(value, Iterable):
        items = value
    else:
        return None
    tags = (to_text(item) for item in items)
    return tuple(dict.fromkeys(tag.lower() for tag in tags if tag))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
