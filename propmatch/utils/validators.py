"""Deterministic validators and sanitizers used by the services."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from propmatch.core.exceptions import ValidationError

E = TypeVar("E", bound=enum.Enum)
M = TypeVar("M", bound=BaseModel)


def sanitize_text(value: str | None, max_len: int = 20000) -> str:
    """Sanitize free-form content before persistence."""
    if value is None:
        return ""
    cleaned = str(value).replace("\x00", "").strip()
    cleaned = cleaned[:max_len]
    return cleaned


def optional_text(value: str | None, max_len: int = 20000) -> str | None:
    cleaned = sanitize_text(value, max_len=max_len)
    return cleaned or None


def parse_enum(enum_cls: type[E], value: E | str, label: str) -> E:
    """Coerce a raw value into ``enum_cls`` or raise ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {label}: {value!r}. Expected one of: {allowed}") from exc


def validate_score(score: int | float, label: str = "score") -> int:
    try:
        number = int(round(float(score)))
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValidationError(f"{label} must be a number between 0 and 100") from exc
    if not 0 <= number <= 100:
        raise ValidationError(f"{label} must be between 0 and 100")
    return number


def parse_model(model_cls: type[M], data: M | Mapping[str, Any]) -> M:
    """Validate ``data`` into a pydantic model, raising the package ValidationError."""
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'request'}: {error['msg']}" for error in exc.errors()
        )
        raise ValidationError(f"Invalid {model_cls.__name__}: {details}") from exc
