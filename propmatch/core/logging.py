"""Structured context shared by log records and audit payloads."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class LogContext:
    """Who did what to which entity, as carried in logs and audit rows."""

    tenant_id: int | None = None
    actor_user_id: int | None = None
    entity_type: str | None = None
    entity_id: str | None = None

    def as_extra(self, event: str, **fields: Any) -> dict[str, Any]:
        """``extra=`` mapping for a logger call; unset context keys are omitted."""
        extra = {key: value for key, value in asdict(self).items() if value is not None}
        extra.update(fields)
        extra["event"] = event
        return extra


def build_log_event(event: str, context: LogContext, **fields: Any) -> dict[str, Any]:
    """Build a normalized structured payload with every context key present."""
    payload: dict[str, Any] = {
        "recorded_at": datetime.now(timezone.utc).isoformat(),
        "event": event,
        **asdict(context),
    }
    payload.update(fields)
    return payload
