"""Fire-and-forget audit trail.

Services hand :class:`AuditEvent` objects to an :class:`AuditSink`. The
production sink is :class:`AuditQueue`: a bounded in-memory queue drained by
one background thread that writes batches through an :class:`AuditLogWriter`.
``record`` never blocks and never raises; a full queue drops the event.
"""

from __future__ import annotations

import enum
import logging
import queue
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Protocol

from sqlalchemy.orm import Session

from propmatch.core.logging import LogContext, build_log_event
from propmatch.models.audit_log import AuditLog
from propmatch.models.base import utcnow

logger = logging.getLogger(__name__)

BatchWriter = Callable[[list["AuditEvent"]], None]


@dataclass(frozen=True)
class AuditEvent:
    action_key: str
    entity_type: str
    entity_id: str
    tenant_id: int | None = None
    actor_user_id: int | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)


class AuditSink(Protocol):
    def record(self, event: AuditEvent) -> None: ...


class NullAuditSink:
    """Sink used when auditing is disabled."""

    def record(self, event: AuditEvent) -> None:
        logger.debug("audit.discarded", extra={"event": "audit.discarded", "action_key": event.action_key})


def json_safe(value: Any) -> Any:
    """Convert enums, decimals and datetimes into JSON-serializable values."""
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(key): json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [json_safe(item) for item in value]
    return value


class AuditLogWriter:
    """Persist a batch of events as ``audit_logs`` rows in one transaction."""

    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        self._session_factory = session_factory

    def __call__(self, events: list[AuditEvent]) -> None:
        if not events:
            return
        session_factory = self._session_factory
        if session_factory is None:
            from propmatch.database.db import get_session_factory

            session_factory = get_session_factory()

        with session_factory() as session:
            session.add_all([self._to_row(event) for event in events])
            session.commit()

    @staticmethod
    def _to_row(event: AuditEvent) -> AuditLog:
        context = LogContext(
            tenant_id=event.tenant_id,
            actor_user_id=event.actor_user_id,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
        )
        payload = build_log_event(event.action_key, context, **json_safe(event.payload))
        return AuditLog(
            tenant_id=event.tenant_id,
            actor_user_id=event.actor_user_id,
            action_key=event.action_key,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            payload=payload,
            created_at=event.created_at,
        )


class AuditQueue:
    """Bounded audit buffer with a background drain thread.

    Batches are written once ``flush_threshold`` events are pending or the
    oldest pending event is ``flush_interval`` seconds old. ``shutdown`` with
    ``drain=True`` writes everything still queued before returning.
    """

    POLL_SECONDS = 0.2

    def __init__(
        self,
        writer: BatchWriter,
        maxsize: int = 10000,
        flush_threshold: int = 100,
        flush_interval: float = 5.0,
    ) -> None:
        if flush_threshold < 1:
            raise ValueError("flush_threshold must be >= 1")
        self._writer = writer
        self._queue: queue.Queue[AuditEvent] = queue.Queue(maxsize=maxsize)
        self._flush_threshold = flush_threshold
        self._flush_interval = flush_interval
        self._stop = threading.Event()
        self._write_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self.dropped = 0
        self.written = 0
        self.failed = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="propmatch-audit-drain", daemon=True)
        self._thread.start()
        logger.info("audit.queue.started", extra={"event": "audit.queue.started"})

    def record(self, event: AuditEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self.dropped += 1
            logger.warning(
                "audit.queue.full",
                extra={"event": "audit.queue.full", "action_key": event.action_key, "dropped": self.dropped},
            )

    def flush(self) -> int:
        """Synchronously write everything currently queued; returns events taken."""
        taken = 0
        while True:
            batch = self._take(self._flush_threshold)
            if not batch:
                return taken
            taken += len(batch)
            self._write(batch)

    def shutdown(self, drain: bool = True, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                # The drain thread still owns its in-flight batch and writes it on exit.
                logger.warning(
                    "audit.queue.shutdown_timeout",
                    extra={"event": "audit.queue.shutdown_timeout", "timeout": timeout, "pending": self.pending()},
                )
            else:
                self._thread = None
        if drain:
            self.flush()
        else:
            discarded = len(self._take(self._queue.qsize()))
            if discarded:
                logger.warning(
                    "audit.queue.discarded_on_shutdown",
                    extra={"event": "audit.queue.discarded_on_shutdown", "count": discarded},
                )
        logger.info(
            "audit.queue.stopped",
            extra={"event": "audit.queue.stopped", "written": self.written, "dropped": self.dropped},
        )

    def _take(self, limit: int) -> list[AuditEvent]:
        batch: list[AuditEvent] = []
        while len(batch) < limit:
            try:
                batch.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return batch

    def _write(self, batch: list[AuditEvent]) -> None:
        with self._write_lock:
            try:
                self._writer(batch)
            except Exception:
                self.failed += len(batch)
                logger.exception("audit.flush_failed", extra={"event": "audit.flush_failed", "count": len(batch)})
                return
            self.written += len(batch)

    def _run(self) -> None:
        batch: list[AuditEvent] = []
        batch_started = 0.0
        while not self._stop.is_set():
            try:
                event = self._queue.get(timeout=self.POLL_SECONDS)
            except queue.Empty:
                event = None
            if event is not None:
                if not batch:
                    batch_started = time.monotonic()
                batch.append(event)

            expired = bool(batch) and time.monotonic() - batch_started >= self._flush_interval
            if len(batch) >= self._flush_threshold or expired:
                self._write(batch)
                batch = []

        if batch:
            self._write(batch)


def build_audit_sink(
    enabled: bool,
    session_factory: Callable[[], Session] | None = None,
    maxsize: int = 10000,
    flush_threshold: int = 100,
    flush_interval: float = 5.0,
) -> AuditSink:
    if not enabled:
        return NullAuditSink()
    return AuditQueue(
        AuditLogWriter(session_factory),
        maxsize=maxsize,
        flush_threshold=flush_threshold,
        flush_interval=flush_interval,
    )
