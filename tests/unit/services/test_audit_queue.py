from __future__ import annotations

import threading
from datetime import datetime
from decimal import Decimal

from propmatch.audit import AuditEvent, AuditLogWriter, AuditQueue, NullAuditSink, build_audit_sink, json_safe
from propmatch.models import AuditLog
from propmatch.models.enums import DealStage


class ListWriter:
    def __init__(self) -> None:
        self.batches: list[list[AuditEvent]] = []
        self.written = threading.Event()

    def __call__(self, events):
        self.batches.append(list(events))
        self.written.set()

    @property
    def events(self):
        return [event for batch in self.batches for event in batch]


def _event(index: int = 1) -> AuditEvent:
    return AuditEvent(action_key="CRM_DEAL_UPDATED", entity_type="deal", entity_id=str(index), tenant_id=1)


def test_shutdown_drains_everything_queued():
    writer = ListWriter()
    audit = AuditQueue(writer, maxsize=100, flush_threshold=3, flush_interval=60)

    for index in range(7):
        audit.record(_event(index))
    audit.shutdown(drain=True)

    assert [event.entity_id for event in writer.events] == [str(index) for index in range(7)]
    assert [len(batch) for batch in writer.batches] == [3, 3, 1]
    assert audit.pending() == 0


def test_background_thread_flushes_on_threshold():
    writer = ListWriter()
    audit = AuditQueue(writer, flush_threshold=2, flush_interval=60)
    audit.start()
    try:
        audit.record(_event(1))
        audit.record(_event(2))
        assert writer.written.wait(timeout=5)
    finally:
        audit.shutdown(drain=True)

    assert len(writer.events) == 2
    assert audit.running is False


def test_background_thread_flushes_on_interval():
    writer = ListWriter()
    audit = AuditQueue(writer, flush_threshold=100, flush_interval=0.05)
    audit.start()
    try:
        audit.record(_event(1))
        assert writer.written.wait(timeout=5)
    finally:
        audit.shutdown(drain=True)

    assert len(writer.events) == 1


def test_shutdown_timeout_keeps_busy_drain_thread(caplog):
    entered = threading.Event()
    release = threading.Event()
    written = []

    def _slow(events):
        entered.set()
        release.wait(timeout=5)
        written.extend(events)

    audit = AuditQueue(_slow, flush_threshold=1, flush_interval=60)
    audit.start()
    audit.record(_event(1))
    assert entered.wait(timeout=5)

    audit.shutdown(drain=True, timeout=0.05)

    assert audit.running is True
    assert "audit.queue.shutdown_timeout" in caplog.text

    release.set()
    audit.shutdown(drain=True, timeout=5)

    assert audit.running is False
    assert [event.entity_id for event in written] == ["1"]


def test_full_queue_drops_without_raising():
    writer = ListWriter()
    audit = AuditQueue(writer, maxsize=2, flush_threshold=10)

    for index in range(5):
        audit.record(_event(index))

    assert audit.dropped == 3
    assert audit.flush() == 2


def test_writer_failure_is_logged_and_batch_discarded(caplog):
    def _broken(events):
        raise RuntimeError("database down")

    audit = AuditQueue(_broken, flush_threshold=10)
    audit.record(_event())

    audit.shutdown(drain=True)

    assert audit.failed == 1
    assert audit.pending() == 0
    assert "audit.flush_failed" in caplog.text


def test_shutdown_without_drain_discards_pending():
    writer = ListWriter()
    audit = AuditQueue(writer)
    audit.record(_event())

    audit.shutdown(drain=False)

    assert writer.events == []
    assert audit.pending() == 0


def test_audit_log_writer_persists_rows(session_factory):
    writer = AuditLogWriter(session_factory)
    event = AuditEvent(
        action_key="CRM_DEAL_STAGE_CHANGED",
        entity_type="deal",
        entity_id="42",
        actor_user_id=9,
        payload={"changes": {"stage": {"old": DealStage.NEW, "new": DealStage.WON}}, "amount": Decimal("10.50")},
    )

    writer([event])

    with session_factory() as db:
        row = db.query(AuditLog).one()
    assert row.action_key == "CRM_DEAL_STAGE_CHANGED"
    assert row.entity_id == "42"
    assert row.actor_user_id == 9
    assert row.payload["changes"]["stage"] == {"old": "NEW", "new": "WON"}
    assert row.payload["amount"] == 10.5
    assert row.payload["event"] == "CRM_DEAL_STAGE_CHANGED"


def test_json_safe_converts_nested_values():
    stamp = datetime(2026, 1, 1, 12, 0)

    assert json_safe({"at": stamp, "tags": ("a", DealStage.LOST)}) == {
        "at": "2026-01-01T12:00:00",
        "tags": ["a", "LOST"],
    }


def test_disabled_audit_uses_null_sink():
    sink = build_audit_sink(False)

    assert isinstance(sink, NullAuditSink)
    sink.record(_event())


def test_service_swallows_sink_failures(session, caplog):
    from propmatch.services.base_service import BaseService

    class _ExplodingSink:
        def record(self, event):
            raise RuntimeError("sink down")

    service = BaseService(db=session, audit=_ExplodingSink())

    service._audit("CRM_DEAL_UPDATED", "deal", 5, tenant_id=1)

    assert "audit.record_failed" in caplog.text
