from __future__ import annotations

import pytest

from propmatch.audit import AuditQueue, AuditLogWriter
from propmatch.core.config import get_config
from propmatch.core.exceptions import ConflictError
from propmatch.models import AuditLog, Deal, Property, Tenant
from propmatch.models.enums import DealStage, MatchStatus, PropertyStatus
from propmatch.orchestrator import MatchingEngine


@pytest.fixture
def seeded_ids(session_factory):
    with session_factory() as db:
        tenant = Tenant(tenant_key="agency", name="Agency")
        db.add(tenant)
        db.flush()
        deal = Deal(
            tenant_id=tenant.id,
            budget_min=50000,
            budget_max=80000,
            location_zone="Hamdallaye",
            criteria_json={"rooms": 3},
        )
        exact = Property(tenant_id=tenant.id, property_type="apartment", status=PropertyStatus.AVAILABLE,
                         price=65000, location_zone="Hamdallaye", rooms=3)
        far = Property(tenant_id=tenant.id, property_type="apartment", status=PropertyStatus.AVAILABLE,
                       price=95000, location_zone="Faladie", rooms=1)
        db.add_all([deal, exact, far])
        db.commit()
        return {"tenant": tenant.id, "deal": deal.id, "exact": exact.id, "far": far.id}


def test_end_to_end_matching_flow(session_factory, seeded_ids, audit_sink):
    engine = MatchingEngine(session_factory=session_factory, audit=audit_sink)
    tenant_id, deal_id = seeded_ids["tenant"], seeded_ids["deal"]

    with engine:
        ranked = engine.rank_matches(deal_id)
        top = ranked[0]
        match = engine.add_to_shortlist(tenant_id, deal_id, top.property_id, top.match_score, top.match_explanation)
        proposed = engine.update_match_status(tenant_id, deal_id, top.property_id, MatchStatus.PROPOSED)
        deal = engine.advance_deal_stage(tenant_id, deal_id, DealStage.VISIT, expected_version=1)
        quality = engine.calculate_quality_score(top.property_id)

    assert [(item.property_id, item.match_score) for item in ranked] == [
        (seeded_ids["exact"], 100),
        (seeded_ids["far"], 44),
    ]
    assert match.match_score == 100
    assert proposed.status == MatchStatus.PROPOSED
    assert deal.stage == DealStage.VISIT
    assert deal.version == 2
    assert 0 <= quality.score <= 100
    assert audit_sink.actions() == [
        "CRM_DEAL_PROPERTY_SHORTLISTED",
        "CRM_DEAL_PROPERTY_STATUS_CHANGED",
        "CRM_DEAL_STAGE_CHANGED",
    ]


def test_stale_stage_change_through_engine(session_factory, seeded_ids, audit_sink):
    engine = MatchingEngine(session_factory=session_factory, audit=audit_sink)
    tenant_id, deal_id = seeded_ids["tenant"], seeded_ids["deal"]
    engine.advance_deal_stage(tenant_id, deal_id, DealStage.QUALIFIED, expected_version=1)

    with pytest.raises(ConflictError):
        engine.advance_deal_stage(tenant_id, deal_id, DealStage.WON, expected_version=1)

    with session_factory() as db:
        stored = db.get(Deal, deal_id)
        assert stored.stage == DealStage.QUALIFIED
        assert stored.closed_at is None


def test_engine_threshold_and_limit_defaults_come_from_config(session_factory, seeded_ids, audit_sink):
    engine = MatchingEngine(session_factory=session_factory, audit=audit_sink)

    ranked = engine.rank_matches(seeded_ids["deal"], limit=1)

    assert get_config().MATCH_DEFAULT_THRESHOLD <= ranked[0].match_score
    assert len(ranked) == 1


def test_audit_events_reach_audit_log_on_shutdown(session_factory, seeded_ids):
    audit = AuditQueue(AuditLogWriter(session_factory), flush_threshold=100, flush_interval=60)
    engine = MatchingEngine(session_factory=session_factory, audit=audit)

    engine.advance_deal_stage(seeded_ids["tenant"], seeded_ids["deal"], "WON", expected_version=1, closed_reason="Signed")
    engine.shutdown(drain=True)

    with session_factory() as db:
        rows = db.query(AuditLog).all()
        assert [row.action_key for row in rows] == ["CRM_DEAL_STAGE_CHANGED"]
        assert rows[0].entity_id == str(seeded_ids["deal"])
        assert rows[0].tenant_id == seeded_ids["tenant"]
        assert rows[0].payload["changes"]["closed_reason"]["new"] == "Signed"


def test_publish_gate_through_engine(session_factory, seeded_ids, audit_sink):
    engine = MatchingEngine(session_factory=session_factory, audit=audit_sink)

    check = engine.validate_publication_requirements(seeded_ids["exact"])

    assert check.valid is False
    assert "Title is required" in check.errors
    with session_factory() as db:
        assert db.get(Property, seeded_ids["exact"]).quality_score == check.quality_score
