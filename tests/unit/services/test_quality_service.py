from __future__ import annotations

import pytest

from propmatch.core.exceptions import NotFoundError
from propmatch.models import Property
from propmatch.services.quality_service import PropertyTemplateService, QualityService


def test_calculate_uses_template_for_property_type(session, make_tenant, make_property, make_template):
    make_template("apartment", [{"key": "rooms", "label": "Rooms", "required": True}])
    prop = make_property(make_tenant(), rooms=None)

    result = QualityService(db=session).calculate_quality_score(prop.id)

    assert result.breakdown["required_fields"] == 0
    assert result.suggestions[0] == "Complete the required fields: Rooms"


def test_missing_template_scores_required_fields_as_complete(session, make_tenant, make_property):
    prop = make_property(make_tenant(), property_type="warehouse")

    result = QualityService(db=session).calculate_quality_score(prop.id)

    assert result.breakdown["required_fields"] == 100


def test_inactive_template_is_ignored(session, make_template):
    template = make_template("villa", [{"key": "rooms", "required": True}])
    template.is_active = False
    session.commit()

    assert PropertyTemplateService(db=session).get_template_by_type("villa") is None


def test_snapshots_are_append_only_and_latest_wins(session, make_tenant, make_property):
    prop = make_property(make_tenant())
    service = QualityService(db=session)

    first = service.calculate_and_store(prop.id)
    stored = session.get(Property, prop.id)
    stored.description = "word " * 200
    session.commit()
    second = service.calculate_and_store(prop.id)

    history = service.list_history(prop.id)
    assert [snapshot.id for snapshot in history] == [second.id, first.id]
    assert service.get_latest(prop.id).id == second.id
    assert second.score > first.score
    assert session.get(Property, prop.id).quality_score == second.score


def test_unknown_property_is_not_found(session, make_tenant):
    make_tenant()

    with pytest.raises(NotFoundError):
        QualityService(db=session).calculate_quality_score(404)
