from __future__ import annotations

import pytest

from propmatch.core.exceptions import NotFoundError, ValidationError
from propmatch.models.enums import DealStage, OwnershipType, PropertyStatus
from propmatch.services.matching_service import MatchingService, PropertyCandidateProvider

HAMDALLAYE = (12.6392, -8.0290)


@pytest.fixture
def tenant(make_tenant):
    return make_tenant()


@pytest.fixture
def deal(make_deal, tenant):
    return make_deal(
        tenant,
        budget_min=50000,
        budget_max=80000,
        location_zone="Hamdallaye",
        criteria_json={"rooms": 3},
    )


def test_rank_matches_orders_by_score_and_applies_threshold(session, tenant, deal, make_property):
    far = make_property(tenant, price=95000, location_zone="Faladie", rooms=1)
    exact = make_property(tenant, price=65000, location_zone="Hamdallaye", rooms=3)
    poor = make_property(tenant, price=400000, location_zone="Kati", rooms=8)

    results = MatchingService(db=session).rank_matches(deal.id, threshold=40, limit=10)

    assert [(item.property_id, item.match_score) for item in results] == [(exact.id, 100), (far.id, 44)]
    assert poor.id not in {item.property_id for item in results}
    assert results[0].match_explanation["breakdown"] == "Budget: 30/30, Zone: 25/25, Size: 25/25, Features: 20/20"


def test_rank_matches_keeps_fetch_order_for_ties_and_truncates(session, tenant, deal, make_property):
    first = make_property(tenant, price=65000, location_zone="Hamdallaye", rooms=3)
    second = make_property(tenant, price=70000, location_zone="Hamdallaye", rooms=3)
    make_property(tenant, price=75000, location_zone="Hamdallaye", rooms=3)

    results = MatchingService(db=session).rank_matches(deal.id, threshold=0, limit=2)

    assert [item.property_id for item in results] == [first.id, second.id]


def test_rank_matches_results_never_below_threshold(session, tenant, deal, make_property):
    for price, zone, rooms in [(65000, "Hamdallaye", 3), (95000, "Faladie", 1), (82000, "Hamdallaye Nord", 4)]:
        make_property(tenant, price=price, location_zone=zone, rooms=rooms)

    results = MatchingService(db=session).rank_matches(deal.id, threshold=50, limit=10)

    scores = [item.match_score for item in results]
    assert all(score >= 50 for score in scores)
    assert scores == sorted(scores, reverse=True)


def test_candidates_respect_tenant_ownership_mandates_and_status(
    session, tenant, deal, make_tenant, make_property, make_mandate
):
    other = make_tenant("Other")
    own = make_property(tenant)
    make_property(tenant, status=PropertyStatus.SOLD)
    make_property(other)
    mandated = make_property(None, ownership_type=OwnershipType.CLIENT, status=PropertyStatus.UNDER_OFFER)
    make_mandate(tenant, mandated)
    inactive = make_property(None, ownership_type=OwnershipType.CLIENT)
    make_mandate(tenant, inactive, is_active=False)

    candidates = PropertyCandidateProvider(session).fetch(tenant.id)

    assert [prop.id for prop in candidates] == [own.id, mandated.id]


def test_radius_filter_drops_far_listings(session, tenant, deal, make_property):
    near = make_property(tenant, latitude=12.6400, longitude=-8.0300)
    make_property(tenant, latitude=13.4317, longitude=-6.2157)
    make_property(tenant)

    results = MatchingService(db=session).rank_matches(deal.id, threshold=0, near=HAMDALLAYE, radius_m=2000)

    assert [item.property_id for item in results] == [near.id]


def test_parallel_scoring_matches_sequential(session, tenant, deal, make_property):
    for index in range(6):
        make_property(tenant, price=60000 + index * 5000, location_zone="Hamdallaye", rooms=2 + index % 3)

    sequential = MatchingService(db=session, scoring_workers=1).rank_matches(deal.id, threshold=0)
    parallel = MatchingService(db=session, scoring_workers=4).rank_matches(deal.id, threshold=0)

    assert [(m.property_id, m.match_score) for m in parallel] == [(m.property_id, m.match_score) for m in sequential]


def test_unknown_deal_raises_not_found(session, tenant):
    with pytest.raises(NotFoundError, match="Deal not found"):
        MatchingService(db=session).rank_matches(999)


def test_deal_scoped_to_other_tenant_is_not_found(session, deal, make_tenant):
    other = make_tenant("Other")

    with pytest.raises(NotFoundError):
        MatchingService(db=session).rank_matches(deal.id, tenant_id=other.id)


@pytest.mark.parametrize(("threshold", "limit"), [(-1, 10), (101, 10), (40, 0)])
def test_invalid_threshold_or_limit(session, deal, threshold, limit):
    with pytest.raises(ValidationError):
        MatchingService(db=session).rank_matches(deal.id, threshold=threshold, limit=limit)


def test_geo_filter_needs_both_parts(session, deal):
    with pytest.raises(ValidationError):
        MatchingService(db=session).rank_matches(deal.id, near=HAMDALLAYE)


def test_closed_deal_is_still_ranked_with_warning(session, tenant, make_deal, make_property, caplog):
    closed = make_deal(tenant, stage=DealStage.WON)
    make_property(tenant)

    with caplog.at_level("WARNING"):
        results = MatchingService(db=session).rank_matches(closed.id, threshold=0)

    assert len(results) == 1
    assert "matching.closed_deal_ranked" in caplog.text


def test_boolean_limit_is_rejected(session, deal):
    with pytest.raises(ValidationError, match="RankMatchesQuery"):
        MatchingService(db=session).rank_matches(deal.id, limit=True)
