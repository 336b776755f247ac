from __future__ import annotations

from types import SimpleNamespace

import pytest

from propmatch.scoring.match import DealCriteria, MatchScorer, PropertyAttributes, score_match


def _deal(**criteria):
    base = {"budget_min": 50000, "budget_max": 80000, "location_zone": "Hamdallaye"}
    base.update(criteria.pop("deal", {}))
    return {**base, "criteria_json": criteria or {"rooms": 3}}


def test_unconstrained_deal_and_bare_property_score_100():
    result = score_match({}, {})

    assert result.total == 100
    assert result.factors == {"budget": 30, "location": 25, "size": 25, "features": 20}
    assert result.explanation_text == "Budget: 30/30, Zone: 25/25, Size: 25/25, Features: 20/20"


def test_exact_match_scenario_scores_100():
    prop = {"price": 65000, "location_zone": "Hamdallaye", "rooms": 3}

    assert score_match(_deal(rooms=3), prop).total == 100


def test_far_off_scenario_scores_44():
    prop = {"price": 95000, "location_zone": "Faladie", "rooms": 1}

    result = score_match(_deal(rooms=3), prop)

    assert result.factors == {"budget": 24, "location": 0, "size": 0, "features": 20}
    assert result.total == 44
    assert result.explanation_text == "Budget: 24/30, Features: 20/20"


def test_price_at_budget_max_scores_full_budget_weight():
    scorer = MatchScorer()
    criteria = DealCriteria(budget_min=50000, budget_max=80000)

    assert scorer.budget_fit(criteria, PropertyAttributes(price=80000)) == 30


def test_budget_decays_monotonically_above_max():
    scorer = MatchScorer()
    criteria = DealCriteria(budget_max=80000)

    slightly_over = scorer.budget_fit(criteria, PropertyAttributes(price=88000))
    double = scorer.budget_fit(criteria, PropertyAttributes(price=160000))

    assert slightly_over == 27
    assert double == 0
    assert double < slightly_over


def test_budget_below_min_decays_and_missing_price_scores_zero():
    scorer = MatchScorer()
    criteria = DealCriteria(budget_min=100000)

    assert scorer.budget_fit(criteria, PropertyAttributes(price=75000)) == 23
    assert scorer.budget_fit(criteria, PropertyAttributes(price=None)) == 0


def test_location_partial_match_is_case_insensitive():
    scorer = MatchScorer()
    criteria = DealCriteria(location_zone="hamdallaye")

    assert scorer.location_fit(criteria, PropertyAttributes(location_zone="HAMDALLAYE")) == 25
    assert scorer.location_fit(criteria, PropertyAttributes(location_zone="Hamdallaye ACI 2000")) == 10
    assert scorer.location_fit(criteria, PropertyAttributes(location_zone=None)) == 0


@pytest.mark.parametrize(
    ("actual", "expected"),
    [(3, 1.0), (4, 0.65), (2, 0.65), (5, 0.30), (1, 0.0), (6, 0.0), (None, 0.0)],
)
def test_room_ratio_tiers(actual, expected):
    assert MatchScorer().room_ratio(3, actual) == expected


def test_size_splits_rooms_and_surface_evenly():
    scorer = MatchScorer()
    criteria = DealCriteria(rooms=3, surface=100)

    # rooms exact (1.0), surface 80/100 -> 0.8; average 0.9 of 25.
    assert scorer.size_fit(criteria, PropertyAttributes(rooms=3, surface_area=80)) == 23


def test_surface_range_is_full_inside_and_decays_outside():
    criteria = DealCriteria(surface_min=60, surface_max=90)

    assert MatchScorer.surface_ratio(criteria, 75) == 1.0
    assert MatchScorer.surface_ratio(criteria, 45) == pytest.approx(0.75)
    assert MatchScorer.surface_ratio(criteria, 99) == pytest.approx(0.9)
    assert MatchScorer.surface_ratio(DealCriteria(), 75) is None


def test_features_count_required_tags_only():
    deal = {"criteria_json": {"features": ["Pool", "garden"], "furnishing_status": "furnished"}}
    prop = {
        "type_specific_data": {"features": ["pool", "garage"]},
        "furnishing_status": "UNFURNISHED",
    }

    result = score_match(deal, prop)

    # 1 of 2 required tags present; furnishing is not scored.
    assert result.factors["features"] == 10


def test_furnishing_preference_alone_keeps_full_features_weight():
    result = score_match({"criteria_json": {"furnishing_status": "FURNISHED"}}, {"furnishing_status": "UNFURNISHED"})

    assert result.factors["features"] == 20
    assert result.total == 100


def test_missing_feature_data_scores_zero():
    deal = {"criteria_json": {"features": ["pool"], "furnishing_status": "FURNISHED"}}

    assert score_match(deal, {}).factors["features"] == 0
    assert score_match(deal, {"furnishing_status": "FURNISHED"}).factors["features"] == 0


def test_malformed_inputs_degrade_instead_of_raising():
    deal = {"budget_min": "abc", "budget_max": -5, "criteria_json": "not-a-dict"}
    prop = SimpleNamespace(price="n/a", location_zone=None, rooms="many", type_specific_data=None)

    result = score_match(deal, prop)

    assert result.total == 100


def test_camel_case_criteria_are_accepted():
    deal = {"budgetMax": 80000, "criteria": {"roomsMin": 2, "surfaceAreaMin": 50}}
    criteria = DealCriteria.from_deal(deal)

    assert criteria.budget_max == 80000
    assert criteria.rooms == 2
    assert criteria.surface_min == 50


def test_zero_score_explanation():
    deal = {"budget_max": 1000, "location_zone": "North", "criteria_json": {"rooms": 2, "features": ["pool"]}}
    prop = {"price": 5000, "location_zone": "South", "rooms": 9}

    result = score_match(deal, prop)

    assert result.total == 0
    assert result.explanation_text == "No matches"
    assert result.as_explanation()["breakdown"] == "No matches"
