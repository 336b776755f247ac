from __future__ import annotations

import pytest

from propmatch.core.exceptions import ValidationError
from propmatch.models.enums import MatchStatus
from propmatch.schemas.deals import DealCreateRequest
from propmatch.utils.validators import parse_enum, parse_model, sanitize_text, validate_score


def test_sanitize_text_strips_null_and_trims():
    assert sanitize_text("  hello\x00world  ") == "helloworld"


def test_parse_enum_is_case_insensitive():
    assert parse_enum(MatchStatus, "proposed", "match status") is MatchStatus.PROPOSED


def test_parse_enum_lists_allowed_values():
    with pytest.raises(ValidationError, match="SHORTLISTED, PROPOSED"):
        parse_enum(MatchStatus, "ARCHIVED", "match status")


@pytest.mark.parametrize("score", [-1, 101, "abc", None, float("inf")])
def test_validate_score_rejects_out_of_range(score):
    with pytest.raises(ValidationError):
        validate_score(score)


def test_parse_model_wraps_pydantic_errors():
    with pytest.raises(ValidationError, match="budget_min must be <= budget_max"):
        parse_model(DealCreateRequest, {"budget_min": 10, "budget_max": 5})
