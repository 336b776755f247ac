"""Pure, side-effect-free scorers."""

from propmatch.scoring.match import DealCriteria, MatchScore, MatchScorer, PropertyAttributes, score_match
from propmatch.scoring.quality import QualityResult, score_quality

__all__ = [
    "DealCriteria",
    "MatchScore",
    "MatchScorer",
    "PropertyAttributes",
    "QualityResult",
    "score_match",
    "score_quality",
]
