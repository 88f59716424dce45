"""
Score and impact rules.

Two score formulas exist; a deployment picks exactly one through
SCORE_STRATEGY:

- direct: the audit engine's 0-1 category score as a percentage.
- weighted: 100 minus a fixed penalty per finding, by impact, floored at 0.
"""
import math
from typing import Iterable, Optional

IMPACT_PENALTIES = {
    "critical": 20,
    "serious": 10,
    "moderate": 5,
    "minor": 2,
}

DEFAULT_IMPACT = "minor"
SERIOUS_THRESHOLD = 0.5


def impact_from_subscore(sub_score: Optional[float]) -> str:
    """Two-bucket rule for engines reporting a continuous audit score."""
    if sub_score is None:
        return DEFAULT_IMPACT
    return "serious" if sub_score < SERIOUS_THRESHOLD else "moderate"


def normalize_impact(impact: Optional[str]) -> str:
    if impact and impact.lower() in IMPACT_PENALTIES:
        return impact.lower()
    return DEFAULT_IMPACT


def direct_score(category_score: Optional[float]) -> int:
    # Half-up rounding, not banker's rounding
    if category_score is None:
        return 0
    score = math.floor(category_score * 100 + 0.5)
    return max(0, min(100, score))


def weighted_score(impacts: Iterable[str]) -> int:
    score = 100
    for impact in impacts:
        score -= IMPACT_PENALTIES[normalize_impact(impact)]
    return max(score, 0)


def compute_score(strategy: str, category_score: Optional[float], impacts: Iterable[str]) -> int:
    if strategy == "direct":
        return direct_score(category_score)
    if strategy == "weighted":
        return weighted_score(impacts)
    raise ValueError(f"Unknown score strategy: {strategy}")
