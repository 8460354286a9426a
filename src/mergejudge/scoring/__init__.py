"""Pattern scoring and tier aggregation."""

from mergejudge.scoring.aggregate import (
    TIER_WEIGHTS,
    QualityScore,
    Tier,
    aggregate,
    assess,
    validate_weights,
)
from mergejudge.scoring.rules import (
    DEFAULT_RULES,
    Dimension,
    LineCountRule,
    PatternRule,
)
from mergejudge.scoring.scorer import PatternScorer, clamp

__all__ = [
    "DEFAULT_RULES",
    "TIER_WEIGHTS",
    "Dimension",
    "LineCountRule",
    "PatternRule",
    "PatternScorer",
    "QualityScore",
    "Tier",
    "aggregate",
    "assess",
    "clamp",
    "validate_weights",
]
