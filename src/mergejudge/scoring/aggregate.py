"""Weighted aggregation of dimension scores into one quality score."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from mergejudge.scoring.rules import Dimension
from mergejudge.scoring.scorer import PatternScorer


class Tier(StrEnum):
    """Analysis tier; each weighs its own set of dimensions."""

    BASIC = "basic"
    ADVANCED = "advanced"


TIER_WEIGHTS: dict[Tier, dict[Dimension, float]] = {
    Tier.BASIC: {
        Dimension.COMPLEXITY: 0.20,
        Dimension.QUALITY: 0.25,
        Dimension.COMPLETENESS: 0.20,
        Dimension.DOCUMENTATION: 0.15,
        Dimension.ACCESSIBILITY: 0.20,
    },
    Tier.ADVANCED: {
        Dimension.ARCHITECTURE: 0.20,
        Dimension.SEMANTICS: 0.15,
        Dimension.PERFORMANCE: 0.15,
        Dimension.MAINTAINABILITY: 0.20,
        Dimension.SECURITY: 0.20,
        Dimension.TESTING_READINESS: 0.10,
    },
}


def validate_weights(weights: Mapping[Dimension, float]) -> dict[Dimension, float]:
    """Check that a weight table is usable by aggregate().

    Raises:
        ValueError: If the table is empty or any weight is not positive
    """
    if not weights:
        raise ValueError("Weight table is empty")
    bad = {str(d): w for d, w in weights.items() if not w > 0}
    if bad:
        raise ValueError(f"Weights must be positive: {bad}")
    return dict(weights)


def aggregate(
    scores: Mapping[Dimension, float], weights: Mapping[Dimension, float]
) -> float:
    """Weighted mean of `scores` over the dimensions in `weights`.

    Raises:
        KeyError: If a weighted dimension has no score
    """
    total_weight = sum(weights.values())
    weighted = sum(scores[d] * w for d, w in weights.items())
    return weighted / total_weight


class QualityScore(BaseModel):
    """Scores of one text block under one tier."""

    model_config = ConfigDict(frozen=True)

    tier: Tier
    per_dimension: dict[Dimension, float] = Field(
        description="Score per weighted dimension, each in [0, 10]"
    )
    aggregate: float = Field(description="Weighted mean of per_dimension")


def assess(
    scorer: PatternScorer,
    lines: Sequence[str],
    tier: Tier = Tier.BASIC,
    weights: Mapping[Dimension, float] | None = None,
) -> QualityScore:
    """Score lines on every dimension of a tier and aggregate them."""
    weights = TIER_WEIGHTS[tier] if weights is None else weights
    per_dimension = scorer.score_dimensions(lines, weights.keys())
    return QualityScore(
        tier=tier,
        per_dimension=per_dimension,
        aggregate=aggregate(per_dimension, weights),
    )
