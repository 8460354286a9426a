"""Analyze command - score files without resolving anything."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from pydantic_settings import CliPositionalArg

from mergejudge.conflict.classifier import classify
from mergejudge.core.errors import FileUnreadableError
from mergejudge.core.log import logger
from mergejudge.scoring.aggregate import Tier, assess
from mergejudge.scoring.scorer import PatternScorer, read_lines

if TYPE_CHECKING:
    from mergejudge.core.config import State


def format_analysis(
    path: str, scorer: PatternScorer, lines: list[str], tier: Tier, weights
) -> str:
    """Conflict type, per-dimension scores and aggregate of one file."""
    score = assess(scorer, lines, tier, weights)
    out = [f"{path}  ({classify(path)}, {tier} tier)"]
    for dimension, value in score.per_dimension.items():
        out.append(f"  {dimension:<18} {value:5.2f}")
    out.append(f"  {'aggregate':<18} {score.aggregate:5.2f}")
    return "\n".join(out) + "\n"


class AnalyzeCommand(BaseModel):
    """Score files on the quality dimensions used to pick a side.

    Prints the conflict type the file would get, the score of every
    dimension of the tier and their weighted aggregate.
    """

    files: CliPositionalArg[list[Path]] = Field(
        description="Files to analyze"
    )
    tier: Tier | None = Field(
        default=None,
        description="Analysis tier: basic or advanced",
    )

    async def run_workflow(self, state: State) -> int:
        """Analyze each file.

        Returns:
            Exit code (0=success, 1=a file could not be read)
        """
        scoring = state.config.scoring
        tier = self.tier or state.config.resolver.tier
        scorer = scoring.build_scorer()
        weights = scoring.weights_for(tier)

        exit_code = 0
        for path in self.files:
            try:
                lines = read_lines(path)
            except (FileNotFoundError, FileUnreadableError) as e:
                logger.error("Cannot analyze file", file=str(path), error=str(e))
                exit_code = 1
                continue
            print(format_analysis(path.as_posix(), scorer, lines, tier, weights))
        return exit_code
