"""Rule-based per-dimension scoring of text blocks."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

from mergejudge.core.errors import FileUnreadableError
from mergejudge.core.log import logger
from mergejudge.scoring.rules import DEFAULT_RULES, Dimension, Rule, TextSample

SCORE_MIN = 0.0
SCORE_MAX = 10.0
DEFAULT_BASELINE = 5.0


def clamp(value: float, low: float = SCORE_MIN, high: float = SCORE_MAX) -> float:
    """Bound value to [low, high]."""
    return max(low, min(high, value))


def split_lines(text: str) -> list[str]:
    """Split on "\\n" only, keeping endings so "".join() restores text."""
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def read_lines(path: Path | str) -> list[str]:
    """Read a text file as lines, keeping line endings.

    Raises:
        FileNotFoundError: If the file does not exist
        FileUnreadableError: If it cannot be read or is not UTF-8
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        raise
    except OSError as e:
        raise FileUnreadableError(path, e) from e
    try:
        return split_lines(data.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise FileUnreadableError(path, e) from e


class PatternScorer:
    """Scores text on quality dimensions by summing rule deltas.

    Every score starts at the baseline, gains the delta of each rule
    that matches at least once, and is clamped to [0, 10]. The result
    depends only on the text, so scoring the same lines twice gives the
    same number.
    """

    def __init__(
        self,
        rules: dict[Dimension, tuple[Rule, ...]] | None = None,
        baseline: float = DEFAULT_BASELINE,
    ):
        self.rules = DEFAULT_RULES if rules is None else rules
        self.baseline = clamp(baseline)

    def score(self, lines: Sequence[str], dimension: Dimension) -> float:
        """Score a block of lines on one dimension."""
        return self._score_sample(TextSample.from_lines(lines), dimension)

    def score_dimensions(
        self, lines: Sequence[str], dimensions: Iterable[Dimension]
    ) -> dict[Dimension, float]:
        """Score a block of lines on several dimensions at once."""
        sample = TextSample.from_lines(lines)
        return {
            dimension: self._score_sample(sample, dimension)
            for dimension in dimensions
        }

    def score_file(
        self, path: Path | str, dimensions: Iterable[Dimension]
    ) -> dict[Dimension, float]:
        """Score a file on disk.

        Raises:
            FileNotFoundError: If the file does not exist
            FileUnreadableError: If it cannot be read as text
        """
        return self.score_dimensions(read_lines(path), dimensions)

    def matched_rules(
        self, lines: Sequence[str], dimension: Dimension
    ) -> list[Rule]:
        """Rules of a dimension that match the given lines."""
        sample = TextSample.from_lines(lines)
        return [
            rule for rule in self.rules.get(dimension, ())
            if rule.matches(sample)
        ]

    def _score_sample(self, sample: TextSample, dimension: Dimension) -> float:
        total = self.baseline
        for rule in self.rules.get(dimension, ()):
            if rule.matches(sample):
                total += rule.delta
                logger.spew(
                    "Rule matched",
                    dimension=str(dimension),
                    rule=rule.name,
                    delta=rule.delta,
                )
        return clamp(total)
