"""Resolution strategies and the selection table."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import assert_never

from mergejudge.conflict.classifier import ConflictType
from mergejudge.conflict.parser import ConflictedFile, ConflictHunk, Side
from mergejudge.scoring.aggregate import QualityScore


class Strategy(StrEnum):
    """How a conflict gets turned into marker-free text."""

    MERGE_UNIQUE_EXPORTS = "merge-unique-exports"
    MERGE_UNIQUE_ENTRIES = "merge-unique-entries"
    MERGE_SORTED_ENTRIES = "merge-sorted-entries"
    CHOOSE_HIGHER_SCORE = "choose-higher-scoring-version"
    CHOOSE_LARGER = "size-based-choice"
    DEFER = "defer-to-human"


# Confidence of the strategies that do not look at scores
INDEX_EXPORTS_CONFIDENCE = 9.5
EXAMPLE_OR_STORY_CONFIDENCE = 8.0
STYLESHEET_CONFIDENCE = 6.5
STRUCTURED_CONFIG_CONFIDENCE = 5.0


@dataclass(frozen=True)
class Selection:
    strategy: Strategy
    confidence: float


def needs_scoring(conflict_type: ConflictType) -> bool:
    """True if select() needs quality scores for this type."""
    return conflict_type in (ConflictType.UI_COMPONENT, ConflictType.GENERIC)


def select(
    conflict_type: ConflictType,
    head_score: QualityScore | None = None,
    incoming_score: QualityScore | None = None,
) -> Selection:
    """Pick a strategy and its confidence for a conflict type.

    Comparing the confidence with a threshold is left to the caller.

    Raises:
        ValueError: If a scoring type is given without both scores
    """
    if conflict_type is ConflictType.INDEX_EXPORTS:
        return Selection(Strategy.MERGE_UNIQUE_EXPORTS, INDEX_EXPORTS_CONFIDENCE)
    elif conflict_type is ConflictType.EXAMPLE_OR_STORY:
        return Selection(
            Strategy.MERGE_UNIQUE_ENTRIES, EXAMPLE_OR_STORY_CONFIDENCE
        )
    elif conflict_type is ConflictType.STYLESHEET:
        return Selection(Strategy.MERGE_SORTED_ENTRIES, STYLESHEET_CONFIDENCE)
    elif conflict_type is ConflictType.STRUCTURED_CONFIG:
        return Selection(Strategy.CHOOSE_LARGER, STRUCTURED_CONFIG_CONFIDENCE)
    elif (
        conflict_type is ConflictType.UI_COMPONENT
        or conflict_type is ConflictType.GENERIC
    ):
        if head_score is None or incoming_score is None:
            raise ValueError(
                f"{conflict_type} conflicts need both quality scores"
            )
        return Selection(
            Strategy.CHOOSE_HIGHER_SCORE,
            max(head_score.aggregate, incoming_score.aggregate),
        )
    else:
        assert_never(conflict_type)


def entry_key(line: str) -> str:
    return line.rstrip("\r\n")


def _entries(lines: Sequence[str]) -> list[str]:
    """Non-blank lines, each guaranteed to end with a newline."""
    return [
        line if line.endswith("\n") else line + "\n"
        for line in lines
        if line.strip()
    ]


def merge_unique(first: Sequence[str], second: Sequence[str]) -> list[str]:
    """Entries of first, then entries of second not seen yet."""
    seen: set[str] = set()
    merged = []
    for line in _entries(first) + _entries(second):
        key = entry_key(line)
        if key not in seen:
            seen.add(key)
            merged.append(line)
    return merged


def merge_sorted(ours: Sequence[str], theirs: Sequence[str]) -> list[str]:
    """Union of both sides' entries, deduplicated and sorted."""
    return sorted(merge_unique(ours, theirs), key=entry_key)


def merge_by_entry_count(hunk: ConflictHunk) -> list[str]:
    """Union led by the side with more entries; HEAD leads on a tie."""
    if len(_entries(hunk.theirs)) > len(_entries(hunk.ours)):
        return merge_unique(hunk.theirs, hunk.ours)
    return merge_unique(hunk.ours, hunk.theirs)


def higher_scoring_side(
    head_score: QualityScore, incoming_score: QualityScore
) -> Side:
    """Incoming only when it scores strictly higher."""
    if incoming_score.aggregate > head_score.aggregate:
        return Side.INCOMING
    return Side.HEAD


def larger_side(conflicted: ConflictedFile) -> Side:
    """Side whose full text has more UTF-8 bytes; HEAD on a tie."""
    head = len(conflicted.render(Side.HEAD).encode("utf-8"))
    incoming = len(conflicted.render(Side.INCOMING).encode("utf-8"))
    return Side.INCOMING if incoming > head else Side.HEAD


def apply(
    strategy: Strategy,
    conflicted: ConflictedFile,
    head_score: QualityScore | None = None,
    incoming_score: QualityScore | None = None,
) -> str:
    """Produce the marker-free text a strategy resolves a file to.

    Raises:
        ValueError: For DEFER, or a scoring strategy without scores
    """
    if strategy is Strategy.MERGE_UNIQUE_EXPORTS:
        # Whole file: an export may repeat across hunks and unrelated lines
        return "".join(
            merge_sorted(conflicted.head_text, conflicted.incoming_text)
        )
    elif strategy is Strategy.MERGE_SORTED_ENTRIES:
        return conflicted.render_with(
            lambda hunk: merge_sorted(hunk.ours, hunk.theirs)
        )
    elif strategy is Strategy.MERGE_UNIQUE_ENTRIES:
        return conflicted.render_with(merge_by_entry_count)
    elif strategy is Strategy.CHOOSE_HIGHER_SCORE:
        if head_score is None or incoming_score is None:
            raise ValueError(f"{strategy} needs both quality scores")
        return conflicted.render(higher_scoring_side(head_score, incoming_score))
    elif strategy is Strategy.CHOOSE_LARGER:
        return conflicted.render(larger_side(conflicted))
    elif strategy is Strategy.DEFER:
        raise ValueError("defer-to-human leaves the file for a person")
    else:
        assert_never(strategy)
