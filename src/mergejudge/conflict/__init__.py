"""Conflict parsing, classification, strategies and resolution."""

from mergejudge.conflict.backup import Backup
from mergejudge.conflict.classifier import ConflictType, classify
from mergejudge.conflict.decision import DeferReason, Outcome, ResolutionDecision
from mergejudge.conflict.parser import ConflictedFile, ConflictHunk, Side, parse
from mergejudge.conflict.resolver import DEFAULT_THRESHOLD, ConflictResolver
from mergejudge.conflict.strategy import Selection, Strategy, apply, select

__all__ = [
    "DEFAULT_THRESHOLD",
    "Backup",
    "ConflictHunk",
    "ConflictResolver",
    "ConflictType",
    "ConflictedFile",
    "DeferReason",
    "Outcome",
    "ResolutionDecision",
    "Selection",
    "Side",
    "Strategy",
    "apply",
    "classify",
    "parse",
    "select",
]
