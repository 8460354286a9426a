"""Resolution decisions, one per conflicted file per run."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from mergejudge.conflict.classifier import ConflictType
from mergejudge.conflict.strategy import Strategy


class Outcome(StrEnum):
    RESOLVED = "resolved"
    DEFERRED = "deferred"


class DeferReason(StrEnum):
    """Why a file was left for a person."""

    BELOW_CONFIDENCE_THRESHOLD = "below-confidence-threshold"
    MALFORMED_CONFLICT_MARKERS = "malformed-conflict-markers"
    FILE_NOT_FOUND = "file-not-found"
    FILE_UNREADABLE = "file-unreadable"
    WRITE_FAILED = "write-failed"


class ResolutionDecision(BaseModel):
    """What the resolver decided for one file. Immutable."""

    model_config = ConfigDict(frozen=True)

    file: str = Field(description="Repository-relative path")
    conflict_type: ConflictType | None = Field(
        default=None,
        description="Classification; None if the file never got that far",
    )
    strategy: Strategy
    confidence: float
    outcome: Outcome
    resolved_text: str | None = Field(
        default=None,
        description="Marker-free content; None when deferred",
    )
    reason: DeferReason | None = Field(
        default=None,
        description="Why the file was deferred; None when resolved",
    )
    head_score: float | None = Field(
        default=None, description="HEAD aggregate, when scoring ran"
    )
    incoming_score: float | None = Field(
        default=None, description="Incoming aggregate, when scoring ran"
    )
    detail: str = Field(default="", description="Human-readable note")

    @property
    def resolved(self) -> bool:
        return self.outcome is Outcome.RESOLVED

    def deferred_copy(self, reason: DeferReason, detail: str) -> ResolutionDecision:
        """This decision turned into a deferral."""
        return self.model_copy(update={
            "outcome": Outcome.DEFERRED,
            "resolved_text": None,
            "reason": reason,
            "detail": detail,
        })
