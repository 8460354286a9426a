"""Summaries and reports of a resolution run."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

from mergejudge.conflict.decision import DeferReason, Outcome, ResolutionDecision


class RunSummary(BaseModel):
    """Totals of one resolution run."""

    total: int
    resolved: int
    deferred: int
    deferred_by_reason: dict[DeferReason, int] = Field(default_factory=dict)
    threshold: float | None = None
    dry_run: bool = False


class RunReport(BaseModel):
    """Serializable form of a run: summary plus every decision."""

    generated: datetime = Field(default_factory=lambda: datetime.now(UTC))
    summary: RunSummary
    decisions: list[ResolutionDecision]


def summarize(
    decisions: Sequence[ResolutionDecision],
    threshold: float | None = None,
    dry_run: bool = False,
) -> RunSummary:
    reasons = Counter(
        d.reason for d in decisions
        if d.outcome is Outcome.DEFERRED and d.reason is not None
    )
    resolved = sum(1 for d in decisions if d.outcome is Outcome.RESOLVED)
    return RunSummary(
        total=len(decisions),
        resolved=resolved,
        deferred=len(decisions) - resolved,
        deferred_by_reason=dict(sorted(reasons.items())),
        threshold=threshold,
        dry_run=dry_run,
    )


def format_report(
    decisions: Sequence[ResolutionDecision],
    threshold: float | None = None,
    dry_run: bool = False,
) -> str:
    """Plain-text report: one line per file, then totals.

    Example:
        resolved  src/index.ts  merge-unique-exports  9.50
        deferred  package.json  size-based-choice     5.00
                  below-confidence-threshold: confidence 5.00 is ...
    """
    summary = summarize(decisions, threshold, dry_run)
    width = max((len(d.file) for d in decisions), default=4)
    lines = []
    if dry_run:
        lines.append("Dry run: no files were changed.")
    for d in decisions:
        lines.append(
            f"{d.outcome:<9} {d.file:<{width}}  "
            f"{d.strategy:<30} {d.confidence:5.2f}"
        )
        if d.outcome is Outcome.DEFERRED:
            lines.append(f"{'':<9} {d.reason}: {d.detail}")

    lines.append("")
    lines.append(
        f"{summary.resolved} resolved, {summary.deferred} deferred "
        f"of {summary.total} conflicted file(s)"
    )
    for reason, count in summary.deferred_by_reason.items():
        lines.append(f"  {reason}: {count}")
    return "\n".join(lines) + "\n"


def write_report(
    decisions: Sequence[ResolutionDecision],
    path: Path,
    threshold: float | None = None,
    dry_run: bool = False,
) -> Path:
    """Write the run report; a .json suffix selects JSON output."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".json":
        report = RunReport(
            summary=summarize(decisions, threshold, dry_run),
            decisions=list(decisions),
        )
        path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    else:
        path.write_text(
            format_report(decisions, threshold, dry_run), encoding="utf-8"
        )
    return path
