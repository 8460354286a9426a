"""Resolve command - runs the resolve workflow."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from mergejudge.core.log import logger
from mergejudge.scoring.aggregate import Tier

if TYPE_CHECKING:
    from mergejudge.core.config import State


class ResolveCommand(BaseModel):
    """Resolve the conflicts of the current merge where it is safe.

    Every conflicted file is classified, scored and given a strategy
    with a confidence. Strategies below the threshold are left for a
    person; the rest are written and staged. A report of every
    decision is printed.

    Exit status is 0 when every file was resolved (or there was
    nothing to resolve) and 1 when any file was deferred.
    """

    threshold: float | None = Field(
        default=None,
        ge=0.0,
        le=10.0,
        description="Minimum confidence to apply a strategy (default 7.0)",
    )
    dry_run: bool = Field(
        default=False,
        alias="dry-run",
        description="Report what would be done without writing files",
    )
    report: Path | None = Field(
        default=None,
        description="Also write the report to this file (.json for JSON)",
    )
    tier: Tier | None = Field(
        default=None,
        description="Analysis tier: basic or advanced",
    )

    async def run_workflow(self, state: State) -> int:
        """Run resolve workflow.

        Args:
            state: State instance with config loaded

        Returns:
            Exit code (0=all resolved, 1=something deferred)
        """
        settings = state.config.resolver
        if self.threshold is not None:
            settings.threshold = self.threshold
        if self.dry_run:
            settings.dry_run = True
        if self.report is not None:
            settings.report_file = self.report
        if self.tier is not None:
            settings.tier = self.tier

        logger.info(
            "Starting conflict resolution",
            workdir=str(state.config.git.workdir),
            threshold=settings.threshold,
            dry_run=settings.dry_run,
            tier=str(settings.tier),
        )

        from mergejudge.workflow.graph import create_workflow
        from mergejudge.workflow.nodes.detect_conflicts import DetectConflicts

        workflow = create_workflow()
        async with workflow.iter(DetectConflicts(), state=state) as run:
            async for node in run:
                if hasattr(node, 'data'):
                    return node.data

        logger.error("Resolve failed - workflow ended unexpectedly")
        return 1
