"""Finalize node - report the run and pick the exit code."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from mergejudge.core.config import State
from mergejudge.core.log import logger
from mergejudge.report import format_report, summarize, write_report


@dataclass
class Finalize(BaseNode[State, None, int]):
    """Print the decision log and write the report file."""

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> End[int]:
        """Report every decision of the run.

        Returns:
            End[int]: 0 when every file was resolved, 1 otherwise
        """
        settings = ctx.state.config.resolver
        runtime = ctx.state.runtime.resolve
        decisions = runtime.decisions

        print(
            format_report(decisions, settings.threshold, settings.dry_run),
            end="",
        )
        if settings.report_file:
            path = write_report(
                decisions,
                settings.report_file,
                settings.threshold,
                settings.dry_run,
            )
            logger.info("Wrote report", file=str(path))

        summary = summarize(decisions, settings.threshold, settings.dry_run)
        runtime.status = "complete"
        logger.info(
            "Resolution finished",
            resolved=summary.resolved,
            deferred=summary.deferred,
            dry_run=settings.dry_run,
        )
        return End(1 if summary.deferred else 0)
