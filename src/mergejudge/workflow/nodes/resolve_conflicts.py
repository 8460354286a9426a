"""ResolveConflicts node - decide and apply a strategy per file."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from mergejudge.core.config import State
from mergejudge.core.log import logger


@dataclass
class ResolveConflicts(BaseNode[State, None, int]):
    """Resolve every conflicted file the resolver can vouch for."""

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> Finalize:
        """Run the resolver and note where its backup went.

        Returns:
            Finalize: Always report after resolving
        """
        settings = ctx.state.config.resolver
        runtime = ctx.state.runtime.resolve
        resolver = runtime.resolver
        if resolver is None:
            raise ValueError("No resolver; DetectConflicts has not run")

        runtime.status = "running"
        runtime.decisions = resolver.resolve_all(
            threshold=settings.threshold, dry_run=settings.dry_run
        )

        # The resolver saved the backup before its first write
        if not settings.dry_run and len(resolver.backup):
            backup_dir = resolver.backup_dir
            runtime.backup_dir = backup_dir
            logger.info(
                "Undo with 'mergejudge rollback'",
                backup_dir=str(backup_dir),
            )

        from mergejudge.workflow.nodes.finalize import Finalize
        return Finalize()
