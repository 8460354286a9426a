"""DetectConflicts node - find the conflicted files of a merge."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from mergejudge.conflict.backup import default_backup_dir
from mergejudge.conflict.resolver import ConflictResolver
from mergejudge.core.config import State
from mergejudge.core.errors import NoActiveMergeError
from mergejudge.core.log import logger
from mergejudge.git.repository import GitRepository


@dataclass
class DetectConflicts(BaseNode[State, None, int]):
    """Set up the resolver and check there is something to resolve."""

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> ResolveConflicts | End[int]:
        """Build a ConflictResolver from config and scan the tree.

        Returns:
            ResolveConflicts: When conflicted files were found
            End[int]: Exit code 0 when there is nothing to do
        """
        config = ctx.state.config
        tier = config.resolver.tier

        vcs = GitRepository(
            config.git.workdir, commands=config.commands.get("git")
        )
        # git reports paths relative to the top of the working tree
        workdir = vcs.toplevel()
        backup_dir = config.resolver.backup_dir or default_backup_dir(
            vcs.git_dir()
        )
        resolver = ConflictResolver(
            workdir,
            vcs,
            backup_dir=backup_dir,
            scorer=config.scoring.build_scorer(),
            tier=tier,
            weights=config.scoring.weights_for(tier),
        )
        ctx.state.runtime.resolve.resolver = resolver

        try:
            conflicted = resolver.detect_conflicts()
        except NoActiveMergeError as e:
            logger.warning(str(e), workdir=str(workdir))
            ctx.state.runtime.resolve.status = "nothing-to-do"
            return End(0)

        logger.info(
            "Found conflicts",
            workdir=str(workdir),
            files=len(conflicted),
            hunks=sum(len(c.hunks) for c in conflicted),
        )

        from mergejudge.workflow.nodes.resolve_conflicts import (
            ResolveConflicts,
        )
        return ResolveConflicts()
