"""Rollback node - undo the last resolution run."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from mergejudge.conflict.backup import Backup, default_backup_dir
from mergejudge.conflict.resolver import ConflictResolver
from mergejudge.core.config import State
from mergejudge.core.log import logger
from mergejudge.git.repository import GitRepository


@dataclass
class Rollback(BaseNode[State, None, int]):
    """Restore the files of the last run from its saved backup."""

    async def run(self, ctx: GraphRunContext[State]) -> End[int]:
        """Re-mark the backed up files as conflicted and restore them.

        Returns:
            End[int]: 0 on success, 1 when no backup was found
        """
        config = ctx.state.config
        runtime = ctx.state.runtime.rollback
        vcs = GitRepository(
            config.git.workdir, commands=config.commands.get("git")
        )
        workdir = vcs.toplevel()

        backup_dir = (
            runtime.backup_dir
            or config.resolver.backup_dir
            or default_backup_dir(vcs.git_dir())
        )
        try:
            backup = Backup.load(backup_dir, root=workdir)
        except FileNotFoundError:
            logger.error("No saved backup found", backup_dir=str(backup_dir))
            return End(1)

        resolver = ConflictResolver(workdir, vcs, backup=backup)
        runtime.restored = resolver.rollback()
        runtime.backup_dir = backup_dir
        runtime.status = "complete"

        logger.info(
            "Rollback complete",
            files=len(runtime.restored),
            backup_dir=str(backup_dir),
        )
        return End(0)
