"""Rollback command - undoes the last resolve run."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from mergejudge.core.log import logger

if TYPE_CHECKING:
    from mergejudge.core.config import State


class RollbackCommand(BaseModel):
    """Restore every file the last resolve run overwrote.

    Files are marked as conflicted again and their content is put back
    byte for byte from the backup that run saved.
    """

    backup_dir: Path | None = Field(
        default=None,
        alias="backup-dir",
        description=(
            "Backup to restore "
            "(default: config.resolver.backup_dir or <git dir>/mergejudge/backup)"
        ),
    )

    async def run_workflow(self, state: State) -> int:
        """Run rollback workflow.

        Args:
            state: State instance

        Returns:
            Exit code (0=success, 1=no backup found)
        """
        state.runtime.rollback.backup_dir = self.backup_dir

        from mergejudge.workflow.graph import create_rollback_workflow
        from mergejudge.workflow.nodes.rollback import Rollback

        workflow = create_rollback_workflow()
        async with workflow.iter(Rollback(), state=state) as run:
            async for node in run:
                if hasattr(node, 'data'):
                    return node.data

        logger.error("Rollback failed - workflow ended unexpectedly")
        return 1
