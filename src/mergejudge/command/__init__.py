"""CLI command modules for mergejudge."""

from mergejudge.command.analyze import AnalyzeCommand
from mergejudge.command.resolve import ResolveCommand
from mergejudge.command.rollback import RollbackCommand

__all__ = ["AnalyzeCommand", "ResolveCommand", "RollbackCommand"]
