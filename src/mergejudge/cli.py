#!/usr/bin/env python3
"""mergejudge CLI - confidence-gated automatic merge conflict resolution."""

import asyncio
import sys

from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from mergejudge.command.analyze import AnalyzeCommand
from mergejudge.command.resolve import ResolveCommand
from mergejudge.command.rollback import RollbackCommand
from mergejudge.core.config import State
from mergejudge.core.errors import MergeJudgeError
from mergejudge.core.log import logger


class CliState(State):
    """Resolve git merge conflicts automatically where it is safe.

    Each conflicted file is classified by its path, both sides are
    scored on code-quality dimensions, and a resolution strategy is
    chosen with a confidence. Only strategies at or above the
    confidence threshold are applied; everything else is left for a
    person, and every decision is reported.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.resolver.threshold 8)
    2. Environment variables
       (MERGEJUDGE_CONFIG__RESOLVER__THRESHOLD=8)
    3. .env file
    4. --include files, ./mergejudge.yaml, the user config file
       and the package defaults
    """

    resolve: CliSubCommand[ResolveCommand]
    rollback: CliSubCommand[RollbackCommand]
    analyze: CliSubCommand[AnalyzeCommand]

    def cli_cmd(self):
        """Dispatch to active subcommand, or show help if none
        provided."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        # Closes the log sinks on the way out
        with logger:
            try:
                exit_code = asyncio.run(subcommand.run_workflow(self))
            except MergeJudgeError as e:
                logger.error(str(e))
                exit_code = 2
            raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
