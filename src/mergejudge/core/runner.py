"""Command execution through invoke."""

from pathlib import Path

from invoke import Context, Result
from invoke.exceptions import CommandTimedOut

from mergejudge.core.log import logger


class Runner(Context):
    """invoke.Context with a single execute() entry point.

    Output is always captured, never echoed; callers decide what to
    log from the returned Result.
    """

    def execute(
        self,
        command: str,
        cwd: Path | None = None,
        timeout: int | None = None,
        stdin: str | None = None,
        check: bool = True,
        env: dict[str, str] | None = None,
    ) -> Result:
        """Run a shell command.

        Args:
            command: Command string to execute
            cwd: Working directory for the command
            timeout: Maximum execution time in seconds
            stdin: Text fed to the command's stdin
            check: Raise invoke.UnexpectedExit on a non-zero exit
            env: Extra environment variables (merged into os.environ)

        Returns:
            invoke.Result; a timed out command has exited == -1
        """
        kwargs = {
            "hide": True,
            "warn": not check,
            "in_stream": False,
        }
        if timeout:
            kwargs["timeout"] = timeout
        if stdin:
            kwargs["in_stream"] = stdin
        if env:
            kwargs["env"] = env

        logger.spew("Running command", command=command, cwd=str(cwd or ""))
        try:
            if cwd:
                with self.cd(str(cwd)):
                    result = self.run(command, **kwargs)
            else:
                result = self.run(command, **kwargs)
        except CommandTimedOut as e:
            result = e.result
            result.exited = -1

        logger.spew(
            "Command finished", command=command, exited=result.exited
        )
        return result
