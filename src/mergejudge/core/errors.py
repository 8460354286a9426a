"""Exception hierarchy for mergejudge.

File-scoped errors (malformed markers, unreadable files) are turned into
deferred decisions by the resolver. NoActiveMergeError is the only one
that ends a run, and it ends it cleanly.
"""

from __future__ import annotations

from pathlib import Path


class MergeJudgeError(Exception):
    """Base class for all mergejudge errors."""


class NoActiveMergeError(MergeJudgeError):
    """No merge is in progress, or it left no conflicted files."""

    def __init__(self, workdir: Path | str, detail: str = ""):
        self.workdir = Path(workdir)
        message = f"No merge conflicts to resolve in {self.workdir}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MalformedConflictMarkersError(MergeJudgeError):
    """Conflict markers in a file are unbalanced or out of order."""

    def __init__(self, line: int, reason: str, path: str | None = None):
        self.line = line
        self.reason = reason
        self.path = path
        where = f"{path}:{line}" if path else f"line {line}"
        super().__init__(f"Malformed conflict at {where}: {reason}")


class FileUnreadableError(MergeJudgeError):
    """A file exists but cannot be read or decoded as text."""

    def __init__(self, path: Path | str, cause: Exception):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Cannot read {self.path}: {cause}")


class BackupCorruptError(MergeJudgeError):
    """A saved backup does not match its manifest."""


class BackupWriteError(MergeJudgeError):
    """A backup could not be saved, so no file was written."""

    def __init__(self, directory: Path | str, cause: Exception):
        self.directory = Path(directory)
        self.cause = cause
        super().__init__(f"Cannot save backup to {self.directory}: {cause}")


class GitCommandError(MergeJudgeError):
    """A git command exited with an unexpected status."""

    def __init__(
        self, command: str, exit_code: int, stdout: str = "", stderr: str = ""
    ):
        self.command = command
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(
            f"Command failed with exit code {exit_code}: {command}\n"
            f"stderr: {stderr.strip()}"
        )


__all__ = [
    "MergeJudgeError",
    "NoActiveMergeError",
    "MalformedConflictMarkersError",
    "FileUnreadableError",
    "BackupCorruptError",
    "BackupWriteError",
    "GitCommandError",
]
