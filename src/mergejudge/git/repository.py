"""Version-control collaborator: git through the invoke Runner."""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Protocol, runtime_checkable

from mergejudge.core.errors import GitCommandError
from mergejudge.core.log import logger
from mergejudge.core.runner import Runner

# Overridable through config.commands.git
DEFAULT_GIT_COMMANDS = {
    "verify_ref": "git rev-parse -q --verify {ref}",
    "diff_conflicted_files": "git diff --name-only -z --diff-filter=U",
    "add_file": "git add -- {filepath}",
    "checkout_conflict": "git checkout -m -- {filepath}",
    "git_dir": "git rev-parse --absolute-git-dir",
    "toplevel": "git rev-parse --show-toplevel",
}

# Refs git leaves behind while a merge-like operation is stopped
IN_PROGRESS_REFS = ("MERGE_HEAD", "CHERRY_PICK_HEAD", "REVERT_HEAD", "REBASE_HEAD")


@runtime_checkable
class VersionControl(Protocol):
    """What the resolver needs from version control."""

    def merge_in_progress(self) -> bool:
        ...

    def conflicted_paths(self) -> list[str]:
        ...

    def mark_resolved(self, path: str) -> None:
        ...

    def mark_unresolved(self, path: str) -> None:
        ...

    def git_dir(self) -> Path:
        ...

    def toplevel(self) -> Path:
        ...


class GitRepository:
    """Git working tree in which conflicts are resolved."""

    def __init__(
        self,
        workdir: Path,
        commands: dict[str, str] | None = None,
        runner: Runner | None = None,
    ):
        """Initialize repository wrapper.

        Args:
            workdir: Path to the git working tree
            commands: Command templates overriding DEFAULT_GIT_COMMANDS
            runner: Runner to execute commands with
        """
        self.workdir = Path(workdir)
        self.commands = {**DEFAULT_GIT_COMMANDS, **(commands or {})}
        self.runner = runner or Runner()
        self._toplevel: Path | None = None

    def _run(
        self, name: str, check: bool = True, cwd: Path | None = None, **fields
    ):
        cmd = self.commands[name].format(
            **{k: shlex.quote(str(v)) for k, v in fields.items()}
        )
        result = self.runner.execute(cmd, cwd=cwd or self.workdir, check=False)
        if check and result.exited != 0:
            raise GitCommandError(
                cmd, result.exited, result.stdout, result.stderr
            )
        return result

    def merge_in_progress(self) -> bool:
        """True while a merge, cherry-pick, revert or rebase is stopped."""
        for ref in IN_PROGRESS_REFS:
            if self._run("verify_ref", check=False, ref=ref).exited == 0:
                logger.debug("Found in-progress operation", ref=ref)
                return True
        return False

    def conflicted_paths(self) -> list[str]:
        """Paths git still lists as unmerged, sorted.

        Paths are relative to toplevel(), whichever directory of the
        working tree this repository was opened in.
        """
        output = self._run("diff_conflicted_files").stdout
        separator = "\0" if "\0" in output else "\n"
        return sorted({p for p in output.split(separator) if p.strip()})

    def mark_resolved(self, path: str) -> None:
        """Stage a resolved file, clearing its unmerged index entries."""
        self._run("add_file", cwd=self.toplevel(), filepath=path)
        logger.debug("Staged resolved file", file=path)

    def mark_unresolved(self, path: str) -> None:
        """Recreate the conflicted index entries of a file.

        This also rewrites the working tree file with fresh markers;
        callers restore exact bytes afterwards.
        """
        self._run("checkout_conflict", cwd=self.toplevel(), filepath=path)
        logger.debug("Re-marked file as conflicted", file=path)

    def git_dir(self) -> Path:
        """Absolute path of the repository's git directory."""
        return Path(self._run("git_dir").stdout.strip())

    def toplevel(self) -> Path:
        """Root of the working tree that conflicted paths are relative to."""
        if self._toplevel is None:
            self._toplevel = Path(self._run("toplevel").stdout.strip())
        return self._toplevel
