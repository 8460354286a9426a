"""Pytest configuration and fixtures for mergejudge tests."""

import sys
import tempfile
from pathlib import Path

import pytest

from mergejudge.core.errors import GitCommandError
from mergejudge.core.log import ConsoleSink, setup_logger


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Configure logging for console-only mode during tests.

    Debug output shows up in failing tests without anything being
    sent to logfire.dev.
    """
    test_log_root = Path(tempfile.gettempdir()) / "mergejudge-tests"
    setup_logger(
        log_root=test_log_root,
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture
def mock_argv():
    """Save and restore sys.argv."""
    original = sys.argv.copy()
    sys.argv = ["mergejudge"]
    yield
    sys.argv = original


class FakeVcs:
    """In-memory stand-in for GitRepository.

    Records which paths were staged or re-marked; paths listed in
    fail_on_mark make mark_resolved fail like a locked index would.
    """

    def __init__(
        self,
        paths=(),
        in_progress=True,
        git_dir=None,
        fail_on_mark=(),
        toplevel=None,
    ):
        self.paths = sorted(paths)
        self.in_progress = in_progress
        self._git_dir = git_dir
        self._toplevel = toplevel
        self.fail_on_mark = set(fail_on_mark)
        self.resolved: list[str] = []
        self.unresolved: list[str] = []

    def merge_in_progress(self) -> bool:
        return self.in_progress

    def conflicted_paths(self) -> list[str]:
        return [p for p in self.paths if p not in self.resolved]

    def mark_resolved(self, path: str) -> None:
        if path in self.fail_on_mark:
            raise GitCommandError(
                f"git add -- {path}", 128, "", "index.lock: File exists"
            )
        self.resolved.append(path)

    def mark_unresolved(self, path: str) -> None:
        if path in self.resolved:
            self.resolved.remove(path)
        self.unresolved.append(path)

    def git_dir(self) -> Path:
        return self._git_dir

    def toplevel(self) -> Path:
        return self._toplevel


@pytest.fixture
def make_vcs():
    """Factory for FakeVcs instances."""
    return FakeVcs


@pytest.fixture
def write_tree(tmp_path):
    """Write {relative path: text} into tmp_path; returns tmp_path.

    Text is written as bytes so line endings stay exactly as given.
    """
    def _write(files: dict[str, str]) -> Path:
        for rel, text in files.items():
            target = tmp_path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(text.encode("utf-8"))
        return tmp_path

    return _write
