"""Byte-exact backups of conflicted files, restorable on demand."""

from __future__ import annotations

import hashlib
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

from mergejudge.core.errors import BackupCorruptError
from mergejudge.core.log import logger

MANIFEST_NAME = "manifest.json"


def default_backup_dir(git_dir: Path) -> Path:
    """Where a run saves its backup when none is configured."""
    return Path(git_dir) / "mergejudge" / "backup"


def atomic_write(path: Path, data: bytes) -> None:
    """Replace path's content with data in one rename.

    The data goes to a temporary file beside the target first; if
    anything fails the target keeps its previous content.
    """
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "wb") as tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        if path.exists():
            os.chmod(tmp_name, path.stat().st_mode & 0o7777)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class BackupEntry(BaseModel):
    path: str = Field(description="Path relative to the working tree")
    blob: str = Field(description="File name of the saved bytes")
    sha256: str = Field(description="Digest of the original bytes")
    size: int = Field(description="Original size in bytes")


class BackupManifest(BaseModel):
    """Index of a saved backup directory."""

    root: str = Field(description="Working tree the paths are relative to")
    created: datetime = Field(default_factory=lambda: datetime.now(UTC))
    entries: list[BackupEntry] = Field(default_factory=list)


class Backup:
    """Original bytes of every file a run is about to overwrite.

    capture() is called before a file is first written; a second
    capture of the same path keeps the first copy, so restore() always
    brings back the pre-run content.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self._originals: dict[str, bytes] = {}

    def __contains__(self, path: str) -> bool:
        return path in self._originals

    def __len__(self) -> int:
        return len(self._originals)

    @property
    def paths(self) -> list[str]:
        return sorted(self._originals)

    def original(self, path: str) -> bytes:
        return self._originals[path]

    def capture(self, path: str) -> bytes:
        """Record the current bytes of path unless already captured.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        if path not in self._originals:
            self._originals[path] = (self.root / path).read_bytes()
            logger.debug("Backed up file", file=path)
        return self._originals[path]

    def restore(self) -> list[str]:
        """Write every captured file back, byte for byte.

        Returns:
            Paths restored, sorted
        """
        restored = []
        for path in self.paths:
            target = self.root / path
            target.parent.mkdir(parents=True, exist_ok=True)
            atomic_write(target, self._originals[path])
            restored.append(path)
            logger.info("Restored file from backup", file=path)
        return restored

    def save(self, directory: Path) -> Path:
        """Persist the backup so a later process can restore it.

        Any backup previously saved in directory is replaced.

        Returns:
            Path of the written manifest
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        for stale in directory.glob("*.orig"):
            stale.unlink()

        manifest = BackupManifest(root=str(self.root))
        for index, path in enumerate(self.paths):
            data = self._originals[path]
            blob = f"{index:04d}.orig"
            atomic_write(directory / blob, data)
            manifest.entries.append(BackupEntry(
                path=path,
                blob=blob,
                sha256=hashlib.sha256(data).hexdigest(),
                size=len(data),
            ))

        manifest_path = directory / MANIFEST_NAME
        atomic_write(
            manifest_path, manifest.model_dump_json(indent=2).encode("utf-8")
        )
        logger.info(
            "Saved backup", directory=str(directory), files=len(self)
        )
        return manifest_path

    @classmethod
    def load(cls, directory: Path, root: Path | None = None) -> Backup:
        """Read a backup written by save().

        Args:
            directory: Directory passed to save()
            root: Working tree to restore into; defaults to the one
                recorded in the manifest

        Raises:
            FileNotFoundError: If there is no manifest in directory
            BackupCorruptError: If a blob is missing or altered
        """
        directory = Path(directory)
        manifest = BackupManifest.model_validate_json(
            (directory / MANIFEST_NAME).read_text(encoding="utf-8")
        )
        backup = cls(Path(root) if root is not None else Path(manifest.root))
        for entry in manifest.entries:
            blob = directory / entry.blob
            try:
                data = blob.read_bytes()
            except FileNotFoundError as e:
                raise BackupCorruptError(
                    f"Backup blob missing for {entry.path}: {blob}"
                ) from e
            if hashlib.sha256(data).hexdigest() != entry.sha256:
                raise BackupCorruptError(
                    f"Backup of {entry.path} does not match its digest"
                )
            backup._originals[entry.path] = data
        return backup
