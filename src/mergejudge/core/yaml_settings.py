"""YAML configuration loading with include directive support."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

from mergejudge.core.log import logger

APP_NAME = "mergejudge"
CONFIG_FILENAME = "mergejudge.yaml"
DEFAULTS_FILE = Path(__file__).parent.parent / "defaults" / "default.yaml"


def cli_includes(argv: list[str] | None = None) -> list[str]:
    """Collect the values of every --include flag in argv."""
    argv = sys.argv if argv is None else argv
    includes = []
    i = 1
    while i < len(argv):
        if argv[i] == "--include" and i + 1 < len(argv):
            includes.append(argv[i + 1])
            i += 1
        elif argv[i].startswith("--include="):
            includes.append(argv[i].split("=", 1)[1])
        i += 1
    return includes


def deep_merge(base: dict, override: dict) -> dict:
    """Return base with override merged in; override wins on leaves."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML source layering several files and following include:.

    Merge order, later wins:
        package defaults < user config < ./mergejudge.yaml
        < yaml_file argument < --include files

    An include: key inside any file names further files, resolved
    relative to the including file and merged underneath it.
    """

    def __init__(
        self, settings_cls: type[BaseSettings], yaml_file=None
    ):
        includes = cli_includes()
        base = yaml_file or settings_cls.model_config.get("yaml_file")
        if isinstance(base, (str, os.PathLike)):
            base = [base]
        files = list(base or []) + includes
        super().__init__(settings_cls, files or None)

    def _read_files(self, files, **kwargs):  # noqa: ARG002
        # Files are always deep-merged here, whatever kwargs ask for
        candidates = [
            DEFAULTS_FILE,
            Path(user_config_dir(APP_NAME, appauthor=False))
            / CONFIG_FILENAME,
        ]
        if isinstance(files, (str, os.PathLike)):
            files = [files]
        for f in files or []:
            path = Path(f).expanduser()
            if path not in candidates:
                candidates.append(path)

        result = {}
        for file_path in candidates:
            if not file_path.is_file():
                logger.debug(
                    "Configuration file not found (skipping)",
                    file=str(file_path),
                )
                continue
            logger.debug("Loading configuration", file=str(file_path))
            data = self._load_file_recursive(file_path, set())
            result = deep_merge(result, data)
        return result

    def _load_file_recursive(
        self, filepath: Path, visited: set[Path]
    ) -> dict:
        """Load one YAML file with its include: chain merged in.

        Raises:
            ValueError: If a file includes itself, directly or not
        """
        filepath = filepath.resolve()
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited.add(filepath)

        with open(filepath, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(
                f"{filepath}: top level must be a mapping, "
                f"got {type(data).__name__}"
            )

        includes = data.pop("include", None) or []
        if isinstance(includes, str):
            includes = [includes]

        merged: dict = {}
        for inc in includes:
            inc_path = Path(inc).expanduser()
            if not inc_path.is_absolute():
                inc_path = filepath.parent / inc_path
            merged = deep_merge(
                merged, self._load_file_recursive(inc_path, visited.copy())
            )

        return deep_merge(merged, data)
