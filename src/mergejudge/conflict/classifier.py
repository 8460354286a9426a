"""Classify conflicted files by path."""

from __future__ import annotations

from enum import StrEnum
from pathlib import PurePosixPath


class ConflictType(StrEnum):
    """Kind of file in conflict; decides the resolution strategy."""

    INDEX_EXPORTS = "index-exports"
    UI_COMPONENT = "ui-component"
    EXAMPLE_OR_STORY = "example-or-story"
    STYLESHEET = "stylesheet"
    STRUCTURED_CONFIG = "structured-config"
    GENERIC = "generic"


SOURCE_EXTENSIONS = frozenset({
    ".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".vue", ".svelte",
})
STYLESHEET_EXTENSIONS = frozenset({
    ".css", ".scss", ".sass", ".less", ".styl", ".pcss",
})
STRUCTURED_EXTENSIONS = frozenset({
    ".json", ".yaml", ".yml", ".toml", ".ini", ".cfg", ".xml", ".plist",
    ".properties",
})
STORY_MARKERS = (
    ".stories.", ".story.", ".example.", ".examples.",
    "/stories/", "/examples/", "/example/",
)


def classify(path: str) -> ConflictType:
    """Map a repository-relative path to a ConflictType.

    First match wins: index barrel, story/example, UI source,
    stylesheet, structured data, then generic. Every path, including
    the empty one, gets exactly one type.
    """
    normalized = "/" + path.replace("\\", "/").lower().lstrip("/")
    pure = PurePosixPath(normalized)
    suffix = pure.suffix

    if pure.stem == "index" and suffix in SOURCE_EXTENSIONS:
        return ConflictType.INDEX_EXPORTS
    if any(marker in normalized for marker in STORY_MARKERS):
        return ConflictType.EXAMPLE_OR_STORY
    if suffix in SOURCE_EXTENSIONS:
        return ConflictType.UI_COMPONENT
    if suffix in STYLESHEET_EXTENSIONS:
        return ConflictType.STYLESHEET
    if suffix in STRUCTURED_EXTENSIONS:
        return ConflictType.STRUCTURED_CONFIG
    return ConflictType.GENERIC
