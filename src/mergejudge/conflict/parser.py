"""Parse git conflict markers into structured data."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from mergejudge.core.errors import MalformedConflictMarkersError
from mergejudge.scoring.scorer import read_lines, split_lines

START_MARKER = re.compile(r"<{7}(?:[ \t]|\r?\n?$)")
BASE_MARKER = re.compile(r"\|{7}(?:[ \t]|\r?\n?$)")
SEPARATOR = re.compile(r"={7}\r?\n?$")
END_MARKER = re.compile(r">{7}(?:[ \t]|\r?\n?$)")


class Side(StrEnum):
    """One side of a two-way conflict."""

    HEAD = "head"
    INCOMING = "incoming"


@dataclass(frozen=True)
class ConflictHunk:
    """One <<<<<<< ... >>>>>>> region.

    Line tuples keep their original line endings. start_line and
    end_line are the 0-based indices of the opening and closing
    markers.
    """

    ours: tuple[str, ...]
    theirs: tuple[str, ...]
    base: tuple[str, ...] | None
    ours_ref: str
    theirs_ref: str
    start_line: int
    end_line: int

    def side(self, side: Side) -> tuple[str, ...]:
        return self.ours if side is Side.HEAD else self.theirs


Segment = tuple[str, ...] | ConflictHunk


@dataclass(frozen=True)
class ConflictedFile:
    """A file split into unrelated text and conflict hunks, in order."""

    path: str
    segments: tuple[Segment, ...]

    @property
    def hunks(self) -> list[ConflictHunk]:
        return [s for s in self.segments if isinstance(s, ConflictHunk)]

    @property
    def has_conflicts(self) -> bool:
        return any(isinstance(s, ConflictHunk) for s in self.segments)

    @property
    def head_text(self) -> list[str]:
        """The whole file as it reads on the HEAD side."""
        return self.side_lines(Side.HEAD)

    @property
    def incoming_text(self) -> list[str]:
        """The whole file as it reads on the incoming side."""
        return self.side_lines(Side.INCOMING)

    @property
    def unrelated_text(self) -> list[str]:
        """Lines outside every conflict region."""
        return [
            line
            for segment in self.segments
            if not isinstance(segment, ConflictHunk)
            for line in segment
        ]

    def side_lines(self, side: Side) -> list[str]:
        return self._lines_with(lambda hunk: hunk.side(side))

    def render(self, side: Side) -> str:
        """File text with every hunk replaced by one side, verbatim."""
        return "".join(self.side_lines(side))

    def render_with(
        self, resolve: Callable[[ConflictHunk], Sequence[str]]
    ) -> str:
        """File text with every hunk replaced by resolve(hunk)."""
        return "".join(self._lines_with(resolve))

    def _lines_with(
        self, resolve: Callable[[ConflictHunk], Sequence[str]]
    ) -> list[str]:
        lines: list[str] = []
        for segment in self.segments:
            if isinstance(segment, ConflictHunk):
                lines.extend(resolve(segment))
            else:
                lines.extend(segment)
        return lines


def contains_markers(text: str) -> bool:
    """True if any line of text opens or closes a conflict region."""
    return any(
        START_MARKER.match(line) or END_MARKER.match(line)
        for line in split_lines(text)
    )


def parse(file_content: str, path: str = "") -> ConflictedFile:
    """Parse conflict markers from file content.

    Handles both the merge style (ours/theirs) and diff3 style
    (ours/base/theirs). A "=======" line outside a conflict region is
    ordinary text.

    Args:
        file_content: Full file content with conflict markers
        path: Repository-relative path, used in error messages

    Returns:
        ConflictedFile; with no markers it has a single text segment

    Raises:
        MalformedConflictMarkersError: If markers are unbalanced, out
            of order, or nested
    """
    lines = split_lines(file_content)
    segments: list[Segment] = []
    plain: list[str] = []

    def fail(index: int, reason: str):
        raise MalformedConflictMarkersError(index + 1, reason, path or None)

    i = 0
    while i < len(lines):
        line = lines[i]

        if END_MARKER.match(line):
            fail(i, "end marker without a conflict start")
        if BASE_MARKER.match(line):
            fail(i, "base marker without a conflict start")
        if not START_MARKER.match(line):
            plain.append(line)
            i += 1
            continue

        start = i
        ours_ref = line[7:].strip()
        ours: list[str] = []
        base: list[str] | None = None
        theirs: list[str] = []
        current = ours
        section = "ours"
        end = None
        theirs_ref = ""

        for j in range(start + 1, len(lines)):
            candidate = lines[j]
            if START_MARKER.match(candidate):
                fail(j, "nested conflict start")
            elif BASE_MARKER.match(candidate):
                if section != "ours":
                    fail(j, "base marker after separator")
                base = []
                current = base
                section = "base"
            elif SEPARATOR.match(candidate) and section != "theirs":
                current = theirs
                section = "theirs"
            elif END_MARKER.match(candidate):
                if section != "theirs":
                    fail(j, "no separator found")
                end = j
                theirs_ref = candidate[7:].strip()
                break
            else:
                current.append(candidate)

        if end is None:
            if section == "theirs":
                fail(start, "no end marker found")
            fail(start, "no separator found")

        if plain:
            segments.append(tuple(plain))
            plain = []
        segments.append(ConflictHunk(
            ours=tuple(ours),
            theirs=tuple(theirs),
            base=tuple(base) if base is not None else None,
            ours_ref=ours_ref or "ours",
            theirs_ref=theirs_ref or "theirs",
            start_line=start,
            end_line=end,
        ))
        i = end + 1

    if plain:
        segments.append(tuple(plain))

    return ConflictedFile(path=path, segments=tuple(segments))


def parse_file(root: Path, path: str) -> ConflictedFile:
    """Read and parse a file relative to a working tree.

    Raises:
        FileNotFoundError: If the file does not exist
        FileUnreadableError: If it cannot be read as UTF-8 text
        MalformedConflictMarkersError: If its markers are malformed
    """
    return parse("".join(read_lines(root / path)), path=path)
