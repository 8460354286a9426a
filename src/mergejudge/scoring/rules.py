"""Quality dimensions and the pattern rules that score them.

Each dimension owns an ordered tuple of rules. A rule either matches a
text or not; how often a pattern occurs does not matter. The deltas are
tuning constants, not measurements.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol


class Dimension(StrEnum):
    """Quality dimensions a text block is scored on."""

    COMPLEXITY = "complexity"
    QUALITY = "quality"
    COMPLETENESS = "completeness"
    DOCUMENTATION = "documentation"
    ACCESSIBILITY = "accessibility"
    ARCHITECTURE = "architecture"
    SEMANTICS = "semantics"
    PERFORMANCE = "performance"
    MAINTAINABILITY = "maintainability"
    SECURITY = "security"
    TESTING_READINESS = "testing_readiness"


@dataclass(frozen=True)
class TextSample:
    """A text block prepared once for every rule that inspects it."""

    text: str
    line_count: int

    @classmethod
    def from_lines(cls, lines: Sequence[str]) -> TextSample:
        stripped = [line.rstrip("\r\n") for line in lines]
        return cls(text="\n".join(stripped), line_count=len(stripped))


class Rule(Protocol):
    name: str
    delta: float

    def matches(self, sample: TextSample) -> bool:
        ...


@dataclass(frozen=True)
class PatternRule:
    """Matches when the regex occurs anywhere in the text."""

    name: str
    pattern: str
    delta: float
    flags: int = re.MULTILINE
    _compiled: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(
            self, "_compiled", re.compile(self.pattern, self.flags)
        )

    def matches(self, sample: TextSample) -> bool:
        return self._compiled.search(sample.text) is not None


@dataclass(frozen=True)
class LineCountRule:
    """Matches when the text has more than `threshold` lines."""

    name: str
    threshold: int
    delta: float

    def matches(self, sample: TextSample) -> bool:
        return sample.line_count > self.threshold


_COMPLEXITY = (
    LineCountRule("longer than 200 lines", 200, -1.0),
    LineCountRule("longer than 500 lines", 500, -1.0),
    PatternRule("deep indentation", r"^(?: {16,}|\t{4,})\S", -1.0),
    PatternRule("nested ternary", r"\?[^:;\n]*\?[^:;\n]*:", -1.0),
    PatternRule(
        "long boolean chain", r"(?:&&|\|\|)[^\n]*(?:&&|\|\|)[^\n]*(?:&&|\|\|)",
        -0.5,
    ),
    PatternRule("early return", r"^\s*if\b[^\n]*\breturn\b", 0.5),
)

_QUALITY = (
    PatternRule("typed interface", r"\binterface\s+\w+", 1.0),
    PatternRule(
        "primitive type annotation",
        r":\s*(?:string|number|boolean|str|int|float|bool)\b", 1.0,
    ),
    PatternRule("explicit any", r":\s*any\b", -1.5),
    PatternRule("console logging", r"\bconsole\.(?:log|debug)\(", -1.0),
    PatternRule("type checker suppressed", r"@ts-ignore|# type: ignore", -1.0),
    PatternRule("lint suppressed", r"eslint-disable|# noqa", -0.5),
    PatternRule("strict equality", r"===|!==", 0.5),
)

_COMPLETENESS = (
    PatternRule(
        "named export",
        r"\bexport\s+(?:const|function|class|interface|type|enum)\b", 1.0,
    ),
    PatternRule("default export", r"\bexport\s+default\b", 1.0),
    PatternRule("error handling", r"\bcatch\s*\(|\bexcept\b", 0.5),
    PatternRule("prop defaults", r"\bdefaultProps\b|\bpropTypes\b", 0.5),
    PatternRule("open TODO", r"\b(?:TODO|FIXME|XXX)\b", -1.0),
    PatternRule(
        "unimplemented stub",
        r"not\s+implemented|NotImplementedError", -2.0,
    ),
)

_DOCUMENTATION = (
    PatternRule("doc block", r"/\*\*", 1.5),
    PatternRule("docstring", r'"""|\'\'\'', 1.5),
    PatternRule("tagged parameters", r"@param\b|@returns?\b|\bArgs:", 1.0),
    PatternRule("line comment", r"^\s*(?://|#)\s*\w", 0.5),
    PatternRule("commented-out code", r"^\s*//\s*[\w.]+\([^)]*\);\s*$", -0.5),
)

_ACCESSIBILITY = (
    PatternRule("aria attribute", r"\baria-[a-z]+\s*=", 2.0),
    PatternRule("role attribute", r"\brole\s*=", 1.0),
    PatternRule("alt text", r"\balt\s*=", 1.0),
    PatternRule("form label", r"<label\b|\bhtmlFor\s*=", 1.0),
    PatternRule("keyboard focus", r"\btabIndex\s*=", 0.5),
    PatternRule("image without alt", r"<img\b(?![^>]*\balt\s*=)[^>]*>", -1.5),
    PatternRule("clickable div", r"<div\b[^>]*\bonClick\s*=", -1.0),
)

_ARCHITECTURE = (
    PatternRule("module imports", r"^\s*(?:import|from)\s+\S", 0.5),
    PatternRule("explicit exports", r"\bexport\b|__all__", 0.5),
    PatternRule("shared context", r"\b(?:createContext|useContext)\b", 1.0),
    PatternRule("custom hook", r"\bfunction\s+use[A-Z]\w*|\bconst\s+use[A-Z]\w*\s*=", 1.0),
    PatternRule("deep relative import", r"""['"](?:\.\./){3,}""", -1.0),
    LineCountRule("longer than 400 lines", 400, -1.0),
)

_SEMANTICS = (
    PatternRule(
        "landmark element",
        r"<(?:header|nav|main|section|article|aside|footer)\b", 2.0,
    ),
    PatternRule("heading element", r"<h[1-6]\b", 1.0),
    PatternRule("list element", r"<(?:ul|ol|dl)\b", 0.5),
    PatternRule("button element", r"<button\b", 0.5),
    PatternRule("clickable span", r"<span\b[^>]*\bonClick\s*=", -1.0),
    PatternRule("layout table", r"<table\b[^>]*\blayout\b", -1.0),
)

_PERFORMANCE = (
    PatternRule("memoized value", r"\buseMemo\b", 1.5),
    PatternRule("memoized callback", r"\buseCallback\b", 1.5),
    PatternRule("memoized component", r"\bReact\.memo\b|\bmemo\(", 1.0),
    PatternRule("lazy loading", r"\blazy\(|\bimport\(", 1.0),
    PatternRule("index as key", r"\bkey\s*=\s*\{\s*(?:i|idx|index)\s*\}", -1.0),
    PatternRule("deep clone via JSON", r"JSON\.parse\(\s*JSON\.stringify", -1.0),
    PatternRule("inline object prop", r"=\{\{", -0.5),
)

_MAINTAINABILITY = (
    LineCountRule("longer than 300 lines", 300, -1.0),
    PatternRule("block scoped binding", r"\b(?:const|let)\s+\w", 0.5),
    PatternRule("function scoped var", r"\bvar\s+\w", -1.0),
    PatternRule("long line", r"^[^\n]{121,}$", -0.5),
    PatternRule("magic number", r"(?<![\w.#])\d{3,}(?![\w.])", -0.5),
    PatternRule("named function", r"\bfunction\s+\w+|\bdef\s+\w+", 0.5),
)

_SECURITY = (
    PatternRule("raw HTML injection", r"\bdangerouslySetInnerHTML\b", -2.5),
    PatternRule("dynamic evaluation", r"\beval\s*\(|\bnew\s+Function\s*\(", -3.0),
    PatternRule("innerHTML assignment", r"\.innerHTML\s*=", -2.0),
    PatternRule(
        "hardcoded secret",
        r"""(?i)\b(?:api[_-]?key|secret|password|token)\s*[:=]\s*['"][^'"\s]{4,}['"]""",
        -3.0,
    ),
    PatternRule("sanitization", r"(?i)\bsanitize|\bescape(?:Html)?\(|DOMPurify", 1.5),
    PatternRule("URI encoding", r"\bencodeURIComponent\(", 0.5),
)

_TESTING_READINESS = (
    PatternRule("test id hook", r"\bdata-testid\s*=", 2.0),
    PatternRule("exported for tests", r"\bexport\b", 0.5),
    PatternRule("test suite", r"\b(?:describe|it|test)\(\s*['\"`]|\bdef\s+test_", 1.0),
    PatternRule("module mocking", r"\b(?:jest|vi)\.mock\(|\bmonkeypatch\b", 0.5),
    PatternRule("nondeterminism", r"\bMath\.random\(|\bDate\.now\(", -0.5),
    PatternRule("global DOM access", r"\b(?:window|document)\.", -0.5),
)

DEFAULT_RULES: dict[Dimension, tuple[Rule, ...]] = {
    Dimension.COMPLEXITY: _COMPLEXITY,
    Dimension.QUALITY: _QUALITY,
    Dimension.COMPLETENESS: _COMPLETENESS,
    Dimension.DOCUMENTATION: _DOCUMENTATION,
    Dimension.ACCESSIBILITY: _ACCESSIBILITY,
    Dimension.ARCHITECTURE: _ARCHITECTURE,
    Dimension.SEMANTICS: _SEMANTICS,
    Dimension.PERFORMANCE: _PERFORMANCE,
    Dimension.MAINTAINABILITY: _MAINTAINABILITY,
    Dimension.SECURITY: _SECURITY,
    Dimension.TESTING_READINESS: _TESTING_READINESS,
}


def with_extra_rules(
    rules: dict[Dimension, tuple[Rule, ...]],
    extra: Sequence[tuple[Dimension, Rule]],
) -> dict[Dimension, tuple[Rule, ...]]:
    """Return a copy of `rules` with `extra` appended per dimension."""
    combined = {dimension: tuple(r) for dimension, r in rules.items()}
    for dimension, rule in extra:
        combined[dimension] = combined.get(dimension, ()) + (rule,)
    return combined
