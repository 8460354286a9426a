"""Tests for path-based conflict classification."""

import pytest

from mergejudge.conflict.classifier import ConflictType, classify


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("src/components/index.ts", ConflictType.INDEX_EXPORTS),
        ("index.js", ConflictType.INDEX_EXPORTS),
        ("lib/index.tsx", ConflictType.INDEX_EXPORTS),
        ("src/Button.stories.tsx", ConflictType.EXAMPLE_OR_STORY),
        ("docs/examples/usage.ts", ConflictType.EXAMPLE_OR_STORY),
        ("src/stories/Intro.mdx", ConflictType.EXAMPLE_OR_STORY),
        ("src/components/Button.tsx", ConflictType.UI_COMPONENT),
        ("app/widget.vue", ConflictType.UI_COMPONENT),
        ("styles/theme.scss", ConflictType.STYLESHEET),
        ("main.css", ConflictType.STYLESHEET),
        ("package.json", ConflictType.STRUCTURED_CONFIG),
        (".github/workflows/ci.yml", ConflictType.STRUCTURED_CONFIG),
        ("pyproject.toml", ConflictType.STRUCTURED_CONFIG),
        ("README.md", ConflictType.GENERIC),
        ("Makefile", ConflictType.GENERIC),
        ("tool.py", ConflictType.GENERIC),
        ("", ConflictType.GENERIC),
    ],
)
def test_classify(path, expected):
    assert classify(path) is expected


def test_index_wins_over_story_directory():
    """The index rule is checked before the story rule."""
    assert classify("src/stories/index.ts") is ConflictType.INDEX_EXPORTS


def test_story_wins_over_source_extension():
    assert classify("src/Card.example.jsx") is ConflictType.EXAMPLE_OR_STORY


def test_index_with_other_extension_is_not_barrel():
    """index.css is a stylesheet, index.json is config."""
    assert classify("src/index.css") is ConflictType.STYLESHEET
    assert classify("src/index.json") is ConflictType.STRUCTURED_CONFIG


def test_case_and_separators_normalized():
    assert classify("SRC\\Components\\Index.TS") is ConflictType.INDEX_EXPORTS
    assert classify("Docs\\Examples\\Demo.ts") is ConflictType.EXAMPLE_OR_STORY


def test_classify_is_total():
    """Every path gets exactly one of the defined types."""
    for path in ("a", "a.b.c", "/", ".hidden", "dir/", "x.unknownext"):
        assert classify(path) in set(ConflictType)
