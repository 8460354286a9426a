"""Tests for rule-based dimension scoring."""

import pytest

from mergejudge.core.errors import FileUnreadableError
from mergejudge.scoring.rules import (
    DEFAULT_RULES,
    Dimension,
    LineCountRule,
    PatternRule,
    TextSample,
    with_extra_rules,
)
from mergejudge.scoring.scorer import (
    PatternScorer,
    clamp,
    read_lines,
    split_lines,
)


@pytest.fixture
def scorer():
    return PatternScorer()


def test_empty_text_scores_baseline(scorer):
    """No rule matches an empty block."""
    for dimension in Dimension:
        assert scorer.score([], dimension) == 5.0
        assert scorer.score([""], dimension) == 5.0


def test_scores_stay_in_bounds(scorer):
    nasty = [
        "var x = eval(input);\n",
        "el.innerHTML = html;\n",
        "<div dangerouslySetInnerHTML={{__html: x}} />\n",
        "const password = 'hunter22';\n",
        "const f = new Function('return 1');\n",
    ]
    good = [
        '<main aria-label="x" role="main">\n',
        '<img alt="logo" src="a.png" />\n',
        "<label htmlFor=\"a\">A</label> <div tabIndex={0} />\n",
    ]
    for lines in (nasty, good, nasty * 50, good * 50):
        for dimension in Dimension:
            assert 0.0 <= scorer.score(lines, dimension) <= 10.0


def test_security_penalties_floor_at_zero(scorer):
    lines = [
        "eval(x);\n",
        "a.innerHTML = b;\n",
        "<div dangerouslySetInnerHTML={y} />\n",
        "const token = 'abcdef123';\n",
    ]

    assert scorer.score(lines, Dimension.SECURITY) == 0.0


def test_scoring_is_idempotent(scorer):
    lines = ["const a: string = 'x';\n", "// comment\n"]

    first = scorer.score_dimensions(lines, list(Dimension))
    second = scorer.score_dimensions(lines, list(Dimension))

    assert first == second


def test_rule_counts_once_per_block(scorer):
    """A pattern occurring many times adds its delta only once."""
    once = ['<a aria-label="x" />\n']
    many = ['<a aria-label="x" />\n'] * 10

    assert scorer.score(once, Dimension.ACCESSIBILITY) == scorer.score(
        many, Dimension.ACCESSIBILITY
    )


def test_aria_attribute_raises_accessibility(scorer):
    assert scorer.score(
        ['<button aria-label="Close">x</button>\n'], Dimension.ACCESSIBILITY
    ) == 7.0


def test_image_without_alt_lowers_accessibility(scorer):
    assert scorer.score(['<img src="a.png">\n'], Dimension.ACCESSIBILITY) == 3.5
    assert scorer.score(
        ['<img src="a.png" alt="A">\n'], Dimension.ACCESSIBILITY
    ) == 6.0


def test_memoization_raises_performance(scorer):
    lines = [
        "const v = useMemo(() => f(a), [a]);\n",
        "const cb = useCallback(() => g(), []);\n",
    ]

    assert scorer.score(lines, Dimension.PERFORMANCE) == 8.0


def test_test_id_raises_testing_readiness(scorer):
    assert scorer.score(
        ['<div data-testid="row" />\n'], Dimension.TESTING_READINESS
    ) == 7.0


def test_long_file_lowers_complexity(scorer):
    short = ["x\n"] * 200
    long = ["x\n"] * 201

    assert scorer.score(short, Dimension.COMPLEXITY) == 5.0
    assert scorer.score(long, Dimension.COMPLEXITY) == 4.0


def test_matched_rules(scorer):
    matched = scorer.matched_rules(
        ["interface Props { a: string }\n"], Dimension.QUALITY
    )

    assert {r.name for r in matched} == {
        "typed interface", "primitive type annotation"
    }


def test_custom_baseline_is_clamped():
    assert PatternScorer(baseline=42.0).baseline == 10.0
    assert PatternScorer(baseline=-1.0).baseline == 0.0


def test_dimension_without_rules_scores_baseline():
    scorer = PatternScorer(rules={}, baseline=3.0)

    assert scorer.score(["anything\n"], Dimension.SECURITY) == 3.0


def test_extra_rules_appended():
    rule = PatternRule("uses lodash", r"from 'lodash'", -1.0)
    rules = with_extra_rules(DEFAULT_RULES, [(Dimension.PERFORMANCE, rule)])
    scorer = PatternScorer(rules=rules)

    assert rules[Dimension.PERFORMANCE][-1] is rule
    assert len(DEFAULT_RULES[Dimension.PERFORMANCE]) + 1 == len(
        rules[Dimension.PERFORMANCE]
    )
    assert scorer.score(
        ["import _ from 'lodash';\n"], Dimension.PERFORMANCE
    ) == 4.0


def test_line_count_rule():
    rule = LineCountRule("long", 2, -1.0)

    assert not rule.matches(TextSample.from_lines(["a\n", "b\n"]))
    assert rule.matches(TextSample.from_lines(["a\n", "b\n", "c\n"]))


def test_clamp():
    assert clamp(-3.0) == 0.0
    assert clamp(11.5) == 10.0
    assert clamp(7.25) == 7.25


def test_split_lines_round_trips():
    for text in ("", "a", "a\n", "a\r\nb\n", "a\n\nb", "x y\n"):
        assert "".join(split_lines(text)) == text

    assert split_lines("a b\n") == ["a b\n"]


def test_score_file(scorer, tmp_path):
    path = tmp_path / "Button.tsx"
    path.write_text('<button aria-label="x" />\n', encoding="utf-8")

    scores = scorer.score_file(path, [Dimension.ACCESSIBILITY])

    assert scores == {Dimension.ACCESSIBILITY: 7.0}


def test_score_file_missing(scorer, tmp_path):
    with pytest.raises(FileNotFoundError):
        scorer.score_file(tmp_path / "nope.tsx", [Dimension.QUALITY])


def test_read_lines_rejects_binary(tmp_path):
    path = tmp_path / "blob.bin"
    path.write_bytes(b"\x89PNG\r\n\x1a\n\xff\xff")

    with pytest.raises(FileUnreadableError):
        read_lines(path)


def test_read_lines_directory(tmp_path):
    with pytest.raises(FileUnreadableError):
        read_lines(tmp_path)
