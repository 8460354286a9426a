"""Tests for ConflictResolver against an in-memory version control."""

import pytest

from mergejudge.conflict.classifier import ConflictType
from mergejudge.conflict.decision import DeferReason, Outcome
from mergejudge.conflict.resolver import ConflictResolver
from mergejudge.conflict.strategy import Strategy
from mergejudge.conflict.backup import Backup
from mergejudge.core.errors import BackupWriteError, NoActiveMergeError
from mergejudge.scoring.aggregate import Tier

INDEX = (
    "<<<<<<< HEAD\n"
    "export { A } from './a';\n"
    "export { B } from './b';\n"
    "=======\n"
    "export { B } from './b';\n"
    "export { C } from './c';\n"
    ">>>>>>> feature\n"
)

# HEAD: clickable div; incoming: labelled button
BUTTON = (
    "export function Button() {\n"
    "<<<<<<< HEAD\n"
    "  return <div onClick={go}>Go</div>;\n"
    "=======\n"
    '  return <button aria-label="Go" onClick={go}>Go</button>;\n'
    ">>>>>>> feature\n"
    "}\n"
)

PACKAGE = (
    "{\n"
    "<<<<<<< HEAD\n"
    '  "version": "1.0.0"\n'
    "=======\n"
    '  "version": "1.1.0",\n'
    '  "private": true\n'
    ">>>>>>> feature\n"
    "}\n"
)

MALFORMED = "<<<<<<< HEAD\nconst a = 1;\n>>>>>>> feature\n"


@pytest.fixture
def merge_tree(write_tree):
    return write_tree({
        "src/index.ts": INDEX,
        "src/Button.tsx": BUTTON,
        "package.json": PACKAGE,
    })


def by_file(decisions):
    return {d.file: d for d in decisions}


def test_index_exports_resolved(merge_tree, make_vcs):
    vcs = make_vcs(["src/index.ts"])
    resolver = ConflictResolver(merge_tree, vcs)

    [decision] = resolver.resolve_all(threshold=7.0)

    assert decision.outcome is Outcome.RESOLVED
    assert decision.conflict_type is ConflictType.INDEX_EXPORTS
    assert decision.strategy is Strategy.MERGE_UNIQUE_EXPORTS
    assert decision.confidence >= 9.0
    assert (merge_tree / "src/index.ts").read_text() == (
        "export { A } from './a';\n"
        "export { B } from './b';\n"
        "export { C } from './c';\n"
    )
    assert vcs.resolved == ["src/index.ts"]


def test_ui_component_below_threshold_deferred(merge_tree, make_vcs):
    """Both sides score low, so the choice is not trusted at 7.0."""
    vcs = make_vcs(["src/Button.tsx"])
    resolver = ConflictResolver(merge_tree, vcs)

    [decision] = resolver.resolve_all(threshold=7.0)

    assert decision.outcome is Outcome.DEFERRED
    assert decision.reason is DeferReason.BELOW_CONFIDENCE_THRESHOLD
    assert decision.incoming_score > decision.head_score
    assert decision.confidence == decision.incoming_score
    assert (merge_tree / "src/Button.tsx").read_text() == BUTTON
    assert vcs.resolved == []


def test_ui_component_higher_scoring_side_applied(merge_tree, make_vcs):
    vcs = make_vcs(["src/Button.tsx"])
    resolver = ConflictResolver(merge_tree, vcs)

    [decision] = resolver.resolve_all(threshold=5.0)

    assert decision.outcome is Outcome.RESOLVED
    assert decision.strategy is Strategy.CHOOSE_HIGHER_SCORE
    assert (merge_tree / "src/Button.tsx").read_text() == (
        "export function Button() {\n"
        '  return <button aria-label="Go" onClick={go}>Go</button>;\n'
        "}\n"
    )


def test_structured_config_deferred_at_default_threshold(merge_tree, make_vcs):
    vcs = make_vcs(["package.json"])
    resolver = ConflictResolver(merge_tree, vcs)

    [decision] = resolver.resolve_all()

    assert decision.conflict_type is ConflictType.STRUCTURED_CONFIG
    assert decision.strategy is Strategy.CHOOSE_LARGER
    assert decision.confidence == 5.0
    assert decision.outcome is Outcome.DEFERRED
    assert decision.resolved_text is None
    assert (merge_tree / "package.json").read_text() == PACKAGE


def test_threshold_equal_to_confidence_applies(merge_tree, make_vcs):
    vcs = make_vcs(["package.json"])
    resolver = ConflictResolver(merge_tree, vcs)

    [decision] = resolver.resolve_all(threshold=5.0)

    assert decision.outcome is Outcome.RESOLVED
    assert '"private": true' in (merge_tree / "package.json").read_text()


def test_dry_run_matches_real_run_and_writes_nothing(merge_tree, make_vcs):
    paths = ["package.json", "src/Button.tsx", "src/index.ts"]
    before = {p: (merge_tree / p).read_bytes() for p in paths}

    dry_vcs = make_vcs(paths)
    dry = ConflictResolver(merge_tree, dry_vcs).resolve_all(dry_run=True)

    assert {p: (merge_tree / p).read_bytes() for p in paths} == before
    assert dry_vcs.resolved == []

    real = ConflictResolver(merge_tree, make_vcs(paths)).resolve_all()

    assert dry == real


def test_decisions_one_per_file_in_path_order(merge_tree, make_vcs):
    paths = ["src/index.ts", "package.json", "src/Button.tsx"]
    resolver = ConflictResolver(merge_tree, make_vcs(paths))

    decisions = resolver.resolve_all(dry_run=True)

    assert [d.file for d in decisions] == sorted(paths)


def test_resolved_files_have_no_markers(merge_tree, make_vcs):
    paths = ["package.json", "src/Button.tsx", "src/index.ts"]
    resolver = ConflictResolver(merge_tree, make_vcs(paths))

    for decision in resolver.resolve_all(threshold=0.0):
        assert decision.resolved
        text = (merge_tree / decision.file).read_text()
        assert "<<<<<<<" not in text
        assert ">>>>>>>" not in text


def test_malformed_file_deferred_and_untouched(write_tree, make_vcs):
    root = write_tree({"src/broken.ts": MALFORMED, "src/index.ts": INDEX})
    vcs = make_vcs(["src/broken.ts", "src/index.ts"])

    decisions = by_file(ConflictResolver(root, vcs).resolve_all())

    broken = decisions["src/broken.ts"]
    assert broken.outcome is Outcome.DEFERRED
    assert broken.reason is DeferReason.MALFORMED_CONFLICT_MARKERS
    assert broken.strategy is Strategy.DEFER
    assert broken.confidence == 0.0
    assert "line 3" in broken.detail or "broken.ts:3" in broken.detail
    assert (root / "src/broken.ts").read_text() == MALFORMED
    assert decisions["src/index.ts"].resolved


def test_missing_file_deferred(write_tree, make_vcs):
    root = write_tree({"src/index.ts": INDEX})
    vcs = make_vcs(["gone.ts", "src/index.ts"])

    decisions = by_file(ConflictResolver(root, vcs).resolve_all())

    assert decisions["gone.ts"].reason is DeferReason.FILE_NOT_FOUND
    assert decisions["src/index.ts"].resolved


def test_undecodable_file_deferred(write_tree, make_vcs, tmp_path):
    root = write_tree({"src/index.ts": INDEX})
    (tmp_path / "logo.bin").write_bytes(b"\xff\xfe<<<<<<< HEAD\n")
    vcs = make_vcs(["logo.bin", "src/index.ts"])

    decisions = by_file(ConflictResolver(root, vcs).resolve_all())

    assert decisions["logo.bin"].reason is DeferReason.FILE_UNREADABLE


def test_unmerged_file_without_markers_skipped(write_tree, make_vcs):
    root = write_tree({"clean.ts": "const a = 1;\n", "src/index.ts": INDEX})
    vcs = make_vcs(["clean.ts", "src/index.ts"])

    decisions = ConflictResolver(root, vcs).resolve_all()

    assert [d.file for d in decisions] == ["src/index.ts"]


def test_no_merge_in_progress(tmp_path, make_vcs):
    resolver = ConflictResolver(tmp_path, make_vcs([], in_progress=False))

    with pytest.raises(NoActiveMergeError) as exc_info:
        resolver.resolve_all()

    assert exc_info.value.workdir == tmp_path


def test_merge_without_unmerged_paths(tmp_path, make_vcs):
    resolver = ConflictResolver(tmp_path, make_vcs([], in_progress=True))

    with pytest.raises(NoActiveMergeError, match="no unmerged paths"):
        resolver.detect_conflicts()


def test_no_file_with_markers(write_tree, make_vcs):
    root = write_tree({"clean.ts": "const a = 1;\n"})

    with pytest.raises(NoActiveMergeError):
        ConflictResolver(root, make_vcs(["clean.ts"])).resolve_all()


def test_detect_conflicts_skips_unparseable(write_tree, make_vcs):
    root = write_tree({"src/broken.ts": MALFORMED, "src/index.ts": INDEX})
    vcs = make_vcs(["src/broken.ts", "src/index.ts"])

    found = ConflictResolver(root, vcs).detect_conflicts()

    assert [c.path for c in found] == ["src/index.ts"]


def test_rollback_restores_exact_bytes(merge_tree, make_vcs):
    paths = ["package.json", "src/Button.tsx", "src/index.ts"]
    before = {p: (merge_tree / p).read_bytes() for p in paths}
    vcs = make_vcs(paths)
    resolver = ConflictResolver(merge_tree, vcs)
    resolver.resolve_all(threshold=0.0)

    restored = resolver.rollback()

    assert restored == sorted(paths)
    assert {p: (merge_tree / p).read_bytes() for p in paths} == before
    assert sorted(vcs.unresolved) == sorted(paths)
    assert vcs.resolved == []


def test_rollback_only_touches_written_files(merge_tree, make_vcs):
    paths = ["package.json", "src/index.ts"]
    vcs = make_vcs(paths)
    resolver = ConflictResolver(merge_tree, vcs)
    resolver.resolve_all()

    assert resolver.rollback() == ["src/index.ts"]
    assert vcs.unresolved == ["src/index.ts"]


def test_stage_failure_restores_file(merge_tree, make_vcs):
    vcs = make_vcs(["src/index.ts"], fail_on_mark=["src/index.ts"])
    resolver = ConflictResolver(merge_tree, vcs)

    [decision] = resolver.resolve_all()

    assert decision.outcome is Outcome.DEFERRED
    assert decision.reason is DeferReason.WRITE_FAILED
    assert (merge_tree / "src/index.ts").read_text() == INDEX


def test_advanced_tier_scores(merge_tree, make_vcs):
    vcs = make_vcs(["src/Button.tsx"])
    resolver = ConflictResolver(merge_tree, vcs, tier=Tier.ADVANCED)

    [decision] = resolver.resolve_all(dry_run=True)

    assert decision.head_score is not None
    assert decision.incoming_score is not None
    assert 0.0 <= decision.confidence <= 10.0


def test_invalid_weights_rejected(tmp_path, make_vcs):
    with pytest.raises(ValueError):
        ConflictResolver(tmp_path, make_vcs(), weights={})


def test_index_exports_union_across_hunks(write_tree, make_vcs):
    index = (
        "<<<<<<< HEAD\n"
        "export { A } from './a';\n"
        "=======\n"
        "export { B } from './b';\n"
        ">>>>>>> feature\n"
        "export { M } from './m';\n"
        "<<<<<<< HEAD\n"
        "export { B } from './b';\n"
        "=======\n"
        "export { C } from './c';\n"
        ">>>>>>> feature\n"
    )
    root = write_tree({"src/index.ts": index})
    resolver = ConflictResolver(root, make_vcs(["src/index.ts"]))

    [decision] = resolver.resolve_all()

    lines = (root / "src/index.ts").read_text().splitlines()
    assert decision.resolved
    assert len(lines) == len(set(lines))
    assert lines == sorted(lines)
    assert set(lines) == {
        "export { A } from './a';",
        "export { B } from './b';",
        "export { C } from './c';",
        "export { M } from './m';",
    }


def test_backup_saved_before_first_write(merge_tree, make_vcs, tmp_path):
    backup_dir = tmp_path / "saved"
    vcs = make_vcs(["package.json", "src/index.ts"])
    saved_when_staged = []
    mark_resolved = vcs.mark_resolved

    def staging(path):
        saved_when_staged.append((backup_dir / "manifest.json").exists())
        mark_resolved(path)

    vcs.mark_resolved = staging
    resolver = ConflictResolver(merge_tree, vcs, backup_dir=backup_dir)

    resolver.resolve_all(threshold=0.0)

    assert saved_when_staged == [True, True]
    saved = Backup.load(backup_dir, root=merge_tree)
    assert saved.paths == ["package.json", "src/index.ts"]
    assert saved.original("src/index.ts") == INDEX.encode("utf-8")


def test_backup_save_failure_writes_nothing(merge_tree, make_vcs):
    paths = ["package.json", "src/Button.tsx", "src/index.ts"]
    before = {p: (merge_tree / p).read_bytes() for p in paths}
    (merge_tree / "blocker").write_text("not a directory\n")
    vcs = make_vcs(paths)
    resolver = ConflictResolver(
        merge_tree, vcs, backup_dir=merge_tree / "blocker" / "backup"
    )

    with pytest.raises(BackupWriteError):
        resolver.resolve_all(threshold=0.0)

    assert {p: (merge_tree / p).read_bytes() for p in paths} == before
    assert vcs.resolved == []


def test_dry_run_saves_no_backup(merge_tree, make_vcs, tmp_path):
    backup_dir = tmp_path / "saved"
    resolver = ConflictResolver(
        merge_tree, make_vcs(["src/index.ts"]), backup_dir=backup_dir
    )

    resolver.resolve_all(dry_run=True)

    assert not backup_dir.exists()
