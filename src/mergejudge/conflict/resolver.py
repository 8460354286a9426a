"""Drive the resolution of every conflicted file in a working tree."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from mergejudge.conflict.backup import Backup, atomic_write
from mergejudge.conflict.classifier import classify
from mergejudge.conflict.decision import DeferReason, Outcome, ResolutionDecision
from mergejudge.conflict.parser import ConflictedFile, parse_file
from mergejudge.conflict.strategy import Strategy, apply, needs_scoring, select
from mergejudge.core.errors import (
    BackupWriteError,
    FileUnreadableError,
    GitCommandError,
    MalformedConflictMarkersError,
    NoActiveMergeError,
)
from mergejudge.core.log import logger
from mergejudge.git.repository import VersionControl
from mergejudge.scoring.aggregate import TIER_WEIGHTS, Tier, assess, validate_weights
from mergejudge.scoring.rules import Dimension
from mergejudge.scoring.scorer import PatternScorer

DEFAULT_THRESHOLD = 7.0

# What the scan found for one path: the parsed file, or why it failed
ScanResult = ConflictedFile | MalformedConflictMarkersError | OSError | FileUnreadableError


class ConflictResolver:
    """Resolves the conflicts of one merge, one file at a time.

    Files never influence each other. Decisions are returned, not
    accumulated; the only thing kept between calls is the Backup of
    files this resolver overwrote, which rollback() restores.
    """

    def __init__(
        self,
        workdir: Path,
        vcs: VersionControl,
        scorer: PatternScorer | None = None,
        tier: Tier = Tier.BASIC,
        weights: Mapping[Dimension, float] | None = None,
        backup: Backup | None = None,
        backup_dir: Path | None = None,
    ):
        """Set up a resolver for one working tree.

        Args:
            workdir: Top of the working tree conflicted paths are
                relative to
            vcs: Version control collaborator
            backup_dir: Where the backup is saved before the first
                write; None keeps it in memory only
        """
        self.workdir = Path(workdir)
        self.vcs = vcs
        self.scorer = scorer or PatternScorer()
        self.tier = tier
        self.weights = validate_weights(
            TIER_WEIGHTS[tier] if weights is None else weights
        )
        self.backup = backup if backup is not None else Backup(self.workdir)
        self.backup_dir = Path(backup_dir) if backup_dir is not None else None

    def detect_conflicts(self) -> list[ConflictedFile]:
        """Parse every conflicted file that has well-formed markers.

        Raises:
            NoActiveMergeError: If there is nothing to resolve
        """
        return [
            found for _, found in self._scan()
            if isinstance(found, ConflictedFile)
        ]

    def resolve_all(
        self, threshold: float = DEFAULT_THRESHOLD, dry_run: bool = False
    ) -> list[ResolutionDecision]:
        """Decide, and unless dry_run apply, every conflicted file.

        All decisions are made before anything is written, and every
        file about to be written is backed up first. A dry run returns
        the same decisions and touches nothing.

        Raises:
            NoActiveMergeError: If there is nothing to resolve
            BackupWriteError: If the backup cannot be saved; nothing
                has been written then
        """
        with logger.span(
            "Resolving conflicts",
            workdir=str(self.workdir),
            threshold=threshold,
            dry_run=dry_run,
            tier=str(self.tier),
        ):
            decisions = [
                self._decide(path, found, threshold)
                for path, found in self._scan()
            ]
            if dry_run:
                logger.info("Dry run: no files written")
                return decisions
            return self._apply_all(decisions)

    def rollback(self) -> list[str]:
        """Put every file this resolver overwrote back as it was.

        Files are re-marked as conflicted first, then their original
        bytes are written back.

        Returns:
            Paths restored
        """
        for path in self.backup.paths:
            try:
                self.vcs.mark_unresolved(path)
            except GitCommandError as e:
                logger.warning(
                    "Could not re-mark file as conflicted",
                    file=path,
                    error=str(e),
                )
        return self.backup.restore()

    def _scan(self) -> list[tuple[str, ScanResult]]:
        paths = self.vcs.conflicted_paths()
        if not paths:
            if self.vcs.merge_in_progress():
                raise NoActiveMergeError(
                    self.workdir, "merge in progress but no unmerged paths"
                )
            raise NoActiveMergeError(self.workdir, "no merge in progress")

        found: list[tuple[str, ScanResult]] = []
        for path in paths:
            try:
                conflicted = parse_file(self.workdir, path)
            except (
                MalformedConflictMarkersError, FileUnreadableError, OSError
            ) as e:
                found.append((path, e))
                continue
            if not conflicted.has_conflicts:
                logger.warning(
                    "Unmerged file has no conflict markers (skipping)",
                    file=path,
                )
                continue
            found.append((path, conflicted))

        if not found:
            raise NoActiveMergeError(
                self.workdir, "no unmerged file contains conflict markers"
            )
        logger.info("Detected conflicted files", count=len(found))
        return found

    def _decide(
        self, path: str, found: ScanResult, threshold: float
    ) -> ResolutionDecision:
        if not isinstance(found, ConflictedFile):
            return self._unparseable(path, found)

        conflict_type = classify(path)
        head_score = incoming_score = None
        if needs_scoring(conflict_type):
            head_score = assess(
                self.scorer, found.head_text, self.tier, self.weights
            )
            incoming_score = assess(
                self.scorer, found.incoming_text, self.tier, self.weights
            )

        selection = select(conflict_type, head_score, incoming_score)
        decision = ResolutionDecision(
            file=path,
            conflict_type=conflict_type,
            strategy=selection.strategy,
            confidence=selection.confidence,
            outcome=Outcome.RESOLVED,
            head_score=head_score.aggregate if head_score else None,
            incoming_score=incoming_score.aggregate if incoming_score else None,
        )

        if selection.confidence < threshold:
            decision = decision.deferred_copy(
                DeferReason.BELOW_CONFIDENCE_THRESHOLD,
                f"confidence {selection.confidence:.2f} is below "
                f"threshold {threshold:.2f}",
            )
            logger.info(
                "Deferred conflict",
                file=path,
                conflict_type=str(conflict_type),
                strategy=str(selection.strategy),
                confidence=selection.confidence,
                reason=str(decision.reason),
            )
            return decision

        text = apply(selection.strategy, found, head_score, incoming_score)
        logger.info(
            "Resolved conflict",
            file=path,
            conflict_type=str(conflict_type),
            strategy=str(selection.strategy),
            confidence=selection.confidence,
        )
        return decision.model_copy(update={
            "resolved_text": text,
            "detail": f"{len(found.hunks)} hunk(s) resolved",
        })

    def _unparseable(self, path: str, error: Exception) -> ResolutionDecision:
        if isinstance(error, MalformedConflictMarkersError):
            reason = DeferReason.MALFORMED_CONFLICT_MARKERS
        elif isinstance(error, FileNotFoundError):
            reason = DeferReason.FILE_NOT_FOUND
        else:
            reason = DeferReason.FILE_UNREADABLE
        logger.warning(
            "Deferred unparseable file",
            file=path,
            reason=str(reason),
            error=str(error),
        )
        return ResolutionDecision(
            file=path,
            strategy=Strategy.DEFER,
            confidence=0.0,
            outcome=Outcome.DEFERRED,
            reason=reason,
            detail=str(error),
        )

    def _apply_all(
        self, decisions: list[ResolutionDecision]
    ) -> list[ResolutionDecision]:
        applied = list(decisions)

        # Back up everything before the first write
        for i, decision in enumerate(applied):
            if not decision.resolved:
                continue
            try:
                self.backup.capture(decision.file)
            except OSError as e:
                applied[i] = self._write_failed(decision, e)

        if self.backup_dir is not None and len(self.backup):
            try:
                self.backup.save(self.backup_dir)
            except OSError as e:
                logger.error(
                    "Could not save backup, no files written",
                    backup_dir=str(self.backup_dir),
                    error=str(e),
                )
                raise BackupWriteError(self.backup_dir, e) from e

        for i, decision in enumerate(applied):
            if decision.resolved:
                applied[i] = self._write(decision)
        return applied

    def _write(self, decision: ResolutionDecision) -> ResolutionDecision:
        target = self.workdir / decision.file
        try:
            atomic_write(target, decision.resolved_text.encode("utf-8"))
        except OSError as e:
            return self._write_failed(decision, e)

        try:
            self.vcs.mark_resolved(decision.file)
        except GitCommandError as e:
            # Keep the file all-or-nothing: put the markers back
            atomic_write(target, self.backup.original(decision.file))
            return self._write_failed(decision, e)

        logger.debug("Wrote resolved file", file=decision.file)
        return decision

    def _write_failed(
        self, decision: ResolutionDecision, error: Exception
    ) -> ResolutionDecision:
        logger.error(
            "Could not apply resolution", file=decision.file, error=str(error)
        )
        return decision.deferred_copy(DeferReason.WRITE_FAILED, str(error))
