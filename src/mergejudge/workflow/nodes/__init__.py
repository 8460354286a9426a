"""Workflow nodes for graph state machine."""

from mergejudge.workflow.nodes.detect_conflicts import DetectConflicts
from mergejudge.workflow.nodes.finalize import Finalize
from mergejudge.workflow.nodes.resolve_conflicts import ResolveConflicts
from mergejudge.workflow.nodes.rollback import Rollback

__all__ = [
    "DetectConflicts",
    "ResolveConflicts",
    "Finalize",
    "Rollback",
]
