"""Graph workflow definitions."""

from pydantic_graph import Graph

from mergejudge.core.config import State
from mergejudge.core.log import logger


def create_workflow():
    """Create the resolve workflow graph.

    DetectConflicts -> ResolveConflicts -> Finalize, or
    DetectConflicts -> End when there is nothing to resolve.

    Returns:
        Graph workflow with State as state_type
    """
    logger.debug("Building resolve workflow graph")

    # Imported here so the graph can resolve the nodes' return hints
    from mergejudge.workflow.nodes.detect_conflicts import DetectConflicts
    from mergejudge.workflow.nodes.finalize import Finalize
    from mergejudge.workflow.nodes.resolve_conflicts import ResolveConflicts

    return Graph(
        nodes=(
            DetectConflicts,
            ResolveConflicts,
            Finalize,
        ),
        state_type=State,
    )


def create_rollback_workflow():
    """Create the single-node rollback graph."""
    from mergejudge.workflow.nodes.rollback import Rollback

    return Graph(nodes=(Rollback,), state_type=State)
