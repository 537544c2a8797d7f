"""
Cycle Guard

Validates a boundary computation right after it ran. The bounded repeat
expands each vertex once, so an empty boundary set means every vertex it
could reach still had a further edge: the traversal only ever led back
into a cycle and never reached a root (or leaf). Hitting the hop bound is
reported the same way.
"""

import logging

from src.lineage.graph_store import TraversalResult
from src.shared.exceptions import LineageCycleError

logger = logging.getLogger("lineage.cycle_guard")


def check_depth(traversal: TraversalResult, resolver: str, node_id: str) -> None:
    """Raise LineageCycleError when ``traversal`` stopped at the hop limit."""
    if traversal.depth_exceeded:
        logger.warning("%s lineage of %s hit the traversal hop limit", resolver, node_id)
        raise LineageCycleError(resolver, node_id, "traversal hop limit reached")


def check_boundary(traversal: TraversalResult, resolver: str, node_id: str) -> None:
    """Raise LineageCycleError when ``traversal`` has no usable boundary.

    Args:
        traversal: Result of a bounded repeat.
        resolver: Name of the scope resolver, used in the error.
        node_id: Starting node id, used in the error.
    """
    check_depth(traversal, resolver, node_id)
    if not traversal.frontier:
        logger.warning(
            "%s lineage of %s reached no terminal vertex (%d vertices visited)",
            resolver, node_id, len(traversal.vertices),
        )
        raise LineageCycleError(resolver, node_id, "no terminal vertex reachable")
