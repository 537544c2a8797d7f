"""
Post-Filters

Applied to an assembled result after the scope resolver ran. Both filters
keep the containment invariant: an edge never outlives either endpoint.
"""

import logging

from src.lineage.assembler import prune
from src.lineage.constants import EDGE_LABEL_CONDENSED, PROCESS_KINDS
from src.lineage.models import LineageEdge, LineageVertex, LineageVerticesAndEdges

logger = logging.getLogger("lineage.filters")


def is_process(vertex: LineageVertex) -> bool:
    return any(vertex.kind.lower() == kind.lower() for kind in PROCESS_KINDS)


def filter_processes(
    result: LineageVerticesAndEdges,
    include_processes: bool,
    bridge: bool = False,
) -> LineageVerticesAndEdges:
    """Drop process and sub-process vertices unless ``include_processes``.

    With ``bridge`` set, each removed process X→P→Y is replaced by a
    ``condensed`` edge X→Y so the surviving data stores stay connected.
    """
    if include_processes:
        return result

    process_ids = {v.node_id for v in result.vertices if is_process(v)}
    if not process_ids:
        return result

    pruned = prune(result, process_ids)
    if bridge:
        bridges = _bridge_edges(result.edges, process_ids)
        pruned = LineageVerticesAndEdges(pruned.vertices, pruned.edges | bridges)

    logger.debug("Removed %d process vertices", len(process_ids))
    return pruned


def _bridge_edges(edges: frozenset[LineageEdge], process_ids: set[str]) -> frozenset[LineageEdge]:
    incoming: dict[str, set[str]] = {}
    outgoing: dict[str, set[str]] = {}
    for edge in edges:
        if edge.destination_node_id in process_ids:
            incoming.setdefault(edge.destination_node_id, set()).add(edge.source_node_id)
        if edge.source_node_id in process_ids:
            outgoing.setdefault(edge.source_node_id, set()).add(edge.destination_node_id)

    bridges = set()
    for process_id, sources in incoming.items():
        for source in sources:
            for destination in outgoing.get(process_id, ()):
                # Chains of processes have no surviving endpoint to bridge to
                if source in process_ids or destination in process_ids:
                    continue
                bridges.add(LineageEdge(EDGE_LABEL_CONDENSED, source, destination))
    return frozenset(bridges)


def filter_display_name(result: LineageVerticesAndEdges, substring: str) -> LineageVerticesAndEdges:
    """Keep only vertices whose display name contains ``substring``.

    Literal, case-sensitive match. An empty ``substring`` disables the
    filter. Condensed and queried vertices get no exemption; a vertex
    without a display name never matches.
    """
    if not substring:
        return result

    rejected = {
        v.node_id for v in result.vertices
        if substring not in (v.display_name or "")
    }
    if rejected:
        logger.debug("Display name filter %r removed %d vertices", substring, len(rejected))
    return prune(result, rejected)
