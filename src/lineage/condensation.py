"""
Condensation Builder

Collapses everything between a boundary set (roots or leaves) and the
queried vertex into one synthetic vertex, so a response holds at most the
boundary vertices, the queried vertex and one condensed vertex per side.
"""

from typing import Iterable

from src.lineage.constants import EDGE_LABEL_CONDENSED
from src.lineage.models import (
    CondensationSide,
    LineageEdge,
    LineageVertex,
    LineageVerticesAndEdges,
)


def condense(
    queried: LineageVertex,
    boundary: Iterable[LineageVertex],
    side: CondensationSide,
) -> LineageVerticesAndEdges:
    """Build the condensed lineage of ``queried`` towards ``boundary``.

    When the boundary is just the queried vertex there is nothing beyond it
    and the result is the queried vertex alone. Otherwise each boundary
    vertex is linked to the condensed vertex, which is linked to the queried
    vertex; edges point towards the queried vertex on the source side and
    away from it on the destination side.
    """
    ends = {v for v in boundary if v != queried}
    if not ends:
        return LineageVerticesAndEdges.of([queried])

    condensed = LineageVertex.condensed(side)
    edges: set[LineageEdge] = set()
    if side is CondensationSide.SOURCE:
        edges.add(LineageEdge(EDGE_LABEL_CONDENSED, condensed.node_id, queried.node_id))
        edges.update(LineageEdge(EDGE_LABEL_CONDENSED, end.node_id, condensed.node_id) for end in ends)
    else:
        edges.add(LineageEdge(EDGE_LABEL_CONDENSED, queried.node_id, condensed.node_id))
        edges.update(LineageEdge(EDGE_LABEL_CONDENSED, condensed.node_id, end.node_id) for end in ends)

    return LineageVerticesAndEdges.of([queried, condensed, *ends], edges)
