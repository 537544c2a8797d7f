"""
Result Assembler

Builds LineageVerticesAndEdges values from traversals and merges partial
results. Deduplication always goes by identity (node id, edge triple),
never by object reference.
"""

from typing import Iterable

from src.lineage.abstraction import VertexMapper
from src.lineage.graph_store import TraversalResult
from src.lineage.models import LineageEdge, LineageVertex, LineageVerticesAndEdges


class ResultAssembler:
    """Maps traversals through the abstraction and merges the pieces."""

    def __init__(self, mapper: VertexMapper):
        self._mapper = mapper

    @property
    def mapper(self) -> VertexMapper:
        return self._mapper

    def from_traversals(self, *traversals: TraversalResult) -> LineageVerticesAndEdges:
        """Union of every vertex and edge visited by ``traversals``."""
        vertices: list[LineageVertex] = []
        edges: list[LineageEdge] = []
        for traversal in traversals:
            vertices.extend(self._mapper.vertex(raw) for raw in traversal.vertices.values())
            edges.extend(self._mapper.edge(raw) for raw in traversal.edges.values())
        return assemble(vertices, edges)


def assemble(
    vertices: Iterable[LineageVertex],
    edges: Iterable[LineageEdge],
) -> LineageVerticesAndEdges:
    """Deduplicate into a result; the first vertex seen for a node id wins."""
    by_id: dict[str, LineageVertex] = {}
    for vertex in vertices:
        by_id.setdefault(vertex.node_id, vertex)
    return LineageVerticesAndEdges(frozenset(by_id.values()), frozenset(edges))


def merge(*parts: LineageVerticesAndEdges) -> LineageVerticesAndEdges:
    """Union of several results, keeping the vertex from the earliest part."""
    return assemble(
        (v for part in parts for v in part.vertices),
        (e for part in parts for e in part.edges),
    )


def prune(result: LineageVerticesAndEdges, node_ids: Iterable[str]) -> LineageVerticesAndEdges:
    """Remove the given vertices and every edge touching one of them."""
    removed = frozenset(node_ids)
    if not removed:
        return result
    return LineageVerticesAndEdges(
        frozenset(v for v in result.vertices if v.node_id not in removed),
        frozenset(e for e in result.edges if not e.touches(removed)),
    )
