"""
Graph Store: read-only traversal interface over the persisted lineage graph.

Concrete stores implement three primitives (vertex lookup and single-hop
traversal in each direction). The bounded repeat used by every scope
resolver is built on top of those primitives here, so all backends share
the same termination and boundary semantics.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from src.lineage.deadline import Deadline
from src.shared.exceptions import NodeNotFoundError

logger = logging.getLogger("lineage.graph_store")


class Direction(str, Enum):
    """Traversal direction relative to the flow of data."""

    UPSTREAM = "upstream"
    DOWNSTREAM = "downstream"
    BOTH = "both"


@dataclass(frozen=True)
class RawVertex:
    """A vertex as stored, identified by the store's internal id."""

    vertex_id: Any
    label: str = field(compare=False)
    properties: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)


@dataclass(frozen=True)
class RawEdge:
    """An edge as stored. Data flows from ``out_vertex`` to ``in_vertex``."""

    edge_id: Any
    label: str = field(compare=False)
    out_vertex: RawVertex = field(compare=False)
    in_vertex: RawVertex = field(compare=False)


@dataclass
class TraversalResult:
    """Everything one bounded repeat touched.

    ``frontier`` is the boundary set: visited vertices with no further edge
    in the traversal direction. ``depth_exceeded`` is set when the hop bound
    stopped the traversal before it ran out of edges.
    """

    start: RawVertex
    frontier: list[RawVertex] = field(default_factory=list)
    vertices: dict[Any, RawVertex] = field(default_factory=dict)
    edges: dict[Any, RawEdge] = field(default_factory=dict)
    depth_exceeded: bool = False


class GraphStore(ABC):
    """Read-only access to a property graph of lineage vertices and edges."""

    @abstractmethod
    def get_vertex(self, node_id: str, deadline: Deadline | None = None) -> RawVertex | None:
        """Locate a vertex by its stable identifier, or return None."""

    @abstractmethod
    def traverse_out(
        self,
        vertex: RawVertex,
        edge_labels: Iterable[str] | None,
        deadline: Deadline | None = None,
    ) -> list[RawEdge]:
        """Outgoing edges of ``vertex`` whose label is in ``edge_labels`` (any label when None)."""

    @abstractmethod
    def traverse_in(
        self,
        vertex: RawVertex,
        edge_labels: Iterable[str] | None,
        deadline: Deadline | None = None,
    ) -> list[RawEdge]:
        """Incoming edges of ``vertex`` whose label is in ``edge_labels`` (any label when None)."""

    # ─── Derived operations ───────────────────────────────

    def require_vertex(self, node_id: str, deadline: Deadline | None = None) -> RawVertex:
        """Like get_vertex, but raise NodeNotFoundError when absent."""
        vertex = self.get_vertex(node_id, deadline)
        if vertex is None:
            raise NodeNotFoundError(node_id)
        return vertex

    def traverse(
        self,
        vertex: RawVertex,
        direction: Direction,
        edge_labels: Iterable[str] | None,
        deadline: Deadline | None = None,
    ) -> list[RawEdge]:
        """Single hop from ``vertex`` in ``direction``."""
        labels = None if edge_labels is None else tuple(edge_labels)
        if direction is Direction.UPSTREAM:
            return self.traverse_in(vertex, labels, deadline)
        if direction is Direction.DOWNSTREAM:
            return self.traverse_out(vertex, labels, deadline)
        return self.traverse_out(vertex, labels, deadline) + self.traverse_in(vertex, labels, deadline)

    def bounded_repeat(
        self,
        start: RawVertex,
        direction: Direction,
        edge_labels: Iterable[str],
        deadline: Deadline | None = None,
        max_depth: int | None = None,
    ) -> TraversalResult:
        """Follow edges from ``start`` until no further edge of ``edge_labels`` exists.

        Breadth-first with a visited set: each vertex is expanded at most once,
        so the walk terminates on cyclic data and the boundary set equals the
        set of terminal vertices reachable over a simple path. A vertex with no
        edge in ``direction`` joins the frontier; when ``start`` itself has none,
        the frontier is exactly ``[start]``. A traversal whose every reachable
        vertex has a further edge (only cycles ahead) returns an empty frontier.

        Args:
            start: Vertex to start from.
            direction: UPSTREAM follows edges backwards, DOWNSTREAM forwards,
                BOTH ignores orientation.
            edge_labels: Labels of the edges that may be followed.
            deadline: Checked before every store call.
            max_depth: Hop bound; a vertex ``max_depth`` hops from ``start``
                with an edge to an unvisited vertex sets ``depth_exceeded``
                and stops.

        Raises:
            TraversalTimeoutError: When the deadline expires or is cancelled.
        """
        labels = tuple(edge_labels)
        deadline = deadline or Deadline.never()
        result = TraversalResult(start=start, vertices={start.vertex_id: start})

        layer = [start]
        depth = 0
        while layer:
            next_layer: list[RawVertex] = []
            for vertex in layer:
                deadline.check()
                hops = self.traverse(vertex, direction, labels, deadline)
                if not hops:
                    result.frontier.append(vertex)
                    continue
                if max_depth is not None and depth >= max_depth:
                    # Only hops into unseen vertices count as going deeper
                    if any(
                        _far_end(edge, vertex, direction).vertex_id not in result.vertices
                        for edge in hops
                    ):
                        result.depth_exceeded = True
                    continue
                for edge in hops:
                    result.edges[edge.edge_id] = edge
                    nxt = _far_end(edge, vertex, direction)
                    if nxt.vertex_id not in result.vertices:
                        result.vertices[nxt.vertex_id] = nxt
                        next_layer.append(nxt)

            if result.depth_exceeded:
                logger.warning(
                    "Bounded repeat from %s stopped at hop limit %d", start.vertex_id, max_depth,
                )
                break
            layer = next_layer
            depth += 1

        logger.debug(
            "Bounded repeat %s from %s: %d visited, %d edges, %d boundary",
            direction.value, start.vertex_id,
            len(result.vertices), len(result.edges), len(result.frontier),
        )
        return result


def _far_end(edge: RawEdge, near: RawVertex, direction: Direction) -> RawVertex:
    if direction is Direction.UPSTREAM:
        return edge.out_vertex
    if direction is Direction.DOWNSTREAM:
        return edge.in_vertex
    return edge.in_vertex if edge.out_vertex.vertex_id == near.vertex_id else edge.out_vertex
