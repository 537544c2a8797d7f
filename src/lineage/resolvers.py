"""
Scope Resolvers

One traversal algorithm per lineage scope, built only on the GraphStore
interface. Every resolver starts by resolving the queried vertex and
returns a fresh LineageVerticesAndEdges; no state is kept between calls.
"""

import logging
from typing import Sequence

from src.lineage.assembler import ResultAssembler, assemble, merge
from src.lineage.condensation import condense
from src.lineage.config import LineageSettings
from src.lineage.constants import (
    ASSET_KINDS,
    COLUMN_KINDS,
    EDGE_LABEL_ASSET_SCHEMA_TYPE,
    EDGE_LABEL_COLUMN_DATA_FLOW,
    EDGE_LABEL_LINEAGE_MAPPING,
    EDGE_LABEL_SEMANTIC_ASSIGNMENT,
    EDGE_LABEL_TABLE_DATA_FLOW,
    GLOSSARY_VERTICAL_EDGES,
    NODE_LABEL_GLOSSARY_TERM,
    RELATIONAL_COLUMN,
    RELATIONAL_COLUMN_VERTICAL_EDGES,
    TABULAR_COLUMN,
    TABULAR_COLUMN_VERTICAL_EDGES,
    TABULAR_FILE_COLUMN,
    TERM_TO_TERM_EDGES,
    VIEW_AUTO,
)
from src.lineage.cycle_guard import check_boundary, check_depth
from src.lineage.deadline import Deadline
from src.lineage.graph_store import Direction, GraphStore, RawEdge, RawVertex, TraversalResult
from src.lineage.models import CondensationSide, LineageVerticesAndEdges
from src.shared.exceptions import InvalidViewError

logger = logging.getLogger("lineage.resolvers")

ULTIMATE_SOURCE = "ultimate source"
ULTIMATE_DESTINATION = "ultimate destination"
END_TO_END = "end to end"
GLOSSARY = "glossary"
VERTICAL = "vertical"


class ScopeResolver:
    """Runs the traversal behind each lineage scope."""

    def __init__(
        self,
        store: GraphStore,
        assembler: ResultAssembler,
        settings: LineageSettings | None = None,
    ):
        self._store = store
        self._assembler = assembler
        self._settings = settings or LineageSettings()

    # ─── View resolution ──────────────────────────────────

    def edge_labels(self, start: RawVertex, view: str) -> list[str]:
        """Edge labels traversed for ``view`` when starting at ``start``.

        ``auto`` on a vertex kind without data flow edges gives an empty
        list, which the scopes answer with an empty lineage.

        Raises:
            InvalidViewError: Unknown named view.
        """
        if view == VIEW_AUTO:
            if start.label in COLUMN_KINDS:
                return [EDGE_LABEL_COLUMN_DATA_FLOW]
            if start.label in ASSET_KINDS:
                return [EDGE_LABEL_TABLE_DATA_FLOW]
            return []

        if view not in self._settings.views:
            raise InvalidViewError(
                f"Unknown view '{view}'. Valid: {sorted([VIEW_AUTO, *self._settings.views])}"
            )
        return list(self._settings.views[view])

    def _repeat(
        self,
        start: RawVertex,
        direction: Direction,
        labels: Sequence[str],
        deadline: Deadline | None,
    ) -> TraversalResult:
        return self._store.bounded_repeat(
            start, direction, labels, deadline, self._settings.max_traversal_depth,
        )

    def _boundary(
        self,
        start: RawVertex,
        node_id: str,
        direction: Direction,
        view: str,
        labels: Sequence[str],
        deadline: Deadline | None,
        resolver: str,
    ) -> TraversalResult:
        # Assets prefer LineageMapping edges when they lead anywhere
        if view == VIEW_AUTO and start.label in ASSET_KINDS:
            mapped = self._repeat(start, direction, [EDGE_LABEL_LINEAGE_MAPPING], deadline)
            if (
                mapped.frontier
                and not mapped.depth_exceeded
                and [v.vertex_id for v in mapped.frontier] != [start.vertex_id]
            ):
                return mapped

        traversal = self._repeat(start, direction, labels, deadline)
        check_boundary(traversal, resolver, node_id)
        return traversal

    # ─── Scopes ───────────────────────────────────────────

    def ultimate_source(
        self,
        node_id: str,
        view: str = VIEW_AUTO,
        deadline: Deadline | None = None,
    ) -> LineageVerticesAndEdges:
        """Roots upstream of ``node_id``, condensed into one hop."""
        return self._condensed(node_id, view, deadline, CondensationSide.SOURCE)

    def ultimate_destination(
        self,
        node_id: str,
        view: str = VIEW_AUTO,
        deadline: Deadline | None = None,
    ) -> LineageVerticesAndEdges:
        """Leaves downstream of ``node_id``, condensed into one hop."""
        return self._condensed(node_id, view, deadline, CondensationSide.DESTINATION)

    def source_and_destination(
        self,
        node_id: str,
        view: str = VIEW_AUTO,
        deadline: Deadline | None = None,
    ) -> LineageVerticesAndEdges:
        return merge(
            self.ultimate_source(node_id, view, deadline),
            self.ultimate_destination(node_id, view, deadline),
        )

    def _condensed(
        self,
        node_id: str,
        view: str,
        deadline: Deadline | None,
        side: CondensationSide,
    ) -> LineageVerticesAndEdges:
        if side is CondensationSide.SOURCE:
            direction, resolver = Direction.UPSTREAM, ULTIMATE_SOURCE
        else:
            direction, resolver = Direction.DOWNSTREAM, ULTIMATE_DESTINATION

        start = self._store.require_vertex(node_id, deadline)
        labels = self.edge_labels(start, view)
        if not labels:
            logger.debug("No %s edges for %s (%s)", view, node_id, start.label)
            return LineageVerticesAndEdges()

        traversal = self._boundary(start, node_id, direction, view, labels, deadline, resolver)
        mapper = self._assembler.mapper
        logger.debug("%s of %s: %d boundary vertices", resolver, node_id, len(traversal.frontier))
        return condense(mapper.vertex(start), mapper.vertices(traversal.frontier), side)

    def end_to_end(
        self,
        node_id: str,
        view: str = VIEW_AUTO,
        deadline: Deadline | None = None,
    ) -> LineageVerticesAndEdges:
        """Every vertex and edge on any path to a root or to a leaf."""
        start = self._store.require_vertex(node_id, deadline)
        labels = self.edge_labels(start, view)
        if not labels:
            logger.debug("No %s edges for %s (%s)", view, node_id, start.label)
            return LineageVerticesAndEdges()

        if view == VIEW_AUTO and start.label in ASSET_KINDS:
            mapped = self._both_ways(start, node_id, [EDGE_LABEL_LINEAGE_MAPPING], deadline)
            if any(t.edges for t in mapped):
                return self._assembler.from_traversals(*mapped)

        traversals = self._both_ways(start, node_id, labels, deadline)
        return self._assembler.from_traversals(*traversals)

    def _both_ways(
        self,
        start: RawVertex,
        node_id: str,
        labels: Sequence[str],
        deadline: Deadline | None,
    ) -> tuple[TraversalResult, TraversalResult]:
        upstream = self._repeat(start, Direction.UPSTREAM, labels, deadline)
        check_depth(upstream, END_TO_END, node_id)
        downstream = self._repeat(start, Direction.DOWNSTREAM, labels, deadline)
        check_depth(downstream, END_TO_END, node_id)
        return upstream, downstream

    def glossary(self, node_id: str, deadline: Deadline | None = None) -> LineageVerticesAndEdges:
        """Related terms of a glossary term and the elements they are assigned to."""
        start = self._store.require_vertex(node_id, deadline)
        if start.label != NODE_LABEL_GLOSSARY_TERM:
            logger.debug("Glossary lineage requested for non-term %s (%s)", node_id, start.label)

        terms = self._repeat(start, Direction.BOTH, TERM_TO_TERM_EDGES, deadline)
        check_depth(terms, GLOSSARY, node_id)

        assignments: list[RawEdge] = []
        for term in terms.vertices.values():
            assignments.extend(
                self._store.traverse_in(term, [EDGE_LABEL_SEMANTIC_ASSIGNMENT], deadline)
            )

        mapper = self._assembler.mapper
        vertices = [mapper.vertex(v) for v in terms.vertices.values()]
        vertices.extend(mapper.vertex(edge.out_vertex) for edge in assignments)
        edges = [mapper.edge(e) for e in terms.edges.values()]
        edges.extend(mapper.edge(e) for e in assignments)
        return assemble(vertices, edges)

    def vertical(self, node_id: str, deadline: Deadline | None = None) -> LineageVerticesAndEdges:
        """One-hop semantic neighbourhood of a glossary term or column."""
        start = self._store.require_vertex(node_id, deadline)

        if start.label == NODE_LABEL_GLOSSARY_TERM:
            labels = GLOSSARY_VERTICAL_EDGES
        elif start.label == RELATIONAL_COLUMN:
            labels = RELATIONAL_COLUMN_VERTICAL_EDGES
        elif start.label in (TABULAR_COLUMN, TABULAR_FILE_COLUMN):
            labels = TABULAR_COLUMN_VERTICAL_EDGES
        else:
            logger.debug("No vertical lineage for %s (%s)", node_id, start.label)
            return LineageVerticesAndEdges()

        hops = self._store.traverse(start, Direction.BOTH, labels, deadline)
        if not hops:
            return LineageVerticesAndEdges()

        edges: dict = {edge.edge_id: edge for edge in hops}
        endpoints: dict = {start.vertex_id: start}
        for edge in hops:
            endpoints.setdefault(edge.out_vertex.vertex_id, edge.out_vertex)
            endpoints.setdefault(edge.in_vertex.vertex_id, edge.in_vertex)

        if labels is TABULAR_COLUMN_VERTICAL_EDGES:
            # Tabular columns also show which asset owns their schema
            for vertex in list(endpoints.values()):
                for edge in self._store.traverse_in(vertex, [EDGE_LABEL_ASSET_SCHEMA_TYPE], deadline):
                    edges[edge.edge_id] = edge
                    endpoints.setdefault(edge.out_vertex.vertex_id, edge.out_vertex)

        mapper = self._assembler.mapper
        return assemble(
            (mapper.vertex(v) for v in endpoints.values()),
            (mapper.edge(e) for e in edges.values()),
        )
