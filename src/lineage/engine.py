"""
Lineage Query Engine

Entry point used by the service layer: takes a LineageQuery, runs the
matching scope resolver, then the post-filters, attaches context
properties to the surviving vertices and returns the final
LineageVerticesAndEdges. A query either fully succeeds or raises one of
the LineageError subclasses; errors are never turned into partial results.
"""

import logging

from src.lineage.abstraction import PropertyAllowList, VertexMapper
from src.lineage.assembler import ResultAssembler
from src.lineage.config import LineageSettings
from src.lineage.context import ContextEnricher
from src.lineage.deadline import Deadline
from src.lineage.filters import filter_display_name, filter_processes
from src.lineage.graph_store import GraphStore
from src.lineage.models import LineageQuery, LineageVertex, LineageVerticesAndEdges, Scope
from src.lineage.resolvers import ScopeResolver
from src.shared.exceptions import GraphStoreError, LineageError
from src.shared.logging import QueryLogger

logger = logging.getLogger("lineage.engine")


class LineageQueryEngine:
    """Answers lineage queries against a GraphStore.

    The engine holds no per-query state, so one instance can serve
    concurrent queries as long as the store supports concurrent reads.
    """

    def __init__(self, store: GraphStore, settings: LineageSettings | None = None):
        self._settings = settings or LineageSettings()
        self._store = store
        self._mapper = VertexMapper(PropertyAllowList.from_settings(self._settings))
        self._resolver = ScopeResolver(store, ResultAssembler(self._mapper), self._settings)
        self._context = ContextEnricher(store, self._mapper.allow_list)

    @property
    def resolver(self) -> ScopeResolver:
        return self._resolver

    def _deadline(self, deadline: Deadline | None) -> Deadline:
        if deadline is not None:
            return deadline
        return Deadline(self._settings.query_timeout_seconds)

    def query(self, query: LineageQuery, deadline: Deadline | None = None) -> LineageVerticesAndEdges:
        """Run one lineage query.

        Args:
            query: Scope, view, starting node and filters.
            deadline: Optional deadline/cancellation token; defaults to the
                configured query timeout (unbounded when unset).

        Returns:
            The filtered subgraph.

        Raises:
            NodeNotFoundError: The starting node does not exist.
            LineageCycleError: The cycle guard tripped.
            TraversalTimeoutError: Deadline elapsed or query cancelled.
            InvalidViewError: Unknown named view or malformed edge label.
            GraphStoreError: The store failed.
        """
        deadline = self._deadline(deadline)
        log = QueryLogger(logger)
        log.info(
            "%s of %s (view=%s, filter=%r, processes=%s)",
            query.scope.value, query.starting_node_id, query.view,
            query.display_name_must_contain, query.include_processes,
        )

        try:
            raw = self._resolve(query, deadline)
            deadline.check()
            result = filter_processes(raw, query.include_processes, self._settings.bridge_processes)
            result = filter_display_name(result, query.display_name_must_contain)
            if self._settings.context_properties:
                result = self._context.enrich(result, deadline)
        except GraphStoreError as exc:
            log.error("graph store failure: %s", exc)
            raise
        except LineageError as exc:
            log.warning("failed: %s", exc)
            raise

        log.info("returned %d vertices, %d edges", len(result.vertices), len(result.edges))
        return result

    def _resolve(self, query: LineageQuery, deadline: Deadline) -> LineageVerticesAndEdges:
        node_id, view = query.starting_node_id, query.view
        if query.scope is Scope.ULTIMATE_SOURCE:
            return self._resolver.ultimate_source(node_id, view, deadline)
        if query.scope is Scope.ULTIMATE_DESTINATION:
            return self._resolver.ultimate_destination(node_id, view, deadline)
        if query.scope is Scope.SOURCE_AND_DESTINATION:
            return self._resolver.source_and_destination(node_id, view, deadline)
        if query.scope is Scope.END_TO_END:
            return self._resolver.end_to_end(node_id, view, deadline)
        if query.scope is Scope.GLOSSARY:
            return self._resolver.glossary(node_id, deadline)
        return self._resolver.vertical(node_id, deadline)

    def entity_details(self, node_id: str, deadline: Deadline | None = None) -> LineageVertex:
        """Every stored property of one vertex, embedded property maps expanded.

        Raises:
            NodeNotFoundError: No vertex has ``node_id``.
        """
        raw = self._store.require_vertex(node_id, self._deadline(deadline))
        return self._mapper.details(raw)
