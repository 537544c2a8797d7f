"""
In-memory graph store backed by a networkx MultiDiGraph.

Used for embedded deployments and as the fixture store of the test suite.
Vertices are addressed internally by an integer id; the stable node id
lives in the entity GUID property like it does in the persisted graph.
"""

import itertools
from typing import Any, Iterable

import networkx as nx

from src.lineage.constants import PROPERTY_KEY_DISPLAY_NAME, PROPERTY_KEY_ENTITY_GUID
from src.lineage.deadline import Deadline
from src.lineage.graph_store import GraphStore, RawEdge, RawVertex


class InMemoryGraphStore(GraphStore):
    """A GraphStore over a local ``networkx.MultiDiGraph``."""

    def __init__(self) -> None:
        self._graph = nx.MultiDiGraph()
        self._ids = itertools.count(1)
        self._by_guid: dict[str, int] = {}

    # ─── Building ─────────────────────────────────────────

    def add_vertex(self, label: str, properties: dict[str, Any] | None = None) -> RawVertex:
        """Add a vertex with raw (stored) property keys."""
        properties = dict(properties or {})
        vertex_id = next(self._ids)
        self._graph.add_node(vertex_id, label=label, properties=properties)
        guid = properties.get(PROPERTY_KEY_ENTITY_GUID)
        if guid is not None:
            self._by_guid[str(guid)] = vertex_id
        return RawVertex(vertex_id, label, properties)

    def add_entity(
        self,
        kind: str,
        guid: str,
        display_name: str | None = None,
        **properties: Any,
    ) -> RawVertex:
        """Shortcut for a vertex carrying a GUID and an optional display name."""
        props: dict[str, Any] = {PROPERTY_KEY_ENTITY_GUID: guid, **properties}
        if display_name is not None:
            props[PROPERTY_KEY_DISPLAY_NAME] = display_name
        return self.add_vertex(kind, props)

    def add_edge(self, label: str, source: RawVertex | str, destination: RawVertex | str) -> None:
        """Add a ``label`` edge; endpoints are vertices or entity GUIDs."""
        self._graph.add_edge(self._resolve(source), self._resolve(destination), label=label)

    def _resolve(self, vertex: RawVertex | str) -> int:
        if isinstance(vertex, RawVertex):
            return vertex.vertex_id
        try:
            return self._by_guid[vertex]
        except KeyError:
            raise KeyError(f"Unknown vertex GUID: {vertex}") from None

    @property
    def graph(self) -> nx.MultiDiGraph:
        return self._graph

    # ─── GraphStore ───────────────────────────────────────

    def _vertex(self, vertex_id: int) -> RawVertex:
        data = self._graph.nodes[vertex_id]
        return RawVertex(vertex_id, data["label"], data["properties"])

    def get_vertex(self, node_id: str, deadline: Deadline | None = None) -> RawVertex | None:
        if deadline:
            deadline.check()
        vertex_id = self._by_guid.get(node_id)
        return self._vertex(vertex_id) if vertex_id is not None else None

    def traverse_out(
        self,
        vertex: RawVertex,
        edge_labels: Iterable[str] | None,
        deadline: Deadline | None = None,
    ) -> list[RawEdge]:
        if deadline:
            deadline.check()
        labels = None if edge_labels is None else set(edge_labels)
        return [
            RawEdge((u, v, key), data["label"], self._vertex(u), self._vertex(v))
            for u, v, key, data in self._graph.out_edges(vertex.vertex_id, keys=True, data=True)
            if labels is None or data["label"] in labels
        ]

    def traverse_in(
        self,
        vertex: RawVertex,
        edge_labels: Iterable[str] | None,
        deadline: Deadline | None = None,
    ) -> list[RawEdge]:
        if deadline:
            deadline.check()
        labels = None if edge_labels is None else set(edge_labels)
        return [
            RawEdge((u, v, key), data["label"], self._vertex(u), self._vertex(v))
            for u, v, key, data in self._graph.in_edges(vertex.vertex_id, keys=True, data=True)
            if labels is None or data["label"] in labels
        ]
