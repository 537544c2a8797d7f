"""
Neo4j Graph Store: Cypher implementation of the lineage traversal primitives.

All queries are read-only and go through the shared ``Neo4jHandler``.
Edge labels end up inside the Cypher text (relationship types cannot be
parameterised), so every label is validated before use.
"""

import logging
import re
from typing import Any, Iterable

from src.lineage.constants import PROPERTY_KEY_ENTITY_GUID
from src.lineage.deadline import Deadline
from src.lineage.graph_store import GraphStore, RawEdge, RawVertex
from src.shared.database import Neo4jHandler
from src.shared.exceptions import InvalidViewError, TraversalTimeoutError

logger = logging.getLogger("lineage.neo4j_store")

# Relationship types injected into f-string Cypher must match this
_LABEL_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_VERTEX_PROJECTION = "labels({v})[0] AS vertex_label, properties({v}) AS properties"


def _safe_rel_filter(edge_labels: Iterable[str]) -> str:
    """Validate edge labels and return a Cypher ``A|B`` relationship filter.

    Args:
        edge_labels: Relationship types to traverse.

    Returns:
        Cypher-formatted filter string (e.g., "`TableDataFlow`|`LineageMapping`"),
        or an empty string when no labels were given.

    Raises:
        InvalidViewError: If any label is not a plain identifier.
    """
    labels = sorted(set(edge_labels))
    bad = [label for label in labels if not _LABEL_PATTERN.match(label)]
    if bad:
        raise InvalidViewError(f"Invalid edge label(s): {bad}")
    return "|".join(f"`{label}`" for label in labels)


class Neo4jGraphStore(GraphStore):
    """Read-only GraphStore over a Neo4j database."""

    def __init__(self, handler: Neo4jHandler):
        self._handler = handler

    # ─── Core helpers ─────────────────────────────────────

    def _query(
        self,
        cypher: str,
        params: dict[str, Any],
        deadline: Deadline | None,
    ) -> list[dict[str, Any]]:
        timeout = None
        if deadline:
            deadline.check()
            timeout = deadline.remaining()
            # The driver reads a zero timeout as "no timeout"
            if timeout is not None and timeout <= 0:
                raise TraversalTimeoutError("Lineage query deadline elapsed before the store call")
        return self._handler.run(cypher, params, timeout=timeout)

    @staticmethod
    def _to_vertex(vertex_id: Any, row: dict[str, Any]) -> RawVertex:
        return RawVertex(vertex_id, row["vertex_label"], dict(row.get("properties") or {}))

    def _hop(
        self,
        vertex: RawVertex,
        edge_labels: Iterable[str] | None,
        deadline: Deadline | None,
        outgoing: bool,
    ) -> list[RawEdge]:
        if edge_labels is None:
            rel = "r"
        else:
            rel_filter = _safe_rel_filter(edge_labels)
            if not rel_filter:
                return []
            rel = f"r:{rel_filter}"
        pattern = f"(n)-[{rel}]->(m)" if outgoing else f"(n)<-[{rel}]-(m)"
        rows = self._query(
            f"MATCH {pattern} WHERE elementId(n) = $id "
            "RETURN elementId(r) AS edge_id, type(r) AS edge_label, "
            f"       elementId(m) AS id, {_VERTEX_PROJECTION.format(v='m')}",
            {"id": vertex.vertex_id},
            deadline,
        )
        edges = []
        for row in rows:
            other = self._to_vertex(row["id"], row)
            if outgoing:
                edges.append(RawEdge(row["edge_id"], row["edge_label"], vertex, other))
            else:
                edges.append(RawEdge(row["edge_id"], row["edge_label"], other, vertex))
        return edges

    # ─── GraphStore ───────────────────────────────────────

    def get_vertex(self, node_id: str, deadline: Deadline | None = None) -> RawVertex | None:
        rows = self._query(
            f"MATCH (n {{{PROPERTY_KEY_ENTITY_GUID}: $guid}}) "
            f"RETURN elementId(n) AS id, {_VERTEX_PROJECTION.format(v='n')} LIMIT 1",
            {"guid": node_id},
            deadline,
        )
        if not rows:
            logger.debug("No vertex with %s=%s", PROPERTY_KEY_ENTITY_GUID, node_id)
            return None
        return self._to_vertex(rows[0]["id"], rows[0])

    def traverse_out(
        self,
        vertex: RawVertex,
        edge_labels: Iterable[str] | None,
        deadline: Deadline | None = None,
    ) -> list[RawEdge]:
        return self._hop(vertex, edge_labels, deadline, outgoing=True)

    def traverse_in(
        self,
        vertex: RawVertex,
        edge_labels: Iterable[str] | None,
        deadline: Deadline | None = None,
    ) -> list[RawEdge]:
        return self._hop(vertex, edge_labels, deadline, outgoing=False)
