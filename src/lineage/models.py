"""
Lineage Data Model

Lineage-facing representation of graph elements and the query result.
Vertices are identified by ``node_id`` and edges by their
``(label, source_node_id, destination_node_id)`` triple, so that the same
element reached over different paths is only ever counted once.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel, Field

from src.lineage.constants import (
    CONDENSED_DESTINATION_NODE_ID,
    CONDENSED_NODE_DISPLAY_NAME,
    CONDENSED_SOURCE_NODE_ID,
    NODE_LABEL_CONDENSED,
    VIEW_AUTO,
)


class Scope(str, Enum):
    """The kind of lineage question being asked."""

    ULTIMATE_SOURCE = "ULTIMATE_SOURCE"
    ULTIMATE_DESTINATION = "ULTIMATE_DESTINATION"
    END_TO_END = "END_TO_END"
    SOURCE_AND_DESTINATION = "SOURCE_AND_DESTINATION"
    GLOSSARY = "GLOSSARY"
    VERTICAL = "VERTICAL"


class CondensationSide(str, Enum):
    """Which side of the queried vertex a condensed node stands for."""

    SOURCE = "source"
    DESTINATION = "destination"

    @property
    def node_id(self) -> str:
        if self is CondensationSide.SOURCE:
            return CONDENSED_SOURCE_NODE_ID
        return CONDENSED_DESTINATION_NODE_ID


@dataclass(eq=False)
class LineageVertex:
    """A node of a lineage response. Equality and hashing use ``node_id`` only."""

    node_id: str
    kind: str
    display_name: str | None = None
    entity_guid: str | None = None
    properties: dict[str, str] = field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LineageVertex):
            return NotImplemented
        return self.node_id == other.node_id

    def __hash__(self) -> int:
        return hash(self.node_id)

    @classmethod
    def condensed(cls, side: CondensationSide) -> "LineageVertex":
        """Build the synthetic vertex standing in for a collapsed chain."""
        return cls(
            node_id=side.node_id,
            kind=NODE_LABEL_CONDENSED,
            display_name=CONDENSED_NODE_DISPLAY_NAME,
        )

    @property
    def is_condensed(self) -> bool:
        return self.node_id in (CONDENSED_SOURCE_NODE_ID, CONDENSED_DESTINATION_NODE_ID)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodeID": self.node_id,
            "kind": self.kind,
            "displayName": self.display_name,
            "entityGUID": self.entity_guid,
            "properties": dict(sorted(self.properties.items())),
        }


@dataclass(frozen=True)
class LineageEdge:
    """A directed, labelled connection between two lineage vertices."""

    label: str
    source_node_id: str
    destination_node_id: str

    def touches(self, node_ids: set[str] | frozenset[str]) -> bool:
        """True when either endpoint is among ``node_ids``."""
        return self.source_node_id in node_ids or self.destination_node_id in node_ids

    def to_dict(self) -> dict[str, str]:
        return {
            "label": self.label,
            "sourceNodeID": self.source_node_id,
            "destinationNodeID": self.destination_node_id,
        }


@dataclass(frozen=True)
class LineageVerticesAndEdges:
    """
    The result of one lineage query.

    Both collections are immutable sets; every step of a query returns a
    new instance instead of mutating a shared one.
    """

    vertices: frozenset[LineageVertex] = frozenset()
    edges: frozenset[LineageEdge] = frozenset()

    @classmethod
    def of(
        cls,
        vertices: Iterable[LineageVertex] = (),
        edges: Iterable[LineageEdge] = (),
    ) -> "LineageVerticesAndEdges":
        return cls(frozenset(vertices), frozenset(edges))

    @property
    def node_ids(self) -> frozenset[str]:
        return frozenset(v.node_id for v in self.vertices)

    def vertex(self, node_id: str) -> LineageVertex | None:
        """Return the vertex with ``node_id``, or None."""
        for v in self.vertices:
            if v.node_id == node_id:
                return v
        return None

    def dangling_edges(self) -> frozenset[LineageEdge]:
        """Edges with at least one endpoint missing from the vertex set."""
        ids = self.node_ids
        return frozenset(
            e for e in self.edges
            if e.source_node_id not in ids or e.destination_node_id not in ids
        )

    def is_empty(self) -> bool:
        return not self.vertices and not self.edges

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping, sorted by identity so output is stable."""
        return {
            "vertices": [v.to_dict() for v in sorted(self.vertices, key=lambda v: v.node_id)],
            "edges": [
                e.to_dict()
                for e in sorted(
                    self.edges,
                    key=lambda e: (e.source_node_id, e.destination_node_id, e.label),
                )
            ],
        }


class LineageQuery(BaseModel):
    """A lineage request as received from the service layer."""

    scope: Scope = Field(description="Which lineage question to answer")
    view: str = Field(
        default=VIEW_AUTO,
        description="Named set of traversable edge labels, or 'auto' to pick by vertex kind",
    )
    starting_node_id: str = Field(min_length=1, description="Stable identifier of the queried vertex")
    display_name_must_contain: str = Field(
        default="",
        description="Literal, case-sensitive substring every returned vertex's display name must contain",
    )
    include_processes: bool = Field(
        default=True,
        description="Keep process and sub-process vertices in the result",
    )
