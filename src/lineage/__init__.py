"""Lineage graph query engine: scope resolvers, condensation and post-filters over a graph store."""

from src.lineage.deadline import Deadline
from src.lineage.engine import LineageQueryEngine
from src.lineage.graph_store import Direction, GraphStore
from src.lineage.memory_store import InMemoryGraphStore
from src.lineage.models import (
    LineageEdge,
    LineageQuery,
    LineageVertex,
    LineageVerticesAndEdges,
    Scope,
)

__all__ = [
    "Deadline",
    "Direction",
    "GraphStore",
    "InMemoryGraphStore",
    "LineageEdge",
    "LineageQuery",
    "LineageQueryEngine",
    "LineageVertex",
    "LineageVerticesAndEdges",
    "Scope",
]
