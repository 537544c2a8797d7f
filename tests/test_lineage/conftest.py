"""
Shared fixtures for the lineage engine tests.

Every graph is built in an InMemoryGraphStore; vertices use their GUID
as both stable id and (unless noted) display name so expectations stay
readable.
"""

import pytest

from src.lineage.config import LineageSettings
from src.lineage.constants import (
    EDGE_LABEL_COLUMN_DATA_FLOW,
    EDGE_LABEL_LINEAGE_MAPPING,
    EDGE_LABEL_TABLE_DATA_FLOW,
    RELATIONAL_COLUMN,
    RELATIONAL_TABLE,
)
from src.lineage.engine import LineageQueryEngine
from src.lineage.memory_store import InMemoryGraphStore

TABLE_FLOW = EDGE_LABEL_TABLE_DATA_FLOW


@pytest.fixture
def settings() -> LineageSettings:
    return LineageSettings(max_traversal_depth=50)


@pytest.fixture
def chain_store() -> InMemoryGraphStore:
    """A -> P -> C, with P a process."""
    store = InMemoryGraphStore()
    store.add_entity(RELATIONAL_TABLE, "A", "orders_raw")
    store.add_entity("Process", "P", "etl_orders")
    store.add_entity(RELATIONAL_TABLE, "C", "orders_clean")
    store.add_edge(TABLE_FLOW, "A", "P")
    store.add_edge(TABLE_FLOW, "P", "C")
    return store


@pytest.fixture
def two_roots_store() -> InMemoryGraphStore:
    """A1 -> P -> C <- A2, plus C -> D -> E1 and D -> E2."""
    store = InMemoryGraphStore()
    for guid in ("A1", "A2", "C", "D", "E1", "E2"):
        store.add_entity(RELATIONAL_TABLE, guid, f"table_{guid}")
    store.add_entity("Process", "P", "job_P")
    store.add_edge(TABLE_FLOW, "A1", "P")
    store.add_edge(TABLE_FLOW, "P", "C")
    store.add_edge(TABLE_FLOW, "A2", "C")
    store.add_edge(TABLE_FLOW, "C", "D")
    store.add_edge(TABLE_FLOW, "D", "E1")
    store.add_edge(TABLE_FLOW, "D", "E2")
    return store


@pytest.fixture
def cyclic_store() -> InMemoryGraphStore:
    """X <-> Y feeding Z; R feeds W which sits on its own loop W <-> V."""
    store = InMemoryGraphStore()
    for guid in ("X", "Y", "Z", "R", "W", "V"):
        store.add_entity(RELATIONAL_TABLE, guid, guid)
    store.add_edge(TABLE_FLOW, "X", "Y")
    store.add_edge(TABLE_FLOW, "Y", "X")
    store.add_edge(TABLE_FLOW, "Y", "Z")
    store.add_edge(TABLE_FLOW, "R", "W")
    store.add_edge(TABLE_FLOW, "W", "V")
    store.add_edge(TABLE_FLOW, "V", "W")
    return store


@pytest.fixture
def mapped_store() -> InMemoryGraphStore:
    """Tables with both LineageMapping and TableDataFlow edges, and a column chain."""
    store = InMemoryGraphStore()
    for guid in ("M1", "M2", "T"):
        store.add_entity(RELATIONAL_TABLE, guid, guid)
    store.add_edge(EDGE_LABEL_LINEAGE_MAPPING, "M1", "T")
    store.add_edge(TABLE_FLOW, "M2", "T")
    for guid in ("col1", "col2", "col3"):
        store.add_entity(RELATIONAL_COLUMN, guid, guid)
    store.add_edge(EDGE_LABEL_COLUMN_DATA_FLOW, "col1", "col2")
    store.add_edge(EDGE_LABEL_COLUMN_DATA_FLOW, "col2", "col3")
    store.add_entity("Host", "H", "host")
    return store


@pytest.fixture
def engine_for(settings):
    def _build(store: InMemoryGraphStore, **overrides) -> LineageQueryEngine:
        merged = settings.model_copy(update=overrides) if overrides else settings
        return LineageQueryEngine(store, merged)
    return _build
