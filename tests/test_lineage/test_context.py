"""
Unit tests for context properties: the neighbourhood lookups that attach
table, schema, database, connection, folder, project and glossary names
to lineage vertices, and full property exposure for classification vertices.

Run with: pytest tests/test_lineage/test_context.py -v
"""

import pytest

from src.lineage.abstraction import PropertyAllowList
from src.lineage.constants import (
    COLLECTION,
    CONNECTION,
    DATABASE,
    EDGE_LABEL_ASSET_SCHEMA_TYPE,
    EDGE_LABEL_ATTRIBUTE_FOR_SCHEMA,
    EDGE_LABEL_CLASSIFICATION,
    EDGE_LABEL_COLUMN_DATA_FLOW,
    EDGE_LABEL_FOLDER_HIERARCHY,
    EDGE_LABEL_NESTED_SCHEMA_ATTRIBUTE,
    EVENT_SCHEMA_ATTRIBUTE,
    EVENT_TYPE,
    EVENT_TYPE_LIST,
    FILE_FOLDER,
    NODE_LABEL_GLOSSARY,
    NODE_LABEL_GLOSSARY_TERM,
    RELATIONAL_COLUMN,
    RELATIONAL_DB_SCHEMA_TYPE,
    RELATIONAL_TABLE,
    TABULAR_COLUMN,
    TABULAR_SCHEMA_TYPE,
    TOPIC,
)
from src.lineage.context import ContextEnricher, context_name
from src.lineage.deadline import Deadline
from src.lineage.memory_store import InMemoryGraphStore
from src.lineage.models import CondensationSide, LineageQuery, LineageVertex, Scope
from src.shared.exceptions import TraversalTimeoutError


@pytest.fixture
def context_store() -> InMemoryGraphStore:
    """
    A relational table T with columns c1 -> c2 inside schema, database and
    connection; a CSV file in folder data/landing with a tabular column; an
    event topic; a process in a project; a glossary term; a classified column.
    """
    store = InMemoryGraphStore()

    # Relational: conn - db - dds - rst - T - c1/c2
    store.add_entity(CONNECTION, "conn", vepropqualifiedName="jdbc:postgresql://sales")
    store.add_entity(DATABASE, "db", "db_display", vepropdisplayName="sales_db")
    store.add_entity("DeployedDatabaseSchema", "dds", "sales")
    store.add_entity(RELATIONAL_DB_SCHEMA_TYPE, "rst", "public")
    store.add_entity(RELATIONAL_TABLE, "T", "orders", vepropqualifiedName="sales.public.orders")
    store.add_entity(RELATIONAL_COLUMN, "c1", "order_id", vepropqualifiedName="sales.public.orders.order_id")
    store.add_entity(RELATIONAL_COLUMN, "c2", "order_ref")
    store.add_edge("ConnectionToAsset", "conn", "db")
    store.add_edge("DataContentForDataSet", "db", "dds")
    store.add_edge(EDGE_LABEL_ASSET_SCHEMA_TYPE, "dds", "rst")
    store.add_edge(EDGE_LABEL_ATTRIBUTE_FOR_SCHEMA, "rst", "T")
    store.add_edge(EDGE_LABEL_NESTED_SCHEMA_ATTRIBUTE, "T", "c1")
    store.add_edge(EDGE_LABEL_NESTED_SCHEMA_ATTRIBUTE, "T", "c2")
    store.add_edge(EDGE_LABEL_COLUMN_DATA_FLOW, "c1", "c2")

    # Files: data -> landing -> payments.csv, connection on the root folder
    store.add_entity(FILE_FOLDER, "data", "data")
    store.add_entity(FILE_FOLDER, "landing", "landing")
    store.add_entity(CONNECTION, "fconn", "sftp")
    store.add_entity("CSVFile", "f", "payments.csv")
    store.add_entity(TABULAR_SCHEMA_TYPE, "tst", "payments_schema")
    store.add_entity(TABULAR_COLUMN, "tc", "amount")
    store.add_edge(EDGE_LABEL_FOLDER_HIERARCHY, "data", "landing")
    store.add_edge("NestedFile", "landing", "f")
    store.add_edge("ConnectionToAsset", "fconn", "data")
    store.add_edge(EDGE_LABEL_ASSET_SCHEMA_TYPE, "f", "tst")
    store.add_edge(EDGE_LABEL_ATTRIBUTE_FOR_SCHEMA, "tst", "tc")
    store.add_entity("CSVFile", "g", "loose.csv", vepropadditionalProperties="owner: ops, path: mnt/raw/loose.csv")

    # Events: topic - event type list - event type - attribute
    store.add_entity(TOPIC, "topic", "orders-topic")
    store.add_entity(EVENT_TYPE_LIST, "etl", "orders-events")
    store.add_entity(EVENT_TYPE, "et", "OrderPlaced")
    store.add_entity(EVENT_SCHEMA_ATTRIBUTE, "esa", "placedAt")
    store.add_edge(EDGE_LABEL_ASSET_SCHEMA_TYPE, "topic", "etl")
    store.add_edge("SchemaTypeOption", "etl", "et")
    store.add_edge(EDGE_LABEL_ATTRIBUTE_FOR_SCHEMA, "et", "esa")

    # Process in a project, term in a glossary
    store.add_entity(COLLECTION, "proj", "nightly")
    store.add_entity("Process", "P", "load_orders")
    store.add_edge("CollectionMembership", "proj", "P")
    store.add_entity(NODE_LABEL_GLOSSARY, "gl", vepropdisplayName="Finance")
    store.add_entity(NODE_LABEL_GLOSSARY_TERM, "gt", "revenue")
    store.add_edge("TermAnchor", "gl", "gt")

    # Classified column
    store.add_entity(RELATIONAL_COLUMN, "pii", "email")
    store.add_entity(
        "Confidentiality", "cls", "Confidential",
        vepropconfidentialityLevel=3, veclassificationName="Confidentiality",
    )
    store.add_edge(EDGE_LABEL_CLASSIFICATION, "pii", "cls")
    return store


@pytest.fixture
def enricher(context_store) -> ContextEnricher:
    return ContextEnricher(context_store, PropertyAllowList())


def _context(enricher, store, guid):
    return enricher.context(store.get_vertex(guid))


# ──────────────────────────────────────────────────
# Lookups
# ──────────────────────────────────────────────────


class TestNearest:

    def test_finds_within_hops(self, enricher, context_store):
        found = enricher.nearest(context_store.get_vertex("T"), {DATABASE}, 3)
        assert found.get("veguid") == "db"

    def test_respects_hop_bound(self, enricher, context_store):
        assert enricher.nearest(context_store.get_vertex("T"), {DATABASE}, 2) is None

    def test_ignores_start_vertex(self, enricher, context_store):
        found = enricher.nearest(context_store.get_vertex("c1"), {RELATIONAL_COLUMN}, 2)
        assert found.get("veguid") == "c2"

    def test_deadline_checked(self, enricher, context_store):
        with pytest.raises(TraversalTimeoutError):
            enricher.nearest(context_store.get_vertex("T"), {DATABASE}, 3, Deadline.after(0))


class TestContextName:

    def test_instance_display_name_first(self, context_store):
        assert context_name(context_store.get_vertex("db")) == "sales_db"

    def test_qualified_name_fallback(self, context_store):
        assert context_name(context_store.get_vertex("conn")) == "jdbc:postgresql://sales"


# ──────────────────────────────────────────────────
# Rules per kind
# ──────────────────────────────────────────────────


class TestContextRules:

    def test_relational_column(self, enricher, context_store):
        assert _context(enricher, context_store, "c1") == {
            "tableDisplayName": "orders",
            "schemaDisplayName": "public",
            "databaseDisplayName": "sales_db",
            "connectionDisplayName": "jdbc:postgresql://sales",
        }

    def test_relational_table(self, enricher, context_store):
        assert _context(enricher, context_store, "T") == {
            "schemaDisplayName": "public",
            "databaseDisplayName": "sales_db",
            "connectionDisplayName": "jdbc:postgresql://sales",
        }

    def test_data_file_folder_path_and_root_connection(self, enricher, context_store):
        assert _context(enricher, context_store, "f") == {
            "fileFolder": "data/landing",
            "connectionDisplayName": "sftp",
        }

    def test_data_file_path_from_additional_properties(self, enricher, context_store):
        assert _context(enricher, context_store, "g") == {"fileFolder": "/mnt/raw/loose.csv"}

    def test_tabular_column_takes_file_context(self, enricher, context_store):
        assert _context(enricher, context_store, "tc") == {
            "schemaDisplayName": "payments_schema",
            "fileFolder": "data/landing",
            "connectionDisplayName": "sftp",
        }

    def test_event_schema_attribute(self, enricher, context_store):
        assert _context(enricher, context_store, "esa") == {
            "eventTypeDisplayName": "OrderPlaced",
            "eventTypeListDisplayName": "orders-events",
            "topicDisplayName": "orders-topic",
        }

    def test_topic(self, enricher, context_store):
        assert _context(enricher, context_store, "topic") == {"eventTypeListDisplayName": "orders-events"}

    def test_process(self, enricher, context_store):
        assert _context(enricher, context_store, "P") == {"transformationProjectDisplayName": "nightly"}

    def test_glossary_term(self, enricher, context_store):
        assert _context(enricher, context_store, "gt") == {"glossaryDisplayName": "Finance"}

    def test_kind_without_context(self, enricher, context_store):
        assert _context(enricher, context_store, "rst") == {}

    def test_column_without_table(self):
        store = InMemoryGraphStore()
        store.add_entity(RELATIONAL_COLUMN, "lonely", "lonely")
        assert ContextEnricher(store).context(store.get_vertex("lonely")) == {}


# ──────────────────────────────────────────────────
# Vertex enrichment
# ──────────────────────────────────────────────────


class TestEnrichVertex:

    def test_merges_with_allow_listed_properties(self, enricher):
        vertex = LineageVertex(
            "c1", RELATIONAL_COLUMN, "order_id", "c1",
            {"qualifiedName": "sales.public.orders.order_id"},
        )
        enriched = enricher.enrich_vertex(vertex)
        assert enriched.properties["qualifiedName"] == "sales.public.orders.order_id"
        assert enriched.properties["tableDisplayName"] == "orders"
        assert vertex.properties == {"qualifiedName": "sales.public.orders.order_id"}

    def test_condensed_untouched(self, enricher):
        condensed = LineageVertex.condensed(CondensationSide.SOURCE)
        assert enricher.enrich_vertex(condensed) is condensed

    def test_unknown_guid_untouched(self, enricher):
        vertex = LineageVertex("ghost", RELATIONAL_COLUMN, entity_guid="ghost")
        assert enricher.enrich_vertex(vertex) is vertex

    def test_classification_vertex_exposes_everything(self, enricher):
        vertex = LineageVertex("cls", "Confidentiality", "Confidential", "cls")
        enriched = enricher.enrich_vertex(vertex)
        assert enriched.properties == {
            "guid": "cls",
            "displayName": "Confidential",
            "confidentialityLevel": "3",
            "classificationName": "Confidentiality",
        }

    def test_classified_element_stays_allow_listed(self, enricher):
        vertex = LineageVertex("pii", RELATIONAL_COLUMN, "email", "pii")
        assert enricher.enrich_vertex(vertex).properties == {}


# ──────────────────────────────────────────────────
# Through the engine
# ──────────────────────────────────────────────────


class TestEngineContext:

    def test_ultimate_source_carries_table_context(self, engine_for, context_store):
        result = engine_for(context_store).query(
            LineageQuery(scope=Scope.ULTIMATE_SOURCE, starting_node_id="c2")
        )
        assert result.node_ids == {"c2", "condensedSource", "c1"}
        source = result.vertex("c1")
        assert source.properties["tableDisplayName"] == "orders"
        assert source.properties["databaseDisplayName"] == "sales_db"
        assert source.properties["qualifiedName"] == "sales.public.orders.order_id"
        assert result.vertex("c2").properties["tableDisplayName"] == "orders"
        assert result.vertex("condensedSource").properties == {}

    def test_vertical_classification(self, engine_for, context_store):
        result = engine_for(context_store).query(
            LineageQuery(scope=Scope.VERTICAL, starting_node_id="pii")
        )
        assert result.vertex("cls").properties["confidentialityLevel"] == "3"

    def test_can_be_switched_off(self, engine_for, context_store):
        engine = engine_for(context_store, context_properties=False)
        result = engine.query(LineageQuery(scope=Scope.ULTIMATE_SOURCE, starting_node_id="c2"))
        assert "tableDisplayName" not in result.vertex("c1").properties
