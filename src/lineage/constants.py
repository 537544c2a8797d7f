"""
Graph vocabulary shared by the lineage engine.

Vertex labels, edge labels and property keys as they are stored in the
lineage graph, plus the reserved identifiers of the synthetic condensed
vertices.
"""

# ── Property keys ─────────────────────────────────────────

PROPERTY_KEY_ENTITY_GUID = "veguid"
PROPERTY_KEY_PROCESS_GUID = "vepropprocessGuid"
PROPERTY_KEY_DISPLAY_NAME = "displayName"
# Older ingestion jobs stored the display name as an instance property
PROPERTY_KEY_INSTANCEPROP_DISPLAY_NAME = "vepropdisplayName"
PROPERTY_KEY_QUALIFIED_NAME = "vepropqualifiedName"

PROPERTY_KEY_PREFIX_VERTEX_INSTANCE_PROPERTY = "veprop"
PROPERTY_KEY_PREFIX_ELEMENT = "ve"

# Stored as a single "key: value, key: value" string
EMBEDDED_PROPERTIES = ("additionalProperties", "extendedProperties")

DEFAULT_PROPERTY_ALLOW_LIST = (
    "vepropqualifiedName",
    "vepropdisplayName",
    "vepropname",
    "vepropdescription",
    "vepropsummary",
    "vepropdataType",
    "veproppath",
    "vepropformula",
    "vepropowner",
    "vepropstatus",
    "vetype",
    "vecreateTime",
    "veupdateTime",
    "vecreatedBy",
    "veupdatedBy",
    "veversion",
)

# ── Vertex labels ─────────────────────────────────────────

NODE_LABEL_PROCESS = "Process"
NODE_LABEL_SUB_PROCESS = "subProcess"
NODE_LABEL_CONDENSED = "condensed"
NODE_LABEL_GLOSSARY_TERM = "GlossaryTerm"
NODE_LABEL_GLOSSARY_CATEGORY = "GlossaryCategory"

RELATIONAL_TABLE = "RelationalTable"
RELATIONAL_COLUMN = "RelationalColumn"
TABULAR_COLUMN = "TabularColumn"
TABULAR_FILE_COLUMN = "TabularFileColumn"
EVENT_SCHEMA_ATTRIBUTE = "EventSchemaAttribute"
TOPIC = "KafkaTopic"

DATA_FILE_KINDS = frozenset({
    "DataFile", "AvroFile", "CSVFile", "JSONFile",
    "KeystoreFile", "LogFile", "MediaFile", "Document",
})

PROCESS_KINDS = frozenset({NODE_LABEL_PROCESS, NODE_LABEL_SUB_PROCESS})

COLUMN_KINDS = frozenset({
    TABULAR_COLUMN, TABULAR_FILE_COLUMN, RELATIONAL_COLUMN, EVENT_SCHEMA_ATTRIBUTE,
})

ASSET_KINDS = DATA_FILE_KINDS | {RELATIONAL_TABLE, TOPIC}

# Neighbours that only ever supply context properties
TABULAR_SCHEMA_TYPE = "TabularSchemaType"
RELATIONAL_DB_SCHEMA_TYPE = "RelationalDBSchemaType"
DATABASE = "Database"
CONNECTION = "Connection"
FILE_FOLDER = "FileFolder"
COLLECTION = "Collection"
EVENT_TYPE = "EventType"
EVENT_TYPE_LIST = "EventTypeList"
NODE_LABEL_GLOSSARY = "Glossary"

# ── Edge labels ───────────────────────────────────────────

EDGE_LABEL_CONDENSED = "condensed"
EDGE_LABEL_LINEAGE_MAPPING = "LineageMapping"
EDGE_LABEL_HOST_DATA_FLOW = "HostDataFlow"
EDGE_LABEL_TABLE_DATA_FLOW = "TableDataFlow"
EDGE_LABEL_COLUMN_DATA_FLOW = "ColumnDataFlow"

EDGE_LABEL_SEMANTIC_ASSIGNMENT = "SemanticAssignment"
EDGE_LABEL_RELATED_TERM = "RelatedTerm"
EDGE_LABEL_SYNONYM = "Synonym"
EDGE_LABEL_ANTONYM = "Antonym"
EDGE_LABEL_REPLACEMENT_TERM = "ReplacementTerm"
EDGE_LABEL_TRANSLATION = "Translation"
EDGE_LABEL_IS_A_RELATIONSHIP = "ISARelationship"
EDGE_LABEL_CLASSIFICATION = "Classification"
EDGE_LABEL_TERM_CATEGORIZATION = "TermCategorization"

EDGE_LABEL_NESTED_SCHEMA_ATTRIBUTE = "NestedSchemaAttribute"
EDGE_LABEL_ATTRIBUTE_FOR_SCHEMA = "AttributeForSchema"
EDGE_LABEL_ASSET_SCHEMA_TYPE = "AssetSchemaType"
EDGE_LABEL_FOLDER_HIERARCHY = "FolderHierarchy"

TERM_TO_TERM_EDGES = (
    EDGE_LABEL_RELATED_TERM,
    EDGE_LABEL_SYNONYM,
    EDGE_LABEL_ANTONYM,
    EDGE_LABEL_REPLACEMENT_TERM,
    EDGE_LABEL_TRANSLATION,
    EDGE_LABEL_IS_A_RELATIONSHIP,
)

GLOSSARY_VERTICAL_EDGES = (
    EDGE_LABEL_SEMANTIC_ASSIGNMENT,
    *TERM_TO_TERM_EDGES,
    EDGE_LABEL_CLASSIFICATION,
    EDGE_LABEL_TERM_CATEGORIZATION,
)
RELATIONAL_COLUMN_VERTICAL_EDGES = (
    EDGE_LABEL_NESTED_SCHEMA_ATTRIBUTE,
    EDGE_LABEL_CLASSIFICATION,
    EDGE_LABEL_SEMANTIC_ASSIGNMENT,
)
TABULAR_COLUMN_VERTICAL_EDGES = (
    EDGE_LABEL_ATTRIBUTE_FOR_SCHEMA,
    EDGE_LABEL_CLASSIFICATION,
    EDGE_LABEL_SEMANTIC_ASSIGNMENT,
)

# ── Context properties ────────────────────────────────────

PROPERTY_KEY_ADDITIONAL_PROPERTIES = "vepropadditionalProperties"

CONTEXT_KEY_TABLE = "tableDisplayName"
CONTEXT_KEY_SCHEMA_TYPE = "schemaDisplayName"
CONTEXT_KEY_DATABASE = "databaseDisplayName"
CONTEXT_KEY_CONNECTION = "connectionDisplayName"
CONTEXT_KEY_FILE_FOLDER = "fileFolder"
CONTEXT_KEY_EVENT_TYPE = "eventTypeDisplayName"
CONTEXT_KEY_EVENT_TYPE_LIST = "eventTypeListDisplayName"
CONTEXT_KEY_TOPIC = "topicDisplayName"
CONTEXT_KEY_TRANSFORMATION_PROJECT = "transformationProjectDisplayName"
CONTEXT_KEY_GLOSSARY = "glossaryDisplayName"

# ── Views ─────────────────────────────────────────────────

VIEW_AUTO = "auto"

DEFAULT_VIEWS: dict[str, list[str]] = {
    "host": [EDGE_LABEL_HOST_DATA_FLOW],
    "table": [EDGE_LABEL_TABLE_DATA_FLOW],
    "column": [EDGE_LABEL_COLUMN_DATA_FLOW],
    "lineage-mapping": [EDGE_LABEL_LINEAGE_MAPPING],
}

# ── Condensation ──────────────────────────────────────────

CONDENSED_SOURCE_NODE_ID = "condensedSource"
CONDENSED_DESTINATION_NODE_ID = "condensedDestination"
CONDENSED_NODE_DISPLAY_NAME = "Condensed"
