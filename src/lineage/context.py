"""
Context Properties

Adds neighbourhood context to the vertices of a lineage result: the table,
schema, database and connection a column belongs to, the folder path of a
data file, the project of a process, the glossary of a term. Context is
found with short lookup hops over edges of any label around each returned
vertex. It never changes which vertices or edges a result holds.

Vertices with an inbound Classification edge expose every stored property
instead of the allow-listed subset.
"""

import logging
from dataclasses import replace
from typing import Callable, Collection

from src.lineage.abstraction import PropertyAllowList
from src.lineage.constants import (
    COLLECTION,
    CONNECTION,
    CONTEXT_KEY_CONNECTION,
    CONTEXT_KEY_DATABASE,
    CONTEXT_KEY_EVENT_TYPE,
    CONTEXT_KEY_EVENT_TYPE_LIST,
    CONTEXT_KEY_FILE_FOLDER,
    CONTEXT_KEY_GLOSSARY,
    CONTEXT_KEY_SCHEMA_TYPE,
    CONTEXT_KEY_TABLE,
    CONTEXT_KEY_TOPIC,
    CONTEXT_KEY_TRANSFORMATION_PROJECT,
    DATA_FILE_KINDS,
    DATABASE,
    EDGE_LABEL_CLASSIFICATION,
    EDGE_LABEL_FOLDER_HIERARCHY,
    EVENT_SCHEMA_ATTRIBUTE,
    EVENT_TYPE,
    EVENT_TYPE_LIST,
    FILE_FOLDER,
    NODE_LABEL_GLOSSARY,
    NODE_LABEL_GLOSSARY_CATEGORY,
    NODE_LABEL_GLOSSARY_TERM,
    PROCESS_KINDS,
    PROPERTY_KEY_ADDITIONAL_PROPERTIES,
    PROPERTY_KEY_DISPLAY_NAME,
    PROPERTY_KEY_INSTANCEPROP_DISPLAY_NAME,
    PROPERTY_KEY_QUALIFIED_NAME,
    RELATIONAL_COLUMN,
    RELATIONAL_DB_SCHEMA_TYPE,
    RELATIONAL_TABLE,
    TABULAR_COLUMN,
    TABULAR_FILE_COLUMN,
    TABULAR_SCHEMA_TYPE,
    TOPIC,
)
from src.lineage.deadline import Deadline
from src.lineage.graph_store import Direction, GraphStore, RawVertex
from src.lineage.models import LineageVertex, LineageVerticesAndEdges

logger = logging.getLogger("lineage.context")

_CONTEXT_NAME_KEYS = (
    PROPERTY_KEY_INSTANCEPROP_DISPLAY_NAME,
    PROPERTY_KEY_DISPLAY_NAME,
    PROPERTY_KEY_QUALIFIED_NAME,
)

ContextRule = Callable[[RawVertex, Deadline | None], dict[str, str]]


def context_name(raw: RawVertex) -> str | None:
    """Name a context neighbour is shown by: display name, else qualified name."""
    for key in _CONTEXT_NAME_KEYS:
        value = raw.get(key)
        if value is not None:
            return str(value)
    return None


def _path_from_additional_properties(raw: RawVertex) -> str | None:
    additional = raw.get(PROPERTY_KEY_ADDITIONAL_PROPERTIES)
    if not additional:
        return None
    for item in str(additional).split(","):
        key, sep, value = item.strip().partition(":")
        if sep and key.strip() == "path" and value.strip():
            return value.strip()
    return None


class ContextEnricher:
    """Looks up and attaches the context properties of lineage vertices."""

    def __init__(self, store: GraphStore, allow_list: PropertyAllowList | None = None):
        self._store = store
        self._allow_list = allow_list or PropertyAllowList()
        self._rules: dict[str, ContextRule] = {
            RELATIONAL_COLUMN: self._relational_column,
            TABULAR_COLUMN: self._tabular_column,
            TABULAR_FILE_COLUMN: self._tabular_column,
            EVENT_SCHEMA_ATTRIBUTE: self._event_schema_attribute,
            RELATIONAL_TABLE: self._relational_table,
            TOPIC: self._topic,
            NODE_LABEL_GLOSSARY_TERM: self._glossary_entry,
            NODE_LABEL_GLOSSARY_CATEGORY: self._glossary_entry,
        }
        for kind in DATA_FILE_KINDS:
            self._rules[kind] = self._data_file
        for kind in PROCESS_KINDS:
            self._rules[kind] = self._process

    # ─── Result level ─────────────────────────────────────

    def enrich(
        self,
        result: LineageVerticesAndEdges,
        deadline: Deadline | None = None,
    ) -> LineageVerticesAndEdges:
        """A copy of ``result`` whose vertices carry their context properties."""
        vertices = [self.enrich_vertex(vertex, deadline) for vertex in result.vertices]
        return LineageVerticesAndEdges.of(vertices, result.edges)

    def enrich_vertex(self, vertex: LineageVertex, deadline: Deadline | None = None) -> LineageVertex:
        if vertex.is_condensed or vertex.entity_guid is None:
            return vertex
        raw = self._store.get_vertex(vertex.entity_guid, deadline)
        if raw is None:
            logger.debug("No stored vertex for %s; context skipped", vertex.node_id)
            return vertex

        properties = dict(vertex.properties)
        if self._store.traverse_in(raw, [EDGE_LABEL_CLASSIFICATION], deadline):
            properties.update(self._allow_list.expand_all(raw.properties))
        properties.update(self.context(raw, deadline))
        return replace(vertex, properties=properties)

    def context(self, raw: RawVertex, deadline: Deadline | None = None) -> dict[str, str]:
        """Context properties of one stored vertex; empty for kinds without context."""
        rule = self._rules.get(raw.label)
        return rule(raw, deadline) if rule else {}

    # ─── Lookup hops ──────────────────────────────────────

    def nearest(
        self,
        start: RawVertex,
        kinds: Collection[str],
        max_hops: int,
        deadline: Deadline | None = None,
    ) -> RawVertex | None:
        """Closest vertex of one of ``kinds`` within ``max_hops`` hops, ignoring edge direction."""
        seen = {start.vertex_id}
        layer = [start]
        for _ in range(max_hops):
            next_layer: list[RawVertex] = []
            for vertex in layer:
                for edge in self._store.traverse(vertex, Direction.BOTH, None, deadline):
                    other = edge.in_vertex if edge.out_vertex.vertex_id == vertex.vertex_id else edge.out_vertex
                    if other.vertex_id in seen:
                        continue
                    if other.label in kinds:
                        return other
                    seen.add(other.vertex_id)
                    next_layer.append(other)
            layer = next_layer
        return None

    def _put_name(
        self,
        properties: dict[str, str],
        key: str,
        start: RawVertex,
        kinds: Collection[str],
        max_hops: int,
        deadline: Deadline | None,
    ) -> RawVertex | None:
        found = self.nearest(start, kinds, max_hops, deadline)
        name = context_name(found) if found is not None else None
        if name is not None:
            properties[key] = name
        return found

    # ─── Rules per vertex kind ────────────────────────────

    def _relational_column(self, raw: RawVertex, deadline: Deadline | None) -> dict[str, str]:
        properties: dict[str, str] = {}
        table = self._put_name(properties, CONTEXT_KEY_TABLE, raw, {RELATIONAL_TABLE}, 1, deadline)
        if table is not None:
            properties.update(self._relational_table(table, deadline))
        return properties

    def _relational_table(self, raw: RawVertex, deadline: Deadline | None) -> dict[str, str]:
        properties: dict[str, str] = {}
        self._put_name(properties, CONTEXT_KEY_SCHEMA_TYPE, raw, {RELATIONAL_DB_SCHEMA_TYPE}, 1, deadline)
        self._put_name(properties, CONTEXT_KEY_DATABASE, raw, {DATABASE}, 3, deadline)
        self._put_name(properties, CONTEXT_KEY_CONNECTION, raw, {CONNECTION}, 4, deadline)
        return properties

    def _tabular_column(self, raw: RawVertex, deadline: Deadline | None) -> dict[str, str]:
        properties: dict[str, str] = {}
        self._put_name(properties, CONTEXT_KEY_SCHEMA_TYPE, raw, {TABULAR_SCHEMA_TYPE}, 1, deadline)
        data_file = self.nearest(raw, DATA_FILE_KINDS, 2, deadline)
        if data_file is not None:
            properties.update(self._data_file(data_file, deadline))
        return properties

    def _data_file(self, raw: RawVertex, deadline: Deadline | None) -> dict[str, str]:
        properties: dict[str, str] = {}
        folders = self._folders(raw, deadline)
        if folders:
            names = [context_name(folder) or "" for folder in reversed(folders)]
            properties[CONTEXT_KEY_FILE_FOLDER] = "/".join(names)
            # The connection hangs off the file or, failing that, the root folder
            if self._put_name(properties, CONTEXT_KEY_CONNECTION, raw, {CONNECTION}, 1, deadline) is None:
                self._put_name(properties, CONTEXT_KEY_CONNECTION, folders[-1], {CONNECTION}, 1, deadline)
            return properties

        path = _path_from_additional_properties(raw)
        if path is not None:
            properties[CONTEXT_KEY_FILE_FOLDER] = "/" + path
        return properties

    def _folders(self, raw: RawVertex, deadline: Deadline | None) -> list[RawVertex]:
        """Folders holding a data file, innermost first, up to the root folder."""
        folders: list[RawVertex] = []
        seen = set()
        folder = self.nearest(raw, {FILE_FOLDER}, 1, deadline)
        while folder is not None and folder.vertex_id not in seen:
            seen.add(folder.vertex_id)
            folders.append(folder)
            parents = self._store.traverse_in(folder, [EDGE_LABEL_FOLDER_HIERARCHY], deadline)
            folder = parents[0].out_vertex if parents else None
        return folders

    def _event_schema_attribute(self, raw: RawVertex, deadline: Deadline | None) -> dict[str, str]:
        properties: dict[str, str] = {}
        self._put_name(properties, CONTEXT_KEY_EVENT_TYPE, raw, {EVENT_TYPE}, 1, deadline)
        self._put_name(properties, CONTEXT_KEY_EVENT_TYPE_LIST, raw, {EVENT_TYPE_LIST}, 2, deadline)
        self._put_name(properties, CONTEXT_KEY_TOPIC, raw, {TOPIC}, 3, deadline)
        return properties

    def _topic(self, raw: RawVertex, deadline: Deadline | None) -> dict[str, str]:
        properties: dict[str, str] = {}
        self._put_name(properties, CONTEXT_KEY_EVENT_TYPE_LIST, raw, {EVENT_TYPE_LIST}, 1, deadline)
        return properties

    def _process(self, raw: RawVertex, deadline: Deadline | None) -> dict[str, str]:
        properties: dict[str, str] = {}
        self._put_name(properties, CONTEXT_KEY_TRANSFORMATION_PROJECT, raw, {COLLECTION}, 1, deadline)
        return properties

    def _glossary_entry(self, raw: RawVertex, deadline: Deadline | None) -> dict[str, str]:
        properties: dict[str, str] = {}
        self._put_name(properties, CONTEXT_KEY_GLOSSARY, raw, {NODE_LABEL_GLOSSARY}, 1, deadline)
        return properties
