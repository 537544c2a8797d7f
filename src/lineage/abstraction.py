"""
Vertex/Edge Abstraction

Maps raw stored graph elements to the lineage-facing representation.
Only properties on a static allow-list are exposed, with the internal
storage prefixes removed from their keys.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from src.lineage.config import LineageSettings
from src.lineage.constants import (
    DEFAULT_PROPERTY_ALLOW_LIST,
    EMBEDDED_PROPERTIES,
    NODE_LABEL_SUB_PROCESS,
    PROPERTY_KEY_DISPLAY_NAME,
    PROPERTY_KEY_ENTITY_GUID,
    PROPERTY_KEY_INSTANCEPROP_DISPLAY_NAME,
    PROPERTY_KEY_PREFIX_ELEMENT,
    PROPERTY_KEY_PREFIX_VERTEX_INSTANCE_PROPERTY,
    PROPERTY_KEY_PROCESS_GUID,
)
from src.lineage.graph_store import RawEdge, RawVertex
from src.lineage.models import LineageEdge, LineageVertex

logger = logging.getLogger("lineage.abstraction")

_DISPLAY_NAME_KEYS = (PROPERTY_KEY_DISPLAY_NAME, PROPERTY_KEY_INSTANCEPROP_DISPLAY_NAME)


@dataclass(frozen=True)
class PropertyAllowList:
    """Which stored property keys may leave the engine, and how they are renamed."""

    keys: frozenset[str] = frozenset(DEFAULT_PROPERTY_ALLOW_LIST)
    strip_prefixes: tuple[str, ...] = (
        PROPERTY_KEY_PREFIX_VERTEX_INSTANCE_PROPERTY,
        PROPERTY_KEY_PREFIX_ELEMENT,
    )

    @classmethod
    def from_settings(cls, settings: LineageSettings) -> "PropertyAllowList":
        # Longest prefix first so "veprop" wins over "ve"
        prefixes = tuple(sorted(settings.property_strip_prefixes, key=len, reverse=True))
        return cls(frozenset(settings.property_allow_list), prefixes)

    def public_key(self, key: str) -> str:
        """Strip the first matching storage prefix from ``key``."""
        for prefix in self.strip_prefixes:
            if key.startswith(prefix) and len(key) > len(prefix):
                return key[len(prefix):]
        return key

    def apply(self, properties: Mapping[str, Any]) -> dict[str, str]:
        """Allowed properties only, with public keys and string values."""
        return {
            self.public_key(key): str(value)
            for key, value in properties.items()
            if key in self.keys and value is not None
        }

    def expand_all(self, properties: Mapping[str, Any]) -> dict[str, str]:
        """Every property with public keys; embedded ``k: v, k: v`` maps are flattened."""
        expanded: dict[str, str] = {}
        for key, value in properties.items():
            if value is None:
                continue
            public = self.public_key(key)
            if public in EMBEDDED_PROPERTIES:
                expanded.update(_split_embedded(str(value)))
            else:
                expanded[public] = str(value)
        return expanded


def _split_embedded(value: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for item in value.split(", "):
        if not item.strip():
            continue
        key, sep, val = item.partition(": ")
        if not sep:
            logger.debug("Skipping malformed embedded property %r", item)
            continue
        pairs[key.strip()] = val
    return pairs


class VertexMapper:
    """Turns raw graph elements into LineageVertex / LineageEdge values."""

    def __init__(self, allow_list: PropertyAllowList | None = None):
        self._allow_list = allow_list or PropertyAllowList()

    @property
    def allow_list(self) -> PropertyAllowList:
        return self._allow_list

    @staticmethod
    def node_id(raw: RawVertex) -> str:
        """Stable identifier of a raw vertex.

        Sub-processes share the GUID of their owning process definition, so
        they are identified by the process GUID property instead.
        """
        if raw.label == NODE_LABEL_SUB_PROCESS and raw.get(PROPERTY_KEY_PROCESS_GUID) is not None:
            return str(raw.get(PROPERTY_KEY_PROCESS_GUID))
        guid = raw.get(PROPERTY_KEY_ENTITY_GUID)
        return str(guid) if guid is not None else str(raw.vertex_id)

    @staticmethod
    def display_name(raw: RawVertex) -> str | None:
        for key in _DISPLAY_NAME_KEYS:
            value = raw.get(key)
            if value is not None:
                return str(value)
        return None

    def vertex(self, raw: RawVertex) -> LineageVertex:
        guid = raw.get(PROPERTY_KEY_ENTITY_GUID)
        return LineageVertex(
            node_id=self.node_id(raw),
            kind=raw.label,
            display_name=self.display_name(raw),
            entity_guid=str(guid) if guid is not None else None,
            properties=self._allow_list.apply(raw.properties),
        )

    def edge(self, raw: RawEdge) -> LineageEdge:
        return LineageEdge(raw.label, self.node_id(raw.out_vertex), self.node_id(raw.in_vertex))

    def vertices(self, raws: Iterable[RawVertex]) -> set[LineageVertex]:
        return {self.vertex(raw) for raw in raws}

    def edges(self, raws: Iterable[RawEdge]) -> set[LineageEdge]:
        return {self.edge(raw) for raw in raws}

    def details(self, raw: RawVertex) -> LineageVertex:
        """Like vertex(), but exposing every stored property."""
        vertex = self.vertex(raw)
        vertex.properties = self._allow_list.expand_all(raw.properties)
        return vertex
