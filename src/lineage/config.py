"""Lineage engine configuration."""

from pydantic import Field

from src.lineage.constants import DEFAULT_PROPERTY_ALLOW_LIST, DEFAULT_VIEWS
from src.shared.config import BaseLineageSettings


class LineageSettings(BaseLineageSettings):
    """Settings specific to the lineage query engine."""

    max_traversal_depth: int = Field(default=1000, ge=1)
    query_timeout_seconds: float | None = None
    views: dict[str, list[str]] = Field(
        default_factory=lambda: {name: list(labels) for name, labels in DEFAULT_VIEWS.items()}
    )
    property_allow_list: list[str] = Field(default_factory=lambda: list(DEFAULT_PROPERTY_ALLOW_LIST))
    property_strip_prefixes: list[str] = Field(default_factory=lambda: ["veprop", "ve"])
    bridge_processes: bool = False
    context_properties: bool = True

    class Config(BaseLineageSettings.Config):
        env_prefix = "LINEAGE_"
