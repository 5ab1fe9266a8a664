"""Pydantic v2 data models for the plugin graph schema."""

from plugin_profiler.models.graph import (
    METADATA_KEYS,
    EdgeRecord,
    EdgeType,
    Graph,
    NodeRecord,
    NodeType,
    PluginMetadata,
)

__all__ = [
    "METADATA_KEYS",
    "NodeType",
    "EdgeType",
    "NodeRecord",
    "EdgeRecord",
    "PluginMetadata",
    "Graph",
]
