"""Graph data models for plugin entities, relationships and the final graph.

These Pydantic v2 models are produced by the visitors, validated by the
graph builder and serialized by :mod:`plugin_profiler.graph.exporter` into
the Cytoscape-style document consumed by the visualization.
"""

from __future__ import annotations

import enum
import re
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_UNSAFE_ID_CHARS = re.compile(r"[^a-zA-Z0-9_\-]")

METADATA_KEYS: tuple[str, ...] = (
    "namespace",
    "extends",
    "implements",
    "visibility",
    "params",
    "return_type",
    "priority",
    "hook_name",
    "http_method",
    "route",
    "operation",
    "key",
    "block_name",
    "block_category",
    "block_attributes",
    "render_template",
    "js_assets",
)
"""Metadata keys present on every exported node, ``null`` when unset."""


def sanitize_id(raw: str) -> str:
    """Replace every character outside ``[A-Za-z0-9_-]`` with ``_``."""
    return _UNSAFE_ID_CHARS.sub("_", raw)


class NodeType(str, enum.Enum):
    """Enumeration of entity kinds found in a plugin."""

    # PHP structure
    CLASS = "class"
    INTERFACE = "interface"
    TRAIT = "trait"
    ENUM = "enum"
    METHOD = "method"
    FUNCTION = "function"
    FILE = "file"

    # WordPress integration points
    HOOK = "hook"
    DATA_SOURCE = "data_source"
    REST_ENDPOINT = "rest_endpoint"
    AJAX_HANDLER = "ajax_handler"
    SHORTCODE = "shortcode"
    ADMIN_PAGE = "admin_page"
    CRON_JOB = "cron_job"
    POST_TYPE = "post_type"
    TAXONOMY = "taxonomy"
    HTTP_CALL = "http_call"
    GUTENBERG_BLOCK = "gutenberg_block"

    # Front-end
    JS_HOOK = "js_hook"
    JS_API_CALL = "js_api_call"
    REACT_COMPONENT = "react_component"
    REACT_HOOK = "react_hook"
    JS_FUNCTION = "js_function"
    JS_CLASS = "js_class"
    FETCH_CALL = "fetch_call"
    AXIOS_CALL = "axios_call"


class EdgeType(str, enum.Enum):
    """Enumeration of relationship kinds between entities."""

    EXTENDS = "extends"
    IMPLEMENTS = "implements"
    HAS_METHOD = "has_method"
    CALLS = "calls"
    REGISTERS_HOOK = "registers_hook"
    TRIGGERS_HOOK = "triggers_hook"
    TRIGGERS_HANDLER = "triggers_handler"
    READS_DATA = "reads_data"
    WRITES_DATA = "writes_data"
    INCLUDES = "includes"
    RENDERS_BLOCK = "renders_block"
    ENQUEUES_SCRIPT = "enqueues_script"
    REGISTERS_BLOCK = "registers_block"
    JS_REGISTERS_HOOK = "js_registers_hook"
    JS_API_CALL = "js_api_call"
    DEFINES = "defines"
    USES_HOOK = "uses_hook"


class NodeRecord(BaseModel):
    """A single entity in the plugin graph.

    Only the description stage mutates a node after it has been stored,
    by setting :attr:`description`.

    Attributes:
        id: Deterministic identifier restricted to ``[A-Za-z0-9_-]``.
        label: Human-readable display name.
        type: The kind of entity.
        subtype: Finer classification (e.g. ``action``/``filter``, ``option``).
        file: Path of the file the entity was found in.
        line: 1-indexed line of the entity, ``0`` when not applicable.
        metadata: Open map of type-specific attributes.
        docblock: Attached documentation comment, if any.
        description: Generated natural-language summary.
        source_preview: Leading source lines of the declaration.
    """

    id: str = Field(..., description="Sanitized deterministic identifier.")
    label: str = Field(..., description="Display name.")
    type: NodeType = Field(..., description="Kind of entity.")
    subtype: Optional[str] = Field(None, description="Finer classification.")
    file: str = Field("", description="Source file path.")
    line: int = Field(0, ge=0, description="1-indexed source line, 0 if unknown.")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Type-specific attributes.")
    docblock: Optional[str] = Field(None, description="Documentation comment.")
    description: Optional[str] = Field(None, description="Generated summary.")
    source_preview: Optional[str] = Field(None, description="Leading declaration lines.")

    @field_validator("id")
    @classmethod
    def _sanitize_id(cls, value: str) -> str:
        return sanitize_id(value)

    def exported_metadata(self) -> dict[str, Any]:
        """Return metadata with every key of :data:`METADATA_KEYS` present."""
        data = {key: None for key in METADATA_KEYS}
        data.update(self.metadata)
        return data


class EdgeRecord(BaseModel):
    """A directed relationship between two entities.

    The target (and occasionally the source) may name a node that is never
    registered; such edges are dropped by the graph builder.

    Attributes:
        id: ``e_{source}_{type}_{target}`` until the graph is built, then
            the sequential ``e_N``.
        source: ``id`` of the originating node.
        target: ``id`` of the destination node.
        type: The kind of relationship.
        label: Display verb for the relationship.
    """

    id: str = Field(..., description="Edge identifier.")
    source: str = Field(..., description="Originating node id.")
    target: str = Field(..., description="Destination node id.")
    type: EdgeType = Field(..., description="Relationship type.")
    label: str = Field("", description="Display verb.")

    @field_validator("source", "target")
    @classmethod
    def _sanitize_endpoint(cls, value: str) -> str:
        return sanitize_id(value)

    @classmethod
    def make(cls, source: str, target: str, type: EdgeType, label: str = "") -> EdgeRecord:
        """Build an edge whose id is derived from its endpoints and type."""
        source = sanitize_id(source)
        target = sanitize_id(target)
        return cls(
            id=f"e_{source}_{type.value}_{target}",
            source=source,
            target=target,
            type=type,
            label=label,
        )


class PluginMetadata(BaseModel):
    """Descriptive header of an analyzed plugin.

    Attributes:
        name: Plugin name from the main file header, or the directory name.
        version: Plugin version from the header, ``0.0.0`` when absent.
        description: Plugin description from the header.
        main_file: Base name of the file carrying the plugin header.
        total_files: Number of files analyzed.
        total_entities: Number of nodes in the graph.
        analyzed_at: Timezone-aware time of the analysis.
        analyzer_version: Version of the export schema.
        host_path: Plugin location on the host machine, if known.
    """

    name: str = Field(..., description="Plugin name.")
    version: str = Field("0.0.0", description="Plugin version.")
    description: str = Field("", description="Plugin description.")
    main_file: str = Field("", description="Main plugin file name.")
    total_files: int = Field(0, ge=0, description="Files analyzed.")
    total_entities: int = Field(0, ge=0, description="Nodes in the graph.")
    analyzed_at: datetime = Field(..., description="Analysis timestamp.")
    analyzer_version: str = Field(..., description="Export schema version.")
    host_path: str = Field("", description="Host-side plugin path.")


class Graph(BaseModel):
    """Assembled plugin graph; no edge references a missing node.

    Attributes:
        nodes: All entities, in insertion order.
        edges: Surviving relationships, ids renumbered ``e_0 .. e_{N-1}``.
        plugin: Plugin-level metadata.
    """

    model_config = ConfigDict(frozen=True)

    nodes: list[NodeRecord] = Field(default_factory=list, description="Plugin entities.")
    edges: list[EdgeRecord] = Field(default_factory=list, description="Relationships between entities.")
    plugin: PluginMetadata = Field(..., description="Plugin metadata.")
