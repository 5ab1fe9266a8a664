"""Serialization of a :class:`Graph` into the visualization document.

Document layout::

    {
      "plugin": {...},
      "nodes": [{"data": {...}}, ...],
      "edges": [{"data": {...}}, ...]
    }
"""

from __future__ import annotations

import json
import pathlib
from typing import Any

import structlog

from plugin_profiler.models.graph import EdgeRecord, Graph, NodeRecord

logger = structlog.get_logger(__name__)


def _node_data(node: NodeRecord) -> dict[str, Any]:
    return {
        "id": node.id,
        "label": node.label,
        "type": node.type.value,
        "subtype": node.subtype,
        "file": node.file,
        "line": node.line,
        "metadata": node.exported_metadata(),
        "docblock": node.docblock,
        "description": node.description,
        "source_preview": node.source_preview,
    }


def _edge_data(edge: EdgeRecord) -> dict[str, Any]:
    return {
        "id": edge.id,
        "source": edge.source,
        "target": edge.target,
        "type": edge.type.value,
        "label": edge.label,
    }


def to_export_dict(graph: Graph) -> dict[str, Any]:
    """Return the export document for *graph* as plain Python data."""
    plugin = graph.plugin
    return {
        "plugin": {
            "name": plugin.name,
            "version": plugin.version,
            "description": plugin.description,
            "main_file": plugin.main_file,
            "total_files": plugin.total_files,
            "total_entities": plugin.total_entities,
            "analyzed_at": plugin.analyzed_at.isoformat(),
            "analyzer_version": plugin.analyzer_version,
            "host_path": plugin.host_path,
        },
        "nodes": [{"data": _node_data(node)} for node in graph.nodes],
        "edges": [{"data": _edge_data(edge)} for edge in graph.edges],
    }


def export_json(graph: Graph, output_path: pathlib.Path) -> pathlib.Path:
    """Write the export document to *output_path* as pretty-printed UTF-8 JSON.

    Parent directories are created as needed.

    Args:
        graph: The assembled graph.
        output_path: Destination file.

    Returns:
        The path written.

    Raises:
        OSError: If the file cannot be written.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(to_export_dict(graph), ensure_ascii=False, indent=2)
    output_path.write_text(payload, encoding="utf-8")
    logger.info(
        "graph_exported",
        path=str(output_path),
        nodes=len(graph.nodes),
        edges=len(graph.edges),
    )
    return output_path
