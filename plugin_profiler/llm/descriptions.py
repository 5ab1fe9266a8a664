"""Batch description generation for an assembled graph."""

from __future__ import annotations

from typing import Any, Callable, Optional

import structlog

from plugin_profiler.config import settings
from plugin_profiler.llm.client import DescriptionClient
from plugin_profiler.models.graph import Graph, NodeRecord

logger = structlog.get_logger(__name__)

PAYLOAD_METADATA_KEYS = (
    "namespace",
    "extends",
    "implements",
    "hook_name",
    "http_method",
    "route",
    "operation",
    "key",
    "block_name",
)
MAX_CONNECTIONS = 10
MAX_SNIPPET_LINES = 10

ProgressCallback = Callable[[int, int], None]


class DescriptionGenerator:
    """Attaches generated descriptions to graph nodes in place.

    Nodes are sent in batches; a batch that fails is logged and skipped so
    the remaining batches still get described.

    Args:
        client: The description capability.
        batch_size: Nodes per request; defaults to ``settings.llm_batch_size``.
    """

    def __init__(self, client: DescriptionClient, batch_size: Optional[int] = None) -> None:
        self.client = client
        self.batch_size = max(1, batch_size or settings.llm_batch_size)

    def generate(self, graph: Graph, on_progress: Optional[ProgressCallback] = None) -> int:
        """Describe every node of *graph*.

        Args:
            graph: The assembled graph; only ``NodeRecord.description`` is written.
            on_progress: Called with ``(done, total)`` after each batch.

        Returns:
            Number of nodes that received a description.
        """
        connections = _outgoing_connections(graph)
        total = len(graph.nodes)
        done = 0
        described = 0

        for start in range(0, total, self.batch_size):
            batch = graph.nodes[start : start + self.batch_size]
            payload = [build_entity_payload(node, connections.get(node.id, [])) for node in batch]
            try:
                descriptions = self.client.generate_descriptions(payload)
            except Exception as exc:
                logger.warning("llm_batch_failed", batch_start=start, batch_size=len(batch), error=str(exc))
                descriptions = {}

            for node in batch:
                description = descriptions.get(node.id)
                if description:
                    node.description = description
                    described += 1

            done += len(batch)
            if on_progress is not None:
                on_progress(done, total)

        logger.info("descriptions_generated", described=described, total=total)
        return described


def build_entity_payload(node: NodeRecord, connections: list[str]) -> dict[str, Any]:
    """Compact description request for one node.

    Includes the node's identity, non-empty selected metadata, up to ten
    outgoing connections and the first lines of its source preview.
    """
    payload: dict[str, Any] = {"id": node.id, "type": node.type.value, "label": node.label}
    for key in PAYLOAD_METADATA_KEYS:
        value = node.metadata.get(key)
        if value:
            payload[key] = value
    if connections:
        payload["connections"] = connections[:MAX_CONNECTIONS]
    if node.source_preview:
        payload["code_snippet"] = "\n".join(node.source_preview.split("\n")[:MAX_SNIPPET_LINES])
    return payload


def _outgoing_connections(graph: Graph) -> dict[str, list[str]]:
    connections: dict[str, list[str]] = {}
    for edge in graph.edges:
        connections.setdefault(edge.source, []).append(f"{edge.target} ({edge.type.value})")
    return connections
