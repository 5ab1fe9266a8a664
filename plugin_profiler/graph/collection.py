"""Mutable store shared by every visitor during a single analysis run."""

from __future__ import annotations

from typing import Optional

import structlog

from plugin_profiler.models.graph import EdgeRecord, NodeRecord

logger = structlog.get_logger(__name__)


class EntityCollection:
    """Accumulates nodes and edges discovered across all files.

    Nodes are first-write-wins: registering an id that is already present
    is a no-op (logged at debug level), so whichever visitor sees an entity first owns its
    record.  Edges are keyed by id, so the same relationship discovered
    twice is stored once.  Edges may point at ids that are never
    registered; :class:`~plugin_profiler.graph.builder.GraphBuilder` drops
    them.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, NodeRecord] = {}
        self._edges: dict[str, EdgeRecord] = {}

    def add_node(self, node: NodeRecord) -> None:
        if node.id in self._nodes:
            logger.debug("node_already_registered", node_id=node.id, file=node.file, line=node.line)
            return
        self._nodes[node.id] = node

    def add_edge(self, edge: EdgeRecord) -> None:
        self._edges[edge.id] = edge

    def get_node(self, node_id: str) -> Optional[NodeRecord]:
        return self._nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_all_nodes(self) -> list[NodeRecord]:
        """Return nodes in insertion order."""
        return list(self._nodes.values())

    def get_all_edges(self) -> list[EdgeRecord]:
        """Return edges in discovery order (first discovery of each id)."""
        return list(self._edges.values())

    def __len__(self) -> int:
        return len(self._nodes)
