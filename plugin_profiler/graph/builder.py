"""Freezes an :class:`EntityCollection` into a validated :class:`Graph`."""

from __future__ import annotations

import structlog

from plugin_profiler.graph.collection import EntityCollection
from plugin_profiler.models.graph import Graph, PluginMetadata

logger = structlog.get_logger(__name__)


class GraphBuilder:
    """Validates edges against registered nodes and renumbers them."""

    def build(self, collection: EntityCollection, plugin: PluginMetadata) -> Graph:
        """Assemble the final graph.

        Edges whose source or target was never registered are dropped
        without a warning; forward references that never resolve are an
        expected outcome of per-file extraction.  Surviving edges keep
        their discovery order and are renumbered ``e_0 .. e_{N-1}``.

        Args:
            collection: Store populated by the visitors.
            plugin: Plugin-level metadata to attach.

        Returns:
            The assembled :class:`Graph`.
        """
        nodes = collection.get_all_nodes()
        node_ids = {node.id for node in nodes}

        edges = []
        dropped = 0
        for edge in collection.get_all_edges():
            if edge.source not in node_ids or edge.target not in node_ids:
                dropped += 1
                continue
            edges.append(edge.model_copy(update={"id": f"e_{len(edges)}"}))

        logger.debug("graph_built", nodes=len(nodes), edges=len(edges), dropped_edges=dropped)
        return Graph(nodes=nodes, edges=edges, plugin=plugin)
