"""Maps script entities onto graph nodes hanging off their file node."""

from __future__ import annotations

import pathlib
from typing import Optional

import structlog

from plugin_profiler.graph import naming
from plugin_profiler.graph.collection import EntityCollection
from plugin_profiler.models.graph import EdgeRecord, EdgeType, NodeRecord, NodeType
from plugin_profiler.parsers.base import BaseLanguageParser, FileContext, ScriptEntity, ScriptParser

logger = structlog.get_logger(__name__)


class ScriptVisitor(BaseLanguageParser):
    """Turns the entities reported by a :class:`ScriptParser` into graph records.

    Every entity is linked from the script's file node (created on first
    use) with an edge whose type depends on the entity kind.  Imports are
    informational and produce no node.

    Args:
        collection: Store receiving nodes and edges.
        script_parser: The extraction capability to delegate to.
    """

    def __init__(self, collection: EntityCollection, script_parser: ScriptParser) -> None:
        super().__init__(collection)
        self.script_parser = script_parser

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse_file(self, ctx: FileContext) -> None:
        entities = self.script_parser.parse(ctx.source, ctx.path)
        for entity in entities:
            self.visit_entity(entity, ctx)

    def visit_entity(self, entity: ScriptEntity, ctx: FileContext) -> None:
        """Register one entity and its edge from the file node."""
        handler = getattr(self, f"_handle_{entity.type}", None)
        if handler is None:
            logger.debug("script_entity_ignored", type=entity.type, file=ctx.relative_path)
            return
        handler(entity, ctx)

    # ------------------------------------------------------------------
    # Entity handlers
    # ------------------------------------------------------------------

    def _handle_gutenberg_block(self, entity: ScriptEntity, ctx: FileContext) -> None:
        node_id = naming.block_id(entity.name)
        self._add(node_id, entity.name, NodeType.GUTENBERG_BLOCK, entity, ctx, {"block_name": entity.name})
        self._link(ctx, node_id, EdgeType.REGISTERS_BLOCK, "registers")

    def _handle_js_hook(self, entity: ScriptEntity, ctx: FileContext) -> None:
        kind = entity.subtype or "action"
        node_id = naming.script_hook_id(kind, entity.name)
        self._add(node_id, entity.name, NodeType.JS_HOOK, entity, ctx, {"hook_name": entity.name}, subtype=kind)
        self._link(ctx, node_id, EdgeType.JS_REGISTERS_HOOK, "registers")

    def _handle_js_api_call(self, entity: ScriptEntity, ctx: FileContext) -> None:
        method = str(entity.meta.get("http_method") or "GET").upper()
        route = entity.meta.get("route") or entity.name
        node_id = naming.script_api_call_id(method, route)
        self._add(
            node_id,
            f"{method} {route}",
            NodeType.JS_API_CALL,
            entity,
            ctx,
            {"http_method": method, "route": route},
        )
        self._link(ctx, node_id, EdgeType.JS_API_CALL, "calls")

    def _handle_fetch_call(self, entity: ScriptEntity, ctx: FileContext) -> None:
        node_id = naming.call_site_id("fetch", ctx.relative_path, entity.line)
        self._add(node_id, entity.name, NodeType.FETCH_CALL, entity, ctx, _http_metadata(entity))
        self._link(ctx, node_id, EdgeType.CALLS, "calls")

    def _handle_axios_call(self, entity: ScriptEntity, ctx: FileContext) -> None:
        node_id = naming.call_site_id("axios", ctx.relative_path, entity.line)
        self._add(node_id, entity.name, NodeType.AXIOS_CALL, entity, ctx, _http_metadata(entity), subtype=entity.subtype)
        self._link(ctx, node_id, EdgeType.CALLS, "calls")

    def _handle_react_component(self, entity: ScriptEntity, ctx: FileContext) -> None:
        name = "default" if entity.name == "(default export)" else entity.name
        node_id = naming.component_id(self._module(ctx), name)
        self._add(node_id, entity.name, NodeType.REACT_COMPONENT, entity, ctx)
        self._link(ctx, node_id, EdgeType.DEFINES, "defines")

    def _handle_js_function(self, entity: ScriptEntity, ctx: FileContext) -> None:
        node_id = naming.script_function_id(self._module(ctx), entity.name)
        self._add(node_id, entity.name, NodeType.JS_FUNCTION, entity, ctx)
        self._link(ctx, node_id, EdgeType.DEFINES, "defines")

    def _handle_js_class(self, entity: ScriptEntity, ctx: FileContext) -> None:
        node_id = naming.script_class_id(self._module(ctx), entity.name)
        self._add(node_id, entity.name, NodeType.JS_CLASS, entity, ctx, {"extends": entity.meta.get("extends")})
        self._link(ctx, node_id, EdgeType.DEFINES, "defines")

    def _handle_react_hook(self, entity: ScriptEntity, ctx: FileContext) -> None:
        node_id = naming.react_hook_id(entity.subtype or entity.name, ctx.relative_path, entity.line)
        self._add(node_id, entity.name, NodeType.REACT_HOOK, entity, ctx, subtype=entity.subtype)
        self._link(ctx, node_id, EdgeType.USES_HOOK, "uses")

    def _handle_js_import(self, entity: ScriptEntity, ctx: FileContext) -> None:
        logger.debug("script_import", module=entity.name, file=ctx.relative_path)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _module(ctx: FileContext) -> str:
        return naming.module_name(ctx.relative_path)

    def _add(
        self,
        node_id: str,
        label: str,
        node_type: NodeType,
        entity: ScriptEntity,
        ctx: FileContext,
        metadata: Optional[dict] = None,
        subtype: Optional[str] = None,
    ) -> None:
        self.collection.add_node(
            NodeRecord(
                id=node_id,
                label=label,
                type=node_type,
                subtype=subtype,
                file=ctx.path,
                line=max(entity.line, 0),
                metadata=metadata or {},
            )
        )

    def _link(self, ctx: FileContext, target_id: str, edge_type: EdgeType, label: str) -> None:
        file_id = ctx.file_id
        self.collection.add_node(
            NodeRecord(
                id=file_id,
                label=pathlib.PurePosixPath(ctx.path).name,
                type=NodeType.FILE,
                file=ctx.path,
                line=0,
            )
        )
        self.collection.add_edge(EdgeRecord.make(file_id, target_id, edge_type, label))


def _http_metadata(entity: ScriptEntity) -> dict:
    return {"http_method": entity.meta.get("http_method"), "route": entity.meta.get("route")}
