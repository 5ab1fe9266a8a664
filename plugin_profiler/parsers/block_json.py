"""Gutenberg ``block.json`` manifests."""

from __future__ import annotations

import json
import pathlib
from typing import Any

import structlog

from plugin_profiler.graph import naming
from plugin_profiler.models.graph import EdgeRecord, EdgeType, NodeRecord, NodeType
from plugin_profiler.parsers.base import BaseLanguageParser, FileContext
from plugin_profiler.parsers.visitors.file_visitor import resolve_path

logger = structlog.get_logger(__name__)

SCRIPT_KEYS = ("editorScript", "script", "viewScript")
ASSET_KEYS = ("editorScript", "script", "viewScript", "editorStyle", "style")
FILE_PREFIX = "file:"


def resolve_asset(reference: str, block_dir: str) -> str:
    """Resolve a ``file:``-prefixed manifest reference against *block_dir*.

    Other references (registered script handles, URLs) are returned unchanged.
    """
    if not reference.startswith(FILE_PREFIX):
        return reference
    return resolve_path(block_dir, reference[len(FILE_PREFIX) :])


class BlockJsonVisitor(BaseLanguageParser):
    """Registers the block declared by a manifest and links its assets.

    The block node shares its id with script-side ``registerBlockType``
    calls, so whichever source is visited first owns the record.  The
    render template gets a ``renders_block`` edge and each script asset an
    ``enqueues_script`` edge, both toward file nodes.
    """

    def parse_file(self, ctx: FileContext) -> None:
        try:
            data = json.loads(ctx.source)
        except json.JSONDecodeError as exc:
            logger.warning("block_manifest_invalid_json", file=ctx.relative_path, error=str(exc))
            return
        if not isinstance(data, dict) or not isinstance(data.get("name"), str) or not data["name"]:
            logger.warning("block_manifest_missing_name", file=ctx.relative_path)
            return

        block_name: str = data["name"]
        block_id = naming.block_id(block_name)
        self.collection.add_node(
            NodeRecord(
                id=block_id,
                label=str(data.get("title") or block_name),
                type=NodeType.GUTENBERG_BLOCK,
                file=ctx.path,
                line=0,
                metadata={
                    "block_name": block_name,
                    "block_category": data.get("category"),
                    "block_attributes": data.get("attributes"),
                    "render_template": data.get("render"),
                    "js_assets": {key: data[key] for key in ASSET_KEYS if key in data},
                    "namespace": block_name.split("/", 1)[0],
                },
                docblock=data.get("description") if isinstance(data.get("description"), str) else None,
            )
        )

        render = data.get("render")
        if isinstance(render, str) and render:
            self._link_file(ctx, block_id, render, EdgeType.RENDERS_BLOCK, "renders")

        for key in SCRIPT_KEYS:
            for reference in _references(data.get(key)):
                self._link_file(ctx, block_id, reference, EdgeType.ENQUEUES_SCRIPT, "enqueues")

    def _link_file(self, ctx: FileContext, block_id: str, reference: str, edge_type: EdgeType, label: str) -> None:
        resolved = resolve_asset(reference, ctx.directory)
        file_id = naming.file_id(resolved, ctx.plugin_root)
        self.collection.add_node(
            NodeRecord(
                id=file_id,
                label=pathlib.PurePosixPath(resolved).name or resolved,
                type=NodeType.FILE,
                file=resolved,
                line=0,
            )
        )
        self.collection.add_edge(EdgeRecord.make(block_id, file_id, edge_type, label))


def _references(value: Any) -> list[str]:
    """Asset fields may hold a single reference or a list of them."""
    if isinstance(value, str) and value:
        return [value]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str) and item]
    return []
