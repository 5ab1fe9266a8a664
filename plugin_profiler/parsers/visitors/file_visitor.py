"""``include``/``require`` relationships between PHP files."""

from __future__ import annotations

import os
import pathlib
from typing import Optional

from tree_sitter import Node

from plugin_profiler.graph import naming
from plugin_profiler.models.graph import EdgeRecord, EdgeType, NodeRecord, NodeType
from plugin_profiler.parsers.base import FileContext, line_of, unwrap_parens
from plugin_profiler.parsers.php_syntax import (
    INCLUDE_TYPES,
    argument_at,
    call_arguments,
    function_name,
    is_magic_constant,
    string_value,
)
from plugin_profiler.parsers.visitors.base import NamespaceAwareVisitor


def resolve_path(directory: str, reference: str) -> str:
    """Join *reference* onto *directory*, canonicalizing when the target exists."""
    joined = os.path.normpath(os.path.join(directory, reference))
    candidate = pathlib.Path(joined)
    if candidate.exists():
        return candidate.resolve().as_posix()
    return pathlib.PurePath(joined).as_posix()


class FileVisitor(NamespaceAwareVisitor):
    """Links each PHP file to the files it includes.

    Statically resolvable forms:

    - a string literal, relative to the including file's directory;
    - ``__DIR__ . '/x.php'``;
    - ``dirname(__FILE__) . '/x.php'``;
    - ``plugin_dir_path(__FILE__) . 'x.php'``.

    Any other expression becomes a ``dynamic`` placeholder keyed by the
    call site.
    """

    def enter_node(self, node: Node, ctx: FileContext) -> None:
        super().enter_node(node, ctx)
        if node.type not in INCLUDE_TYPES:
            return
        operands = [child for child in node.named_children if child.type != "comment"]
        if not operands:
            return

        line = line_of(node)
        source_id = ctx.file_id
        self.collection.add_node(
            NodeRecord(
                id=source_id,
                label=ctx.basename,
                type=NodeType.FILE,
                file=ctx.path,
                line=0,
            )
        )

        target = self._resolve(operands[0], ctx)
        if target is None:
            target_id = naming.dynamic_file_id(ctx.relative_path, line)
            self.collection.add_node(
                NodeRecord(
                    id=target_id,
                    label="dynamic",
                    type=NodeType.FILE,
                    file=ctx.path,
                    line=line,
                )
            )
        else:
            target_id = naming.file_id(target, ctx.plugin_root)
            self.collection.add_node(
                NodeRecord(
                    id=target_id,
                    label=pathlib.PurePosixPath(target).name,
                    type=NodeType.FILE,
                    file=target,
                    line=0,
                )
            )
        self.collection.add_edge(EdgeRecord.make(source_id, target_id, EdgeType.INCLUDES, "includes"))

    def _resolve(self, expression: Node, ctx: FileContext) -> Optional[str]:
        expression = unwrap_parens(expression)
        if expression is None:
            return None
        literal = string_value(expression)
        if literal is not None:
            return resolve_path(ctx.directory, literal)
        if expression.type != "binary_expression":
            return None
        if not any(not child.is_named and child.type == "." for child in expression.children):
            return None
        suffix = string_value(expression.child_by_field_name("right"))
        if suffix is None or not self._is_current_directory(expression.child_by_field_name("left")):
            return None
        return resolve_path(ctx.directory, suffix.lstrip("/\\"))

    @staticmethod
    def _is_current_directory(node: Optional[Node]) -> bool:
        node = unwrap_parens(node)
        if node is None:
            return False
        if is_magic_constant(node, "__DIR__"):
            return True
        if node.type != "function_call_expression":
            return False
        if function_name(node) not in ("dirname", "plugin_dir_path"):
            return False
        args = call_arguments(node)
        return len(args) == 1 and is_magic_constant(argument_at(args, 0), "__FILE__")
