"""Reads and writes of WordPress persistent storage."""

from __future__ import annotations

from typing import Optional

from tree_sitter import Node

from plugin_profiler.graph import naming
from plugin_profiler.models.graph import EdgeRecord, EdgeType, NodeRecord, NodeType
from plugin_profiler.parsers.base import FileContext, line_of, node_text, unwrap_parens
from plugin_profiler.parsers.php_syntax import (
    argument_at,
    call_arguments,
    function_name,
    member_name,
    string_value,
)
from plugin_profiler.parsers.visitors.base import NamespaceAwareVisitor

# function -> (store, operation, key argument index)
STORAGE_FUNCTIONS: dict[str, tuple[str, str, int]] = {
    "get_option": ("option", "read", 0),
    "update_option": ("option", "write", 0),
    "add_option": ("option", "write", 0),
    "delete_option": ("option", "delete", 0),
    "get_post_meta": ("post_meta", "read", 1),
    "update_post_meta": ("post_meta", "write", 1),
    "add_post_meta": ("post_meta", "write", 1),
    "delete_post_meta": ("post_meta", "delete", 1),
    "get_user_meta": ("user_meta", "read", 1),
    "update_user_meta": ("user_meta", "write", 1),
    "add_user_meta": ("user_meta", "write", 1),
    "delete_user_meta": ("user_meta", "delete", 1),
    "get_transient": ("transient", "read", 0),
    "set_transient": ("transient", "write", 0),
    "delete_transient": ("transient", "delete", 0),
}

DATABASE_METHODS: dict[str, str] = {
    "get_results": "read",
    "get_row": "read",
    "get_var": "read",
    "get_col": "read",
    "query": "read",
    "insert": "write",
    "update": "write",
    "replace": "write",
    "delete": "delete",
}

DATABASE_OBJECTS = frozenset({"$wpdb", "$this->wpdb"})
MAX_QUERY_KEY_LENGTH = 80

_EDGE_FOR_OPERATION = {
    "read": (EdgeType.READS_DATA, "reads"),
    "write": (EdgeType.WRITES_DATA, "writes"),
    "delete": (EdgeType.WRITES_DATA, "deletes"),
}


class DataSourceVisitor(NamespaceAwareVisitor):
    """Registers one ``data_source`` node per ``(operation, key)``.

    Keys that are not string literals produce a per-call-site placeholder
    with a ``null`` key.  The owning callable is linked with ``reads_data``
    or ``writes_data``; calls at file scope register the node only.
    """

    def enter_node(self, node: Node, ctx: FileContext) -> None:
        super().enter_node(node, ctx)
        if node.type == "function_call_expression":
            entry = STORAGE_FUNCTIONS.get(function_name(node) or "")
            if entry is None:
                return
            store, operation, key_index = entry
            key = string_value(argument_at(call_arguments(node), key_index))
            self._register(node, ctx, store, operation, key)
        elif node.type in ("member_call_expression", "nullsafe_member_call_expression"):
            target = node.child_by_field_name("object")
            if node_text(target) not in DATABASE_OBJECTS:
                return
            operation = DATABASE_METHODS.get((member_name(node) or "").lower())
            if operation is None:
                return
            key = self._database_key(argument_at(call_arguments(node), 0))
            self._register(node, ctx, "database", operation, key)

    def _register(self, node: Node, ctx: FileContext, store: str, operation: str, key: Optional[str]) -> None:
        line = line_of(node)
        data_id = naming.data_source_id(operation, key, ctx.relative_path, line)
        self.collection.add_node(
            NodeRecord(
                id=data_id,
                label=key if key is not None else "dynamic key",
                type=NodeType.DATA_SOURCE,
                subtype=store,
                file=ctx.path,
                line=line,
                metadata={"operation": operation, "key": key},
            )
        )
        caller_id = self.current_caller_id()
        if caller_id is None:
            return
        edge_type, label = _EDGE_FOR_OPERATION[operation]
        self.collection.add_edge(EdgeRecord.make(caller_id, data_id, edge_type, label))

    def _database_key(self, arg: Optional[Node]) -> Optional[str]:
        """Table or query text of a ``$wpdb`` call, truncated for display.

        Looks through ``$wpdb->prepare(...)`` and renders a leading
        ``$wpdb->prefix .`` as ``{prefix}``.
        """
        arg = unwrap_parens(arg)
        if arg is None:
            return None
        if arg.type == "member_call_expression" and (member_name(arg) or "").lower() == "prepare":
            return self._database_key(argument_at(call_arguments(arg), 0))
        if arg.type == "binary_expression":
            left = node_text(arg.child_by_field_name("left"))
            right = string_value(arg.child_by_field_name("right"))
            if left.endswith("->prefix") and right is not None:
                return ("{prefix}" + right)[:MAX_QUERY_KEY_LENGTH]
            return None
        literal = string_value(arg)
        return literal[:MAX_QUERY_KEY_LENGTH] if literal is not None else None
