"""Methods, free functions and static-call dependencies."""

from __future__ import annotations

from tree_sitter import Node

from plugin_profiler.graph import naming
from plugin_profiler.models.graph import EdgeRecord, EdgeType, NodeRecord, NodeType
from plugin_profiler.parsers.base import FileContext, leading_docblock, line_of, node_text
from plugin_profiler.parsers.php_syntax import child_of_type, parameters, return_type
from plugin_profiler.parsers.visitors.base import NamespaceAwareVisitor

_RELATIVE_SCOPES = frozenset({"self", "static", "parent"})


class FunctionVisitor(NamespaceAwareVisitor):
    """Registers callables and the class dependencies of static calls.

    Methods are keyed by the short name of their owning class and linked to
    it with a ``has_method`` edge.  A ``Foo::bar()`` call inside a callable
    draws a ``calls`` edge from the callable to ``Foo``.
    """

    def enter_node(self, node: Node, ctx: FileContext) -> None:
        super().enter_node(node, ctx)
        if node.type == "method_declaration":
            self._handle_method(node, ctx)
        elif node.type == "function_definition":
            self._handle_function(node, ctx)
        elif node.type == "scoped_call_expression":
            self._handle_static_call(node)

    def _handle_method(self, node: Node, ctx: FileContext) -> None:
        owner = self.current_class
        name = node_text(node.child_by_field_name("name"))
        if not owner or not name:
            return

        visibility = node_text(child_of_type(node, "visibility_modifier")).lower() or "public"
        method_id = naming.method_id(owner, name)
        self.collection.add_node(
            NodeRecord(
                id=method_id,
                label=name,
                type=NodeType.METHOD,
                file=ctx.path,
                line=line_of(node),
                metadata={
                    "visibility": visibility,
                    "params": parameters(node),
                    "return_type": return_type(node),
                },
                docblock=leading_docblock(node),
                source_preview=self.extract_source_preview(node, ctx),
            )
        )
        self.collection.add_edge(EdgeRecord.make(self.current_class_id(), method_id, EdgeType.HAS_METHOD, "has method"))

    def _handle_function(self, node: Node, ctx: FileContext) -> None:
        name = node_text(node.child_by_field_name("name"))
        if not name:
            return
        self.collection.add_node(
            NodeRecord(
                id=naming.function_id(name),
                label=name,
                type=NodeType.FUNCTION,
                file=ctx.path,
                line=line_of(node),
                metadata={
                    "namespace": self.namespace or None,
                    "params": parameters(node),
                    "return_type": return_type(node),
                },
                docblock=leading_docblock(node),
                source_preview=self.extract_source_preview(node, ctx),
            )
        )

    def _handle_static_call(self, node: Node) -> None:
        caller_id = self.current_caller_id()
        scope = node.child_by_field_name("scope")
        if caller_id is None or scope is None or scope.type not in ("name", "qualified_name"):
            return
        class_name = node_text(scope)
        if class_name.lower() in _RELATIVE_SCOPES:
            return
        self.collection.add_edge(EdgeRecord.make(caller_id, self.class_id(class_name), EdgeType.CALLS, "calls"))
