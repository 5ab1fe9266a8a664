"""Class, interface, trait and enum declarations with their inheritance edges."""

from __future__ import annotations

from tree_sitter import Node

from plugin_profiler.models.graph import EdgeRecord, EdgeType, NodeRecord, NodeType
from plugin_profiler.parsers.base import FileContext, leading_docblock, line_of, node_text
from plugin_profiler.parsers.php_syntax import child_of_type, declared_names
from plugin_profiler.parsers.visitors.base import NamespaceAwareVisitor

_DECLARATION_TYPES = {
    "class_declaration": NodeType.CLASS,
    "interface_declaration": NodeType.INTERFACE,
    "trait_declaration": NodeType.TRAIT,
    "enum_declaration": NodeType.ENUM,
}


class ClassVisitor(NamespaceAwareVisitor):
    """Registers named class-like declarations.

    Parent classes and interfaces are linked by id only; the target is
    often declared in another file (or not in the plugin at all) and the
    graph builder discards the edge when it never resolves.
    """

    def enter_node(self, node: Node, ctx: FileContext) -> None:
        super().enter_node(node, ctx)
        node_type = _DECLARATION_TYPES.get(node.type)
        if node_type is None:
            return
        name = node_text(node.child_by_field_name("name"))
        if not name:
            return

        class_id = self.class_id(name)
        metadata: dict = {"namespace": self.namespace or None}

        parents = declared_names(child_of_type(node, "base_clause"))
        interfaces = declared_names(child_of_type(node, "class_interface_clause"))
        if node_type is NodeType.CLASS:
            metadata["extends"] = parents[0].lstrip("\\") if parents else None
        if node_type in (NodeType.CLASS, NodeType.ENUM):
            metadata["implements"] = [iface.lstrip("\\") for iface in interfaces]

        self.collection.add_node(
            NodeRecord(
                id=class_id,
                label=name,
                type=node_type,
                file=ctx.path,
                line=line_of(node),
                metadata=metadata,
                docblock=leading_docblock(node),
                source_preview=self.extract_source_preview(node, ctx),
            )
        )

        # Interfaces may extend several parents; classes extend at most one.
        for parent in parents:
            self.collection.add_edge(EdgeRecord.make(class_id, self.class_id(parent), EdgeType.EXTENDS, "extends"))
        for iface in interfaces:
            self.collection.add_edge(EdgeRecord.make(class_id, self.class_id(iface), EdgeType.IMPLEMENTS, "implements"))
