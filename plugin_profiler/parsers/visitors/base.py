"""Scope tracking shared by every PHP visitor."""

from __future__ import annotations

from typing import Optional

from tree_sitter import Node

from plugin_profiler.graph import naming
from plugin_profiler.graph.collection import EntityCollection
from plugin_profiler.parsers.base import FileContext, end_line_of, line_of, node_text
from plugin_profiler.parsers.php_syntax import CLASS_LIKE_TYPES, CLOSURE_TYPES, child_of_type

_USE_CLAUSE_TYPES = ("namespace_use_clause", "namespace_use_group_clause")


class NamespaceAwareVisitor:
    """Base class for PHP visitors that need to know where they are.

    The traversal calls :meth:`before_traverse` once per file and then
    :meth:`enter_node` / :meth:`leave_node` around every named node.
    Subclasses that override either hook must call ``super()`` first so the
    scope reflects the node being entered.

    Tracked scope:

    - the current namespace (braced and semicolon forms);
    - ``use`` imports of the current namespace;
    - the stack of enclosing class-like declarations (``None`` marks an
      anonymous class);
    - the stack of enclosing callables.

    Args:
        collection: Store receiving nodes and edges.
    """

    def __init__(self, collection: EntityCollection) -> None:
        self.collection = collection
        self._namespace = ""
        self._braced_namespace = False
        self._imports: dict[str, str] = {}
        self._classes: list[Optional[str]] = []
        self._callables: list[tuple[bool, Optional[str]]] = []

    # ------------------------------------------------------------------
    # Traversal hooks
    # ------------------------------------------------------------------

    def before_traverse(self, ctx: FileContext) -> None:
        self._namespace = ""
        self._braced_namespace = False
        self._imports = {}
        self._classes = []
        self._callables = []

    def enter_node(self, node: Node, ctx: FileContext) -> None:
        kind = node.type
        if kind == "namespace_definition":
            self._namespace = node_text(node.child_by_field_name("name")).strip("\\")
            self._braced_namespace = node.child_by_field_name("body") is not None
            self._imports = {}
        elif kind == "namespace_use_declaration":
            self._record_imports(node)
        elif kind in CLASS_LIKE_TYPES:
            self._classes.append(node_text(node.child_by_field_name("name")) or None)
        elif kind == "anonymous_class":
            self._classes.append(None)
        elif kind == "function_definition":
            self._callables.append((False, naming.function_id(node_text(node.child_by_field_name("name")))))
        elif kind == "method_declaration":
            owner = self.current_class
            name = node_text(node.child_by_field_name("name"))
            self._callables.append((False, naming.method_id(owner, name) if owner else None))
        elif kind in CLOSURE_TYPES:
            self._callables.append((True, naming.anonymous_function_id(ctx.relative_path, line_of(node))))

    def leave_node(self, node: Node, ctx: FileContext) -> None:
        kind = node.type
        if kind == "namespace_definition":
            if self._braced_namespace:
                self._namespace = ""
                self._imports = {}
        elif kind in CLASS_LIKE_TYPES or kind == "anonymous_class":
            if self._classes:
                self._classes.pop()
        elif kind in ("function_definition", "method_declaration") or kind in CLOSURE_TYPES:
            if self._callables:
                self._callables.pop()

    # ------------------------------------------------------------------
    # Scope queries
    # ------------------------------------------------------------------

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def current_class(self) -> Optional[str]:
        """Short name of the innermost named class-like declaration."""
        return self._classes[-1] if self._classes else None

    def qualify(self, name: str) -> str:
        """Resolve a class name as written to its fully qualified form.

        Leading ``\\`` means fully qualified.  ``self`` and ``static`` mean
        the enclosing class.  Otherwise the first segment is matched
        against the file's ``use`` imports before the current namespace is
        prepended.
        """
        if name.startswith("\\"):
            return name[1:]
        lowered = name.lower()
        if lowered in ("self", "static") and self.current_class:
            return self.qualify(self.current_class)
        if lowered.startswith("namespace\\"):
            name = name[len("namespace\\") :]
        else:
            head, sep, rest = name.partition("\\")
            imported = self._imports.get(head.lower())
            if imported is not None:
                return imported + sep + rest
        return f"{self._namespace}\\{name}" if self._namespace else name

    def class_id(self, name: str) -> str:
        return naming.class_id(self.qualify(name))

    def current_class_id(self) -> Optional[str]:
        return self.class_id(self.current_class) if self.current_class else None

    def current_caller_id(self) -> Optional[str]:
        """Id of the callable that owns the code being visited.

        The innermost named function or method wins.  Code that only sits
        inside closures at file scope is attributed to the innermost
        closure.  ``None`` at plain file scope.
        """
        closure_id: Optional[str] = None
        for is_closure, callable_id in reversed(self._callables):
            if not is_closure:
                return callable_id
            if closure_id is None:
                closure_id = callable_id
        return closure_id

    def extract_source_preview(self, node: Node, ctx: FileContext) -> Optional[str]:
        return ctx.preview(line_of(node), end_line_of(node))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _record_imports(self, node: Node) -> None:
        # ``use function`` / ``use const`` import non-class symbols.
        if any(not child.is_named and node_text(child).lower() in ("function", "const") for child in node.children):
            return
        prefix = node_text(child_of_type(node, "namespace_name")).strip("\\")
        for clause in _iter_use_clauses(node):
            target = child_of_type(clause, "qualified_name") or child_of_type(clause, "name")
            if target is None:
                continue
            imported = node_text(target).strip("\\")
            if prefix:
                imported = f"{prefix}\\{imported}"
            alias_node = clause.child_by_field_name("alias")
            if alias_node is None:
                aliasing = child_of_type(clause, "namespace_aliasing_clause")
                alias_node = child_of_type(aliasing, "name") if aliasing is not None else None
            alias = node_text(alias_node) if alias_node is not None else naming.short_name(imported)
            self._imports[alias.lower()] = imported


def _iter_use_clauses(node: Node):
    stack = list(reversed(node.named_children))
    while stack:
        child = stack.pop()
        if child.type in _USE_CLAUSE_TYPES:
            yield child
        elif child.type == "namespace_use_group":
            stack.extend(reversed(child.named_children))
