"""Action and filter registrations and triggers."""

from __future__ import annotations

from typing import Optional

from tree_sitter import Node

from plugin_profiler.graph import naming
from plugin_profiler.models.graph import EdgeRecord, EdgeType, NodeRecord, NodeType
from plugin_profiler.parsers.base import FileContext, line_of, node_text, unwrap_parens
from plugin_profiler.parsers.php_syntax import (
    array_elements,
    call_arguments,
    class_reference,
    function_name,
    integer_value,
    is_closure,
    is_magic_constant,
    string_value,
)
from plugin_profiler.parsers.visitors.base import NamespaceAwareVisitor

REGISTER_FUNCTIONS = {"add_action": "action", "add_filter": "filter"}
TRIGGER_FUNCTIONS = {
    "do_action": "action",
    "do_action_ref_array": "action",
    "apply_filters": "filter",
    "apply_filters_ref_array": "filter",
}
DEFAULT_PRIORITY = 10
AJAX_PREFIX = "wp_ajax_"
AJAX_NOPRIV_PREFIX = "wp_ajax_nopriv_"


def ajax_action(hook_name: str) -> Optional[str]:
    """Return the AJAX action of a ``wp_ajax_*`` hook name, else ``None``."""
    if hook_name.startswith(AJAX_NOPRIV_PREFIX):
        return hook_name[len(AJAX_NOPRIV_PREFIX) :]
    if hook_name.startswith(AJAX_PREFIX):
        return hook_name[len(AJAX_PREFIX) :]
    return None


class HookVisitor(NamespaceAwareVisitor):
    """Builds one node per ``(kind, name)`` hook and links callbacks and callers.

    ``add_action``/``add_filter`` draw ``registers_hook`` edges from the
    resolved callback to the hook; ``do_action``/``apply_filters`` draw
    ``triggers_hook`` edges from the enclosing callable.  Callbacks are
    resolved syntactically:

    - ``'fn'`` → ``func_fn``; ``'Class::method'`` → ``method_Class_method``;
    - ``[$this | __CLASS__ | self::class | 'Class' | Class::class, 'method']``
      → ``method_{Class}_{method}``;
    - closures and arrow functions → a ``func_anonymous_*`` node created here.

    Anything else (variables, ``__NAMESPACE__`` concatenations) yields no edge.
    """

    def enter_node(self, node: Node, ctx: FileContext) -> None:
        super().enter_node(node, ctx)
        if node.type != "function_call_expression":
            return
        name = function_name(node)
        if name in REGISTER_FUNCTIONS:
            self._handle_register(node, ctx, REGISTER_FUNCTIONS[name])
        elif name in TRIGGER_FUNCTIONS:
            self._handle_trigger(node, ctx, TRIGGER_FUNCTIONS[name])

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _handle_register(self, node: Node, ctx: FileContext, kind: str) -> None:
        args = call_arguments(node)
        if not args:
            return
        line = line_of(node)
        hook_name = self._hook_name(args[0], ctx, line)
        priority = integer_value(args[2]) if len(args) > 2 else None
        hook_id = self._ensure_hook(kind, hook_name, ctx, line, DEFAULT_PRIORITY if priority is None else priority)

        if len(args) > 1:
            callback_id = self._resolve_callback(args[1], ctx)
            if callback_id is not None:
                self.collection.add_edge(EdgeRecord.make(callback_id, hook_id, EdgeType.REGISTERS_HOOK, "registers"))

        action = ajax_action(hook_name)
        # The handler node is registered by ExternalInterfaceVisitor, which
        # sees this call after us, so only a repeat registration links here.
        if action and self.collection.has_node(naming.ajax_handler_id(action)):
            self.collection.add_edge(
                EdgeRecord.make(hook_id, naming.ajax_handler_id(action), EdgeType.TRIGGERS_HANDLER, "triggers")
            )

    def _handle_trigger(self, node: Node, ctx: FileContext, kind: str) -> None:
        args = call_arguments(node)
        if not args:
            return
        line = line_of(node)
        hook_id = self._ensure_hook(kind, self._hook_name(args[0], ctx, line), ctx, line, DEFAULT_PRIORITY)
        caller_id = self.current_caller_id()
        if caller_id is not None:
            self.collection.add_edge(EdgeRecord.make(caller_id, hook_id, EdgeType.TRIGGERS_HOOK, "triggers"))

    # ------------------------------------------------------------------
    # Resolution helpers
    # ------------------------------------------------------------------

    def _ensure_hook(
        self,
        kind: str,
        hook_name: str,
        ctx: FileContext,
        line: int,
        priority: int,
    ) -> str:
        metadata = {"hook_name": hook_name, "priority": priority}
        hook_id = naming.hook_id(kind, hook_name)
        self.collection.add_node(
            NodeRecord(
                id=hook_id,
                label=hook_name,
                type=NodeType.HOOK,
                subtype=kind,
                file=ctx.path,
                line=line,
                metadata=metadata,
            )
        )
        return hook_id

    @staticmethod
    def _hook_name(arg: Node, ctx: FileContext, line: int) -> str:
        value = string_value(arg)
        if value:
            return value
        return naming.dynamic_hook_name(ctx.relative_path, line)

    def _resolve_callback(self, arg: Node, ctx: FileContext) -> Optional[str]:
        arg = unwrap_parens(arg)
        if arg is None:
            return None

        if is_closure(arg):
            line = line_of(arg)
            anonymous_id = naming.anonymous_function_id(ctx.relative_path, line)
            self.collection.add_node(
                NodeRecord(
                    id=anonymous_id,
                    label=f"anonymous@{ctx.basename}:{line}",
                    type=NodeType.FUNCTION,
                    subtype="closure",
                    file=ctx.path,
                    line=line,
                    source_preview=self.extract_source_preview(arg, ctx),
                )
            )
            return anonymous_id

        text = string_value(arg)
        if text is not None:
            if "::" in text:
                class_name, _, method = text.partition("::")
                return naming.method_id(class_name, method) if class_name and method else None
            return naming.function_id(text) if text else None

        elements = array_elements(arg)
        if len(elements) == 2:
            owner = self._callback_owner(elements[0][1])
            method = string_value(elements[1][1])
            if owner and method:
                return naming.method_id(owner, method)
        return None

    def _callback_owner(self, node: Node) -> Optional[str]:
        """Class named by the first element of an array callback."""
        node = unwrap_parens(node)
        if node is None:
            return None
        if node.type == "variable_name" and node_text(node) == "$this":
            return self.current_class
        if is_magic_constant(node, "__CLASS__"):
            return self.current_class
        literal = string_value(node)
        if literal is not None:
            return literal or None
        reference = class_reference(node)
        if reference is None:
            return None
        if reference.lower() in ("self", "static"):
            return self.current_class
        if reference.lower() == "parent":
            return None
        return reference
