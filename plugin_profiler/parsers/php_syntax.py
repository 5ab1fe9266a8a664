"""Helpers for reading values out of the tree-sitter PHP syntax tree.

All helpers accept ``None`` and return ``None`` (or an empty list) when the
node is not of the expected shape; callers treat that as "not statically
known".
"""

from __future__ import annotations

from typing import Optional

from tree_sitter import Node

from plugin_profiler.parsers.base import node_text, unwrap_parens

CLOSURE_TYPES = frozenset({"anonymous_function", "anonymous_function_creation_expression", "arrow_function"})
CLASS_LIKE_TYPES = frozenset({"class_declaration", "interface_declaration", "trait_declaration", "enum_declaration"})
PARAMETER_TYPES = frozenset({"simple_parameter", "variadic_parameter", "property_promotion_parameter"})
INCLUDE_TYPES = frozenset({"include_expression", "include_once_expression", "require_expression", "require_once_expression"})

_LITERAL_STRING_PARTS = frozenset({"string", "string_content", "string_value", "escape_sequence"})
_DOUBLE_QUOTED_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", '"': '"', "$": "$", "0": "\0"}


def _unescape_single(body: str) -> str:
    return body.replace("\\\\", "\0").replace("\\'", "'").replace("\0", "\\")


def _unescape_double(body: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(body):
        char = body[i]
        if char == "\\" and i + 1 < len(body) and body[i + 1] in _DOUBLE_QUOTED_ESCAPES:
            out.append(_DOUBLE_QUOTED_ESCAPES[body[i + 1]])
            i += 2
            continue
        out.append(char)
        i += 1
    return "".join(out)


def string_value(node: Optional[Node]) -> Optional[str]:
    """Return the value of a string literal without interpolation."""
    node = unwrap_parens(node)
    if node is None:
        return None
    text = node_text(node)
    if text[:1] in ("b", "B"):
        text = text[1:]
    if node.type == "string":
        if len(text) >= 2 and text[0] == "'" and text[-1] == "'":
            return _unescape_single(text[1:-1])
        if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
            return _unescape_double(text[1:-1])
        return None
    if node.type == "encapsed_string":
        if any(child.type not in _LITERAL_STRING_PARTS for child in node.named_children):
            return None
        if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
            return _unescape_double(text[1:-1])
    return None


def integer_value(node: Optional[Node]) -> Optional[int]:
    """Return the value of a decimal integer literal, including a leading minus."""
    node = unwrap_parens(node)
    if node is None:
        return None
    text = node_text(node).replace(" ", "").replace("_", "")
    if node.type == "unary_op_expression" and text.startswith("-"):
        return -int(text[1:]) if text[1:].isdigit() else None
    if node.type == "integer" and text.isdigit():
        return int(text)
    return None


def call_arguments(call: Node) -> list[Node]:
    """Return the value expressions passed to a call, in order."""
    args = call.child_by_field_name("arguments")
    if args is None:
        return []
    values: list[Node] = []
    for child in args.named_children:
        if child.type == "comment":
            continue
        if child.type == "argument":
            # Named arguments carry a ``name`` child ahead of the value.
            parts = [part for part in child.named_children if part.type != "comment"]
            if parts:
                values.append(parts[-1])
        else:
            values.append(child)
    return values


def argument_at(args: list[Node], index: int) -> Optional[Node]:
    return args[index] if index < len(args) else None


def function_name(call: Node) -> Optional[str]:
    """Lower-cased name of the function invoked by a ``function_call_expression``."""
    callee = call.child_by_field_name("function")
    if callee is None or callee.type not in ("name", "qualified_name"):
        return None
    return node_text(callee).lstrip("\\").lower()


def member_name(call: Node) -> Optional[str]:
    """Name of the method invoked by a member or scoped call."""
    name = call.child_by_field_name("name")
    if name is None or name.type != "name":
        return None
    return node_text(name)


def array_elements(node: Optional[Node]) -> list[tuple[Optional[Node], Node]]:
    """Return ``(key, value)`` pairs of an array literal; *key* is ``None`` for list items."""
    node = unwrap_parens(node)
    if node is None or node.type != "array_creation_expression":
        return []
    elements: list[tuple[Optional[Node], Node]] = []
    for child in node.named_children:
        if child.type != "array_element_initializer":
            continue
        parts = [part for part in child.named_children if part.type != "comment"]
        if len(parts) == 2:
            elements.append((parts[0], parts[1]))
        elif len(parts) == 1:
            elements.append((None, parts[0]))
    return elements


def array_lookup(node: Optional[Node], key: str) -> Optional[Node]:
    """Return the value stored under string *key* in an array literal."""
    for item_key, value in array_elements(node):
        if item_key is not None and string_value(item_key) == key:
            return value
    return None


def class_reference(node: Optional[Node]) -> Optional[str]:
    """Return ``Foo`` for a ``Foo::class`` expression (``self``/``static``/``parent`` kept as written)."""
    node = unwrap_parens(node)
    if node is None or node.type != "class_constant_access_expression":
        return None
    parts = node.named_children
    if len(parts) != 2 or node_text(parts[1]).lower() != "class":
        return None
    return node_text(parts[0])


def is_magic_constant(node: Optional[Node], name: str) -> bool:
    node = unwrap_parens(node)
    return node is not None and node_text(node).upper() == name


def is_closure(node: Optional[Node]) -> bool:
    node = unwrap_parens(node)
    return node is not None and node.type in CLOSURE_TYPES


def render_type(node: Optional[Node]) -> Optional[str]:
    """Render a type declaration as written: ``?T``, ``A|B``, ``A&B`` or a plain name."""
    if node is None:
        return None
    if node.type == "optional_type":
        inner = node.named_children
        return "?" + (render_type(inner[0]) or "") if inner else node_text(node)
    if node.type in ("union_type", "intersection_type"):
        separator = "|" if node.type == "union_type" else "&"
        parts = [render_type(part) for part in node.named_children if part.type != "comment"]
        return separator.join(part for part in parts if part)
    if node.type == "disjunctive_normal_form_type":
        return "".join(node_text(node).split())
    return node_text(node)


def parameters(declaration: Node) -> list[dict[str, Optional[str]]]:
    """Ordered ``{name, type}`` entries of a function or method declaration."""
    params_node = declaration.child_by_field_name("parameters")
    if params_node is None:
        return []
    result: list[dict[str, Optional[str]]] = []
    for param in params_node.named_children:
        if param.type not in PARAMETER_TYPES:
            continue
        result.append(
            {
                "name": node_text(param.child_by_field_name("name")),
                "type": render_type(param.child_by_field_name("type")),
            }
        )
    return result


def return_type(declaration: Node) -> Optional[str]:
    return render_type(declaration.child_by_field_name("return_type"))


def declared_names(clause: Optional[Node]) -> list[str]:
    """Names listed by a ``base_clause`` or ``class_interface_clause``."""
    if clause is None:
        return []
    return [node_text(child) for child in clause.named_children if child.type in ("name", "qualified_name")]


def child_of_type(node: Node, type_name: str) -> Optional[Node]:
    for child in node.named_children:
        if child.type == type_name:
            return child
    return None
