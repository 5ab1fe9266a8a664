"""Tree-sitter based extraction of front-end entities from script files.

Handles JavaScript (with JSX), TypeScript and TSX.  The grammar is chosen
from the file extension; unknown extensions fall back to JavaScript.
"""

from __future__ import annotations

import pathlib
import re
from typing import Optional

import structlog
import tree_sitter_javascript as tsjavascript
import tree_sitter_typescript as tstypescript
from tree_sitter import Language, Node, Parser

from plugin_profiler.parsers.base import ScriptEntity, ScriptParser, line_of, node_text, unwrap_parens

logger = structlog.get_logger(__name__)

JS_LANGUAGE = Language(tsjavascript.language())
TS_LANGUAGE = Language(tstypescript.language_typescript())
TSX_LANGUAGE = Language(tstypescript.language_tsx())

LANGUAGE_BY_SUFFIX: dict[str, Language] = {
    ".js": JS_LANGUAGE,
    ".jsx": JS_LANGUAGE,
    ".mjs": JS_LANGUAGE,
    ".cjs": JS_LANGUAGE,
    ".ts": TS_LANGUAGE,
    ".tsx": TSX_LANGUAGE,
}

MARKUP_TYPES = frozenset({"jsx_element", "jsx_self_closing_element", "jsx_fragment"})
FUNCTION_VALUE_TYPES = frozenset({"arrow_function", "function_expression", "function", "generator_function"})
CLASS_TYPES = frozenset({"class_declaration", "abstract_class_declaration"})

BUILTIN_REACT_HOOKS = frozenset(
    {"useState", "useEffect", "useContext", "useReducer", "useRef", "useMemo", "useCallback", "useLayoutEffect"}
)
_CUSTOM_HOOK = re.compile(r"^use[A-Z]")
_AXIOS_VERB = re.compile(r"^axios\.(get|post|put|delete|patch|request|head)$", re.IGNORECASE)
_ASSET_IMPORT = re.compile(r"\.(css|scss|sass|less|svg|png|jpe?g|gif|webp|json)$")

BLOCK_REGISTRATION_CALLS = frozenset({"registerBlockType", "wp.blocks.registerBlockType"})
HOOK_REGISTRATION_CALLS = {
    "addAction": "action",
    "wp.hooks.addAction": "action",
    "addFilter": "filter",
    "wp.hooks.addFilter": "filter",
}
API_FETCH_CALLS = frozenset({"apiFetch", "wp.apiFetch"})


# ------------------------------------------------------------------
# Syntax helpers
# ------------------------------------------------------------------


def member_name(node: Optional[Node]) -> Optional[str]:
    """Dotted name of an identifier or member-expression chain.

    When the object of a member expression has no static name (a call, a
    subscript), only the property name is returned.
    """
    if node is None:
        return None
    if node.type in ("identifier", "property_identifier", "type_identifier"):
        return node_text(node)
    if node.type == "member_expression":
        prop = node.child_by_field_name("property")
        if prop is None:
            return None
        prop_name = node_text(prop)
        obj_name = member_name(node.child_by_field_name("object"))
        return f"{obj_name}.{prop_name}" if obj_name else prop_name
    return None


def string_value(node: Optional[Node]) -> Optional[str]:
    """Value of a quoted string or a template literal without substitutions."""
    node = unwrap_parens(node)
    if node is None:
        return None
    if node.type == "string":
        return node_text(node)[1:-1]
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.named_children):
            return None
        return node_text(node)[1:-1]
    return None


def object_property(node: Optional[Node], key: str) -> Optional[Node]:
    """Value node stored under *key* in an object literal."""
    node = unwrap_parens(node)
    if node is None or node.type != "object":
        return None
    for pair in node.named_children:
        if pair.type != "pair":
            continue
        key_node = pair.child_by_field_name("key")
        if key_node is None:
            continue
        name = string_value(key_node) if key_node.type == "string" else node_text(key_node)
        if name == key:
            return pair.child_by_field_name("value")
    return None


def call_arguments(call: Node) -> list[Node]:
    args = call.child_by_field_name("arguments")
    if args is None:
        return []
    return [child for child in args.named_children if child.type != "comment"]


def returns_markup(function: Optional[Node]) -> bool:
    """Whether a function directly returns JSX.

    Expression-bodied arrows must evaluate to JSX.  Block bodies qualify
    when a top-level ``return`` yields JSX or a conditional expression.
    """
    if function is None:
        return False
    body = function.child_by_field_name("body")
    if body is None:
        return False
    if body.type != "statement_block":
        expression = unwrap_parens(body)
        return expression is not None and expression.type in MARKUP_TYPES
    for statement in body.named_children:
        if statement.type != "return_statement":
            continue
        values = [child for child in statement.named_children if child.type != "comment"]
        value = unwrap_parens(values[0]) if values else None
        if value is not None and (value.type in MARKUP_TYPES or value.type == "ternary_expression"):
            return True
    return False


def superclass_name(class_node: Node) -> Optional[str]:
    for child in class_node.named_children:
        if child.type != "class_heritage":
            continue
        for clause in child.named_children:
            if clause.type == "extends_clause":
                value = clause.child_by_field_name("value")
                if value is None and clause.named_children:
                    value = clause.named_children[0]
                return member_name(value)
            if clause.type != "implements_clause":
                return member_name(clause)
    return None


# ------------------------------------------------------------------
# Parser
# ------------------------------------------------------------------


class NativeScriptParser(ScriptParser):
    """In-process script parser built on the tree-sitter JS/TS grammars.

    Reports, in source order:

    - components, plain functions and classes;
    - Gutenberg block, JS hook and ``apiFetch`` registrations;
    - ``fetch`` and ``axios`` calls;
    - React hook call sites;
    - imports of packages (relative and asset imports are skipped).
    """

    def __init__(self) -> None:
        self._parsers: dict[str, Parser] = {}

    def parse(self, source: str, file_path: str) -> list[ScriptEntity]:
        """Extract entities from one script.

        Args:
            source: Script contents.
            file_path: Path of the script; its suffix selects the grammar.

        Returns:
            Extracted entities in document order.
        """
        suffix = pathlib.PurePath(file_path).suffix.lower()
        parser = self._parser_for(suffix)
        tree = parser.parse(source.encode("utf-8"))
        root = tree.root_node
        if root.has_error:
            logger.warning("script_syntax_errors", file=file_path)

        entities: list[ScriptEntity] = []
        stack: list[Node] = [root]
        while stack:
            node = stack.pop()
            self._visit(node, entities)
            stack.extend(reversed(node.named_children))
        return entities

    def _parser_for(self, suffix: str) -> Parser:
        if suffix not in LANGUAGE_BY_SUFFIX:
            suffix = ".js"
        if suffix not in self._parsers:
            self._parsers[suffix] = Parser(LANGUAGE_BY_SUFFIX[suffix])
        return self._parsers[suffix]

    # ------------------------------------------------------------------
    # Node handlers
    # ------------------------------------------------------------------

    def _visit(self, node: Node, entities: list[ScriptEntity]) -> None:
        kind = node.type
        if kind in ("function_declaration", "generator_function_declaration"):
            name = node_text(node.child_by_field_name("name"))
            if name:
                entity_type = "react_component" if returns_markup(node) else "js_function"
                entities.append(ScriptEntity(type=entity_type, name=name, line=line_of(node)))
        elif kind in CLASS_TYPES:
            name = node_text(node.child_by_field_name("name"))
            if name:
                entities.append(
                    ScriptEntity(
                        type="js_class",
                        name=name,
                        line=line_of(node),
                        meta={"extends": superclass_name(node)},
                    )
                )
        elif kind in ("lexical_declaration", "variable_declaration"):
            self._visit_declaration(node, entities)
        elif kind == "call_expression":
            self._visit_call(node, entities)
        elif kind == "import_statement":
            module = string_value(node.child_by_field_name("source"))
            if module and not module.startswith((".", "/")) and not _ASSET_IMPORT.search(module):
                entities.append(ScriptEntity(type="js_import", name=module, line=line_of(node), meta={"source": module}))
        elif kind == "export_statement":
            self._visit_default_export(node, entities)

    def _visit_declaration(self, node: Node, entities: list[ScriptEntity]) -> None:
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            value = unwrap_parens(declarator.child_by_field_name("value"))
            if name_node is None or name_node.type != "identifier":
                continue
            if value is None or value.type not in FUNCTION_VALUE_TYPES:
                continue
            # Function-valued bindings are only reported when they render markup.
            if returns_markup(value):
                entities.append(ScriptEntity(type="react_component", name=node_text(name_node), line=line_of(declarator)))

    def _visit_default_export(self, node: Node, entities: list[ScriptEntity]) -> None:
        if not any(not child.is_named and child.type == "default" for child in node.children):
            return
        value = unwrap_parens(node.child_by_field_name("value") or node.child_by_field_name("declaration"))
        if value is None or value.type not in FUNCTION_VALUE_TYPES:
            return
        if value.child_by_field_name("name") is not None:
            return
        if returns_markup(value):
            entities.append(ScriptEntity(type="react_component", name="(default export)", line=line_of(node)))

    def _visit_call(self, node: Node, entities: list[ScriptEntity]) -> None:
        name = member_name(node.child_by_field_name("function"))
        if not name:
            return
        args = call_arguments(node)
        first = args[0] if args else None
        line = line_of(node)

        if name in BLOCK_REGISTRATION_CALLS:
            block_name = string_value(first)
            if block_name:
                entities.append(
                    ScriptEntity(type="gutenberg_block", name=block_name, line=line, meta={"block_name": block_name})
                )
        elif name in HOOK_REGISTRATION_CALLS:
            hook_name = string_value(first)
            if hook_name:
                entities.append(
                    ScriptEntity(
                        type="js_hook",
                        name=hook_name,
                        line=line,
                        subtype=HOOK_REGISTRATION_CALLS[name],
                        meta={"hook_name": hook_name},
                    )
                )
        elif name in API_FETCH_CALLS:
            path = string_value(object_property(first, "path"))
            method = (string_value(object_property(first, "method")) or "GET").upper()
            if path:
                entities.append(
                    ScriptEntity(
                        type="js_api_call",
                        name=f"{method} {path}",
                        line=line,
                        meta={"http_method": method, "route": path},
                    )
                )
        elif name == "fetch":
            url = string_value(first)
            options = args[1] if len(args) > 1 else None
            method = (string_value(object_property(options, "method")) or "GET").upper()
            entities.append(_http_entity("fetch_call", method, url, line))
        elif _AXIOS_VERB.match(name):
            method = name.split(".")[1].upper()
            entities.append(_http_entity("axios_call", method, string_value(first), line, subtype=method.lower()))
        elif name == "axios":
            method = (string_value(object_property(first, "method")) or "GET").upper()
            url = string_value(object_property(first, "url"))
            entities.append(_http_entity("axios_call", method, url, line, subtype=method.lower()))
        else:
            self._visit_react_hook(name, first, line, entities)

    @staticmethod
    def _visit_react_hook(name: str, first: Optional[Node], line: int, entities: list[ScriptEntity]) -> None:
        hook = name.rsplit(".", 1)[-1]
        if hook == "useContext":
            context = member_name(first) or string_value(first) or "unknown"
            entities.append(ScriptEntity(type="react_hook", name=f"useContext({context})", line=line, subtype=hook))
        elif hook in BUILTIN_REACT_HOOKS:
            entities.append(ScriptEntity(type="react_hook", name=hook, line=line, subtype=hook))
        elif _CUSTOM_HOOK.match(hook):
            entities.append(ScriptEntity(type="react_hook", name=hook, line=line, subtype="custom"))


def _http_entity(entity_type: str, method: str, url: Optional[str], line: int, subtype: Optional[str] = None) -> ScriptEntity:
    label = f"{method} {url}" if url else f"{method} (dynamic)"
    return ScriptEntity(
        type=entity_type,
        name=label,
        line=line,
        subtype=subtype,
        meta={"http_method": method, "route": url},
    )
