"""Entry points a plugin exposes to WordPress and calls it makes outward."""

from __future__ import annotations

from typing import Optional

from tree_sitter import Node

from plugin_profiler.graph import naming
from plugin_profiler.models.graph import NodeRecord, NodeType
from plugin_profiler.parsers.base import FileContext, line_of, node_text, unwrap_parens
from plugin_profiler.parsers.php_syntax import (
    argument_at,
    array_elements,
    array_lookup,
    call_arguments,
    function_name,
    string_value,
)
from plugin_profiler.parsers.visitors.base import NamespaceAwareVisitor
from plugin_profiler.parsers.visitors.hook_visitor import REGISTER_FUNCTIONS, ajax_action

DEFAULT_REST_METHOD = "GET"

# WP_REST_Server method constants
REST_SERVER_METHODS: dict[str, list[str]] = {
    "READABLE": ["GET"],
    "CREATABLE": ["POST"],
    "EDITABLE": ["POST", "PUT", "PATCH"],
    "DELETABLE": ["DELETE"],
    "ALLMETHODS": ["GET", "POST", "PUT", "PATCH", "DELETE"],
}

# function -> (slug argument index, title argument index)
ADMIN_PAGE_FUNCTIONS: dict[str, tuple[int, int]] = {
    "add_menu_page": (3, 0),
    "add_submenu_page": (4, 1),
    "add_options_page": (3, 0),
    "add_management_page": (3, 0),
    "add_theme_page": (3, 0),
    "add_users_page": (3, 0),
    "add_dashboard_page": (3, 0),
}

# function -> hook argument index
CRON_FUNCTIONS: dict[str, int] = {
    "wp_schedule_event": 2,
    "wp_schedule_single_event": 1,
}

HTTP_FUNCTIONS: dict[str, str] = {
    "wp_remote_get": "GET",
    "wp_remote_post": "POST",
    "wp_remote_head": "HEAD",
    "wp_remote_request": "REQUEST",
    "wp_safe_remote_get": "GET",
    "wp_safe_remote_post": "POST",
    "wp_safe_remote_head": "HEAD",
    "wp_safe_remote_request": "REQUEST",
}


class ExternalInterfaceVisitor(NamespaceAwareVisitor):
    """Registers REST routes, shortcodes, admin pages, cron events,
    post types, taxonomies, outbound HTTP calls and AJAX actions.

    Registrations whose identifying argument is not a string literal are
    skipped; outbound HTTP calls are kept with a ``dynamic`` URL.
    """

    def enter_node(self, node: Node, ctx: FileContext) -> None:
        super().enter_node(node, ctx)
        if node.type != "function_call_expression":
            return
        name = function_name(node)
        if name is None:
            return
        args = call_arguments(node)
        if name == "register_rest_route":
            self._handle_rest_route(node, args, ctx)
        elif name == "add_shortcode":
            self._handle_shortcode(node, args, ctx)
        elif name in ADMIN_PAGE_FUNCTIONS:
            self._handle_admin_page(node, args, ctx, *ADMIN_PAGE_FUNCTIONS[name])
        elif name in CRON_FUNCTIONS:
            self._handle_cron(node, args, ctx, CRON_FUNCTIONS[name])
        elif name == "register_post_type":
            self._handle_simple(node, args, ctx, NodeType.POST_TYPE, naming.post_type_id)
        elif name == "register_taxonomy":
            self._handle_simple(node, args, ctx, NodeType.TAXONOMY, naming.taxonomy_id)
        elif name in HTTP_FUNCTIONS:
            self._handle_http(node, args, ctx, HTTP_FUNCTIONS[name])
        elif name in REGISTER_FUNCTIONS:
            self._handle_ajax(node, args, ctx)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _handle_rest_route(self, node: Node, args: list[Node], ctx: FileContext) -> None:
        namespace = string_value(argument_at(args, 0))
        route = string_value(argument_at(args, 1))
        if namespace is None or route is None:
            return
        full_route = f"{namespace.strip('/')}/{route.lstrip('/')}"
        for method in self._rest_methods(argument_at(args, 2)):
            self.collection.add_node(
                NodeRecord(
                    id=naming.rest_endpoint_id(method, full_route),
                    label=f"{method} {full_route}",
                    type=NodeType.REST_ENDPOINT,
                    file=ctx.path,
                    line=line_of(node),
                    metadata={"http_method": method, "route": full_route},
                )
            )

    def _handle_shortcode(self, node: Node, args: list[Node], ctx: FileContext) -> None:
        tag = string_value(argument_at(args, 0))
        if not tag:
            return
        self.collection.add_node(
            NodeRecord(
                id=naming.shortcode_id(tag),
                label=f"[{tag}]",
                type=NodeType.SHORTCODE,
                file=ctx.path,
                line=line_of(node),
            )
        )

    def _handle_admin_page(
        self,
        node: Node,
        args: list[Node],
        ctx: FileContext,
        slug_index: int,
        title_index: int,
    ) -> None:
        slug = string_value(argument_at(args, slug_index))
        if not slug:
            return
        title = string_value(argument_at(args, title_index)) or slug
        self.collection.add_node(
            NodeRecord(
                id=naming.admin_page_id(slug),
                label=title,
                type=NodeType.ADMIN_PAGE,
                file=ctx.path,
                line=line_of(node),
            )
        )

    def _handle_cron(self, node: Node, args: list[Node], ctx: FileContext, hook_index: int) -> None:
        hook_name = string_value(argument_at(args, hook_index))
        if not hook_name:
            return
        self.collection.add_node(
            NodeRecord(
                id=naming.cron_job_id(hook_name),
                label=hook_name,
                type=NodeType.CRON_JOB,
                file=ctx.path,
                line=line_of(node),
                metadata={"hook_name": hook_name},
            )
        )

    def _handle_simple(self, node: Node, args: list[Node], ctx: FileContext, node_type: NodeType, make_id) -> None:
        slug = string_value(argument_at(args, 0))
        if not slug:
            return
        self.collection.add_node(
            NodeRecord(
                id=make_id(slug),
                label=slug,
                type=node_type,
                file=ctx.path,
                line=line_of(node),
            )
        )

    def _handle_http(self, node: Node, args: list[Node], ctx: FileContext, method: str) -> None:
        url = string_value(argument_at(args, 0))
        line = line_of(node)
        self.collection.add_node(
            NodeRecord(
                id=naming.http_call_id(url, ctx.relative_path, line),
                label=f"{method} {url or 'dynamic'}",
                type=NodeType.HTTP_CALL,
                file=ctx.path,
                line=line,
                metadata={"http_method": method, "route": url},
            )
        )

    def _handle_ajax(self, node: Node, args: list[Node], ctx: FileContext) -> None:
        hook_name = string_value(argument_at(args, 0))
        action = ajax_action(hook_name) if hook_name else None
        if not action:
            return
        self.collection.add_node(
            NodeRecord(
                id=naming.ajax_handler_id(action),
                label=action,
                type=NodeType.AJAX_HANDLER,
                file=ctx.path,
                line=line_of(node),
                metadata={"hook_name": hook_name},
            )
        )

    # ------------------------------------------------------------------
    # REST method resolution
    # ------------------------------------------------------------------

    def _rest_methods(self, endpoint_args: Optional[Node]) -> list[str]:
        """HTTP methods declared by the third ``register_rest_route`` argument.

        Accepts a single endpoint array or a list of endpoint arrays; each
        endpoint's ``methods`` may be a comma-separated string, a list of
        strings or a ``WP_REST_Server`` constant.
        """
        endpoint_args = unwrap_parens(endpoint_args)
        if endpoint_args is None:
            return [DEFAULT_REST_METHOD]

        elements = array_elements(endpoint_args)
        if elements and all(key is None for key, _ in elements):
            endpoints = [value for _, value in elements]
        else:
            endpoints = [endpoint_args]

        methods: list[str] = []
        for endpoint in endpoints:
            for method in self._endpoint_methods(array_lookup(endpoint, "methods")):
                if method not in methods:
                    methods.append(method)
        return methods or [DEFAULT_REST_METHOD]

    @staticmethod
    def _endpoint_methods(value: Optional[Node]) -> list[str]:
        value = unwrap_parens(value)
        if value is None:
            return []
        literal = string_value(value)
        if literal is not None:
            return [part.strip().upper() for part in literal.split(",") if part.strip()]
        if value.type == "class_constant_access_expression":
            constant = node_text(value.named_children[-1]).upper()
            return list(REST_SERVER_METHODS.get(constant, []))
        methods: list[str] = []
        for _, item in array_elements(value):
            item_value = string_value(item)
            if item_value:
                methods.append(item_value.strip().upper())
        return methods
