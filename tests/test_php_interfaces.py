"""Tests for data access and external interface extraction."""

from plugin_profiler.models.graph import EdgeType, NodeType


def _edges(collection, edge_type):
    return {(edge.source, edge.target, edge.label) for edge in collection.get_all_edges() if edge.type == edge_type}


def _nodes(collection, node_type):
    return [node for node in collection.get_all_nodes() if node.type == node_type]


class TestDataSourceVisitor:
    """Options, meta, transients and ``$wpdb``."""

    def test_option_read_write_delete(self, parse_php):
        """Test each storage operation gets its own node and edge label."""
        collection = parse_php(
            """<?php
function acme_settings() {
    $v = get_option('acme_settings');
    update_option('acme_settings', $v);
    delete_option('acme_settings');
}
"""
        )

        read = collection.get_node("data_read_acme_settings")
        assert read.type == NodeType.DATA_SOURCE
        assert read.subtype == "option"
        assert read.metadata == {"operation": "read", "key": "acme_settings"}
        assert collection.has_node("data_write_acme_settings")
        assert collection.has_node("data_delete_acme_settings")

        assert ("func_acme_settings", "data_read_acme_settings", "reads") in _edges(collection, EdgeType.READS_DATA)
        writes = _edges(collection, EdgeType.WRITES_DATA)
        assert ("func_acme_settings", "data_write_acme_settings", "writes") in writes
        assert ("func_acme_settings", "data_delete_acme_settings", "deletes") in writes

    def test_meta_key_argument_and_dynamic_key(self, parse_php):
        """Test meta functions read the key from the second argument."""
        collection = parse_php(
            "<?php\nget_post_meta($id, '_acme_price', true);\nget_user_meta($uid, $key);\n"
        )

        meta = collection.get_node("data_read__acme_price")
        assert meta.subtype == "post_meta"
        dynamic = [node for node in _nodes(collection, NodeType.DATA_SOURCE) if node.metadata["key"] is None]
        assert len(dynamic) == 1
        assert dynamic[0].id.startswith("data_read_dynamic_")
        assert dynamic[0].subtype == "user_meta"

    def test_file_scope_access_has_no_edge(self, parse_php):
        """Test storage access outside any callable only registers the node."""
        collection = parse_php("<?php\n$x = get_transient('acme_cache');\n")

        assert collection.has_node("data_read_acme_cache")
        assert not collection.get_all_edges()

    def test_wpdb_calls(self, parse_php):
        """Test ``$wpdb`` methods, prepared queries and the table prefix."""
        collection = parse_php(
            """<?php
function acme_rows() {
    global $wpdb;
    $wpdb->insert($wpdb->prefix . 'acme_log', ['a' => 1]);
    return $wpdb->get_results($wpdb->prepare('SELECT * FROM t WHERE id = %d', 3));
}
"""
        )

        insert = collection.get_node("data_write__prefix_acme_log")
        assert insert.subtype == "database"
        assert insert.metadata["key"] == "{prefix}acme_log"
        select = [node for node in _nodes(collection, NodeType.DATA_SOURCE) if node.metadata["operation"] == "read"]
        assert select[0].metadata["key"] == "SELECT * FROM t WHERE id = %d"


class TestExternalInterfaceVisitor:
    """REST routes, shortcodes, admin pages, cron, types and HTTP calls."""

    def test_rest_route_methods(self, parse_php):
        """Test REST routes produce one node per method."""
        collection = parse_php(
            """<?php
register_rest_route('acme/v1', '/items', ['methods' => 'GET, post', 'callback' => 'cb']);
register_rest_route('/acme/v1/', 'items/(?P<id>\\d+)', ['methods' => WP_REST_Server::EDITABLE]);
register_rest_route('acme/v1', '/ping');
"""
        )

        get = collection.get_node("rest_GET_acme_v1_items")
        assert get.type == NodeType.REST_ENDPOINT
        assert get.label == "GET acme/v1/items"
        assert get.metadata == {"http_method": "GET", "route": "acme/v1/items"}
        assert collection.has_node("rest_POST_acme_v1_items")

        editable = {node.metadata["http_method"] for node in _nodes(collection, NodeType.REST_ENDPOINT)
                    if node.metadata["route"].startswith("acme/v1/items/")}
        assert editable == {"POST", "PUT", "PATCH"}
        assert collection.has_node("rest_GET_acme_v1_ping")

    def test_rest_route_endpoint_list(self, parse_php):
        """Test a list of endpoint arrays contributes every method."""
        collection = parse_php(
            """<?php
register_rest_route('acme/v1', '/things', [
    ['methods' => 'GET', 'callback' => 'a'],
    ['methods' => ['DELETE'], 'callback' => 'b'],
]);
"""
        )

        assert collection.has_node("rest_GET_acme_v1_things")
        assert collection.has_node("rest_DELETE_acme_v1_things")

    def test_shortcode_admin_cron_types(self, parse_php):
        """Test the remaining WordPress registrations."""
        collection = parse_php(
            """<?php
add_shortcode('acme_form', 'acme_form');
add_menu_page('Acme Settings', 'Acme', 'manage_options', 'acme-settings', 'cb');
add_submenu_page('acme-settings', 'Acme Logs', 'Logs', 'manage_options', 'acme-logs', 'cb');
wp_schedule_event(time(), 'hourly', 'acme_cleanup');
register_post_type('acme_item', []);
register_taxonomy('acme_tag', 'acme_item');
"""
        )

        assert collection.get_node("shortcode_acme_form").label == "[acme_form]"
        assert collection.get_node("admin_acme-settings").label == "Acme Settings"
        assert collection.get_node("admin_acme-logs").label == "Acme Logs"
        cron = collection.get_node("cron_acme_cleanup")
        assert cron.type == NodeType.CRON_JOB
        assert cron.metadata["hook_name"] == "acme_cleanup"
        assert collection.get_node("post_type_acme_item").type == NodeType.POST_TYPE
        assert collection.get_node("taxonomy_acme_tag").type == NodeType.TAXONOMY

    def test_http_calls(self, parse_php):
        """Test outbound HTTP calls with static and dynamic URLs."""
        collection = parse_php(
            "<?php\nwp_remote_get('https://api.example.com/v1');\nwp_safe_remote_post($url);\n"
        )

        calls = {node.label: node for node in _nodes(collection, NodeType.HTTP_CALL)}
        assert set(calls) == {"GET https://api.example.com/v1", "POST dynamic"}
        assert calls["GET https://api.example.com/v1"].metadata["route"] == "https://api.example.com/v1"
        assert calls["POST dynamic"].metadata == {"http_method": "POST", "route": None}

    def test_unresolvable_registration_is_skipped(self, parse_php):
        """Test registrations without a literal identifier are ignored."""
        collection = parse_php("<?php\nadd_shortcode($tag, 'cb');\nregister_post_type($slug);\n")

        assert not collection.get_all_nodes()
