"""Behavioral scenarios spanning extraction and assembly."""

import json

from plugin_profiler.graph.builder import GraphBuilder
from plugin_profiler.models.graph import EdgeType
from plugin_profiler.parsers.block_json import BlockJsonVisitor


def _edges(edges, edge_type):
    return [(edge.source, edge.target) for edge in edges if edge.type == edge_type]


class TestScenarios:
    """One scenario per extractor family."""

    def test_undeclared_parent_is_dropped(self, parse_php, plugin_metadata):
        """Test an extends edge to an undeclared class disappears at assembly."""
        collection = parse_php("<?php\nclass Child extends ParentClass {}\n")

        child = collection.get_node("class_Child")
        assert child.metadata["extends"] == "ParentClass"
        assert _edges(collection.get_all_edges(), EdgeType.EXTENDS) == [("class_Child", "class_ParentClass")]

        graph = GraphBuilder().build(collection, plugin_metadata)
        assert _edges(graph.edges, EdgeType.EXTENDS) == []

    def test_declared_parent_is_kept(self, parse_php, plugin_metadata):
        """Test the extends edge survives when the parent is declared."""
        collection = parse_php("<?php\nclass Child extends ParentClass {}\nclass ParentClass {}\n")

        graph = GraphBuilder().build(collection, plugin_metadata)

        assert _edges(graph.edges, EdgeType.EXTENDS) == [("class_Child", "class_ParentClass")]

    def test_register_and_trigger_share_hook(self, parse_php):
        """Test registration and trigger meet on one hook node."""
        collection = parse_php(
            """<?php
add_action('init', 'callback_name');

function boot() {
    do_action('init');
}
"""
        )

        hooks = [node for node in collection.get_all_nodes() if node.id.startswith("hook_")]
        assert [hook.id for hook in hooks] == ["hook_action_init"]
        edges = collection.get_all_edges()
        assert _edges(edges, EdgeType.REGISTERS_HOOK) == [("func_callback_name", "hook_action_init")]
        assert _edges(edges, EdgeType.TRIGGERS_HOOK) == [("func_boot", "hook_action_init")]

    def test_manifest_render_template(self, collection, make_context):
        """Test a manifest links its block to the render template file."""
        manifest = json.dumps({"name": "ns/widget", "render": "file:./render.php"})

        BlockJsonVisitor(collection).parse_file(make_context(manifest, "blocks/widget/block.json"))

        assert collection.has_node("block_ns_widget")
        assert collection.get_node("file_blocks_widget_render_php").file.endswith("blocks/widget/render.php")
        assert _edges(collection.get_all_edges(), EdgeType.RENDERS_BLOCK) == [
            ("block_ns_widget", "file_blocks_widget_render_php")
        ]

    def test_literal_and_dynamic_storage_keys(self, parse_php):
        """Test literal keys share a node and dynamic keys get a placeholder."""
        collection = parse_php(
            """<?php
function load() {
    $a = get_option('setting');
    $b = get_option($name);
}
"""
        )

        node = collection.get_node("data_read_setting")
        assert node.metadata["operation"] == "read"
        reads = _edges(collection.get_all_edges(), EdgeType.READS_DATA)
        assert ("func_load", "data_read_setting") in reads

        dynamic = [n for n in collection.get_all_nodes() if n.id.startswith("data_read_dynamic_")]
        assert len(dynamic) == 1
        assert dynamic[0].metadata["key"] is None
        assert ("func_load", dynamic[0].id) in reads
