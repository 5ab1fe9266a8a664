"""Tests for LLM response parsing and batch description generation."""

import pytest

from plugin_profiler.graph.builder import GraphBuilder
from plugin_profiler.graph.collection import EntityCollection
from plugin_profiler.llm.client import PROVIDER_BASE_URLS, DescriptionClient, OpenAICompatibleClient, parse_descriptions
from plugin_profiler.llm.descriptions import DescriptionGenerator, build_entity_payload
from plugin_profiler.models.graph import EdgeRecord, EdgeType, NodeRecord, NodeType


class FakeClient(DescriptionClient):
    """Description client recording the batches it receives."""

    def __init__(self, fail_on_batch=None):
        self.batches = []
        self.fail_on_batch = fail_on_batch

    def generate_descriptions(self, entities):
        self.batches.append(entities)
        if len(self.batches) == self.fail_on_batch:
            raise RuntimeError("provider down")
        return {entity["id"]: f"Describes {entity['label']}." for entity in entities}


@pytest.fixture
def graph(plugin_metadata):
    collection = EntityCollection()
    collection.add_node(
        NodeRecord(
            id="func_boot",
            label="boot",
            type=NodeType.FUNCTION,
            metadata={"namespace": "Acme", "params": []},
            source_preview="\n".join(f"line {n}" for n in range(1, 16)),
        )
    )
    for n in range(4):
        collection.add_node(NodeRecord(id=f"hook_action_h{n}", label=f"h{n}", type=NodeType.HOOK))
        collection.add_edge(EdgeRecord.make("func_boot", f"hook_action_h{n}", EdgeType.REGISTERS_HOOK))
    return GraphBuilder().build(collection, plugin_metadata)


class TestParseDescriptions:
    """Lenient JSON extraction from model output."""

    def test_plain_json(self):
        """Test a bare JSON object."""
        assert parse_descriptions('{"a": "first", "b": "second"}') == {"a": "first", "b": "second"}

    def test_fenced_json_with_commentary(self):
        """Test code fences and trailing text are ignored."""
        raw = 'Here you go:\n```json\n{"a": "first"}\n```\nHope this helps.'

        assert parse_descriptions(raw) == {"a": "first"}

    def test_non_string_values_dropped(self):
        """Test only string descriptions are kept."""
        assert parse_descriptions('{"a": "ok", "b": 3, "c": null}') == {"a": "ok"}

    @pytest.mark.parametrize("raw", ["", "no json here", "{broken", "[1, 2]"])
    def test_unparseable(self, raw):
        """Test garbage yields an empty mapping."""
        assert parse_descriptions(raw) == {}


class TestDescriptionGenerator:
    """Batching, payloads and failure isolation."""

    def test_all_nodes_described_in_batches(self, graph):
        """Test nodes are sent in batches and descriptions attached."""
        client = FakeClient()
        progress = []

        described = DescriptionGenerator(client, batch_size=2).generate(
            graph, on_progress=lambda done, total: progress.append((done, total))
        )

        assert described == 5
        assert [len(batch) for batch in client.batches] == [2, 2, 1]
        assert progress == [(2, 5), (4, 5), (5, 5)]
        assert graph.nodes[0].description == "Describes boot."

    def test_failed_batch_is_skipped(self, graph):
        """Test a failing batch leaves its nodes undescribed but others proceed."""
        client = FakeClient(fail_on_batch=1)

        described = DescriptionGenerator(client, batch_size=2).generate(graph)

        assert described == 3
        assert graph.nodes[0].description is None
        assert graph.nodes[4].description == "Describes h3."

    def test_payload_contents(self, graph):
        """Test the payload carries metadata, connections and a snippet."""
        node = graph.nodes[0]
        payload = build_entity_payload(node, [f"t{n} (calls)" for n in range(12)])

        assert payload["id"] == "func_boot"
        assert payload["type"] == "function"
        assert payload["namespace"] == "Acme"
        assert "params" not in payload
        assert len(payload["connections"]) == 10
        assert payload["code_snippet"].splitlines() == [f"line {n}" for n in range(1, 11)]

    def test_payload_omits_empty_fields(self, graph):
        """Test nodes without metadata or preview get a minimal payload."""
        assert build_entity_payload(graph.nodes[1], []) == {
            "id": "hook_action_h0",
            "type": "hook",
            "label": "h0",
        }


class TestOpenAICompatibleClient:
    """Provider resolution."""

    def test_for_provider_uses_known_base_url(self):
        """Test a named provider selects its endpoint."""
        client = OpenAICompatibleClient.for_provider("deepseek", api_key="k", model="m", base_url=None)

        assert client.base_url == PROVIDER_BASE_URLS["deepseek"]
        assert client.model == "m"

    def test_explicit_base_url_wins(self):
        """Test an explicit endpoint overrides the provider default."""
        client = OpenAICompatibleClient.for_provider("ollama", api_key="k", base_url="http://llm:8080/v1/")

        assert client.base_url == "http://llm:8080/v1/"
