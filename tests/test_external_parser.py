"""Tests for the external script extractor strategy and the parser factory."""

import json
import shlex
import subprocess
import sys

import pytest

from plugin_profiler.parsers.external_script_parser import ExternalScriptParser, parse_payload
from plugin_profiler.parsers.factory import ParserFactory
from plugin_profiler.parsers.javascript_parser import NativeScriptParser


class TestParsePayload:
    """Payload and diagnostics splitting."""

    def test_last_array_line_is_payload(self):
        """Test diagnostics before the payload are returned separately."""
        output = 'warning: something odd\n[{"type": "js_function", "name": "a", "line": 1}]\n'

        payload, diagnostics = parse_payload(output)

        assert payload == [{"type": "js_function", "name": "a", "line": 1}]
        assert diagnostics == ["warning: something odd"]

    def test_no_payload(self):
        """Test output without a JSON array yields no payload."""
        payload, diagnostics = parse_payload("Error: cannot parse\n[broken\n")

        assert payload is None
        assert diagnostics == ["Error: cannot parse", "[broken"]


class TestExternalScriptParser:
    """Subprocess invocation with failures isolated."""

    def test_entities_from_process_output(self, monkeypatch):
        """Test stdout entities are converted and malformed ones dropped."""
        stdout = json.dumps(
            [
                {"type": "js_hook", "name": "acme.init", "line": 4, "subtype": "action", "meta": {"x": 1}},
                {"type": "js_function", "line": 2},
                "not an object",
            ]
        )
        calls = []

        def fake_run(args, **kwargs):
            calls.append(args)
            return subprocess.CompletedProcess(args, 0, stdout=stdout, stderr="")

        monkeypatch.setattr(subprocess, "run", fake_run)

        entities = ExternalScriptParser(command="node extract.js", timeout=5).parse("", "/p/a.js")

        assert calls == [["node", "extract.js", "/p/a.js"]]
        assert len(entities) == 1
        assert entities[0].name == "acme.init"
        assert entities[0].subtype == "action"
        assert entities[0].meta == {"x": 1}

    def test_non_zero_exit(self, monkeypatch):
        """Test a failing extractor yields no entities."""
        monkeypatch.setattr(
            subprocess,
            "run",
            lambda args, **kwargs: subprocess.CompletedProcess(args, 1, stdout="[]", stderr="boom"),
        )

        assert ExternalScriptParser(command="extract").parse("", "a.js") == []

    def test_timeout(self, monkeypatch):
        """Test a timed-out extractor yields no entities."""

        def fake_run(args, **kwargs):
            raise subprocess.TimeoutExpired(args, kwargs["timeout"])

        monkeypatch.setattr(subprocess, "run", fake_run)

        assert ExternalScriptParser(command="extract", timeout=1).parse("", "a.js") == []

    def test_missing_executable(self):
        """Test an extractor that cannot be started yields no entities."""
        parser = ExternalScriptParser(command="definitely-not-a-real-extractor-binary")

        assert parser.parse("", "a.js") == []

    def test_invalid_utf8_output(self):
        """Test undecodable extractor output is replaced instead of raising."""
        script = (
            "import sys; sys.stdout.buffer.write("
            "b'\\xff\\xfe\\n[{\"type\": \"js_hook\", \"name\": \"acme.init\", \"line\": 1, \"subtype\": \"action\"}]\\n')"
        )
        parser = ExternalScriptParser(command=shlex.join([sys.executable, "-c", script]), timeout=30)

        entities = parser.parse("", "a.js")

        assert [entity.name for entity in entities] == ["acme.init"]


class TestParserFactory:
    """Strategy registry."""

    def test_defaults(self):
        """Test the built-in strategies are registered and cached."""
        factory = ParserFactory.with_defaults()

        assert factory.strategies == ["external", "native"]
        parser = factory.get("native")
        assert isinstance(parser, NativeScriptParser)
        assert factory.get("native") is parser

    def test_unknown_strategy(self):
        """Test unknown strategies return ``None``."""
        assert ParserFactory.with_defaults().get("wasm") is None

    @pytest.mark.parametrize("name", ["native", "external"])
    def test_register_replaces_cached_instance(self, name):
        """Test re-registering a strategy drops the cached instance."""
        factory = ParserFactory.with_defaults()
        first = factory.get(name)

        factory.register(name, NativeScriptParser)

        assert factory.get(name) is not first
