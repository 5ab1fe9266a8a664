"""Shared fixtures for the analyzer test suite."""

import pathlib
from datetime import datetime, timezone

import pytest

from plugin_profiler.graph.collection import EntityCollection
from plugin_profiler.models.graph import PluginMetadata
from plugin_profiler.parsers.base import FileContext
from plugin_profiler.parsers.php_parser import PhpParser

FIXTURES = pathlib.Path(__file__).parent / "fixtures"
PLUGIN_ROOT = "/plugins/demo"


@pytest.fixture
def sample_plugin() -> pathlib.Path:
    """Path to the sample plugin fixture."""
    return FIXTURES / "sample-plugin"


@pytest.fixture
def collection() -> EntityCollection:
    """Empty entity store."""
    return EntityCollection()


@pytest.fixture
def plugin_metadata() -> PluginMetadata:
    """Minimal plugin metadata for graph assembly."""
    return PluginMetadata(
        name="Demo",
        analyzed_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        analyzer_version="test",
    )


def _context(source: str, relative: str = "demo.php") -> FileContext:
    """File context for a file that lives under :data:`PLUGIN_ROOT`."""
    return FileContext(path=f"{PLUGIN_ROOT}/{relative}", source=source, plugin_root=PLUGIN_ROOT)


@pytest.fixture
def parse_php(collection):
    """Run the PHP extractors over a snippet and return the populated store."""

    def _parse(source: str, relative: str = "demo.php") -> EntityCollection:
        PhpParser(collection).parse_file(_context(source, relative))
        return collection

    return _parse


@pytest.fixture
def make_context():
    """Factory for file contexts rooted at :data:`PLUGIN_ROOT`."""
    return _context
