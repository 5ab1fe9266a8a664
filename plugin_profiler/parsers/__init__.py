"""PHP, script and manifest extractors and the script parser factory."""

from plugin_profiler.parsers.base import FileContext, ScriptEntity, ScriptParser
from plugin_profiler.parsers.factory import ParserFactory

__all__ = ["FileContext", "ScriptEntity", "ScriptParser", "ParserFactory"]
