"""Factory for obtaining the configured script parser at runtime.

Adding a new script extraction strategy requires only:

1. Creating a new subclass of :class:`ScriptParser`.
2. Registering it via :meth:`ParserFactory.register`.
"""

from __future__ import annotations

from typing import Type

import structlog

from plugin_profiler.parsers.base import ScriptParser
from plugin_profiler.parsers.external_script_parser import ExternalScriptParser
from plugin_profiler.parsers.javascript_parser import NativeScriptParser

logger = structlog.get_logger(__name__)


class ParserFactory:
    """Registry-based factory that maps strategy names to script parser classes.

    Usage::

        factory = ParserFactory.with_defaults()
        parser = factory.get("native")
    """

    def __init__(self) -> None:
        self._registry: dict[str, Type[ScriptParser]] = {}
        self._instances: dict[str, ScriptParser] = {}

    @classmethod
    def with_defaults(cls) -> ParserFactory:
        """Return a factory with the ``native`` and ``external`` strategies registered."""
        factory = cls()
        factory.register("native", NativeScriptParser)
        factory.register("external", ExternalScriptParser)
        return factory

    def register(self, name: str, parser_cls: Type[ScriptParser]) -> None:
        """Register a parser class under *name*.

        Args:
            name: Lowercase strategy identifier (e.g. ``"native"``).
            parser_cls: A concrete subclass of :class:`ScriptParser`.
        """
        self._registry[name] = parser_cls
        self._instances.pop(name, None)
        logger.debug("parser_registered", strategy=name, cls=parser_cls.__name__)

    def get(self, name: str) -> ScriptParser | None:
        """Return a (cached) parser instance for *name*.

        Args:
            name: Strategy identifier.

        Returns:
            A parser instance, or ``None`` if no parser is registered under
            that name.
        """
        if name in self._instances:
            return self._instances[name]

        cls = self._registry.get(name)
        if cls is None:
            logger.warning("no_parser_registered", strategy=name)
            return None

        instance = cls()
        self._instances[name] = instance
        return instance

    @property
    def strategies(self) -> list[str]:
        """Return a sorted list of registered strategy names."""
        return sorted(self._registry.keys())
