"""Analysis orchestrator that ties the scanner, extractors and builder together.

This is the main entry point for analyzing a plugin: it scans the plugin
directory, feeds manifests, scripts and PHP files (in that order) to their
extractors over one shared :class:`EntityCollection`, reads the plugin
header and assembles the final :class:`Graph`.
"""

from __future__ import annotations

import pathlib
from datetime import datetime, timezone
from typing import Optional

import structlog

from plugin_profiler import __version__
from plugin_profiler.config import settings
from plugin_profiler.core.content_reader import read_source
from plugin_profiler.core.crawler import FileScanner, find_main_plugin_file, read_plugin_header
from plugin_profiler.graph.builder import GraphBuilder
from plugin_profiler.graph.collection import EntityCollection
from plugin_profiler.models.graph import Graph, PluginMetadata
from plugin_profiler.parsers.base import BaseLanguageParser, FileContext, ScriptParser
from plugin_profiler.parsers.block_json import BlockJsonVisitor
from plugin_profiler.parsers.factory import ParserFactory
from plugin_profiler.parsers.php_parser import PhpParser
from plugin_profiler.parsers.script_visitor import ScriptVisitor

logger = structlog.get_logger(__name__)

ANALYZER_VERSION = __version__
DEFAULT_VERSION = "0.0.0"


def _resolve_script_parser(script_parser: ScriptParser | str | None) -> ScriptParser:
    """Return a script parser instance from an instance, a strategy name or settings."""
    if isinstance(script_parser, ScriptParser):
        return script_parser
    strategy = script_parser or settings.script_parser
    parser = ParserFactory.with_defaults().get(strategy)
    if parser is None:
        raise ValueError(f"Unknown script parser strategy: {strategy}")
    return parser


class PluginAnalyzer:
    """Runs every extractor over the files of one plugin.

    Args:
        root: Plugin root directory (must exist).
        script_parser: Script extraction capability, strategy name, or
            ``None`` for ``settings.script_parser``.
    """

    def __init__(self, root: pathlib.Path, script_parser: ScriptParser | str | None = None) -> None:
        self.root = root.resolve()
        self.collection = EntityCollection()
        self.manifest_parser = BlockJsonVisitor(self.collection)
        self.script_parser = ScriptVisitor(self.collection, _resolve_script_parser(script_parser))
        self.php_parser = PhpParser(self.collection)
        self.files_parsed = 0
        self.files_failed = 0

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def parse_manifests(self, paths: list[pathlib.Path]) -> None:
        self._run(self.manifest_parser, paths, "manifest")

    def parse_scripts(self, paths: list[pathlib.Path]) -> None:
        self._run(self.script_parser, paths, "script")

    def parse_php(self, paths: list[pathlib.Path]) -> None:
        self._run(self.php_parser, paths, "php")

    def _run(self, parser: BaseLanguageParser, paths: list[pathlib.Path], kind: str) -> None:
        for file_path in paths:
            try:
                source = read_source(file_path)
            except OSError as exc:
                self.files_failed += 1
                logger.warning("file_unreadable", file=str(file_path), error=str(exc))
                continue

            ctx = FileContext(path=file_path.resolve().as_posix(), source=source, plugin_root=self.root.as_posix())
            try:
                parser.parse_file(ctx)
                self.files_parsed += 1
            except Exception:
                self.files_failed += 1
                logger.exception("parse_failed", file=ctx.relative_path, kind=kind)

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def plugin_metadata(
        self,
        main_file: Optional[pathlib.Path],
        total_files: int,
        host_path: str = "",
    ) -> PluginMetadata:
        """Build plugin metadata from the main file header, with fallbacks."""
        header: dict[str, str] = {}
        if main_file is not None:
            try:
                header = read_plugin_header(main_file)
            except OSError as exc:
                logger.warning("header_unreadable", file=str(main_file), error=str(exc))

        return PluginMetadata(
            name=header.get("name") or self.root.name,
            version=header.get("version") or DEFAULT_VERSION,
            description=header.get("description", ""),
            main_file=main_file.name if main_file is not None else "",
            total_files=total_files,
            total_entities=len(self.collection),
            analyzed_at=datetime.now(timezone.utc),
            analyzer_version=ANALYZER_VERSION,
            host_path=host_path,
        )


def analyze_plugin(
    plugin_path: str | pathlib.Path,
    blacklist: list[str] | None = None,
    script_parser: ScriptParser | str | None = None,
    host_path: str | None = None,
) -> Graph:
    """Analyze a plugin directory and produce its graph.

    Extraction is sequential: all ``block.json`` manifests, then all
    scripts, then all PHP files.  Per-file failures are logged and
    skipped; only an invalid root aborts the run.

    Args:
        plugin_path: Path to the plugin root directory.
        blacklist: Optional override for the default scan blacklist.
        script_parser: Script parser instance or strategy name
            (``native``/``external``); defaults to ``settings.script_parser``.
        host_path: Host-side plugin location to record in the export;
            defaults to ``settings.host_path``.

    Returns:
        The assembled :class:`Graph`.

    Raises:
        FileNotFoundError: If *plugin_path* does not exist.
        NotADirectoryError: If *plugin_path* is not a directory.
        ValueError: If *script_parser* names an unknown strategy.
    """
    root = pathlib.Path(plugin_path).resolve()

    if not root.exists():
        raise FileNotFoundError(f"Plugin path does not exist: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Plugin path is not a directory: {root}")

    logger.info("analysis_started", plugin=str(root))

    scan = FileScanner(root, blacklist=blacklist).scan()
    analyzer = PluginAnalyzer(root, script_parser=script_parser)

    analyzer.parse_manifests(scan.manifests)
    analyzer.parse_scripts(scan.scripts)
    analyzer.parse_php(scan.php)

    main_file = find_main_plugin_file(root, scan.php)
    plugin = analyzer.plugin_metadata(
        main_file,
        total_files=scan.total,
        host_path=host_path if host_path is not None else settings.host_path,
    )
    graph = GraphBuilder().build(analyzer.collection, plugin)

    logger.info(
        "analysis_finished",
        plugin=plugin.name,
        files_parsed=analyzer.files_parsed,
        files_failed=analyzer.files_failed,
        total_nodes=len(graph.nodes),
        total_edges=len(graph.edges),
    )

    return graph
