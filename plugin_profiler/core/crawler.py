"""Plugin directory scanner with ``.gitignore``-style filtering.

Uses ``pathlib`` for all file-system operations and ``pathspec`` for
glob-pattern matching against the blacklist and the plugin's own ignore
files.
"""

from __future__ import annotations

import dataclasses
import pathlib
import re
from typing import Iterator, Optional

import pathspec
import structlog

from plugin_profiler.config import settings
from plugin_profiler.core.content_reader import read_head

logger = structlog.get_logger(__name__)

MANIFEST = "manifest"
SCRIPT = "script"
PHP = "php"

# Map file extensions to the extractor family that handles them.
EXTENSION_KIND_MAP: dict[str, str] = {
    ".php": PHP,
    ".js": SCRIPT,
    ".jsx": SCRIPT,
    ".mjs": SCRIPT,
    ".cjs": SCRIPT,
    ".ts": SCRIPT,
    ".tsx": SCRIPT,
}

MANIFEST_FILENAME = "block.json"
HEADER_BYTES = 8192

_HEADER_FIELDS = {
    "name": "Plugin Name",
    "version": "Version",
    "description": "Description",
}


def file_kind(path: pathlib.Path) -> Optional[str]:
    """Return ``manifest``, ``script`` or ``php`` for a supported file, else ``None``."""
    if path.name == MANIFEST_FILENAME:
        return MANIFEST
    return EXTENSION_KIND_MAP.get(path.suffix.lower())


def is_manifest(path: pathlib.Path) -> bool:
    return file_kind(path) == MANIFEST


def is_script(path: pathlib.Path) -> bool:
    return file_kind(path) == SCRIPT


def is_php(path: pathlib.Path) -> bool:
    return file_kind(path) == PHP


@dataclasses.dataclass
class ScanResult:
    """Files found under a plugin root, grouped by extractor family."""

    manifests: list[pathlib.Path] = dataclasses.field(default_factory=list)
    scripts: list[pathlib.Path] = dataclasses.field(default_factory=list)
    php: list[pathlib.Path] = dataclasses.field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.manifests) + len(self.scripts) + len(self.php)


class FileScanner:
    """Recursively walks a plugin directory, yielding analyzable files.

    Exclusions come from the configurable blacklist plus the patterns of
    any ignore file (``.gitignore``, ``.profilerignore``) at the plugin
    root.  Files exceeding ``max_file_size_bytes`` are skipped.

    Args:
        root: The plugin root directory.
        blacklist: Optional list of glob patterns to exclude.  Falls back
            to :pyattr:`plugin_profiler.config.Settings.default_blacklist`.
        max_file_size_bytes: Skip files larger than this.  Falls back to
            :pyattr:`plugin_profiler.config.Settings.max_file_size_bytes`.
    """

    def __init__(
        self,
        root: pathlib.Path,
        blacklist: list[str] | None = None,
        max_file_size_bytes: int | None = None,
    ) -> None:
        self.root = root.resolve()
        self.blacklist = list(blacklist or settings.default_blacklist)
        self.max_file_size_bytes = max_file_size_bytes or settings.max_file_size_bytes
        self._spec = pathspec.PathSpec.from_lines("gitwildmatch", self.blacklist + self._ignore_file_patterns())

    def _ignore_file_patterns(self) -> list[str]:
        patterns: list[str] = []
        for name in settings.ignore_files:
            ignore_file = self.root / name
            if not ignore_file.is_file():
                continue
            try:
                lines = ignore_file.read_text(encoding="utf-8", errors="replace").splitlines()
            except OSError:
                logger.warning("ignore_file_unreadable", path=str(ignore_file))
                continue
            patterns.extend(line for line in lines if line.strip() and not line.lstrip().startswith("#"))
            logger.debug("ignore_file_loaded", path=str(ignore_file))
        return patterns

    def _is_excluded(self, path: pathlib.Path) -> bool:
        """Check whether *path* matches any exclusion pattern.

        Args:
            path: Absolute path to test.

        Returns:
            ``True`` if the path should be skipped.
        """
        try:
            relative = path.relative_to(self.root)
        except ValueError:
            return False
        posix = relative.as_posix()
        # For directories, append a trailing slash so directory patterns match.
        if path.is_dir():
            posix += "/"
        return self._spec.match_file(posix)

    def scan(self) -> ScanResult:
        """Group every supported file under :pyattr:`root` by extractor family.

        Returns:
            A :class:`ScanResult` with each list in deterministic (sorted
            walk) order.
        """
        result = ScanResult()
        for path in self.crawl():
            if is_manifest(path):
                result.manifests.append(path)
            elif is_script(path):
                result.scripts.append(path)
            elif is_php(path):
                result.php.append(path)
        logger.info(
            "scan_finished",
            root=str(self.root),
            manifests=len(result.manifests),
            scripts=len(result.scripts),
            php=len(result.php),
        )
        return result

    def crawl(self) -> Iterator[pathlib.Path]:
        """Yield all supported files under :pyattr:`root`.

        Directories matching an exclusion pattern are pruned entirely so
        their children are never visited.

        Yields:
            Absolute ``pathlib.Path`` objects for each file.
        """
        yield from self._walk(self.root)

    def _walk(self, directory: pathlib.Path) -> Iterator[pathlib.Path]:
        try:
            entries = sorted(directory.iterdir())
        except PermissionError:
            logger.warning("permission_denied", path=str(directory))
            return

        for entry in entries:
            if self._is_excluded(entry):
                logger.debug("excluded", path=str(entry))
                continue

            if entry.is_dir():
                yield from self._walk(entry)
            elif entry.is_file():
                if file_kind(entry) is None:
                    continue
                try:
                    size = entry.stat().st_size
                except OSError:
                    logger.warning("stat_failed", path=str(entry))
                    continue
                if size > self.max_file_size_bytes:
                    logger.warning(
                        "file_too_large",
                        path=str(entry),
                        size=size,
                        limit=self.max_file_size_bytes,
                    )
                    continue
                yield entry


# ------------------------------------------------------------------
# Plugin header
# ------------------------------------------------------------------


def _header_pattern(field: str) -> re.Pattern[str]:
    return re.compile(r"^(?:[ \t]*<\?php)?[ \t/*#@]*" + re.escape(field) + r":(.*)$", re.IGNORECASE | re.MULTILINE)


def _clean_header_value(value: str) -> str:
    return re.sub(r"\s*(?:\*/|\?>).*", "", value).strip()


def read_plugin_header(path: pathlib.Path) -> dict[str, str]:
    """Read ``Plugin Name``, ``Version`` and ``Description`` from a file header.

    Only the first 8 KB are examined.  Missing fields are absent from the
    returned mapping.

    Raises:
        OSError: If the file cannot be read.
    """
    head = read_head(path, HEADER_BYTES)
    header: dict[str, str] = {}
    for key, field in _HEADER_FIELDS.items():
        match = _header_pattern(field).search(head)
        if match:
            value = _clean_header_value(match.group(1))
            if value:
                header[key] = value
    return header


def find_main_plugin_file(root: pathlib.Path, php_files: list[pathlib.Path]) -> Optional[pathlib.Path]:
    """Return the PHP file carrying the plugin header.

    Files directly under *root* are preferred over nested ones; within each
    group the first match in sorted order wins.
    """
    root = root.resolve()
    top_level = [path for path in php_files if path.parent == root]
    nested = [path for path in php_files if path.parent != root]
    for path in top_level + nested:
        try:
            if "name" in read_plugin_header(path):
                return path
        except OSError:
            logger.warning("header_unreadable", path=str(path))
    return None
