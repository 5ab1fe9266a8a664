"""Tests for plugin directory scanning, source reading and header parsing."""

import pathlib

from plugin_profiler.core.content_reader import decode_source, read_source
from plugin_profiler.core.crawler import FileScanner, file_kind, find_main_plugin_file, read_plugin_header


def _write(root: pathlib.Path, relative: str, content: str = "") -> pathlib.Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def _rel(root: pathlib.Path, paths: list[pathlib.Path]) -> list[str]:
    return [path.relative_to(root.resolve()).as_posix() for path in paths]


class TestFileScanner:
    """Recursive discovery with exclusions."""

    def test_groups_by_kind_and_skips_blacklist(self, tmp_path):
        """Test default exclusions and grouping."""
        _write(tmp_path, "plugin.php", "<?php")
        _write(tmp_path, "inc/a.php", "<?php")
        _write(tmp_path, "src/index.js")
        _write(tmp_path, "src/app.tsx")
        _write(tmp_path, "blocks/card/block.json", "{}")
        _write(tmp_path, "readme.txt")
        _write(tmp_path, "vendor/lib/x.php", "<?php")
        _write(tmp_path, "node_modules/pkg/index.js")
        _write(tmp_path, ".cache/y.php", "<?php")

        scan = FileScanner(tmp_path).scan()

        assert _rel(tmp_path, scan.php) == ["inc/a.php", "plugin.php"]
        assert _rel(tmp_path, scan.scripts) == ["src/app.tsx", "src/index.js"]
        assert _rel(tmp_path, scan.manifests) == ["blocks/card/block.json"]
        assert scan.total == 5

    def test_custom_blacklist_and_ignore_file(self, tmp_path):
        """Test an explicit blacklist and the plugin's ignore file."""
        _write(tmp_path, "plugin.php", "<?php")
        _write(tmp_path, "tests/test-a.php", "<?php")
        _write(tmp_path, "build/index.js")
        _write(tmp_path, "vendor/x.php", "<?php")
        _write(tmp_path, ".gitignore", "# build output\nbuild/\n")

        scan = FileScanner(tmp_path, blacklist=["tests/"]).scan()

        names = sorted(path.name for path in scan.php + scan.scripts)
        assert names == ["plugin.php", "x.php"]

    def test_size_limit(self, tmp_path):
        """Test files above the size limit are skipped."""
        _write(tmp_path, "small.php", "<?php")
        _write(tmp_path, "big.php", "<?php " + "x" * 100)

        scan = FileScanner(tmp_path, max_file_size_bytes=50).scan()

        assert [path.name for path in scan.php] == ["small.php"]

    def test_file_kind(self):
        """Test extension mapping."""
        assert file_kind(pathlib.Path("a/block.json")) == "manifest"
        assert file_kind(pathlib.Path("a/other.json")) is None
        assert file_kind(pathlib.Path("a/x.PHP")) == "php"
        assert file_kind(pathlib.Path("a/x.mjs")) == "script"


class TestContentReader:
    """Encoding fallback and newline normalization."""

    def test_bom_and_legacy_encoding(self):
        """Test a BOM is stripped and cp1252 bytes decode."""
        assert decode_source(b"\xef\xbb\xbf<?php") == "<?php"
        assert decode_source("café".encode("cp1252")) == "café"

    def test_crlf_normalized(self, tmp_path):
        """Test CRLF line endings become ``\\n``."""
        path = tmp_path / "a.php"
        path.write_bytes(b"<?php\r\necho 1;\r\n")

        assert read_source(path) == "<?php\necho 1;\n"


class TestPluginHeader:
    """Main-file header parsing."""

    HEADER = """<?php
/**
 * Plugin Name: Acme Tools
 * Version:     2.1.0
 * Description: Handy tools. */
"""

    def test_read_header(self, tmp_path):
        """Test the three header fields are read and trimmed."""
        path = _write(tmp_path, "acme.php", self.HEADER)

        assert read_plugin_header(path) == {
            "name": "Acme Tools",
            "version": "2.1.0",
            "description": "Handy tools.",
        }

    def test_main_file_prefers_top_level(self, tmp_path):
        """Test a top-level header file wins over nested ones."""
        nested = _write(tmp_path, "inc/other.php", "<?php\n/* Plugin Name: Nested */\n")
        top = _write(tmp_path, "zz-main.php", self.HEADER)
        plain = _write(tmp_path, "a.php", "<?php\n")

        root = tmp_path.resolve()
        found = find_main_plugin_file(root, [plain.resolve(), nested.resolve(), top.resolve()])

        assert found == top.resolve()

    def test_no_header(self, tmp_path):
        """Test plugins without a header file yield ``None``."""
        plain = _write(tmp_path, "a.php", "<?php\n")

        assert find_main_plugin_file(tmp_path, [plain.resolve()]) is None
