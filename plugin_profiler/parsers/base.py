"""Shared contracts for the per-language extractors.

Every extractor receives an explicit :class:`FileContext` for the file it
is working on; no extractor reads "the current file" from shared state.
"""

from __future__ import annotations

import abc
import dataclasses
import functools
import pathlib
from typing import Any, Optional

from tree_sitter import Node

from plugin_profiler.graph import naming
from plugin_profiler.graph.collection import EntityCollection

MAX_PREVIEW_LINES = 30


@dataclasses.dataclass(frozen=True)
class FileContext:
    """Everything an extractor needs to know about the file being visited.

    Attributes:
        path: Absolute POSIX path of the file.
        source: Decoded file contents.
        plugin_root: Absolute POSIX path of the plugin root, if known.
    """

    path: str
    source: str
    plugin_root: Optional[str] = None

    @functools.cached_property
    def relative_path(self) -> str:
        return naming.relative_path(self.path, self.plugin_root)

    @functools.cached_property
    def lines(self) -> list[str]:
        return self.source.split("\n")

    @property
    def file_id(self) -> str:
        return naming.file_id(self.path, self.plugin_root)

    @property
    def directory(self) -> str:
        return pathlib.PurePosixPath(self.path).parent.as_posix()

    @property
    def basename(self) -> str:
        return pathlib.PurePosixPath(self.path).name

    def preview(self, start_line: int, end_line: int, limit: int = MAX_PREVIEW_LINES) -> Optional[str]:
        """Return source lines ``start_line..end_line`` (1-indexed), capped at *limit*."""
        if start_line < 1 or end_line < start_line:
            return None
        end_line = min(end_line, start_line + limit - 1)
        chunk = self.lines[start_line - 1 : end_line]
        return "\n".join(chunk) if chunk else None


@dataclasses.dataclass
class ScriptEntity:
    """One entity reported by a script parser.

    Attributes:
        type: Entity kind (``react_component``, ``js_hook``, ``fetch_call`` ...).
        name: Entity name, or a call-site label for anonymous entities.
        line: 1-indexed source line.
        subtype: Finer classification, e.g. the hook kind or HTTP verb.
        meta: Kind-specific extras (``path``, ``method``, ``superClass`` ...).
    """

    type: str
    name: str
    line: int
    subtype: Optional[str] = None
    meta: dict[str, Any] = dataclasses.field(default_factory=dict)


class ScriptParser(abc.ABC):
    """Capability that turns script source text into :class:`ScriptEntity` records."""

    @abc.abstractmethod
    def parse(self, source: str, file_path: str) -> list[ScriptEntity]:
        """Extract entities from *source*.

        Implementations never raise for malformed input; they return the
        entities recoverable from it (possibly none) and log a warning.

        Args:
            source: Script contents.
            file_path: Path of the script, used for grammar selection and logs.

        Returns:
            Extracted entities in source order.
        """


class BaseLanguageParser(abc.ABC):
    """Contract shared by the PHP, script and manifest extractors.

    Subclasses register what they find into the shared *collection*.

    Args:
        collection: Store receiving nodes and edges.
    """

    def __init__(self, collection: EntityCollection) -> None:
        self.collection = collection

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def parse_file(self, ctx: FileContext) -> None:
        """Extract entities from the file described by *ctx*.

        Args:
            ctx: The file being analyzed.
        """


# ------------------------------------------------------------------
# tree-sitter helpers
# ------------------------------------------------------------------


def node_text(node: Optional[Node]) -> str:
    """Decode the UTF-8 text of a tree-sitter node (``""`` for ``None``)."""
    if node is None:
        return ""
    text: bytes | None = node.text
    if text is None:
        return ""
    return text.decode("utf-8", errors="replace")


def line_of(node: Node) -> int:
    """1-indexed start line of *node*."""
    return node.start_point[0] + 1


def end_line_of(node: Node) -> int:
    return node.end_point[0] + 1


def leading_docblock(node: Node) -> Optional[str]:
    """Return a ``/** ... */`` comment immediately preceding *node*."""
    prev = node.prev_named_sibling
    if prev is not None and prev.type == "comment":
        text = node_text(prev)
        if text.startswith("/**"):
            return text
    return None


def unwrap_parens(node: Optional[Node]) -> Optional[Node]:
    """Strip any number of ``parenthesized_expression`` wrappers."""
    while node is not None and node.type == "parenthesized_expression":
        inner = node.named_children
        node = inner[0] if inner else None
    return node
