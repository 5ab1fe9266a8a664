"""Tree-sitter based extraction of PHP entities.

Each file is parsed with the PHP grammar (HTML interleaving allowed) and
walked once; every registered visitor sees every named node in document
order.
"""

from __future__ import annotations

from typing import Optional, Sequence

import structlog
import tree_sitter_php as tsphp
from tree_sitter import Language, Node, Parser

from plugin_profiler.graph.collection import EntityCollection
from plugin_profiler.parsers.base import BaseLanguageParser, FileContext
from plugin_profiler.parsers.visitors import (
    ClassVisitor,
    DataSourceVisitor,
    ExternalInterfaceVisitor,
    FileVisitor,
    FunctionVisitor,
    HookVisitor,
    NamespaceAwareVisitor,
)

logger = structlog.get_logger(__name__)

PHP_LANGUAGE = Language(tsphp.language_php())


def default_visitors(collection: EntityCollection) -> list[NamespaceAwareVisitor]:
    """The standard visitor set, in traversal order."""
    return [
        ClassVisitor(collection),
        FunctionVisitor(collection),
        HookVisitor(collection),
        DataSourceVisitor(collection),
        ExternalInterfaceVisitor(collection),
        FileVisitor(collection),
    ]


class PhpParser(BaseLanguageParser):
    """Runs the PHP visitors over one file at a time.

    Visitor instances are reused across files; their scope is reset by
    ``before_traverse`` at the start of each file.

    Args:
        collection: Store receiving nodes and edges.
        visitors: Visitors to run, defaulting to :func:`default_visitors`.
    """

    def __init__(
        self,
        collection: EntityCollection,
        visitors: Optional[Sequence[NamespaceAwareVisitor]] = None,
    ) -> None:
        super().__init__(collection)
        self._parser = Parser(PHP_LANGUAGE)
        self.visitors = list(visitors) if visitors is not None else default_visitors(collection)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse_file(self, ctx: FileContext) -> None:
        """Parse the PHP file in *ctx* and feed it to every visitor.

        Syntax errors do not abort extraction: tree-sitter recovers and the
        visitors see whatever the partial tree contains.

        Args:
            ctx: The file being analyzed.
        """
        tree = self._parser.parse(ctx.source.encode("utf-8"))
        root = tree.root_node
        if root.has_error:
            logger.warning("php_syntax_errors", file=ctx.relative_path)

        for visitor in self.visitors:
            visitor.before_traverse(ctx)
        self._traverse(root, ctx)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _traverse(self, root: Node, ctx: FileContext) -> None:
        """Depth-first walk calling ``enter_node``/``leave_node`` on every visitor."""
        stack: list[tuple[Node, bool]] = [(root, False)]
        while stack:
            node, leaving = stack.pop()
            if leaving:
                for visitor in self.visitors:
                    visitor.leave_node(node, ctx)
                continue
            for visitor in self.visitors:
                visitor.enter_node(node, ctx)
            stack.append((node, True))
            stack.extend((child, False) for child in reversed(node.named_children))
