"""Syntax-tree construction for JavaScript and TypeScript using tree-sitter."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PurePath
from typing import Dict, Iterator, Optional

import tree_sitter_javascript as ts_javascript
import tree_sitter_typescript as ts_typescript
from tree_sitter import Language, Node, Parser, Tree

logger = logging.getLogger(__name__)

JAVASCRIPT = "javascript"
TYPESCRIPT = "typescript"
TSX = "tsx"

EXTENSION_LANGUAGES: Dict[str, str] = {
    ".js": JAVASCRIPT,
    ".jsx": JAVASCRIPT,
    ".mjs": JAVASCRIPT,
    ".cjs": JAVASCRIPT,
    ".ts": TYPESCRIPT,
    ".mts": TYPESCRIPT,
    ".cts": TYPESCRIPT,
    ".tsx": TSX,
}

LANGUAGES: Dict[str, Language] = {
    JAVASCRIPT: Language(ts_javascript.language()),
    TYPESCRIPT: Language(ts_typescript.language_typescript()),
    TSX: Language(ts_typescript.language_tsx()),
}


@dataclass
class SyntaxTree:
    """Parsed, queryable handle over one file's source."""

    language: str
    tree: Tree
    source: bytes
    ascii_only: bool

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def walk(self) -> Iterator[Node]:
        """Yield every node in document (pre-)order."""

        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def text(self, node: Node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def char_offset(self, byte_offset: int) -> int:
        """Convert a UTF-8 byte offset into a character offset of the decoded source."""

        if self.ascii_only:
            return byte_offset
        return len(self.source[:byte_offset].decode("utf-8", errors="ignore"))


def language_for(file_path: str) -> Optional[str]:
    return EXTENSION_LANGUAGES.get(PurePath(file_path).suffix.lower())


def parse_source(file_path: str, content: str) -> Optional[SyntaxTree]:
    """Parse ``content`` according to the file extension.

    Returns ``None`` for unsupported extensions and for sources that do not
    parse cleanly; callers fall back to textual matching in both cases.
    """

    language = language_for(file_path)
    if language is None:
        return None
    source = content.encode("utf-8")
    parser = Parser(LANGUAGES[language])
    tree = parser.parse(source)
    if tree.root_node.has_error:
        logger.debug("Syntax errors in %s, using pattern matching", file_path)
        return None
    return SyntaxTree(
        language=language,
        tree=tree,
        source=source,
        ascii_only=len(source) == len(content),
    )
