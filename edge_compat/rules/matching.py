"""Matching strategies shared by all rules.

Two interchangeable implementations sit behind one interface:

* ``SyntaxTreeMatcher`` walks a tree-sitter tree and matches exact node shapes.
* ``PatternMatcher`` applies regular expressions to the raw text.

``matcher_for`` picks the syntax-tree matcher when the context carries a parsed
tree and the pattern matcher otherwise. Both return ``Match`` objects holding
character offsets into ``context.file_content``, ordered by position, with at
most one match per construct.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Protocol, Sequence, Union

from tree_sitter import Node

from edge_compat.syntax import SyntaxTree

if TYPE_CHECKING:
    from . import RuleContext

IMPORT = "import"
REQUIRE = "require"
DYNAMIC_IMPORT = "dynamic-import"
MODULE_KINDS = (IMPORT, REQUIRE, DYNAMIC_IMPORT)

EVAL = "eval"
NEW_FUNCTION = "new-function"
WASM_SYNC = "wasm-sync"
TIMER = "timer"
BUFFER_CALL = "buffer-call"

TIMER_FUNCTIONS = frozenset({"setTimeout", "setInterval"})
WASM_SYNC_CONSTRUCTORS = frozenset({"Instance", "Module"})
BUFFER_METHODS = frozenset({"from", "alloc", "allocUnsafe", "concat"})

Number = Union[int, float]


@dataclass(frozen=True)
class Match:
    """A matched construct spanning ``content[start:end]``."""

    start: int
    end: int
    kind: str
    value: str = ""
    delay: Optional[Number] = None


class Matcher(Protocol):
    """Operations every matching strategy provides."""

    def module_references(self, context: "RuleContext", kinds: Sequence[str] = MODULE_KINDS) -> List[Match]:
        """Return import/require/dynamic-import references with string-literal specifiers."""

    def eval_calls(self, context: "RuleContext") -> List[Match]:
        """Return ``eval(...)`` calls and ``new Function(...)`` expressions."""

    def wasm_instantiations(self, context: "RuleContext") -> List[Match]:
        """Return ``new WebAssembly.Instance(...)``/``new WebAssembly.Module(...)``."""

    def timer_calls(self, context: "RuleContext") -> List[Match]:
        """Return ``setTimeout``/``setInterval`` calls whose delay is a numeric literal."""

    def buffer_calls(self, context: "RuleContext") -> List[Match]:
        """Return ``Buffer.from|alloc|allocUnsafe|concat(...)`` calls."""


# ----------------------------------------------------------------------
# Module name helpers
# ----------------------------------------------------------------------
def is_forbidden_module(module_name: str, forbidden: str) -> bool:
    """Match ``forbidden``, ``node:forbidden`` and their submodules (``fs/promises``)."""

    if module_name in (forbidden, f"node:{forbidden}"):
        return True
    return module_name.startswith(f"{forbidden}/") or module_name.startswith(f"node:{forbidden}/")


def base_package(specifier: str) -> Optional[str]:
    """Reduce an import specifier to its package name.

    Scoped packages keep ``@scope/name``; unscoped packages keep the first
    path segment. Relative, absolute and ``node:`` specifiers have no package.
    """

    if not specifier or specifier.startswith((".", "/", "node:")):
        return None
    parts = specifier.split("/")
    if specifier.startswith("@"):
        if len(parts) < 2 or not parts[1]:
            return None
        return "/".join(parts[:2])
    return parts[0] or None


def parse_number(text: str) -> Optional[Number]:
    cleaned = text.replace("_", "")
    try:
        return int(cleaned, 0)
    except ValueError:
        pass
    try:
        value = float(cleaned)
    except ValueError:
        return None
    return int(value) if value.is_integer() else value


# ----------------------------------------------------------------------
# Syntax-tree strategy
# ----------------------------------------------------------------------
class SyntaxTreeMatcher:
    """Exact structural matching over a tree-sitter tree."""

    def __init__(self, tree: SyntaxTree) -> None:
        self._tree = tree

    def module_references(self, context: "RuleContext", kinds: Sequence[str] = MODULE_KINDS) -> List[Match]:
        matches: List[Match] = []
        for node in self._tree.walk():
            if node.type == "import_statement":
                kind = IMPORT
                specifier = self._string_value(self._import_source(node))
            elif node.type == "call_expression":
                function = node.child_by_field_name("function")
                if function is None:
                    continue
                if function.type == "import":
                    kind = DYNAMIC_IMPORT
                elif function.type == "identifier" and self._tree.text(function) == "require":
                    kind = REQUIRE
                else:
                    continue
                arguments = self._arguments(node)
                specifier = self._string_value(arguments[0]) if arguments else None
            else:
                continue
            if kind in kinds and specifier is not None:
                matches.append(self._match(node, kind, specifier))
        return matches

    def eval_calls(self, context: "RuleContext") -> List[Match]:
        matches: List[Match] = []
        for node in self._tree.walk():
            if node.type == "call_expression":
                function = node.child_by_field_name("function")
                if self._is_identifier(function, "eval"):
                    matches.append(self._match(node, EVAL, "eval"))
            elif node.type == "new_expression":
                constructor = node.child_by_field_name("constructor")
                if self._is_identifier(constructor, "Function"):
                    matches.append(self._match(node, NEW_FUNCTION, "Function"))
        return matches

    def wasm_instantiations(self, context: "RuleContext") -> List[Match]:
        matches: List[Match] = []
        for node in self._tree.walk():
            if node.type != "new_expression":
                continue
            constructor = node.child_by_field_name("constructor")
            name = self._member_name(constructor, "WebAssembly")
            if name in WASM_SYNC_CONSTRUCTORS:
                matches.append(self._match(node, WASM_SYNC, f"WebAssembly.{name}"))
        return matches

    def timer_calls(self, context: "RuleContext") -> List[Match]:
        matches: List[Match] = []
        for node in self._tree.walk():
            if node.type != "call_expression":
                continue
            function = node.child_by_field_name("function")
            if function is None or function.type != "identifier":
                continue
            name = self._tree.text(function)
            if name not in TIMER_FUNCTIONS:
                continue
            arguments = self._arguments(node)
            if len(arguments) < 2 or arguments[1].type != "number":
                continue
            delay = parse_number(self._tree.text(arguments[1]))
            if delay is not None:
                matches.append(self._match(node, TIMER, name, delay))
        return matches

    def buffer_calls(self, context: "RuleContext") -> List[Match]:
        matches: List[Match] = []
        for node in self._tree.walk():
            if node.type != "call_expression":
                continue
            name = self._member_name(node.child_by_field_name("function"), "Buffer")
            if name in BUFFER_METHODS:
                matches.append(self._match(node, BUFFER_CALL, f"Buffer.{name}"))
        return matches

    # ------------------------------------------------------------------
    # Node helpers
    # ------------------------------------------------------------------
    def _match(self, node: Node, kind: str, value: str, delay: Optional[Number] = None) -> Match:
        return Match(
            start=self._tree.char_offset(node.start_byte),
            end=self._tree.char_offset(node.end_byte),
            kind=kind,
            value=value,
            delay=delay,
        )

    def _is_identifier(self, node: Optional[Node], name: str) -> bool:
        return node is not None and node.type == "identifier" and self._tree.text(node) == name

    def _member_name(self, node: Optional[Node], object_name: str) -> Optional[str]:
        """Return ``prop`` for ``object_name.prop`` member expressions."""

        if node is None or node.type != "member_expression":
            return None
        if not self._is_identifier(node.child_by_field_name("object"), object_name):
            return None
        prop = node.child_by_field_name("property")
        return self._tree.text(prop) if prop is not None else None

    def _import_source(self, node: Node) -> Optional[Node]:
        source = node.child_by_field_name("source")
        if source is not None:
            return source
        # TypeScript ``import x = require('m')``
        for child in node.named_children:
            if child.type == "import_require_clause":
                return child.child_by_field_name("source") or next(
                    (grandchild for grandchild in child.named_children if grandchild.type == "string"),
                    None,
                )
        return None

    def _string_value(self, node: Optional[Node]) -> Optional[str]:
        # Template and computed specifiers are not resolved.
        if node is None or node.type != "string":
            return None
        text = self._tree.text(node)
        return text[1:-1] if len(text) >= 2 else None

    @staticmethod
    def _arguments(node: Node) -> List[Node]:
        arguments = node.child_by_field_name("arguments")
        if arguments is None:
            return []
        return [child for child in arguments.named_children if child.type != "comment"]


# ----------------------------------------------------------------------
# Pattern strategy
# ----------------------------------------------------------------------
_SPECIFIER = r"""(?P<quote>['"])(?P<spec>[^'"\n]+)(?P=quote)"""
_NOT_MEMBER = r"(?<![\w$.])"
_BLOCK_COMMENTS = r"(?:/\*[\s\S]*?\*/\s*)*"
_NUMBER = (
    r"0[xX][\da-fA-F_]+|0[oO][0-7_]+|0[bB][01_]+"
    r"|(?:\d[\d_]*(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?"
)

STATIC_IMPORT_PATTERN = re.compile(
    r"\bimport\s+(?:type\s+)?"
    r"(?:(?:[\w$]+\s*,\s*)?(?:[\w$]+|\*\s*as\s+[\w$]+|\{[^}]*\})\s*from\s*)?"
    + _SPECIFIER
)
REQUIRE_PATTERN = re.compile(_NOT_MEMBER + r"require\s*\(\s*" + _BLOCK_COMMENTS + _SPECIFIER + r"\s*\)")
DYNAMIC_IMPORT_PATTERN = re.compile(_NOT_MEMBER + r"import\s*\(\s*" + _BLOCK_COMMENTS + _SPECIFIER + r"\s*\)")

MODULE_PATTERNS = (
    (IMPORT, STATIC_IMPORT_PATTERN),
    (REQUIRE, REQUIRE_PATTERN),
    (DYNAMIC_IMPORT, DYNAMIC_IMPORT_PATTERN),
)

EVAL_PATTERNS = (
    (EVAL, re.compile(_NOT_MEMBER + r"eval\s*\(")),
    (NEW_FUNCTION, re.compile(_NOT_MEMBER + r"new\s+Function(?![\w$])(?!\s*\.)")),
)
WASM_SYNC_PATTERN = re.compile(_NOT_MEMBER + r"new\s+WebAssembly\.(?P<name>Instance|Module)\s*\(")
TIMER_PATTERN = re.compile(
    _NOT_MEMBER
    + r"(?P<name>setTimeout|setInterval)\s*\("
    + r"[^,()]*(?:\([^()]*\)[^,()]*)*,"
    + r"\s*(?P<delay>" + _NUMBER + r")\s*[,)]"
)
BUFFER_CALL_PATTERN = re.compile(_NOT_MEMBER + r"Buffer\.(?P<name>from|alloc|allocUnsafe|concat)\s*\(")


def _in_source_order(matches: Iterable[Match]) -> List[Match]:
    """Drop matches that start where an earlier one already did, then sort."""

    by_start: Dict[int, Match] = {}
    for match in matches:
        by_start.setdefault(match.start, match)
    return [by_start[start] for start in sorted(by_start)]


class PatternMatcher:
    """Regular-expression matching used when no syntax tree is available."""

    def module_references(self, context: "RuleContext", kinds: Sequence[str] = MODULE_KINDS) -> List[Match]:
        content = context.file_content
        return _in_source_order(
            Match(found.start(), found.end(), kind, found.group("spec"))
            for kind, pattern in MODULE_PATTERNS
            if kind in kinds
            for found in pattern.finditer(content)
        )

    def eval_calls(self, context: "RuleContext") -> List[Match]:
        content = context.file_content
        return _in_source_order(
            Match(found.start(), found.end(), kind, "eval" if kind == EVAL else "Function")
            for kind, pattern in EVAL_PATTERNS
            for found in pattern.finditer(content)
        )

    def wasm_instantiations(self, context: "RuleContext") -> List[Match]:
        return _in_source_order(
            Match(found.start(), found.end(), WASM_SYNC, f"WebAssembly.{found.group('name')}")
            for found in WASM_SYNC_PATTERN.finditer(context.file_content)
        )

    def timer_calls(self, context: "RuleContext") -> List[Match]:
        matches: List[Match] = []
        for found in TIMER_PATTERN.finditer(context.file_content):
            delay = parse_number(found.group("delay"))
            if delay is not None:
                matches.append(Match(found.start(), found.end(), TIMER, found.group("name"), delay))
        return _in_source_order(matches)

    def buffer_calls(self, context: "RuleContext") -> List[Match]:
        return _in_source_order(
            Match(found.start(), found.end(), BUFFER_CALL, f"Buffer.{found.group('name')}")
            for found in BUFFER_CALL_PATTERN.finditer(context.file_content)
        )


PATTERN_MATCHER = PatternMatcher()


def matcher_for(context: "RuleContext") -> Matcher:
    """Select the syntax-tree strategy when a tree is present, else the pattern one."""

    if context.ast is not None:
        return SyntaxTreeMatcher(context.ast)
    return PATTERN_MATCHER
