import pytest

from edge_compat.codeframe import build_location, generate_code_frame, location_from_offset
from edge_compat.rules import RuleContext
from edge_compat.rules.matching import (
    PATTERN_MATCHER,
    SyntaxTreeMatcher,
    base_package,
    is_forbidden_module,
    matcher_for,
    parse_number,
)
from edge_compat.syntax import parse_source


@pytest.mark.parametrize(
    "specifier, expected",
    [
        ("fs", True),
        ("node:fs", True),
        ("fs/promises", True),
        ("node:fs/promises", True),
        ("fs-extra", False),
        ("node:fsx", False),
        ("myfs", False),
    ],
)
def test_is_forbidden_module(specifier, expected):
    assert is_forbidden_module(specifier, "fs") is expected


@pytest.mark.parametrize(
    "specifier, expected",
    [
        ("jsonwebtoken", "jsonwebtoken"),
        ("axios/lib/core", "axios"),
        ("@prisma/client", "@prisma/client"),
        ("@prisma/client/edge", "@prisma/client"),
        ("./local", None),
        ("../up", None),
        ("/abs/path", None),
        ("node:crypto", None),
        ("@scope", None),
    ],
)
def test_base_package(specifier, expected):
    assert base_package(specifier) == expected


def test_parse_number_handles_separators_and_hex():
    assert parse_number("30_000") == 30000
    assert parse_number("0x10") == 16
    assert parse_number("1.5") == 1.5
    assert parse_number("abc") is None


def test_location_from_offset():
    source = "one\ntwo\nthree"

    assert location_from_offset(source, 0) == (1, 0)
    assert location_from_offset(source, 5) == (2, 1)
    assert location_from_offset(source, len(source)) == (3, 5)


def test_code_frame_marks_matched_line():
    source = "a\nb\nc\nd\ne"
    location = build_location("/p/x.ts", source, 4, 5)

    frame = generate_code_frame(source, location, context_lines=1)

    assert frame.code == "  2 | b\n> 3 | c\n  4 | d"
    assert frame.location == location


def test_code_frame_is_clipped_at_file_edges():
    source = "first\nsecond"
    location = build_location("/p/x.ts", source, 0, 5)

    frame = generate_code_frame(source, location, context_lines=3)

    assert frame.code.splitlines() == ["> 1 | first", "  2 | second"]


def test_matcher_selection():
    source = "import fs from 'fs';"
    parsed = RuleContext(file_path="/p/a.ts", file_content=source, ast=parse_source("/p/a.ts", source))
    textual = RuleContext(file_path="/p/a.ts", file_content=source)

    assert isinstance(matcher_for(parsed), SyntaxTreeMatcher)
    assert matcher_for(textual) is PATTERN_MATCHER


def test_unparseable_source_falls_back_to_patterns():
    source = "import fs from 'fs';\nconst = ;\n"

    assert parse_source("/p/broken.ts", source) is None
    context = RuleContext(file_path="/p/broken.ts", file_content=source)
    (match,) = matcher_for(context).module_references(context)
    assert match.value == "fs"


def test_unsupported_extension_has_no_tree():
    assert parse_source("/p/component.vue", "<script>import fs from 'fs'</script>") is None


def test_strategies_agree_on_match_kinds():
    source = (
        "import a from 'alpha';\n"
        "const b = require('beta');\n"
        "async function c() { return import('gamma'); }\n"
    )
    parsed = RuleContext(file_path="/p/a.js", file_content=source, ast=parse_source("/p/a.js", source))
    textual = RuleContext(file_path="/p/a.js", file_content=source)

    tree_matches = matcher_for(parsed).module_references(parsed)
    pattern_matches = matcher_for(textual).module_references(textual)

    assert [(m.kind, m.value) for m in tree_matches] == [
        ("import", "alpha"),
        ("require", "beta"),
        ("dynamic-import", "gamma"),
    ]
    assert [(m.kind, m.value) for m in pattern_matches] == [(m.kind, m.value) for m in tree_matches]


def test_template_specifiers_are_not_resolved():
    source = "const name = 'fs';\nconst mod = require(`${name}`);\n"
    context = RuleContext(file_path="/p/a.js", file_content=source, ast=parse_source("/p/a.js", source))

    assert matcher_for(context).module_references(context) == []
