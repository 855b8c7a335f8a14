import pytest

from edge_compat.rules import RuleContext, build_default_registry
from edge_compat.syntax import parse_source

STRATEGIES = ("syntax-tree", "pattern")


@pytest.fixture(params=STRATEGIES)
def make_context(request):
    """Build a RuleContext for ``source``, once per matching strategy."""

    def factory(source, file_path="/project/src/module.ts"):
        tree = None
        if request.param == "syntax-tree":
            tree = parse_source(file_path, source)
            assert tree is not None, "fixture source must parse cleanly"
        return RuleContext(file_path=file_path, file_content=source, ast=tree)

    return factory


@pytest.fixture
def detect_all(make_context):
    """Run every built-in rule against ``source`` and return the findings."""

    registry = build_default_registry()

    def run(source, file_path="/project/src/module.ts"):
        context = make_context(source, file_path)
        findings = []
        for rule in registry.get_enabled():
            findings.extend(rule.detect(context))
        return findings

    return run
