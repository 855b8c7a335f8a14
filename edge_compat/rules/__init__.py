"""Rule contract, per-file rule context and the rule registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from edge_compat.codeframe import build_location, generate_code_frame
from edge_compat.config import EdgeTarget
from edge_compat.errors import ConfigError, DuplicateRuleError
from edge_compat.result import Finding, Suggestion
from edge_compat.severity import Severity
from edge_compat.syntax import SyntaxTree

from .matching import Match

CATEGORIES = ("node-core", "edge-pattern", "dependency", "bundle")
CODE_FRAME_CONTEXT_LINES = 2


@dataclass(frozen=True)
class RuleContext:
    """Read-only inputs handed to every rule for one file.

    ``ast`` is ``None`` whenever no syntax tree could be built; rules then
    match textually.
    """

    file_path: str
    file_content: str
    edge_target: EdgeTarget = EdgeTarget.AUTO
    strict: bool = False
    ast: Optional[SyntaxTree] = None


class Rule:
    """Base class implemented by all rule detectors."""

    id: str = ""
    name: str = ""
    description: str = ""
    category: str = ""
    severity: Severity = Severity.ERROR
    enabled: bool = True

    def detect(self, context: RuleContext) -> List[Finding]:
        """Analyze ``context`` and return zero or more findings."""

        raise NotImplementedError

    def build_finding(
        self,
        context: RuleContext,
        match: Match,
        message: str,
        suggestions: Iterable[Suggestion] = (),
    ) -> Finding:
        location = build_location(context.file_path, context.file_content, match.start, match.end)
        return Finding(
            rule_id=self.id,
            severity=self.severity,
            message=message,
            location=location,
            code_frame=generate_code_frame(context.file_content, location, CODE_FRAME_CONTEXT_LINES),
            suggestions=tuple(suggestions),
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"


class RuleRegistry:
    """Ordered, deduplicated collection of rules owned by one scanner."""

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._rules: Dict[str, Rule] = {}
        for rule in rules:
            self.register(rule)

    def register(self, rule: Rule) -> None:
        if rule.id in self._rules:
            raise DuplicateRuleError(rule.id)
        if rule.category not in CATEGORIES:
            raise ConfigError(f"Rule {rule.id!r} has unknown category {rule.category!r}")
        self._rules[rule.id] = rule

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._rules.get(rule_id)

    def get_all(self) -> List[Rule]:
        return list(self._rules.values())

    def get_enabled(self) -> List[Rule]:
        return [rule for rule in self._rules.values() if rule.enabled]

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __len__(self) -> int:
        return len(self._rules)


def default_rules() -> List[Rule]:
    """Return fresh instances of the built-in rule catalog."""

    from .dependencies import NotEdgeSafeDependencyRule
    from .edge_patterns import EvalRule, LongTimerRule, WasmSyncRule
    from .node_core import caution_rules, forbidden_module_rules

    return [
        *forbidden_module_rules(),
        *caution_rules(),
        EvalRule(),
        WasmSyncRule(),
        LongTimerRule(),
        NotEdgeSafeDependencyRule(),
    ]


def build_default_registry() -> RuleRegistry:
    return RuleRegistry(default_rules())
