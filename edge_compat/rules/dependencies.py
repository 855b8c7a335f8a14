"""Detect npm dependencies known to break on Edge runtimes."""

from __future__ import annotations

from typing import List, Mapping, Optional

from edge_compat.result import Finding, Suggestion
from edge_compat.severity import Severity

from . import Rule, RuleContext
from .matching import IMPORT, REQUIRE, base_package, matcher_for
from .replacements import REPLACEMENTS, Replacement


class NotEdgeSafeDependencyRule(Rule):
    """Flag imports of packages that have a known Edge-safe replacement."""

    id = "deps/not-edge-safe"
    name = "Non-Edge-safe dependency"
    description = "Dependency that is known to not work in Edge runtimes."
    category = "dependency"
    severity = Severity.ERROR

    def __init__(self, replacements: Optional[Mapping[str, Replacement]] = None) -> None:
        self.replacements = dict(REPLACEMENTS if replacements is None else replacements)

    def detect(self, context: RuleContext) -> List[Finding]:
        findings: List[Finding] = []
        for match in matcher_for(context).module_references(context, (IMPORT, REQUIRE)):
            package = base_package(match.value)
            if package is None:
                continue
            replacement = self.replacements.get(package)
            if replacement is None:
                continue
            message = f'Package "{package}" is not Edge-safe. {replacement.reason}'
            findings.append(self.build_finding(context, match, message, self._suggestions(replacement)))
        return findings

    @staticmethod
    def _suggestions(replacement: Replacement) -> List[Suggestion]:
        suggestions = [
            Suggestion(
                message=f"Replace with: {replacement.target}",
                replacement=replacement.target,
                package=replacement.target,
                import_statement=replacement.install_command,
                docs_url=replacement.docs_url,
            )
        ]
        if replacement.migration_notes:
            suggestions.append(Suggestion(message=f"Migration: {replacement.migration_notes}"))
        return suggestions
