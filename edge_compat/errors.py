"""Exception hierarchy for the scanner."""

from __future__ import annotations


class EdgeCompatError(Exception):
    """Base class for scanner errors."""


class ConfigError(EdgeCompatError):
    """Raised for invalid configuration; fatal before any scanning begins."""


class DuplicateRuleError(ConfigError):
    """Raised when a rule id is registered twice."""

    def __init__(self, rule_id: str) -> None:
        super().__init__(f'Rule with id "{rule_id}" is already registered')
        self.rule_id = rule_id


class PathValidationError(EdgeCompatError):
    """Raised when a candidate file is rejected before reading."""


class ExecutionError(EdgeCompatError):
    """Raised when an isolated worker times out or exits abnormally."""
