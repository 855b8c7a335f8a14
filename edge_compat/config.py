"""Scan configuration model and config-file loading."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .errors import ConfigError
from .utils.fileio import read_yaml_file

CONFIG_FILES = (
    "edgecompat.config.yaml",
    "edgecompat.config.yml",
    "edgecompat.config.json",
    ".edgecompatrc.json",
    ".edgecompatrc",
)
RULE_SEVERITIES = ("off", "warn", "error")


class EdgeTarget(str, Enum):
    """Edge runtime variants a scan can be checked against."""

    NEXTJS = "next"
    VERCEL = "vercel"
    CLOUDFLARE = "cloudflare"
    DENO = "deno"
    AUTO = "auto"


@dataclass(frozen=True)
class RuleSetting:
    """Per-rule override: ``off`` disables, ``warn``/``error`` re-grade findings."""

    severity: str
    ignore: Tuple[str, ...] = ()

    @property
    def disabled(self) -> bool:
        return self.severity == "off"

    @classmethod
    def from_value(cls, rule_id: str, value: Any) -> "RuleSetting":
        if isinstance(value, str):
            severity, ignore = value, []
        elif isinstance(value, dict):
            severity = value.get("severity")
            ignore = value.get("ignore") or []
        else:
            raise ConfigError(f"Rule setting for {rule_id!r} must be a string or a mapping")
        if severity not in RULE_SEVERITIES:
            raise ConfigError(
                f"Rule setting for {rule_id!r} has invalid severity {severity!r}; "
                f"expected one of {', '.join(RULE_SEVERITIES)}"
            )
        if not isinstance(ignore, list) or not all(isinstance(item, str) for item in ignore):
            raise ConfigError(f"Rule setting for {rule_id!r} has a non-list 'ignore'")
        return cls(severity=severity, ignore=tuple(ignore))


@dataclass
class Config:
    """Validated scan configuration."""

    edge_target: EdgeTarget = EdgeTarget.AUTO
    strict: bool = False
    include: Optional[List[str]] = None
    exclude: Optional[List[str]] = None
    rules: Dict[str, RuleSetting] = field(default_factory=dict)

    def rule_setting(self, rule_id: str) -> Optional[RuleSetting]:
        return self.rules.get(rule_id)

    def is_disabled(self, rule_id: str) -> bool:
        setting = self.rules.get(rule_id)
        return setting is not None and setting.disabled

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Config":
        """Validate a raw mapping (camelCase or snake_case keys) into a ``Config``."""

        data = data or {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping")

        raw_target = data.get("edgeTarget", data.get("edge_target", EdgeTarget.AUTO.value))
        try:
            edge_target = EdgeTarget(raw_target)
        except ValueError as exc:
            valid = ", ".join(target.value for target in EdgeTarget)
            raise ConfigError(f"Invalid edgeTarget {raw_target!r}; expected one of {valid}") from exc

        strict = data.get("strict", False)
        if not isinstance(strict, bool):
            raise ConfigError("'strict' must be a boolean")

        include = _glob_list(data, "include")
        exclude = _glob_list(data, "exclude")

        raw_rules = data.get("rules") or {}
        if not isinstance(raw_rules, dict):
            raise ConfigError("'rules' must be a mapping of rule id to setting")
        rules = {str(rule_id): RuleSetting.from_value(str(rule_id), value) for rule_id, value in raw_rules.items()}

        return cls(edge_target=edge_target, strict=strict, include=include, exclude=exclude, rules=rules)


def _glob_list(data: Dict[str, Any], key: str) -> Optional[List[str]]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"'{key}' must be a list of glob patterns")
    return list(value)


def find_config_file(cwd: Path) -> Optional[Path]:
    for name in CONFIG_FILES:
        candidate = cwd / name
        if candidate.is_file():
            return candidate
    return None


def load_config(cwd: Path, path: Optional[Path] = None) -> Config:
    """Load the explicit ``path`` or the first known config file under ``cwd``.

    Returns the default configuration when no file exists. A file that exists
    but cannot be parsed or validated raises ``ConfigError``.
    """

    config_path = path if path is not None else find_config_file(cwd)
    if config_path is None:
        return Config()
    if not config_path.is_file():
        raise ConfigError(f"Config file not found: {config_path}")
    try:
        data = read_yaml_file(config_path)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to load config from {config_path.name}: {exc}") from exc
    return Config.from_dict(data)


def default_config_text() -> str:
    return """\
# Target edge runtime: next, vercel, cloudflare, deno or auto
edgeTarget: auto

# Strict mode: fail on warnings
strict: false

# Include/exclude patterns (glob)
include:
  - "src/**/*.{ts,tsx,js,jsx,mts,mjs}"
exclude:
  - "**/node_modules/**"
  - "**/dist/**"
  - "**/.next/**"
  - "**/build/**"

# Rule configuration
rules: {}
  # node-core/forbidden-module:fs: "off"
  # node-core/caution:crypto: warn
  # deps/not-edge-safe:
  #   severity: error
  #   ignore: ["scripts/**"]
"""
