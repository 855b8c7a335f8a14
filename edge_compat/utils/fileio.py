"""Basic file IO helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def read_yaml_file(path: Path) -> Any:
    """Return the parsed YAML (or JSON) document if the file exists, otherwise ``None``."""

    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle)


def read_source_file(path: Path) -> str:
    """Return the file contents as UTF-8 text; decoding and IO errors propagate."""

    return path.read_text(encoding="utf-8")
