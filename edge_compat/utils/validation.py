"""Path and file checks applied to candidates before they are read."""

from __future__ import annotations

import os
import stat
from pathlib import Path

from edge_compat.errors import PathValidationError

MAX_FILE_SIZE = 10 * 1024 * 1024


def validate_path(input_path: str, base_dir: Path) -> Path:
    """Resolve ``input_path`` and ensure it stays inside ``base_dir``.

    Raises ``PathValidationError`` for empty paths, embedded NUL bytes and
    paths that resolve outside the base directory.
    """

    if not input_path or not input_path.strip():
        raise PathValidationError("Path cannot be empty")
    if "\0" in input_path:
        raise PathValidationError("Path contains invalid characters")

    base = Path(os.path.realpath(base_dir))
    candidate = Path(input_path)
    if not candidate.is_absolute():
        candidate = base / candidate
    resolved = Path(os.path.realpath(candidate))
    try:
        resolved.relative_to(base)
    except ValueError as exc:
        raise PathValidationError("Path traversal detected - path must be within the working directory") from exc
    return resolved


def validate_file(path: Path, max_size: int = MAX_FILE_SIZE) -> os.stat_result:
    """Return the ``stat`` of ``path`` if it is a regular file within the size limit."""

    try:
        stats = path.stat()
    except FileNotFoundError as exc:
        raise PathValidationError("File not found") from exc
    except OSError as exc:
        raise PathValidationError(f"Failed to access file: {exc}") from exc
    if not stat.S_ISREG(stats.st_mode):
        raise PathValidationError("Path is not a file")
    if stats.st_size > max_size:
        raise PathValidationError(
            f"File size ({stats.st_size} bytes) exceeds maximum allowed size ({max_size} bytes)"
        )
    return stats
