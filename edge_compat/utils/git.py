"""Change-set resolution from git for incremental scans."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 30
DIFF_FILTER = "--diff-filter=ACMR"


def run_git_command(args: List[str], cwd: Path) -> Optional[str]:
    """Run a git command and return its stdout, or ``None`` on any failure."""

    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="surrogateescape",
            timeout=GIT_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("git %s failed: %s", " ".join(args), exc)
        return None
    if result.returncode != 0:
        logger.debug("git %s exited with %s: %s", " ".join(args), result.returncode, result.stderr.strip())
        return None
    return result.stdout


def is_git_repository(cwd: Path) -> bool:
    output = run_git_command(["rev-parse", "--is-inside-work-tree"], cwd)
    return output is not None and output.strip() == "true"


def _diff_names(cwd: Path, *extra: str) -> List[str]:
    # -z keeps non-ASCII names unquoted.
    output = run_git_command(["diff", *extra, "--name-only", "-z", "--relative", DIFF_FILTER, "--"], cwd)
    if output is None:
        return []
    return [os.path.normpath(os.path.join(cwd, name)) for name in output.split("\0") if name]


def get_staged_files(cwd: Path) -> List[str]:
    return _diff_names(cwd, "--cached")


def get_unstaged_files(cwd: Path) -> List[str]:
    return _diff_names(cwd)


def get_changed_files(root: Path) -> List[str]:
    """Return absolute paths of staged and unstaged changes, de-duplicated.

    Returns an empty list when ``root`` is not inside a git work tree or git
    cannot be run.
    """

    root = Path(os.path.abspath(root))
    if not is_git_repository(root):
        return []
    changed: List[str] = []
    seen = set()
    for path in get_staged_files(root) + get_unstaged_files(root):
        if path not in seen:
            seen.add(path)
            changed.append(path)
    return changed
