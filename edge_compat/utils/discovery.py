"""Resolve include/exclude globs and ``.gitignore`` rules to a file list."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pathspec
from wcmatch import glob

logger = logging.getLogger(__name__)

DEFAULT_INCLUDE = ("**/*.{ts,tsx,js,jsx,mts,mjs,cts,cjs}",)
DEFAULT_EXCLUDE = (
    "**/node_modules/**",
    "**/dist/**",
    "**/.next/**",
    "**/build/**",
    "**/.turbo/**",
    "**/coverage/**",
)
# Directories never searched for nested .gitignore files.
PRUNED_DIRECTORIES = {".git", "node_modules", ".next", "dist", "build", ".turbo", "coverage"}

GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.NODIR


def matches_any(relative_path: str, patterns: Sequence[str]) -> bool:
    """Return True when ``relative_path`` (POSIX separators) matches one of ``patterns``."""

    if not patterns:
        return False
    return glob.globmatch(relative_path, list(patterns), flags=glob.GLOBSTAR | glob.BRACE)


def load_gitignore_specs(root: Path) -> List[Tuple[Path, pathspec.PathSpec]]:
    """Collect the ``.gitignore`` of ``root`` and of every nested directory."""

    specs: List[Tuple[Path, pathspec.PathSpec]] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in PRUNED_DIRECTORIES)
        if ".gitignore" not in filenames:
            continue
        ignore_file = Path(dirpath) / ".gitignore"
        try:
            lines = ignore_file.read_text(encoding="utf-8", errors="ignore").splitlines()
        except OSError as exc:
            logger.warning("Could not read %s: %s", ignore_file, exc)
            continue
        specs.append((Path(dirpath), pathspec.GitIgnoreSpec.from_lines(lines)))
    return specs


def is_gitignored(path: Path, specs: Sequence[Tuple[Path, pathspec.PathSpec]]) -> bool:
    for base, spec in specs:
        try:
            relative = path.relative_to(base)
        except ValueError:
            continue
        if spec.match_file(relative.as_posix()):
            return True
    return False


def expand_paths(cwd: Path, paths: Sequence[str]) -> Tuple[List[str], List[Path]]:
    """Split user-supplied paths into glob patterns and literal files.

    Directories become the default include patterns rooted at that directory;
    existing files are taken literally; anything else is treated as a glob.
    """

    patterns: List[str] = []
    files: List[Path] = []
    for raw in paths:
        candidate = Path(raw) if os.path.isabs(raw) else cwd / raw
        if candidate.is_file():
            files.append(candidate)
        elif candidate.is_dir():
            relative = os.path.relpath(candidate, cwd)
            prefix = "" if relative == "." else glob.escape(Path(relative).as_posix()) + "/"
            patterns.extend(prefix + pattern for pattern in DEFAULT_INCLUDE)
        else:
            patterns.append(raw)
    return patterns, files


def discover_files(
    cwd: Path,
    patterns: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
    files: Sequence[Path] = (),
    gitignore: bool = True,
) -> List[str]:
    """Return sorted, de-duplicated absolute paths matching ``patterns`` under ``cwd``.

    ``exclude`` defaults to ``DEFAULT_EXCLUDE``; ``files`` are literal paths
    that bypass glob expansion but are still subject to ``exclude`` and
    ``.gitignore``.
    """

    include = list(patterns) if patterns else ([] if files else list(DEFAULT_INCLUDE))
    ignore = list(DEFAULT_EXCLUDE if exclude is None else exclude)

    found = set()
    if include:
        for relative in glob.glob(include, flags=GLOB_FLAGS, root_dir=str(cwd), exclude=ignore or None):
            found.add(os.path.normpath(os.path.join(cwd, relative)))
    for path in files:
        absolute = os.path.normpath(os.path.abspath(path))
        relative = Path(os.path.relpath(absolute, cwd)).as_posix()
        if not matches_any(relative, ignore):
            found.add(absolute)

    if gitignore and found:
        specs = load_gitignore_specs(cwd)
        if specs:
            found = {path for path in found if not is_gitignored(Path(path), specs)}
    return sorted(found)
