"""Scan orchestration: discovery, caching, rule fan-out and aggregation."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .cache import DEFAULT_CACHE_SIZE, LRUCache
from .config import Config
from .errors import PathValidationError
from .executor import Executor, FileTask, InProcessExecutor
from .result import FileError, Finding, ScanResult
from .rules import Rule, RuleRegistry, build_default_registry
from .severity import Severity
from .utils.discovery import discover_files, expand_paths, matches_any
from .utils.fileio import read_source_file
from .utils.git import get_changed_files
from .utils.validation import MAX_FILE_SIZE, validate_file, validate_path

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


@dataclass(frozen=True)
class ScanProgress:
    current: int
    total: int
    message: Optional[str] = None


ProgressCallback = Callable[[ScanProgress], None]
ChangeResolver = Callable[[Path], List[str]]


@dataclass
class ScanOptions:
    """Inputs of one ``Scanner``; ``paths`` overrides the configured include globs."""

    cwd: Path
    config: Config = field(default_factory=Config)
    paths: Optional[List[str]] = None
    changed: bool = False
    parallel: bool = False
    max_workers: Optional[int] = None
    cache: bool = False
    progress: Optional[ProgressCallback] = None


@dataclass(frozen=True)
class FileScan:
    """Result of scanning one file."""

    file_path: str
    findings: Tuple[Finding, ...] = ()
    from_cache: bool = False
    error: Optional[str] = None


class Scanner:
    """Run the enabled rules of one registry over the files of one project.

    The registry, cache and executor belong to this instance alone, so several
    scanners can run side by side without observing each other.
    """

    def __init__(
        self,
        options: ScanOptions,
        registry: Optional[RuleRegistry] = None,
        executor: Optional[Executor] = None,
        change_resolver: ChangeResolver = get_changed_files,
        cache_size: int = DEFAULT_CACHE_SIZE,
        max_file_size: int = MAX_FILE_SIZE,
    ) -> None:
        self.options = options
        self.cwd = Path(os.path.abspath(options.cwd))
        self.registry = registry if registry is not None else build_default_registry()
        self.executor = executor if executor is not None else InProcessExecutor()
        self._change_resolver = change_resolver
        self._cache: Optional[LRUCache[Tuple[Finding, ...]]] = LRUCache(cache_size) if options.cache else None
        self._max_file_size = max_file_size

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def scan(self) -> ScanResult:
        started = time.perf_counter()
        files = self.discover_files()
        if self.options.changed:
            files = self._filter_changed(files)
        logger.info("Scanning %d files...", len(files))

        rules = self._active_rules()
        completed = 0

        async def scan_one(path: str) -> FileScan:
            nonlocal completed
            outcome = await self._scan_file(path, rules)
            completed += 1
            self._report_progress(completed, len(files), self._relative(path))
            return outcome

        outcomes: List[FileScan] = []
        if self.options.parallel and files:
            batch_size = 2 * self._max_workers(len(files))
            for index in range(0, len(files), batch_size):
                batch = files[index:index + batch_size]
                outcomes.extend(await asyncio.gather(*(scan_one(path) for path in batch)))
        else:
            for path in files:
                outcomes.append(await scan_one(path))

        findings: List[Finding] = []
        errors: List[FileError] = []
        for outcome in outcomes:
            findings.extend(outcome.findings)
            if outcome.error is not None:
                errors.append(FileError(file=outcome.file_path, message=outcome.error))

        return ScanResult(
            findings=tuple(findings),
            file_count=len(files),
            duration=(time.perf_counter() - started) * 1000,
            cached_count=sum(1 for outcome in outcomes if outcome.from_cache) if self._cache is not None else None,
            errors=tuple(errors),
        )

    def discover_files(self) -> List[str]:
        config = self.options.config
        files: Sequence[Path] = ()
        if self.options.paths:
            patterns, files = expand_paths(self.cwd, self.options.paths)
        else:
            patterns = config.include
        return discover_files(self.cwd, patterns=patterns, exclude=config.exclude, files=files)

    # ------------------------------------------------------------------
    # Per-file pipeline
    # ------------------------------------------------------------------
    async def _scan_file(self, file_path: str, rules: Tuple[Rule, ...]) -> FileScan:
        relative = self._relative(file_path)
        try:
            path = validate_path(file_path, self.cwd)
            stats = validate_file(path, self._max_file_size)
        except PathValidationError as exc:
            logger.warning("Skipping %s: %s", relative, exc)
            return FileScan(file_path=file_path)

        if self._cache is not None:
            cached = self._cache.get_valid(file_path, stats.st_mtime_ns)
            if cached is not None:
                logger.debug("Cache hit for %s", relative)
                return FileScan(file_path=file_path, findings=cached, from_cache=True)

        try:
            content = await asyncio.to_thread(read_source_file, path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed to scan %s: %s", relative, exc)
            return FileScan(file_path=file_path)

        config = self.options.config
        task = FileTask(
            file_path=file_path,
            content=content,
            edge_target=config.edge_target,
            strict=config.strict,
            rules=rules,
        )
        outcome = await self.executor.execute(task)
        if not outcome.ok:
            logger.warning("Failed to scan %s: %s", relative, outcome.error)
            return FileScan(file_path=file_path, error=outcome.error)

        findings = tuple(self._apply_rule_settings(relative, outcome.findings))
        if self._cache is not None:
            self._cache.set(file_path, findings, stats.st_mtime_ns)
        return FileScan(file_path=file_path, findings=findings)

    def _active_rules(self) -> Tuple[Rule, ...]:
        config = self.options.config
        return tuple(rule for rule in self.registry.get_enabled() if not config.is_disabled(rule.id))

    def _apply_rule_settings(self, relative: str, findings: Iterable[Finding]) -> Iterable[Finding]:
        config = self.options.config
        for finding in findings:
            setting = config.rule_setting(finding.rule_id)
            if setting is None:
                yield finding
                continue
            if setting.ignore and matches_any(relative, setting.ignore):
                continue
            severity = Severity.from_setting(setting.severity)
            if severity != finding.severity:
                finding = dataclasses.replace(finding, severity=severity)
            yield finding

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _filter_changed(self, files: List[str]) -> List[str]:
        changed = {os.path.normpath(path) for path in self._change_resolver(self.cwd)}
        kept = [path for path in files if path in changed]
        logger.info("Incremental scan: %d of %d files changed", len(kept), len(files))
        return kept

    def _max_workers(self, file_count: int) -> int:
        requested = self.options.max_workers
        if requested is None:
            requested = min(DEFAULT_MAX_WORKERS, file_count)
        return max(1, requested)

    def _report_progress(self, current: int, total: int, message: Optional[str]) -> None:
        if self.options.progress is not None:
            self.options.progress(ScanProgress(current=current, total=total, message=message))

    def _relative(self, file_path: str) -> str:
        return Path(os.path.relpath(file_path, self.cwd)).as_posix()
