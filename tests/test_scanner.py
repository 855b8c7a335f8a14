import os

import pytest

from edge_compat.config import Config, RuleSetting
from edge_compat.executor import IsolatedExecutor
from edge_compat.rules import Rule, RuleRegistry, build_default_registry
from edge_compat.scanner import ScanOptions, Scanner
from edge_compat.severity import Severity

FS_IMPORT = "import fs from 'fs';\n"
FS_RULE = "node-core/forbidden-module:fs"


def write_files(root, files):
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")


class UnpicklableRule(Rule):
    id = "custom/unpicklable"
    category = "edge-pattern"

    def __init__(self):
        self.predicate = lambda text: False

    def detect(self, context):
        return []


class ExplodingRule(Rule):
    id = "custom/explode"
    category = "edge-pattern"

    def detect(self, context):
        if "boom" in context.file_path:
            raise RuntimeError("rule crashed")
        return []


@pytest.mark.asyncio
async def test_scan_reports_findings_with_summary(tmp_path):
    write_files(tmp_path, {"src/a.ts": FS_IMPORT + "eval('x');\n", "src/clean.ts": "export const a = 1;\n"})

    result = await Scanner(ScanOptions(cwd=tmp_path)).scan()

    assert result.file_count == 2
    assert [finding.rule_id for finding in result.findings] == [FS_RULE, "edge/pattern:eval"]
    assert result.findings[0].location.file == str(tmp_path / "src" / "a.ts")
    assert result.summary.error == 2
    assert result.cached_count is None
    assert result.duration >= 0
    assert result.exit_code() == 2


@pytest.mark.asyncio
async def test_excluding_everything_scans_nothing(tmp_path):
    write_files(tmp_path, {"src/a.ts": FS_IMPORT})
    options = ScanOptions(cwd=tmp_path, config=Config(include=["src/**/*.ts"], exclude=["**/*"]))

    result = await Scanner(options).scan()

    assert result.file_count == 0
    assert result.findings == ()
    assert result.exit_code() == 0


@pytest.mark.asyncio
async def test_default_excludes_and_gitignore(tmp_path):
    write_files(
        tmp_path,
        {
            "src/a.ts": FS_IMPORT,
            "node_modules/pkg/index.js": FS_IMPORT,
            "generated/out.js": FS_IMPORT,
            ".gitignore": "generated/\n",
        },
    )

    result = await Scanner(ScanOptions(cwd=tmp_path)).scan()

    assert result.file_count == 1
    assert {finding.location.file for finding in result.findings} == {str(tmp_path / "src" / "a.ts")}


@pytest.mark.asyncio
async def test_explicit_paths_override_include(tmp_path):
    write_files(tmp_path, {"src/a.ts": FS_IMPORT, "src/b.ts": FS_IMPORT, "lib/c.js": FS_IMPORT})

    result = await Scanner(ScanOptions(cwd=tmp_path, paths=["src/b.ts", "lib"])).scan()

    assert sorted(os.path.basename(f.location.file) for f in result.findings) == ["b.ts", "c.js"]


@pytest.mark.asyncio
async def test_cache_hits_and_invalidation(tmp_path):
    write_files(tmp_path, {"src/a.ts": FS_IMPORT})
    target = tmp_path / "src" / "a.ts"
    scanner = Scanner(ScanOptions(cwd=tmp_path, cache=True))

    first = await scanner.scan()
    second = await scanner.scan()

    assert first.cached_count == 0
    assert second.cached_count == 1
    assert second.findings == first.findings

    target.write_text("eval('x');\n", encoding="utf-8")
    stats = target.stat()
    os.utime(target, ns=(stats.st_atime_ns, stats.st_mtime_ns + 2_000_000_000))

    third = await scanner.scan()

    assert third.cached_count == 0
    assert [finding.rule_id for finding in third.findings] == ["edge/pattern:eval"]


@pytest.mark.asyncio
async def test_changed_only_scans_changed_files(tmp_path):
    write_files(tmp_path, {"src/a.ts": FS_IMPORT, "src/b.ts": FS_IMPORT})
    changed = [str(tmp_path / "src" / "b.ts"), str(tmp_path / "README.md")]
    options = ScanOptions(cwd=tmp_path, changed=True)

    result = await Scanner(options, change_resolver=lambda root: changed).scan()

    assert result.file_count == 1
    assert [os.path.basename(f.location.file) for f in result.findings] == ["b.ts"]


@pytest.mark.asyncio
async def test_unreadable_and_oversized_files_are_skipped(tmp_path):
    write_files(
        tmp_path,
        {
            "src/a.ts": FS_IMPORT,
            "src/binary.ts": b"\xff\xfe\x00import fs from 'fs';",
            "src/large.ts": FS_IMPORT + "// padding\n" * 20,
        },
    )
    scanner = Scanner(ScanOptions(cwd=tmp_path), max_file_size=len(FS_IMPORT) + 5)

    result = await scanner.scan()

    assert result.file_count == 3
    assert [os.path.basename(f.location.file) for f in result.findings] == ["a.ts"]


@pytest.mark.asyncio
async def test_rule_failure_is_isolated_to_its_file(tmp_path):
    write_files(tmp_path, {"src/boom.ts": FS_IMPORT, "src/ok.ts": FS_IMPORT})
    registry = build_default_registry()
    registry.register(ExplodingRule())

    result = await Scanner(ScanOptions(cwd=tmp_path), registry=registry).scan()

    assert [os.path.basename(f.location.file) for f in result.findings] == ["ok.ts"]
    (error,) = result.errors
    assert error.file == str(tmp_path / "src" / "boom.ts")
    assert "rule crashed" in error.message


@pytest.mark.asyncio
async def test_rule_settings(tmp_path):
    write_files(
        tmp_path,
        {
            "src/a.ts": FS_IMPORT + "eval('x');\nimport jwt from 'jsonwebtoken';\n",
            "scripts/tool.ts": "import jwt from 'jsonwebtoken';\n",
        },
    )
    config = Config(
        rules={
            FS_RULE: RuleSetting(severity="off"),
            "edge/pattern:eval": RuleSetting(severity="warn"),
            "deps/not-edge-safe": RuleSetting(severity="error", ignore=("scripts/**",)),
        }
    )

    result = await Scanner(ScanOptions(cwd=tmp_path, config=config)).scan()

    by_rule = {finding.rule_id: finding for finding in result.findings}
    assert FS_RULE not in by_rule
    assert by_rule["edge/pattern:eval"].severity == Severity.WARNING
    assert [f.location.file for f in result.findings if f.rule_id == "deps/not-edge-safe"] == [
        str(tmp_path / "src" / "a.ts")
    ]


@pytest.mark.asyncio
async def test_strict_mode_exit_code(tmp_path):
    write_files(tmp_path, {"src/a.ts": "setInterval(poll, 60000);\n"})

    result = await Scanner(ScanOptions(cwd=tmp_path)).scan()

    assert result.summary.warning == 1
    assert result.exit_code(strict=False) == 1
    assert result.exit_code(strict=True) == 2


@pytest.mark.asyncio
async def test_parallel_scan_preserves_discovery_order(tmp_path):
    write_files(tmp_path, {f"src/file{index:02d}.ts": FS_IMPORT for index in range(10)})

    sequential = await Scanner(ScanOptions(cwd=tmp_path)).scan()
    parallel = await Scanner(ScanOptions(cwd=tmp_path, parallel=True, max_workers=2)).scan()

    assert parallel.file_count == 10
    assert parallel.findings == sequential.findings


@pytest.mark.asyncio
async def test_progress_is_reported_per_file(tmp_path):
    write_files(tmp_path, {"src/a.ts": FS_IMPORT, "src/b.ts": "", "src/c.ts": ""})
    events = []

    await Scanner(ScanOptions(cwd=tmp_path, progress=events.append)).scan()

    assert [(event.current, event.total) for event in events] == [(1, 3), (2, 3), (3, 3)]
    assert events[0].message == "src/a.ts"


@pytest.mark.asyncio
async def test_scanners_do_not_share_state(tmp_path):
    write_files(tmp_path, {"src/a.ts": "eval('x');\n"})
    quiet_registry = RuleRegistry()
    quiet = Scanner(ScanOptions(cwd=tmp_path, cache=True), registry=quiet_registry)
    default = Scanner(ScanOptions(cwd=tmp_path, cache=True))

    quiet_result = await quiet.scan()
    default_result = await default.scan()

    assert quiet_result.findings == ()
    assert len(default_result.findings) == 1
    assert default_result.cached_count == 0


@pytest.mark.asyncio
async def test_excluding_everything_overrides_explicit_paths(tmp_path):
    write_files(tmp_path, {"src/a.ts": FS_IMPORT, "lib/b.js": FS_IMPORT})
    options = ScanOptions(cwd=tmp_path, paths=["src/a.ts", "lib"], config=Config(exclude=["**/*"]))

    result = await Scanner(options).scan()

    assert result.file_count == 0
    assert result.findings == ()


@pytest.mark.asyncio
async def test_worker_start_failure_is_a_file_error(tmp_path):
    write_files(tmp_path, {"src/a.ts": FS_IMPORT})
    registry = RuleRegistry([UnpicklableRule()])

    result = await Scanner(ScanOptions(cwd=tmp_path), registry=registry, executor=IsolatedExecutor(timeout=10)).scan()

    assert result.findings == ()
    (error,) = result.errors
    assert error.file == str(tmp_path / "src" / "a.ts")
    assert "Failed to start worker" in error.message
