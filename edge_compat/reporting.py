"""Render scan results as console text, JSON or Markdown."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Callable, Dict, List

from .result import Finding, ScanResult

REPORT_FORMATS = ("pretty", "json", "md")


def _display_path(path: str, cwd: Path) -> str:
    try:
        return Path(os.path.relpath(path, cwd)).as_posix()
    except ValueError:
        return path


def format_pretty(result: ScanResult, cwd: Path) -> str:
    """Create a human-readable summary table followed by each finding."""

    lines: List[str] = []
    lines.append("Scan Summary")
    lines.append("=" * 40)
    header = f"{'Severity':<10} | {'Count':>5}"
    lines.append(header)
    lines.append("-" * len(header))
    for severity, count in result.summary.as_rows():
        lines.append(f"{severity:<10} | {count:>5}")
    lines.append("-" * len(header))
    lines.append(f"Files     : {result.file_count}")
    if result.cached_count is not None:
        lines.append(f"Cached    : {result.cached_count}")
    lines.append(f"Findings  : {result.summary.total}")
    lines.append(f"Duration  : {result.duration:.0f}ms")

    if result.findings:
        lines.append("")
        lines.append("Findings")
        lines.append("-" * 40)
        for finding in result.top_findings():
            location = finding.location
            lines.append(
                f"[{finding.severity.value.upper()}] {finding.rule_id} "
                f"{_display_path(location.file, cwd)}:{location.line}:{location.column}"
            )
            lines.append(f"  {finding.message}")
            if finding.code_frame is not None:
                lines.extend(f"    {row}" for row in finding.code_frame.code.split("\n"))
            for suggestion in finding.suggestions:
                lines.append(f"  -> {suggestion.message}")
                if suggestion.docs_url:
                    lines.append(f"     {suggestion.docs_url}")
            lines.append("")

    if result.errors:
        lines.append("Errors")
        lines.append("-" * 40)
        for error in result.errors:
            lines.append(f"{_display_path(error.file, cwd)}: {error.message}")
    return "\n".join(lines).rstrip() + "\n"


def format_json(result: ScanResult, cwd: Path) -> str:
    return json.dumps(result.to_dict(), indent=2) + "\n"


def _markdown_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def _markdown_row(finding: Finding, cwd: Path) -> str:
    location = finding.location
    return (
        f"| {finding.severity.value} | `{finding.rule_id}` "
        f"| `{_display_path(location.file, cwd)}:{location.line}` "
        f"| {_markdown_cell(finding.message)} |"
    )


def format_markdown(result: ScanResult, cwd: Path) -> str:
    summary = result.summary
    lines = [
        "# Edge Compatibility Report",
        "",
        f"Scanned **{result.file_count}** files in {result.duration:.0f}ms: "
        f"{summary.error} errors, {summary.warning} warnings, {summary.info} info.",
        "",
    ]
    if result.findings:
        lines.append("| Severity | Rule | Location | Message |")
        lines.append("| --- | --- | --- | --- |")
        lines.extend(_markdown_row(finding, cwd) for finding in result.top_findings())
    else:
        lines.append("No issues found.")
    return "\n".join(lines) + "\n"


FORMATTERS: Dict[str, Callable[[ScanResult, Path], str]] = {
    "pretty": format_pretty,
    "json": format_json,
    "md": format_markdown,
}


def render(result: ScanResult, report_format: str, cwd: Path) -> str:
    try:
        formatter = FORMATTERS[report_format]
    except KeyError as exc:
        raise ValueError(f"Unknown report format {report_format!r}") from exc
    return formatter(result, cwd)
