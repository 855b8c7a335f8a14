"""Command-line entry point for the edge compatibility scanner."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List

from . import __version__
from .config import CONFIG_FILES, Config, EdgeTarget, default_config_text, load_config
from .errors import ConfigError
from .executor import IsolatedExecutor
from .reporting import REPORT_FORMATS, render
from .result import ScanResult
from .scanner import ScanOptions, Scanner

DEFAULT_CONFIG_NAME = CONFIG_FILES[0]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="edge-compat",
        description="Static analysis scanner for Edge runtime compatibility",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="Scan files for Edge-incompatible code.")
    scan.add_argument("paths", nargs="*", help="Files, directories or globs to scan (defaults to config include).")
    scan.add_argument(
        "--format",
        "-f",
        choices=REPORT_FORMATS,
        default="pretty",
        help="Report format (defaults to pretty).",
    )
    scan.add_argument(
        "--out",
        "--output",
        "-o",
        dest="output_path",
        default=None,
        help="Path to write the report to instead of stdout.",
    )
    scan.add_argument("--strict", action="store_true", default=None, help="Fail on warnings.")
    scan.add_argument(
        "--edge-target",
        choices=[target.value for target in EdgeTarget],
        default=None,
        help="Edge runtime to check against.",
    )
    scan.add_argument("--config", "-c", default=None, help="Path to a config file.")
    scan.add_argument("--changed", action="store_true", help="Only scan files changed in git.")
    scan.add_argument("--parallel", action="store_true", help="Scan files in concurrent batches.")
    scan.add_argument("--max-workers", type=int, default=None, help="Concurrent files per half batch.")
    scan.add_argument(
        "--isolated",
        action="store_true",
        help="Scan each file in a separate process with a 30 second timeout.",
    )
    scan.add_argument("--no-cache", dest="cache", action="store_false", help="Disable the result cache.")
    scan.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")

    init = subparsers.add_parser("init", help=f"Write a starter {DEFAULT_CONFIG_NAME}.")
    init.add_argument("--force", action="store_true", help="Overwrite an existing config file.")
    return parser


def resolve_config(args: argparse.Namespace, cwd: Path) -> Config:
    config = load_config(cwd, Path(args.config) if args.config else None)
    overrides = {}
    if args.strict is not None:
        overrides["strict"] = args.strict
    if args.edge_target is not None:
        overrides["edge_target"] = EdgeTarget(args.edge_target)
    return dataclasses.replace(config, **overrides) if overrides else config


def run_scan(args: argparse.Namespace, cwd: Path) -> tuple[ScanResult, Config]:
    config = resolve_config(args, cwd)
    options = ScanOptions(
        cwd=cwd,
        config=config,
        paths=args.paths or None,
        changed=args.changed,
        parallel=args.parallel,
        max_workers=args.max_workers,
        cache=args.cache,
    )
    executor = IsolatedExecutor() if args.isolated else None
    scanner = Scanner(options, executor=executor)
    return asyncio.run(scanner.scan()), config


def write_output(result: ScanResult, output_path: str | None, report_format: str, cwd: Path) -> None:
    report = render(result, report_format, cwd)
    if output_path:
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(report, encoding="utf-8")
        print(f"Report written to {output_path}")
    else:
        sys.stdout.write(report)


def init_config(cwd: Path, force: bool) -> int:
    target = cwd / DEFAULT_CONFIG_NAME
    if target.exists() and not force:
        print(f"{DEFAULT_CONFIG_NAME} already exists (use --force to overwrite)", file=sys.stderr)
        return 1
    target.write_text(default_config_text(), encoding="utf-8")
    print(f"Created {DEFAULT_CONFIG_NAME}")
    return 0


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    cwd = Path.cwd()

    if args.command == "init":
        return init_config(cwd, args.force)

    configure_logging(args.verbose)
    try:
        result, config = run_scan(args, cwd)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    write_output(result, args.output_path, args.format, cwd)
    return result.exit_code(strict=config.strict)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
