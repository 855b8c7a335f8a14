import json
from pathlib import Path

from edge_compat import cli

EXAMPLES = Path(__file__).resolve().parent.parent / "examples"


def test_cli_generates_json_report(tmp_path, capsys, monkeypatch):
    monkeypatch.chdir(EXAMPLES / "edge-unsafe")
    output_path = tmp_path / "scan.json"

    exit_code = cli.main(["scan", "--format", "json", "--no-cache", "--out", str(output_path)])

    captured = capsys.readouterr()
    assert f"Report written to {output_path}" in captured.out
    assert exit_code == 2
    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert data["file_count"] == 2
    assert data["summary"]["error"] >= 3
    rule_ids = {finding["rule_id"] for finding in data["findings"]}
    assert {
        "node-core/forbidden-module:fs",
        "node-core/forbidden-module:child_process",
        "deps/not-edge-safe",
        "edge/pattern:eval",
        "edge/pattern:long-timers",
    } <= rule_ids


def test_cli_passes_on_clean_project(capsys, monkeypatch):
    monkeypatch.chdir(EXAMPLES / "edge-safe")

    exit_code = cli.main(["scan"])

    captured = capsys.readouterr()
    assert "Scan Summary" in captured.out
    assert "Findings  : 0" in captured.out
    assert exit_code == 0


def test_cli_markdown_report(capsys, monkeypatch):
    monkeypatch.chdir(EXAMPLES / "edge-unsafe")

    cli.main(["scan", "--format", "md", "src/api"])

    captured = capsys.readouterr()
    assert captured.out.startswith("# Edge Compatibility Report")
    assert "| error | `node-core/forbidden-module:fs` | `src/api/route.ts:" in captured.out


def test_cli_strict_fails_on_warnings(tmp_path, capsys, monkeypatch):
    (tmp_path / "worker.ts").write_text("setTimeout(flush, 45000);\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    assert cli.main(["scan"]) == 1
    assert cli.main(["scan", "--strict"]) == 2


def test_cli_reports_invalid_config(tmp_path, capsys, monkeypatch):
    (tmp_path / "edgecompat.config.yaml").write_text("edgeTarget: lambda\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    exit_code = cli.main(["scan"])

    captured = capsys.readouterr()
    assert exit_code == 2
    assert "Configuration error" in captured.err


def test_cli_init_writes_config(tmp_path, capsys, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert cli.main(["init"]) == 0
    assert (tmp_path / "edgecompat.config.yaml").is_file()
    assert cli.main(["init"]) == 1
    assert cli.main(["init", "--force"]) == 0
