import json

import pytest

from edge_compat.config import Config, EdgeTarget, RuleSetting, default_config_text, load_config
from edge_compat.errors import ConfigError


def test_defaults_without_config_file(tmp_path):
    config = load_config(tmp_path)

    assert config.edge_target == EdgeTarget.AUTO
    assert config.strict is False
    assert config.include is None
    assert config.exclude is None
    assert config.rules == {}


def test_loads_yaml_config(tmp_path):
    (tmp_path / "edgecompat.config.yaml").write_text(
        "edgeTarget: cloudflare\n"
        "strict: true\n"
        "include: ['src/**/*.ts']\n"
        "rules:\n"
        "  edge/pattern:eval: 'off'\n"
        "  deps/not-edge-safe:\n"
        "    severity: warn\n"
        "    ignore: ['scripts/**']\n",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.edge_target == EdgeTarget.CLOUDFLARE
    assert config.strict is True
    assert config.include == ["src/**/*.ts"]
    assert config.is_disabled("edge/pattern:eval")
    assert config.rule_setting("deps/not-edge-safe") == RuleSetting(severity="warn", ignore=("scripts/**",))
    assert config.rule_setting("node-core/caution:crypto") is None


def test_loads_json_rc_file(tmp_path):
    (tmp_path / ".edgecompatrc.json").write_text(json.dumps({"edge_target": "vercel"}), encoding="utf-8")

    assert load_config(tmp_path).edge_target == EdgeTarget.VERCEL


def test_explicit_path_must_exist(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path, tmp_path / "missing.yaml")


def test_malformed_yaml_raises_config_error(tmp_path):
    path = tmp_path / "edgecompat.config.yaml"
    path.write_text("rules: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


@pytest.mark.parametrize(
    "data",
    [
        {"edgeTarget": "lambda"},
        {"strict": "yes"},
        {"include": "src/**"},
        {"rules": ["edge/pattern:eval"]},
        {"rules": {"edge/pattern:eval": "loud"}},
        {"rules": {"edge/pattern:eval": {"severity": "warn", "ignore": "scripts/**"}}},
        {"rules": {"edge/pattern:eval": 3}},
    ],
)
def test_invalid_config_values(data):
    with pytest.raises(ConfigError):
        Config.from_dict(data)


def test_non_mapping_document_is_rejected():
    with pytest.raises(ConfigError):
        Config.from_dict(["not", "a", "mapping"])


def test_default_config_text_round_trips(tmp_path):
    (tmp_path / "edgecompat.config.yaml").write_text(default_config_text(), encoding="utf-8")

    config = load_config(tmp_path)

    assert config.edge_target == EdgeTarget.AUTO
    assert config.exclude and "**/node_modules/**" in config.exclude
