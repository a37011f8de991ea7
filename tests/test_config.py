# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
Tests for settings and chain configuration

These tests verify:
- Settings sources and precedence
- Chain configuration validation
- Chain configuration files
"""

from pathlib import Path

import pytest

from filterbox.core.config import (
    DEFAULT_PRIORITY,
    CallbackSpec,
    ChainConfig,
    ConfigLoader,
    FilterBoxConfig,
    FilterSpec,
    get_config,
    load_chain_config,
    load_config,
    parse_chain_config,
    reload_config,
)
from filterbox.core.exceptions import (
    ConfigError,
    ConfigFileError,
    ConfigValidationError,
)


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Empty home and working directory"""
    monkeypatch.setattr(Path, "home", lambda: tmp_path / "home")
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestSettings:
    def test_defaults(self, home):
        config = load_config()
        assert config.chain.default_priority == DEFAULT_PRIORITY == 1000
        assert config.chain.strict_config is False
        assert config.observability.log_level == "INFO"
        assert config.paths.log_dir == home / "home" / ".filterbox" / "logs"

    def test_environment(self, home, monkeypatch):
        monkeypatch.setenv("FILTERBOX_DEFAULT_PRIORITY", "50")
        monkeypatch.setenv("FILTERBOX_STRICT_CONFIG", "true")
        monkeypatch.setenv("FILTERBOX_LOG_LEVEL", "debug")

        config = load_config()
        assert config.chain.default_priority == 50
        assert config.chain.strict_config is True
        assert config.observability.log_level == "DEBUG"

    def test_precedence(self, home, monkeypatch):
        (home / "home" / ".filterbox").mkdir(parents=True)
        (home / "home" / ".filterbox" / "config.yaml").write_text(
            "chain:\n  default_priority: 10\n  strict_config: true\n"
        )
        (home / ".filterbox.yaml").write_text("chain:\n  default_priority: 20\n")

        config = load_config()
        assert config.chain.default_priority == 20
        assert config.chain.strict_config is True

        monkeypatch.setenv("FILTERBOX_DEFAULT_PRIORITY", "30")
        assert load_config().chain.default_priority == 30
        assert load_config(env_override=False).chain.default_priority == 20

    def test_explicit_file(self, home):
        settings = home / "settings.yaml"
        settings.write_text("observability:\n  file_logging: true\n")
        assert load_config(settings).observability.file_logging is True

    def test_missing_explicit_file(self, home):
        with pytest.raises(ConfigFileError):
            load_config(home / "missing.yaml")

    def test_invalid_settings_raise(self, home, monkeypatch):
        monkeypatch.setenv("FILTERBOX_LOG_LEVEL", "LOUD")
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config()
        assert exc_info.value.errors[0]["loc"] == ["observability", "log_level"]

    def test_malformed_settings_file(self, home):
        (home / ".filterbox.yaml").write_text("chain: [unclosed\n")
        with pytest.raises(ConfigFileError):
            load_config()

    def test_merge_configs(self):
        merged = ConfigLoader.merge_configs(
            {"chain": {"default_priority": 1, "strict_config": True}},
            {"chain": {"default_priority": 2}},
        )
        assert merged == {"chain": {"default_priority": 2, "strict_config": True}}

    def test_global_settings(self, home, monkeypatch):
        assert isinstance(get_config(), FilterBoxConfig)
        monkeypatch.setenv("FILTERBOX_DEFAULT_PRIORITY", "77")
        assert reload_config().chain.default_priority == 77
        assert get_config().chain.default_priority == 77


class TestChainConfig:
    def test_sections_default_to_empty(self):
        config = parse_chain_config({})
        assert config.callbacks == []
        assert config.filters == []

    def test_null_sections_and_options(self):
        config = parse_chain_config({"callbacks": None, "filters": [{"name": "trim", "options": None}]})
        assert config.filters[0].options == {}
        assert config.filters[0].priority is None

    def test_callback_references_are_resolved(self):
        config = parse_chain_config({"callbacks": [{"callback": "builtins:str.upper"}]})
        assert config.callbacks[0].callback is str.upper

    def test_unresolvable_callback(self):
        with pytest.raises(ConfigValidationError, match="Cannot resolve"):
            parse_chain_config({"callbacks": [{"callback": "nowhere:nothing"}]})

    def test_unknown_entry_keys(self):
        with pytest.raises(ConfigValidationError):
            parse_chain_config({"filters": [{"name": "trim", "prio": 1}]})

    def test_pairs_with_repeated_sections(self):
        config = parse_chain_config(
            [("filters", [{"name": "trim"}]), ("filters", [{"name": "lower"}])]
        )
        assert [spec.name for spec in config.filters] == ["trim", "lower"]

    def test_entries_follow_declaration_order(self):
        config = parse_chain_config(
            [
                ("filters", [{"name": "trim"}]),
                ("callbacks", [{"callback": "builtins:str.upper"}]),
                ("filters", [{"name": "lower"}]),
            ]
        )
        assert [type(spec) for spec in config.entries()] == [FilterSpec, CallbackSpec, FilterSpec]
        assert config.entries()[2].name == "lower"

    def test_entries_without_declared_order(self):
        config = ChainConfig(
            filters=[FilterSpec(name="trim")],
            callbacks=[CallbackSpec(callback=str.upper)],
        )
        assert [type(spec) for spec in config.entries()] == [CallbackSpec, FilterSpec]

    def test_iterable_of_pairs(self):
        config = parse_chain_config(iter([("filters", [{"name": "trim"}])]))
        assert config.filters[0].name == "trim"

    def test_rejects_non_iterables(self):
        with pytest.raises(ConfigError, match="iterable of pairs"):
            parse_chain_config(42)

    def test_malformed_pairs(self):
        with pytest.raises(ConfigError, match="pairs"):
            parse_chain_config([("filters",)])

    def test_unknown_keys(self, caplog):
        with caplog.at_level("WARNING", logger="filterbox.config"):
            config = parse_chain_config({"validators": []})
        assert config.unknown_keys == ["validators"]
        assert "validators" in caplog.text

        with pytest.raises(ConfigValidationError) as exc_info:
            parse_chain_config({"validators": []}, strict=True)
        assert exc_info.value.details["unknown_keys"] == ["validators"]

    def test_parsed_config_passes_through(self):
        config = ChainConfig()
        assert parse_chain_config(config) is config


class TestChainFiles:
    def test_yaml_file(self, tmp_path):
        path = tmp_path / "chain.yaml"
        path.write_text("filters:\n  - name: trim\n    priority: 5\n")
        assert load_chain_config(path) == {"filters": [{"name": "trim", "priority": 5}]}

    def test_json_file(self, tmp_path):
        path = tmp_path / "chain.json"
        path.write_text('{"filters": [{"name": "int"}]}')
        assert load_chain_config(path)["filters"][0]["name"] == "int"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_chain_config(path) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigFileError) as exc_info:
            load_chain_config(tmp_path / "nope.yaml")
        assert exc_info.value.path.endswith("nope.yaml")

    def test_scalar_file(self, tmp_path):
        path = tmp_path / "scalar.yaml"
        path.write_text("just text\n")
        with pytest.raises(ConfigFileError, match="must contain a mapping"):
            load_chain_config(path)
