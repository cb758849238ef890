"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() source precedence
"""

from __future__ import annotations

from pathlib import Path

import pytest

from testplane.config import loader
from testplane.config.loader import PROJECT_CONFIG_NAME, _deep_merge, _load_yaml, load_config
from testplane.core.errors import ConfigError, ErrorCode


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point the global config at an empty location and clear env overrides."""
    monkeypatch.setattr(loader, "GLOBAL_CONFIG_PATH", tmp_path / "global" / "config.yaml")
    for key in ("TESTPLANE__RUNNER__TIMEOUT", "TESTPLANE__RUNNER__FAIL_FAST", "TESTPLANE__LOGGING__LEVEL"):
        monkeypatch.delenv(key, raising=False)


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("runner:\n  timeout: 200\n")

        assert _load_yaml(yaml_file) == {"runner": {"timeout": 200}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")

        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("runner:\n  timeout:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)

        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_raises_config_error_for_non_mapping(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="mapping"):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_override_wins(self) -> None:
        assert _deep_merge({"a": 1}, {"a": 2}) == {"a": 2}

    def test_nested_dicts_merge(self) -> None:
        base = {"runner": {"timeout": 100, "fail_fast": True}}
        override = {"runner": {"timeout": 200}}

        assert _deep_merge(base, override) == {"runner": {"timeout": 200, "fail_fast": True}}

    def test_base_not_mutated(self) -> None:
        base = {"a": {"b": 1}}

        _deep_merge(base, {"a": {"b": 2}})

        assert base == {"a": {"b": 1}}


class TestLoadConfig:
    """Tests for load_config source precedence."""

    def test_defaults_without_sources(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)

        assert config.runner.timeout == 10_000
        assert config.logging.level == "WARNING"

    def test_project_yaml_applied(self, tmp_path: Path) -> None:
        (tmp_path / PROJECT_CONFIG_NAME).write_text("runner:\n  timeout: 250\n  fail_fast: true\n")

        config = load_config(tmp_path)

        assert config.runner.timeout == 250
        assert config.runner.fail_fast is True

    def test_project_overrides_global(self, tmp_path: Path) -> None:
        global_path = tmp_path / "global" / "config.yaml"
        global_path.parent.mkdir(parents=True)
        global_path.write_text("runner:\n  timeout: 100\n  notrycatch: true\n")
        project = tmp_path / "project"
        project.mkdir()
        (project / PROJECT_CONFIG_NAME).write_text("runner:\n  timeout: 300\n")

        config = load_config(project)

        assert config.runner.timeout == 300
        assert config.runner.notrycatch is True

    def test_env_overrides_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / PROJECT_CONFIG_NAME).write_text("logging:\n  level: INFO\n")
        monkeypatch.setenv("TESTPLANE__LOGGING__LEVEL", "DEBUG")

        config = load_config(tmp_path)

        assert config.logging.level == "DEBUG"

    def test_kwargs_override_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TESTPLANE__LOGGING__LEVEL", "DEBUG")

        config = load_config(tmp_path, logging={"level": "ERROR"})

        assert config.logging.level == "ERROR"

    def test_invalid_value_raises_config_error(self, tmp_path: Path) -> None:
        (tmp_path / PROJECT_CONFIG_NAME).write_text("runner:\n  timeout: -1\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
        assert "runner" in exc_info.value.details["field"]
