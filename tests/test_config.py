"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from pidebug.adapters.config.loader import ConfigLoader, Settings
from pidebug.core.exceptions import ConfigError

ENV_KEYS = (
    "PIDEBUG_SETTINGS_DIR",
    "PIDEBUG_CATALOG_FEED",
    "PIDEBUG_CATALOG_TIMEOUT",
    "PIDEBUG_CONNECT_TIMEOUT",
    "PIDEBUG_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture()
def toml_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(
        'log_level = "warning"\n'
        'catalog_feed = "https://example.invalid/sdks.json"\n'
        "connect_timeout = 5\n"
        f'settings_dir = "{tmp_path / "from-toml"}"\n'
    )
    return path


class TestConfigLoader:
    def test_toml_only(self, toml_file: Path, tmp_path: Path) -> None:
        settings = ConfigLoader().load_settings(toml_path=toml_file)

        assert settings.log_level == "WARNING"
        assert settings.connect_timeout == 5.0
        assert settings.catalog_feed == "https://example.invalid/sdks.json"
        assert settings.settings_dir == tmp_path / "from-toml"

    def test_cli_overrides_toml(self, toml_file: Path) -> None:
        settings = ConfigLoader().load_settings(
            toml_path=toml_file,
            cli_overrides={"log_level": "debug", "settings_dir": None},
        )

        assert settings.log_level == "DEBUG"
        assert settings.settings_dir.name == "from-toml"

    def test_env_overrides_cli_and_toml(
        self, toml_file: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PIDEBUG_LOG_LEVEL", "error")
        monkeypatch.setenv("PIDEBUG_CONNECT_TIMEOUT", "2.5")
        monkeypatch.setenv("PIDEBUG_SETTINGS_DIR", str(tmp_path / "from-env"))

        settings = ConfigLoader().load_settings(
            toml_path=toml_file,
            cli_overrides={"log_level": "debug", "settings_dir": tmp_path / "from-cli"},
        )

        assert settings.log_level == "ERROR"
        assert settings.connect_timeout == 2.5
        assert settings.settings_dir == tmp_path / "from-env"

    def test_env_ignored_when_disabled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PIDEBUG_LOG_LEVEL", "error")

        assert ConfigLoader().load(use_env=False) == {}

    def test_env_values_are_converted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PIDEBUG_CATALOG_TIMEOUT", "15")

        assert ConfigLoader().load_env() == {"catalog_timeout": 15}

    def test_defaults(self) -> None:
        settings = ConfigLoader().load_settings()

        assert settings.log_level == "INFO"
        assert settings.catalog_feed is None

    def test_default_config_file_in_home(self, tmp_path: Path) -> None:
        config_dir = tmp_path / "home" / ".pidebug"
        config_dir.mkdir(parents=True)
        (config_dir / "config.toml").write_text('log_level = "critical"\n')

        assert ConfigLoader().load_settings().log_level == "CRITICAL"

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            ConfigLoader().load_settings(toml_path=tmp_path / "nope.toml")

    def test_bad_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text("log_level = \n")

        with pytest.raises(ConfigError):
            ConfigLoader().load_settings(toml_path=path)

    def test_bad_value_type(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text('connect_timeout = "soon"\n')

        with pytest.raises(ConfigError):
            ConfigLoader().load_settings(toml_path=path)

    def test_deep_merge(self) -> None:
        merged = ConfigLoader().merge_configs({"a": {"x": 1, "y": 2}}, {"a": {"y": 3}, "b": 4})

        assert merged == {"a": {"x": 1, "y": 3}, "b": 4}


class TestSettings:
    def test_derived_paths(self, tmp_path: Path) -> None:
        settings = Settings(settings_dir=tmp_path)

        assert settings.keys_dir == tmp_path / "keys"
        assert settings.connections_path == tmp_path / "connections.json"
        assert settings.catalog_override_path.parent == tmp_path
        assert settings.projects_path.parent == tmp_path
