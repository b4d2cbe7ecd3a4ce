"""Tests for beecli.config -- XDG paths, atomic writes, environments, precedence."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path
from typing import Any

import pytest

from beecli.config import (
    ENVIRONMENTS,
    atomic_write,
    fingerprint_enabled,
    get_config_dir,
    get_data_dir,
    load_global_config,
    resolve_environment,
    resolve_settings,
    save_global_config,
)
from beecli.exceptions import ConfigError
from beecli.models import GlobalConfig, PairingSettings


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_config(root: Path, data: Any) -> Path:
    path = root / "config" / "beecli" / "config.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_config"
        monkeypatch.setattr("beecli.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(custom))

        result = get_config_dir()
        assert result == custom / "beecli"
        assert result.is_dir()

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("beecli.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "beecli"
        assert result.is_dir()

    def test_fallback_dirs(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("beecli.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".beecli"
        assert get_data_dir() == tmp_path / ".beecli" / "data"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_content_and_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "file.json"
        atomic_write(target, '{"x": 1}')
        assert target.read_text(encoding="utf-8") == '{"x": 1}'

    def test_applies_mode(self, tmp_path: Path) -> None:
        target = tmp_path / "secret"
        atomic_write(target, "data", mode=0o600)
        assert stat.S_IMODE(os.stat(target).st_mode) == 0o600

    def test_replaces_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "file"
        target.write_text("old")
        atomic_write(target, "new")
        assert target.read_text() == "new"

    def test_leaves_no_temp_files(self, tmp_path: Path) -> None:
        atomic_write(tmp_path / "file", "data")
        assert [p.name for p in tmp_path.iterdir()] == ["file"]


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_missing_file_returns_defaults(self, isolated_config: Path) -> None:
        config = load_global_config()
        assert config == GlobalConfig()
        assert config.pairing == PairingSettings()

    def test_save_then_load(self, isolated_config: Path) -> None:
        config = GlobalConfig(default_environment="staging")
        config.pairing.poll_interval = 5.0
        save_global_config(config)

        loaded = load_global_config()
        assert loaded.default_environment == "staging"
        assert loaded.pairing.poll_interval == 5.0

    def test_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        path = isolated_config / "config" / "beecli" / "config.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_invalid_values_raise_config_error(self, isolated_config: Path) -> None:
        _write_config(isolated_config, {"pairing": {"poll_interval": -1}})

        with pytest.raises(ConfigError) as exc_info:
            load_global_config()
        message = str(exc_info.value)
        assert "pairing.poll_interval" in message
        assert "\n" not in message

    def test_unknown_default_environment_rejected(self, isolated_config: Path) -> None:
        _write_config(isolated_config, {"default_environment": "prdo"})

        with pytest.raises(ConfigError, match="default_environment"):
            load_global_config()


# ---------------------------------------------------------------------------
# Environments and precedence
# ---------------------------------------------------------------------------


class TestResolveEnvironment:
    def test_builtin_environments(self) -> None:
        assert set(ENVIRONMENTS) == {"prod", "staging"}
        assert resolve_environment("prod") is ENVIRONMENTS["prod"]

    def test_unknown_environment(self) -> None:
        with pytest.raises(ConfigError, match="Unknown environment 'dev'"):
            resolve_environment("dev")

    def test_overrides_applied(self) -> None:
        config = GlobalConfig(
            environments={"staging": {"api_url": "http://localhost:8080"}}
        )
        env = resolve_environment("staging", config)
        assert env.api_url == "http://localhost:8080"
        assert env.app_id == ENVIRONMENTS["staging"].app_id
        assert env.name == "staging"

    def test_invalid_override(self) -> None:
        config = GlobalConfig(environments={"prod": {"pairing_urls": []}})
        with pytest.raises(ConfigError, match="Invalid override"):
            resolve_environment("prod", config)


class TestResolveSettings:
    def test_defaults_to_prod(self, isolated_config: Path) -> None:
        config, env = resolve_settings()
        assert env.name == "prod"
        assert config.secret_backend == "file"

    def test_config_file_default_environment(self, isolated_config: Path) -> None:
        _write_config(isolated_config, {"default_environment": "staging"})
        _, env = resolve_settings()
        assert env.name == "staging"

    def test_env_var_beats_config_file(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_config(isolated_config, {"default_environment": "staging"})
        monkeypatch.setenv("BEE_ENV", " PROD ")
        _, env = resolve_settings()
        assert env.name == "prod"

    def test_cli_flag_beats_env_var(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("BEE_ENV", "prod")
        _, env = resolve_settings("staging")
        assert env.name == "staging"

    def test_secret_backend_from_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("BEE_SECRET_BACKEND", "keyring")
        config, _ = resolve_settings()
        assert config.secret_backend == "keyring"

    def test_unknown_env_var_value(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("BEE_ENV", "moon")
        with pytest.raises(ConfigError):
            resolve_settings()


class TestFingerprintEnabled:
    def test_enabled_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("BEE_EMOJI_HASH", raising=False)
        assert fingerprint_enabled() is True

    @pytest.mark.parametrize("value", ["0", "false", "OFF", " no "])
    def test_disabled_values(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        monkeypatch.setenv("BEE_EMOJI_HASH", value)
        assert fingerprint_enabled() is False

    def test_other_values_keep_it_enabled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BEE_EMOJI_HASH", "1")
        assert fingerprint_enabled() is True
