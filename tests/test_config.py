"""Tests for configuration loading and data root discovery."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from wv.config import Config, config_path, load_config, resolve_data_dir, resolve_editor


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WV_DATA_DIR", raising=False)
    monkeypatch.delenv("EDITOR", raising=False)


def test_config_path_name() -> None:
    assert config_path().name == "config.toml"


def test_load_config(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text('data_dir = "/srv/wv"\neditor = "nvim"\n\n[display]\nlanguage = "de"\n')
    config = load_config(path)
    assert config == Config(data_dir=Path("/srv/wv"), editor="nvim")


def test_missing_config_is_default(tmp_path: Path) -> None:
    assert load_config(tmp_path / "nope.toml") == Config()


def test_malformed_config_warns(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "config.toml"
    path.write_text("data_dir = \n")
    with caplog.at_level(logging.WARNING, logger="wv.config"):
        assert load_config(path) == Config()
    assert "Failed to parse config" in caplog.text


def test_wrong_type_warns(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "config.toml"
    path.write_text("editor = 3\n")
    with caplog.at_level(logging.WARNING, logger="wv.config"):
        assert load_config(path) == Config()
    assert "editor must be a string" in caplog.text


def test_flag_wins(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WV_DATA_DIR", "/from/env")
    config = Config(data_dir=Path("/from/config"))
    assert resolve_data_dir(tmp_path, config) == tmp_path


def test_env_beats_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WV_DATA_DIR", "/from/env")
    assert resolve_data_dir(None, Config(data_dir=Path("/from/config"))) == Path("/from/env")


def test_config_beats_discovery(tmp_path: Path) -> None:
    (tmp_path / "composers").mkdir()
    assert resolve_data_dir(None, Config(data_dir=Path("/from/config")), cwd=tmp_path) == Path("/from/config")


def test_discovery(tmp_path: Path) -> None:
    (tmp_path / "composers").mkdir()
    sub = tmp_path / "tools"
    sub.mkdir()
    assert resolve_data_dir(None, Config(), cwd=tmp_path) == tmp_path
    assert resolve_data_dir(None, Config(), cwd=sub) == tmp_path


def test_discovery_falls_back_to_cwd(tmp_path: Path) -> None:
    assert resolve_data_dir(None, Config(), cwd=tmp_path) == tmp_path


def test_resolve_editor(monkeypatch: pytest.MonkeyPatch) -> None:
    assert resolve_editor(Config(editor="code -w")) == "code -w"
    assert resolve_editor(Config()) == "vi"
    monkeypatch.setenv("EDITOR", "nano")
    assert resolve_editor(Config()) == "nano"
