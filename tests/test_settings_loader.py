# tests/test_settings_loader.py
"""
Settings loader tests.

Goal:
  - The shipped config/agent.yaml resolves into AgentSettings.
  - Missing sections fall back to dataclass defaults.
  - Bad shapes fail loudly, unknown keys only warn.
"""

import logging
from pathlib import Path

import pytest

from execution.executor import ExecutorConfig
from settings.loader import load_settings, settings_from_dict
from settings.schema import AgentSettings, BuildSettings
import settings.loader as loader_module


def _write(config_dir: Path, text: str, name: str = "agent.yaml") -> None:
    (config_dir / name).write_text(text.lstrip(), encoding="utf-8")


def test_shipped_config_loads():
    settings = load_settings()

    assert isinstance(settings, AgentSettings)
    assert settings.name == "builder"
    assert settings.executor.max_retries == 3
    assert settings.executor.progress_every == 5
    assert settings.crafting.keep_stock_of["torch"] == 16
    assert settings.build.protected_blocks == ["bedrock", "barrier"]


def test_missing_sections_use_defaults(tmp_path: Path, monkeypatch):
    _write(
        tmp_path,
        """
agent:
  name: scout
  log_level: debug
build:
  search_radius: 4
""",
    )
    monkeypatch.setattr(loader_module, "CONFIG_DIR", tmp_path)

    settings = load_settings()

    assert settings.name == "scout"
    assert settings.log_level == "DEBUG"
    assert settings.command_prefix == "!"
    assert settings.build.search_radius == 4
    assert settings.build.reach == BuildSettings().reach
    assert settings.executor == ExecutorConfig()


def test_empty_file_is_all_defaults(tmp_path: Path, monkeypatch):
    _write(tmp_path, "")
    monkeypatch.setattr(loader_module, "CONFIG_DIR", tmp_path)

    assert load_settings() == AgentSettings()


def test_missing_file_raises(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(loader_module, "CONFIG_DIR", tmp_path)

    with pytest.raises(FileNotFoundError):
        load_settings()


def test_non_mapping_top_level_raises(tmp_path: Path, monkeypatch):
    _write(tmp_path, "- a\n- b\n")
    monkeypatch.setattr(loader_module, "CONFIG_DIR", tmp_path)

    with pytest.raises(ValueError):
        load_settings()


def test_section_must_be_mapping():
    with pytest.raises(ValueError):
        settings_from_dict({"combat": [1, 2, 3]})
    with pytest.raises(ValueError):
        settings_from_dict({"agent": "builder"})


def test_unknown_keys_are_ignored_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="settings.loader"):
        settings = settings_from_dict({"combat": {"flee_health": 4.0, "berserk": True}})

    assert settings.combat.flee_health == 4.0
    assert not hasattr(settings.combat, "berserk")
    assert any("berserk" in rec.getMessage() for rec in caplog.records)
