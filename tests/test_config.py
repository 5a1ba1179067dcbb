import logging

import pytest
from pydantic import ValidationError

from core.config import Config, LoggingConfig, MemoryConfig, load_config, setup_logging


def test_load_default_config():
    config = load_config()
    assert isinstance(config, Config)
    assert config.memory.enabled is True


def test_config_defaults():
    config = Config()
    assert config.memory.lookback_days == 14
    assert config.memory.max_interactions == 50
    assert config.memory.max_projects == 5
    assert config.memory.max_skills == 10
    assert config.memory.skill_history == 10
    assert config.memory.summary_max_chars == 1500
    assert config.logging.level == "INFO"


def test_config_channel_order():
    config = load_config()
    assert config.channels[0] == "coding"
    assert "general" in config.channels
    assert "planning" in config.channels


def test_temp_config(temp_config, tmp_path):
    assert temp_config.memory.db_path == str(tmp_path / "memory.db")
    assert temp_config.memory.cache_ttl_seconds == 60
    assert temp_config.logging.level == "DEBUG"


def test_config_rejects_invalid_window():
    with pytest.raises(ValidationError):
        MemoryConfig(lookback_days=0)


def test_load_missing_config(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.toml"))


def test_setup_logging_unknown_level_falls_back(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))
    setup_logging(LoggingConfig(level="chatty"))
    assert calls["level"] == logging.INFO
    setup_logging(LoggingConfig(level="debug"))
    assert calls["level"] == logging.DEBUG
