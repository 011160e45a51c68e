"""
Unit tests for bot settings validation and configuration defaults.
"""

import pytest

from bot_orchestrator.config import OrchestratorConfig
from bot_orchestrator.core.models import LogicalBot, SettingEntry, settings_from_mapping
from bot_orchestrator.errors import InvalidSetting


def test_settings_are_ordered_by_key():
    entries = settings_from_mapping({"ZED": "1", "ALPHA": "2", "MID": "3"})
    assert [e.key for e in entries] == ["ALPHA", "MID", "ZED"]
    assert entries[0].as_env() == "ALPHA=2"


def test_empty_mapping_gives_no_settings():
    assert settings_from_mapping(None) == []
    assert settings_from_mapping({}) == []


def test_values_are_stringified():
    entries = settings_from_mapping({"PORT": 8080, "DEBUG": True, "EMPTY": None})
    assert {e.key: e.value for e in entries} == {"PORT": "8080", "DEBUG": "True", "EMPTY": ""}


def test_value_may_contain_equals_and_spaces():
    entry = SettingEntry(key="QUERY", value="a=b c")
    assert entry.as_env() == "QUERY=a=b c"


@pytest.mark.parametrize("mapping", [
    {"": "x"},
    {"A=B": "x"},
    {"A\nB": "x"},
    {"A\x00": "x"},
    {"KEY": "line1\nline2"},
    {"KEY": "with\rreturn"},
    {"KEY": "nul\x00"},
])
def test_invalid_settings_are_rejected(mapping):
    with pytest.raises(InvalidSetting):
        settings_from_mapping(mapping)


@pytest.mark.parametrize("key", ["SECRET_TOKEN", "BOT_ID", "BOT_NAME"])
def test_reserved_keys_are_rejected(key):
    with pytest.raises(InvalidSetting) as exc_info:
        settings_from_mapping({key: "override"})
    assert "reserved" in exc_info.value.message


def test_secret_is_not_rendered():
    bot = LogicalBot(bot_id="b1", name="n", secret="s3cr3t", owner_id="u1")
    assert "s3cr3t" not in repr(bot)
    assert "s3cr3t" not in bot.model_dump_json()
    assert bot.secret.get_secret_value() == "s3cr3t"
    assert not bot.deployed


def test_config_defaults():
    config = OrchestratorConfig()
    assert config.network_name == "bots-network"
    assert config.memory_limit_bytes == 536870912
    assert config.data_path == "/app/data"
    assert config.label_marker == "bot-dashboard"


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("BOT_IMAGE", "python:3.12-slim")
    monkeypatch.setenv("BOT_COMMAND", "python -m bot --verbose")
    monkeypatch.setenv("BOT_MEMORY_MB", "256")
    monkeypatch.setenv("BOT_GRACEFUL_REPLACE", "false")
    monkeypatch.delenv("DOCKER_HOST", raising=False)

    config = OrchestratorConfig.from_env()

    assert config.image == "python:3.12-slim"
    assert config.command == ["python", "-m", "bot", "--verbose"]
    assert config.memory_limit_bytes == 256 * 1024 * 1024
    assert config.graceful_replace is False
    assert config.engine_url is None
