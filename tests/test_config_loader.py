"""Tests for configuration loader."""

import pytest
import yaml
from pydantic import ValidationError

from calendar_companion.config.config_loader import ConfigLoader, expand_env_references, load_config
from calendar_companion.config import config_schema
from calendar_companion.config.config_schema import AppConfig, local_timezone_name


def write_config(tmp_path, config_dict):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config_dict), encoding="utf-8")
    return str(path)


BASE_CONFIG = {
    "identity": {"user_id": "alice"},
    "llm": {"provider": "gemini", "gemini": {"api_key": "key"}},
}


def test_load_config_valid(tmp_path):
    """Test loading a valid configuration."""
    config = load_config(write_config(tmp_path, BASE_CONFIG))

    assert isinstance(config, AppConfig)
    assert config.identity.user_id == "alice"
    assert config.llm.provider == "gemini"
    assert config.llm.gemini.model == "gemini-2.0-flash"
    assert config.storage.list_limit == 100
    assert config.calendar.max_results == 10
    assert config.calendar.default_description == "No description provided"
    assert config.agent.inject_datetime is True


def test_load_config_missing_file():
    """Test loading a non-existent configuration file."""
    with pytest.raises(FileNotFoundError):
        load_config("nonexistent.yaml")


def test_load_config_empty_file(tmp_path):
    """Test loading an empty configuration file."""
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    with pytest.raises(ValueError, match="empty"):
        load_config(str(path))


def test_load_config_missing_provider_section(tmp_path):
    """Test that the selected provider must be configured."""
    config_dict = {"identity": {"user_id": "alice"}, "llm": {"provider": "openai"}}

    with pytest.raises(ValueError, match="openai configuration is required"):
        load_config(write_config(tmp_path, config_dict))


def test_unknown_provider():
    """Test an unsupported provider name."""
    with pytest.raises(ValueError, match="Unknown LLM provider"):
        ConfigLoader.from_dict({"identity": {"user_id": "a"}, "llm": {"provider": "ollama"}})


def test_missing_identity():
    """Test that identity is required."""
    with pytest.raises(ValidationError):
        ConfigLoader.from_dict({"llm": BASE_CONFIG["llm"]})


@pytest.mark.parametrize("user_id", ["", "   ", "a/b"])
def test_invalid_user_id(user_id):
    """Test that user ids must be usable as a key segment."""
    with pytest.raises(ValidationError):
        ConfigLoader.from_dict(dict(BASE_CONFIG, identity={"user_id": user_id}))


def test_invalid_timezone():
    """Test that calendar timezone must be an IANA zone."""
    with pytest.raises(ValidationError, match="Invalid timezone"):
        ConfigLoader.from_dict(dict(BASE_CONFIG, calendar={"timezone": "Mars/Olympus"}))


def test_list_limit_bounds():
    """Test the session enumeration limit bounds."""
    with pytest.raises(ValidationError):
        ConfigLoader.from_dict(dict(BASE_CONFIG, storage={"list_limit": 0}))


def test_env_references_expanded(monkeypatch):
    """Test ${VAR} expansion in string values."""
    monkeypatch.setenv("TEST_GEMINI_KEY", "from-env")
    monkeypatch.delenv("TEST_UNSET_TOKEN", raising=False)

    config = ConfigLoader.from_dict(
        {
            "identity": {"user_id": "alice", "access_token": "${TEST_UNSET_TOKEN}"},
            "llm": {"provider": "gemini", "gemini": {"api_key": "${TEST_GEMINI_KEY}"}},
        }
    )

    assert config.llm.gemini.api_key == "from-env"
    assert config.identity.access_token == ""


def test_expand_env_references_nested(monkeypatch):
    """Test expansion walks lists and dicts and leaves other values alone."""
    monkeypatch.setenv("TEST_NAME", "x")

    assert expand_env_references({"a": ["${TEST_NAME}", 3], "b": None}) == {"a": ["x", 3], "b": None}


def test_timezone_defaults_to_host_zone(tmp_path, monkeypatch):
    """Test that an unset timezone follows the TZ variable."""
    monkeypatch.setenv("TZ", "Asia/Tokyo")

    config = load_config(write_config(tmp_path, BASE_CONFIG))

    assert config.calendar.timezone == "Asia/Tokyo"


def test_timezone_read_from_timezone_file(tmp_path, monkeypatch):
    """Test the /etc/timezone fallback."""
    zone_file = tmp_path / "timezone"
    zone_file.write_text("Europe/Paris\n", encoding="utf-8")
    monkeypatch.delenv("TZ", raising=False)
    monkeypatch.setattr(config_schema, "LOCALTIME_PATH", str(tmp_path / "missing"))
    monkeypatch.setattr(config_schema, "TIMEZONE_FILE", str(zone_file))

    assert local_timezone_name() == "Europe/Paris"


def test_timezone_falls_back_to_utc(tmp_path, monkeypatch):
    """Test that an undetectable zone becomes UTC."""
    monkeypatch.setenv("TZ", "Not/AZone")
    monkeypatch.setattr(config_schema, "LOCALTIME_PATH", str(tmp_path / "missing"))
    monkeypatch.setattr(config_schema, "TIMEZONE_FILE", str(tmp_path / "missing"))

    assert local_timezone_name() == "UTC"


def test_explicit_timezone_wins_over_host_zone(tmp_path, monkeypatch):
    """Test that a configured timezone is kept."""
    monkeypatch.setenv("TZ", "Asia/Tokyo")
    config_dict = dict(BASE_CONFIG, calendar={"timezone": "America/New_York"})

    assert load_config(write_config(tmp_path, config_dict)).calendar.timezone == "America/New_York"
