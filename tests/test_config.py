"""Tests for configuration loading."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from bitbucket_client.config import ConfigManager


@pytest.fixture
def clean_env():
    with patch.dict(os.environ, {}, clear=True):
        yield


def write_config(path: Path, data: dict) -> Path:
    path.write_text(yaml.safe_dump(data))
    return path


class TestConfigManager:
    def test_defaults(self, tmp_path, clean_env):
        config = ConfigManager(tmp_path / "missing.yaml").load_config()

        assert config.bitbucket.api_base_url == "https://api.bitbucket.org/2.0/"
        assert config.bitbucket.internal_api_base_url == "https://api.bitbucket.org/internal/"
        assert config.bitbucket.oauth_token_url == "https://bitbucket.org/site/oauth2/access_token"
        assert config.bitbucket.timeout is None
        assert config.session.storage == "keyring"
        assert config.confirmation.threshold == "medium"
        assert config.logging.level == "WARNING"

    def test_file_overrides_defaults(self, tmp_path, clean_env):
        path = write_config(tmp_path / "config.yaml", {
            "bitbucket": {"timeout": 30},
            "session": {"storage": "file", "file_path": str(tmp_path / "s.json")},
        })

        config = ConfigManager(path).load_config()

        assert config.bitbucket.timeout == 30
        assert config.bitbucket.api_base_url == "https://api.bitbucket.org/2.0/"
        assert config.session.storage == "file"
        assert config.session.file_path == str(tmp_path / "s.json")

    def test_env_overrides_file(self, tmp_path, clean_env):
        path = write_config(tmp_path / "config.yaml", {"confirmation": {"threshold": "low"}})
        env = {
            "BITBUCKET_CONFIRM_THRESHOLD": "high",
            "BITBUCKET_TIMEOUT": "2.5",
            "BITBUCKET_API_URL": "https://bb.example.com/2.0/",
            "LOG_STRUCTURED": "true",
        }

        with patch.dict(os.environ, env):
            config = ConfigManager(path).load_config()

        assert config.confirmation.threshold == "high"
        assert config.bitbucket.timeout == 2.5
        assert config.bitbucket.api_base_url == "https://bb.example.com/2.0/"
        assert config.logging.structured is True

    def test_string_paths_are_not_converted(self, tmp_path, clean_env):
        with patch.dict(os.environ, {"BITBUCKET_KEYRING_SERVICE": "1234"}):
            config = ConfigManager(tmp_path / "missing.yaml").load_config()
        assert config.session.keyring_service == "1234"

    def test_env_substitution_in_file(self, tmp_path, clean_env):
        path = write_config(tmp_path / "config.yaml", {"logging": {"file": "${BB_LOG}"}})
        with patch.dict(os.environ, {"BB_LOG": "/tmp/bb.log"}):
            config = ConfigManager(path).load_config()
        assert config.logging.file == "/tmp/bb.log"

    @pytest.mark.parametrize("data", [
        {"session": {"storage": "database"}},
        {"confirmation": {"threshold": "extreme"}},
        {"logging": {"level": "VERBOSE"}},
        {"bitbucket": {"timeout": 0}},
        {"bitbucket": {"timeout": "soon"}},
    ])
    def test_invalid_values(self, tmp_path, clean_env, data):
        path = write_config(tmp_path / "config.yaml", data)
        with pytest.raises(ValueError):
            ConfigManager(path).load_config()

    @pytest.mark.parametrize("data, message", [
        ({"bitbucket": {"api_url": "https://bb.example.com"}}, "api_url"),
        ({"session": "file"}, "session"),
        ({"logging": None}, "logging"),
        ({"proxy": {"url": "http://proxy"}}, "proxy"),
    ])
    def test_malformed_sections(self, tmp_path, clean_env, data, message):
        path = write_config(tmp_path / "config.yaml", data)
        with pytest.raises(ValueError, match=message):
            ConfigManager(path).load_config()

    def test_non_mapping_file(self, tmp_path, clean_env):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            ConfigManager(path).load_config()

    def test_empty_file(self, tmp_path, clean_env):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert ConfigManager(path).load_config().session.storage == "keyring"

    def test_save_and_reload(self, tmp_path, clean_env):
        source = write_config(tmp_path / "config.yaml", {"confirmation": {"threshold": "high"}})
        manager = ConfigManager(source)
        target = tmp_path / "out" / "saved.yaml"

        manager.save_config(target)

        assert ConfigManager(target).load_config().confirmation.threshold == "high"

    def test_config_is_cached_until_reload(self, tmp_path, clean_env):
        path = write_config(tmp_path / "config.yaml", {"confirmation": {"threshold": "low"}})
        manager = ConfigManager(path)
        assert manager.get_config().confirmation.threshold == "low"

        write_config(path, {"confirmation": {"threshold": "high"}})
        assert manager.get_config().confirmation.threshold == "low"
        assert manager.reload_config().confirmation.threshold == "high"
