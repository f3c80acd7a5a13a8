"""Tests for server configuration and plugin settings."""

import json
from unittest.mock import patch

from devtoolbox.config import ServerConfig
from devtoolbox.plugins.config import PluginSettings


class TestServerConfig:
    def test_defaults(self):
        config = ServerConfig()
        assert config.port == 3000
        assert config.host == "localhost"
        assert config.enable_cors is True
        assert config.api_key is None
        assert config.enable_rate_limit is True
        assert config.rate_limit_max == 60
        assert config.validate() == (True, None)

    def test_from_env(self):
        env = {
            "DEVTOOLBOX_API_PORT": "8080",
            "DEVTOOLBOX_API_HOST": "0.0.0.0",
            "DEVTOOLBOX_API_CORS": "false",
            "DEVTOOLBOX_API_KEY": "abc",
            "DEVTOOLBOX_API_RATE_LIMIT": "no",
            "DEVTOOLBOX_API_RATE_LIMIT_MAX": "10",
        }
        with patch.dict("os.environ", env):
            config = ServerConfig.from_env()
        assert config == ServerConfig(
            port=8080, host="0.0.0.0", enable_cors=False, api_key="abc",
            enable_rate_limit=False, rate_limit_max=10,
        )

    def test_invalid_values(self):
        ok, message = ServerConfig(port=70000).validate()
        assert not ok
        assert "port" in message
        ok, message = ServerConfig(rate_limit_max=0).validate()
        assert not ok
        assert "rate limit" in message


class TestPluginSettings:
    def test_defaults_without_file(self, tmp_path):
        settings = PluginSettings(tmp_path / "config.json")
        assert settings.is_enabled("anything")
        assert settings.get_disabled_list() == []
        assert settings.get_plugin_config("anything") == {}

    def test_disable_enable_persisted(self, tmp_path):
        path = tmp_path / "sub" / "config.json"
        settings = PluginSettings(path)
        settings.disable("git-utils")
        settings.disable("git-utils")

        assert json.loads(path.read_text())["disabled"] == ["git-utils"]
        assert not PluginSettings(path).is_enabled("git-utils")

        settings.enable("git-utils")
        assert PluginSettings(path).is_enabled("git-utils")

    def test_plugin_config(self, tmp_path):
        path = tmp_path / "config.json"
        settings = PluginSettings(path)
        settings.update_plugin_config("hello-world", {"greeting": "Hi"})
        assert PluginSettings(path).get_plugin_config("hello-world") == {"greeting": "Hi"}

    def test_invalid_file_falls_back(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        assert PluginSettings(path).get_disabled_list() == []
        path.write_text("{broken")
        assert PluginSettings(path).get_disabled_list() == []

    def test_reload(self, tmp_path):
        path = tmp_path / "config.json"
        settings = PluginSettings(path)
        path.write_text(json.dumps({"disabled": ["x"], "plugins": {}}))
        assert settings.is_enabled("x")
        settings.reload()
        assert not settings.is_enabled("x")
