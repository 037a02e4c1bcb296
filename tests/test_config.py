"""Tests for configuration management."""

import json
import tempfile
from pathlib import Path

import pytest

from gemcp.errors import ConfigError
from gemcp.validation.config import DEFAULT_MODEL, Config, GemcpConfig


class TestConfig:
    """Tests for Config class."""

    @pytest.fixture
    def temp_config_dir(self):
        """Create a temporary config directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    def test_load_json(self, temp_config_dir):
        """The original mcpServers JSON format loads as-is."""
        path = temp_config_dir / "mcpserver.json"
        path.write_text(json.dumps({
            "mcpServers": {
                "weather": {"command": "node", "args": ["build/index.js"]},
                "files": {"command": "npx", "args": ["-y", "@modelcontextprotocol/server-filesystem", "."]},
            }
        }))

        config = Config.load(str(path))
        servers = config.servers()

        assert list(servers) == ["weather", "files"]
        assert servers["weather"].command == "node"
        assert servers["files"].args[0] == "-y"

    def test_load_yaml(self, temp_config_dir):
        path = temp_config_dir / "gemcp.yaml"
        path.write_text(
            "mcpServers:\n"
            "  weather:\n"
            "    command: node\n"
            "    args: [index.js]\n"
            "model:\n"
            "  name: gemini-1.5-pro\n"
            "  system_prompt: Be brief.\n"
            "client:\n"
            "  request_timeout: 30\n"
        )

        config = Config.load(str(path))

        assert config.get_model_name() == "gemini-1.5-pro"
        assert config.get_system_prompt() == "Be brief."
        assert config.get_request_timeout() == 30

    def test_relative_path_uses_cwd(self, temp_config_dir, monkeypatch):
        (temp_config_dir / "mcpserver.json").write_text('{"mcpServers": {"a": {"command": "x"}}}')
        monkeypatch.chdir(temp_config_dir)

        config = Config.load()

        assert list(config.servers()) == ["a"]

    def test_missing_file(self, temp_config_dir):
        with pytest.raises(ConfigError, match="not found"):
            Config.load(str(temp_config_dir / "nope.json"))

    def test_invalid_yaml(self, temp_config_dir):
        path = temp_config_dir / "bad.yaml"
        path.write_text("mcpServers: [unclosed")

        with pytest.raises(ConfigError, match="Failed to load"):
            Config.load(str(path))

    def test_no_servers(self):
        with pytest.raises(ConfigError, match="No server configuration"):
            Config({"mcpServers": {}}).servers()

    def test_only_disabled_servers(self):
        config = Config({"mcpServers": {"a": {"command": "x", "enabled": False}}})

        with pytest.raises(ConfigError):
            config.servers()

    def test_disabled_servers_skipped(self):
        config = Config({"mcpServers": {
            "a": {"command": "x", "enabled": False},
            "b": {"command": "y"},
        }})

        assert list(config.servers()) == ["b"]

    def test_server_without_command_invalid(self):
        with pytest.raises(ConfigError, match="Invalid configuration"):
            Config({"mcpServers": {"a": {"args": []}}}).servers()

    def test_api_key_from_config(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "env-key")
        config = Config({"model": {"api_key": "config-key"}})

        assert config.get_api_key() == "config-key"

    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")

        assert Config({}).get_api_key() == "gemini-key"

    def test_api_key_missing(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        assert Config({}).get_api_key() is None

    def test_system_prompt_file_relative_to_config(self, temp_config_dir):
        (temp_config_dir / "prompt.txt").write_text("Use JSON.")
        path = temp_config_dir / "gemcp.yaml"
        path.write_text(
            "mcpServers: {a: {command: x}}\n"
            "model: {system_prompt_file: prompt.txt}\n"
        )

        assert Config.load(str(path)).get_system_prompt() == "Use JSON."


class TestGemcpConfig:
    """Tests for GemcpConfig schema."""

    def test_default_config(self):
        config = GemcpConfig()

        assert config.model.name == DEFAULT_MODEL
        assert config.model.system_prompt == ""
        assert config.client.request_timeout is None
        assert len(config.mcp_servers) == 0

    def test_server_defaults(self):
        config = GemcpConfig(mcpServers={"a": {"command": "node"}})

        assert config.mcp_servers["a"].args == []
        assert config.mcp_servers["a"].env == {}
        assert config.mcp_servers["a"].enabled is True
