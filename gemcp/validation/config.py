"""
gemcp Configuration - Configuration loading and validation.

This module provides the Config class for loading the MCP server map and
model settings from a YAML or JSON file. JSON files are read with the YAML
loader, so the original ``mcpServers`` JSON documents work unchanged.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gemcp.errors import ConfigError

DEFAULT_CONFIG_FILE = "mcpserver.json"
DEFAULT_MODEL = "gemini-2.0-flash"

API_KEY_ENV_VARS = ("GOOGLE_API_KEY", "GEMINI_API_KEY")


class ServerConfig(BaseModel):
    """Configuration for a single MCP server."""

    command: str
    args: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)
    enabled: bool = True


class ModelConfig(BaseModel):
    """Configuration for the Gemini model."""

    name: str = DEFAULT_MODEL
    api_key: Optional[str] = None
    system_prompt: str = ""
    system_prompt_file: Optional[str] = None


class ClientConfig(BaseModel):
    """Configuration for the MCP client side."""

    request_timeout: Optional[float] = Field(default=None, gt=0)


class GemcpConfig(BaseModel):
    """Complete gemcp configuration schema."""

    model_config = ConfigDict(populate_by_name=True)

    mcp_servers: Dict[str, ServerConfig] = Field(default_factory=dict, alias="mcpServers")
    model: ModelConfig = Field(default_factory=ModelConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)


class Config:
    """
    gemcp configuration manager.

    Example:
        >>> config = Config.load("mcpserver.json")
        >>> servers = config.servers()
        >>> key = config.get_api_key()
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None, source: Optional[Path] = None):
        """
        Initialize Config.

        Args:
            data: Raw configuration dictionary.
            source: File the data was read from, used in error messages.
        """
        self._data = data or {}
        self.source = source
        self._merged: Optional[GemcpConfig] = None

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """
        Load configuration from a file.

        Relative paths are resolved against the current working directory.

        Raises:
            ConfigError: If the file does not exist or cannot be parsed.
        """
        config_path = Path(path or DEFAULT_CONFIG_FILE)
        if not config_path.is_absolute():
            config_path = Path.cwd() / config_path

        if not config_path.exists():
            raise ConfigError(f"{path or DEFAULT_CONFIG_FILE} not found in current directory")

        return cls(data=cls._load_yaml(config_path), source=config_path)

    @classmethod
    def _load_yaml(cls, path: Path) -> Dict[str, Any]:
        """Load a YAML (or JSON) mapping from disk."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config from {path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config in {path} must be a mapping, got {type(data).__name__}")
        return data

    @property
    def merged(self) -> GemcpConfig:
        """Get the validated configuration."""
        if self._merged is None:
            try:
                self._merged = GemcpConfig(**self._data)
            except ValidationError as e:
                raise ConfigError(f"Invalid configuration: {e}")
        return self._merged

    def servers(self) -> Dict[str, ServerConfig]:
        """
        Return the enabled servers in declaration order.

        Raises:
            ConfigError: If no (enabled) server is configured.
        """
        servers = {
            name: server
            for name, server in self.merged.mcp_servers.items()
            if server.enabled
        }
        if not servers:
            where = self.source.name if self.source else "configuration"
            raise ConfigError(f"No server configuration found in {where}")
        return servers

    def get_model_name(self) -> str:
        return self.merged.model.name

    def get_api_key(self) -> Optional[str]:
        """
        Get the Gemini API key.

        Checks config first, then environment variables.
        """
        if self.merged.model.api_key:
            return self.merged.model.api_key

        for env_var in API_KEY_ENV_VARS:
            value = os.environ.get(env_var)
            if value:
                return value
        return None

    def get_system_prompt(self) -> str:
        """Return the system prompt, reading ``system_prompt_file`` when set."""
        model = self.merged.model
        if not model.system_prompt_file:
            return model.system_prompt

        prompt_path = Path(model.system_prompt_file)
        if not prompt_path.is_absolute() and self.source is not None:
            prompt_path = self.source.parent / prompt_path
        try:
            return prompt_path.read_text()
        except OSError as e:
            raise ConfigError(f"Failed to read system prompt from {prompt_path}: {e}")

    def get_request_timeout(self) -> Optional[float]:
        return self.merged.client.request_timeout
