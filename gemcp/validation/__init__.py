"""
gemcp validation module.

This module provides configuration loading and schema enforcement.
"""

from gemcp.errors import ConfigError
from gemcp.validation.config import Config, GemcpConfig, ServerConfig

__all__ = ["Config", "ConfigError", "GemcpConfig", "ServerConfig"]
