"""
gemcp - Gemini function calling over MCP tool servers.

Connects to any number of MCP servers (subprocesses speaking JSON-RPC over
stdio), exposes their tools to a Gemini model as function declarations and
runs a single tool-call round per query.

Architecture:
- servers/    stdio transport, MCP session, provider registry
- core/       schema adapter and the query orchestrator
- providers/  model API backends (Google Gemini)
- validation/ configuration loading
"""

__version__ = "1.0.0"
__author__ = "gemcp Team"
__license__ = "Apache-2.0"

from gemcp.core.client import MCPClient
from gemcp.servers.registry import ProviderRegistry
from gemcp.servers.schema import ClientInfo, ProviderConnection, Tool

__all__ = [
    "MCPClient",
    "ProviderRegistry",
    "ProviderConnection",
    "ClientInfo",
    "Tool",
    "__version__",
]
