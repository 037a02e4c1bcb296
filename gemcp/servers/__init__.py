"""
MCP server side of gemcp.

Each configured server is spawned as a subprocess speaking JSON-RPC over
stdio. The registry connects to all of them concurrently, keeps their tool
lists and answers "which server owns this tool".
"""

from gemcp.servers.schema import ClientInfo, ProviderConnection, Tool
from gemcp.servers.transport import MCPTransport, MCPTransportError
from gemcp.servers.session import MCPRequestError, MCPSession
from gemcp.servers.registry import ProviderRegistry, stdio_connector

__all__ = [
    "ClientInfo",
    "ProviderConnection",
    "Tool",
    "MCPTransport",
    "MCPTransportError",
    "MCPRequestError",
    "MCPSession",
    "ProviderRegistry",
    "stdio_connector",
]
