"""Data models for MCP tools, client identity and live server connections."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from gemcp import __version__


class Tool(BaseModel):
    """A tool exposed by one MCP server. Immutable once listed."""

    model_config = ConfigDict(frozen=True)

    name: str  # unique per server, not globally
    description: str = ""
    input_schema: Dict[str, Any] = Field(default_factory=dict)
    server: str  # owning server name

    @classmethod
    def from_mcp(cls, raw: Dict[str, Any], server: str) -> "Tool":
        """Build a Tool from a raw ``tools/list`` entry."""
        return cls(
            name=raw["name"],
            description=raw.get("description") or "",
            input_schema=raw.get("inputSchema") or {},
            server=server,
        )


class ClientInfo(BaseModel):
    """Identity this client presents to MCP servers during ``initialize``."""

    name: str = "gemcp"
    version: str = __version__

    def to_mcp(self) -> Dict[str, str]:
        return {"name": self.name, "version": self.version}


class RPCClient(Protocol):
    """What the registry and orchestrator need from an MCP session."""

    async def list_tools(self) -> List[Dict[str, Any]]: ...

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]: ...

    async def close(self) -> None: ...


@dataclass
class ProviderConnection:
    """
    One live MCP server session.

    ``client`` exclusively owns the underlying transport; closing the
    client stops the subprocess. ``tools`` is fetched once at connect time.
    """

    name: str
    client: RPCClient
    tools: List[Tool] = field(default_factory=list)

    def has_tool(self, tool_name: str) -> bool:
        return any(tool.name == tool_name for tool in self.tools)

    async def close(self) -> None:
        await self.client.close()
