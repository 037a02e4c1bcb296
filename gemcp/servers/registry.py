"""Provider registry: connects to every configured MCP server and resolves tools."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Mapping, Optional

from gemcp.errors import CleanupError, ConfigError, ProviderConnectionError
from gemcp.servers.schema import ClientInfo, ProviderConnection, Tool
from gemcp.servers.session import MCPSession
from gemcp.servers.transport import MCPTransport
from gemcp.validation.config import ServerConfig

logger = logging.getLogger(__name__)

Connector = Callable[[str, ServerConfig], Awaitable[ProviderConnection]]


def stdio_connector(
    client_info: Optional[ClientInfo] = None,
    request_timeout: Optional[float] = None,
) -> Connector:
    """
    Build a connector that spawns the server over stdio.

    The returned coroutine function starts the subprocess, performs the MCP
    handshake and fetches the tool list. If any step fails the subprocess
    is stopped before the error propagates.
    """

    async def connect(name: str, config: ServerConfig) -> ProviderConnection:
        transport = MCPTransport(command=config.command, args=config.args, env=config.env, name=name)
        session = MCPSession(transport, client_info=client_info, request_timeout=request_timeout)

        try:
            await transport.start()
            await session.initialize()
            raw_tools = await session.list_tools()
        except BaseException:
            await transport.stop()
            raise

        tools = [Tool.from_mcp(raw, server=name) for raw in raw_tools]
        logger.info("Connected to MCP server %s with tools: %s", name, [t.name for t in tools])
        return ProviderConnection(name=name, client=session, tools=tools)

    return connect


class ProviderRegistry:
    """
    The set of live MCP server connections, keyed by server name.

    Built once by :meth:`connect_all` and read-only afterwards. Iteration
    order is config declaration order, independent of which server
    finished connecting first.
    """

    def __init__(self, connections: Optional[List[ProviderConnection]] = None):
        self._connections: Dict[str, ProviderConnection] = {}
        for connection in connections or []:
            self._connections[connection.name] = connection

    # ── Connect / Close ───────────────────────────────────────────────────

    @classmethod
    async def connect_all(
        cls,
        servers: Mapping[str, ServerConfig],
        connector: Optional[Connector] = None,
    ) -> "ProviderRegistry":
        """
        Connect to every server concurrently and wait for all attempts.

        Raises:
            ConfigError: If ``servers`` is empty; nothing is started.
            ProviderConnectionError: If any server failed. Successful
                connections are attached as ``connected`` and left open.
        """
        if not servers:
            raise ConfigError("No MCP servers configured")

        connect = connector or stdio_connector()
        names = list(servers)
        logger.debug("Connecting to MCP servers: %s", names)

        results = await asyncio.gather(
            *(connect(name, servers[name]) for name in names),
            return_exceptions=True,
        )

        connections: List[ProviderConnection] = []
        failures: Dict[str, BaseException] = {}
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                logger.warning("Failed to connect to server %s: %s", name, result)
                failures[name] = result
            else:
                connections.append(result)

        if failures:
            raise ProviderConnectionError(failures, connected=connections)

        return cls(connections)

    async def close_all(self) -> None:
        """
        Close every connection concurrently.

        Every close is attempted even when some fail.

        Raises:
            CleanupError: Listing each server whose close failed.
        """
        connections = list(self._connections.values())
        results = await asyncio.gather(
            *(connection.close() for connection in connections),
            return_exceptions=True,
        )

        failures: Dict[str, BaseException] = {}
        for connection, result in zip(connections, results):
            if isinstance(result, BaseException):
                logger.error("Error closing connection to server %s: %s", connection.name, result)
                failures[connection.name] = result

        if failures:
            raise CleanupError(failures)

    # ── Tool Lookup ───────────────────────────────────────────────────────

    def all_tools(self) -> List[Tool]:
        """Every tool of every server, server order then per-server order. No dedup."""
        tools: List[Tool] = []
        for connection in self._connections.values():
            tools.extend(connection.tools)
        return tools

    def resolve_owner(self, tool_name: str) -> Optional[ProviderConnection]:
        """
        Find the server exposing ``tool_name``.

        When several servers expose the same name the first one declared
        in the config wins.
        """
        for connection in self._connections.values():
            if connection.has_tool(tool_name):
                return connection
        return None

    # ── Accessors ─────────────────────────────────────────────────────────

    @property
    def names(self) -> List[str]:
        return list(self._connections)

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self):
        return iter(self._connections.values())
