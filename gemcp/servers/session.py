"""JSON-RPC MCP client session running over an :class:`MCPTransport`."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from gemcp.servers.schema import ClientInfo
from gemcp.servers.transport import MCPTransport, MCPTransportError

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"

METHOD_NOT_FOUND = -32601


class MCPRequestError(MCPTransportError):
    """The server answered a request with a JSON-RPC error."""

    def __init__(self, code: Optional[int], message: str):
        self.code = code
        super().__init__(f"MCP error {code}: {message}")


class MCPSession:
    """
    MCP client protocol on top of a transport.

    One request is in flight at a time; concurrent callers queue on a lock.
    Server-initiated ``ping`` requests are answered, other server requests
    get a "method not found" reply and notifications are ignored.
    """

    def __init__(
        self,
        transport: MCPTransport,
        client_info: Optional[ClientInfo] = None,
        request_timeout: Optional[float] = None,
    ):
        self.transport = transport
        self.client_info = client_info or ClientInfo()
        self.request_timeout = request_timeout
        self.server_info: Dict[str, Any] = {}
        self._request_id = 0
        self._lock = asyncio.Lock()

    # ── MCP Protocol ──────────────────────────────────────────────────────

    async def initialize(self) -> Dict[str, Any]:
        """Perform the MCP initialize handshake."""
        result = await self.request("initialize", {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {},
            "clientInfo": self.client_info.to_mcp(),
        })
        self.server_info = result.get("serverInfo", {})
        await self.notify("notifications/initialized")
        return result

    async def list_tools(self) -> List[Dict[str, Any]]:
        """Fetch every page of the server's tool list."""
        tools: List[Dict[str, Any]] = []
        cursor: Optional[str] = None
        while True:
            result = await self.request("tools/list", {"cursor": cursor} if cursor else None)
            tools.extend(result.get("tools", []))
            cursor = result.get("nextCursor")
            if not cursor:
                return tools

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Call a tool on the MCP server."""
        return await self.request("tools/call", {"name": name, "arguments": arguments or {}})

    async def close(self) -> None:
        await self.transport.stop()

    # ── JSON-RPC ──────────────────────────────────────────────────────────

    async def request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send a JSON-RPC request and return its result."""
        async with self._lock:
            self._request_id += 1
            request_id = self._request_id
            message: Dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
            if params:
                message["params"] = params

            await self.transport.write_message(message)
            if self.request_timeout is None:
                response = await self._wait_for_response(request_id)
            else:
                try:
                    response = await asyncio.wait_for(
                        self._wait_for_response(request_id), self.request_timeout
                    )
                except asyncio.TimeoutError:
                    raise MCPTransportError(
                        f"MCP request {method} timed out after {self.request_timeout}s"
                    )

        if "error" in response:
            err = response["error"] or {}
            raise MCPRequestError(err.get("code"), err.get("message", "unknown error"))

        return response.get("result") or {}

    async def notify(self, method: str, params: Optional[Dict[str, Any]] = None) -> None:
        message: Dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params:
            message["params"] = params
        await self.transport.write_message(message)

    async def _wait_for_response(self, request_id: int) -> Dict[str, Any]:
        while True:
            message = await self.transport.read_message()

            if "method" in message:
                await self._handle_server_message(message)
                continue

            if message.get("id") != request_id:
                logger.debug("Dropping unexpected MCP response id %r", message.get("id"))
                continue

            return message

    async def _handle_server_message(self, message: Dict[str, Any]) -> None:
        if "id" not in message:
            logger.debug("MCP notification from %s: %s", self.transport.name, message["method"])
            return

        if message["method"] == "ping":
            reply: Dict[str, Any] = {"jsonrpc": "2.0", "id": message["id"], "result": {}}
        else:
            reply = {
                "jsonrpc": "2.0",
                "id": message["id"],
                "error": {"code": METHOD_NOT_FOUND, "message": f"Method not found: {message['method']}"},
            }
        await self.transport.write_message(reply)
