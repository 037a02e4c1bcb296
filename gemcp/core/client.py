"""
gemcp Client - Gemini function calling over MCP servers.

A query runs through at most two model turns:

1. The query plus every connected tool, as function declarations.
2. For each function call in the first response: the tool runs on its
   owning server, then a fresh conversation of the query and the tool
   result is sent back without tools to produce the answer text.

Follow-up turns never carry tools, so there is exactly one round of tool
calls per query.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from gemcp.core.adapter import to_function_declarations
from gemcp.errors import (
    ModelCallError,
    ProviderConnectionError,
    QueryError,
    ToolExecutionError,
    ToolNotFoundError,
)
from gemcp.providers.base import FunctionCall, ModelProvider, ModelResponse, Turn
from gemcp.servers.registry import Connector, ProviderRegistry, stdio_connector
from gemcp.servers.schema import ClientInfo, ProviderConnection, Tool
from gemcp.validation.config import Config, ServerConfig

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "The request could not be processed. Please try rephrasing your question."
TOOL_RESULT_PREFIX = "Tool result: "


class MCPClient:
    """
    Connects a model provider to a set of MCP servers.

    Example:
        >>> client = MCPClient(GoogleProvider("gemini-2.0-flash", api_key), config.servers())
        >>> await client.connect_to_servers()
        >>> answer = await client.process_query("What's the weather in Sacramento?")
        >>> await client.cleanup()

    After ``connect_to_servers`` the registry is read-only, so several
    ``process_query`` calls may run concurrently on one client.
    """

    def __init__(
        self,
        provider: ModelProvider,
        servers: Mapping[str, ServerConfig],
        system_prompt: str = "",
        client_info: Optional[ClientInfo] = None,
        connector: Optional[Connector] = None,
        request_timeout: Optional[float] = None,
    ):
        self.provider = provider
        self.servers = dict(servers)
        self.system_prompt = system_prompt
        self.client_info = client_info or ClientInfo()
        self._connector = connector or stdio_connector(self.client_info, request_timeout)
        self._registry: Optional[ProviderRegistry] = None
        # connections left open by a partially failed connect_to_servers()
        self._orphans: List[ProviderConnection] = []

    @classmethod
    def from_config(
        cls,
        config: Config,
        model: Optional[str] = None,
        system_prompt: Optional[str] = None,
        client_info: Optional[ClientInfo] = None,
    ) -> "MCPClient":
        """Build a Gemini-backed client from a loaded :class:`Config`."""
        from gemcp.providers.google import GoogleProvider

        provider = GoogleProvider(model or config.get_model_name(), api_key=config.get_api_key())
        return cls(
            provider,
            config.servers(),
            system_prompt=config.get_system_prompt() if system_prompt is None else system_prompt,
            client_info=client_info,
            request_timeout=config.get_request_timeout(),
        )

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def connect_to_servers(self) -> None:
        """
        Connect to every configured MCP server.

        Raises:
            ConfigError: If no server is configured.
            ProviderConnectionError: If any server failed; call
                :meth:`cleanup` to stop the ones that did start.
        """
        if self._registry is not None:
            return

        try:
            self._registry = await ProviderRegistry.connect_all(self.servers, self._connector)
        except ProviderConnectionError as exc:
            self._orphans.extend(exc.connected)
            raise

        logger.info(
            "Connected to MCP servers %s, %d tool(s) available",
            self._registry.names, len(self._registry.all_tools()),
        )

    async def cleanup(self) -> None:
        """
        Close every connection, including ones left by a failed connect.

        Raises:
            CleanupError: If any close failed; all were still attempted.
        """
        registry, self._registry = self._registry, None
        orphans, self._orphans = self._orphans, []

        connections = list(registry or []) + orphans
        if connections:
            await ProviderRegistry(connections).close_all()

    async def __aenter__(self) -> "MCPClient":
        await self.connect_to_servers()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.cleanup()

    @property
    def registry(self) -> ProviderRegistry:
        if self._registry is None:
            raise QueryError("Not connected to any MCP server; call connect_to_servers() first")
        return self._registry

    @property
    def tools(self) -> List[Tool]:
        return self.registry.all_tools()

    # ── Query Processing ──────────────────────────────────────────────────

    async def process_query(self, query: str) -> str:
        """
        Answer a query, running at most one round of tool calls.

        Raises:
            ModelCallError: If a model turn fails.
            ToolNotFoundError: If the model calls a tool no server exposes.
            ToolExecutionError: If the owning server fails to run the tool.
        """
        registry = self.registry
        function_declarations = to_function_declarations(registry.all_tools())

        response = await self._generate([Turn.user(query)], tools=function_declarations)

        final_text: List[str] = []
        candidate = response.first_candidate
        if candidate is not None:
            for part in candidate.parts:
                if part.text:
                    final_text.append(part.text)
                elif part.function_call is not None:
                    tool_output = await self._call_tool(registry, part.function_call)
                    final_text.extend(await self._follow_up(query, tool_output))

        if not final_text:
            final_text.append(FALLBACK_MESSAGE)

        return "\n".join(final_text)

    async def _generate(self, contents: List[Turn], tools: Optional[List[Dict[str, Any]]] = None) -> ModelResponse:
        try:
            return await self.provider.generate(
                contents,
                tools=tools,
                system_instruction=self.system_prompt or None,
            )
        except Exception as exc:
            raise ModelCallError(exc) from exc

    async def _call_tool(self, registry: ProviderRegistry, call: FunctionCall) -> str:
        connection = registry.resolve_owner(call.name)
        if connection is None:
            raise ToolNotFoundError(call.name)

        logger.info("Calling tool %s on server %s", call.name, connection.name)
        try:
            result = await connection.client.call_tool(call.name, call.args)
        except Exception as exc:
            raise ToolExecutionError(call.name, exc) from exc

        output = format_tool_output(result)
        if result.get("isError"):
            raise ToolExecutionError(call.name, output or "server reported an error")

        logger.debug("Tool %s returned %d chars", call.name, len(output))
        return output

    async def _follow_up(self, query: str, tool_output: str) -> List[str]:
        """Second, independent conversation that turns the tool result into text."""
        contents = [
            Turn.user(query),
            Turn.model(f"{TOOL_RESULT_PREFIX}{tool_output}"),
        ]
        response = await self._generate(contents)

        candidate = response.first_candidate
        if candidate is None:
            logger.warning("Follow-up turn returned no candidates, using raw tool output")
            return [f"{TOOL_RESULT_PREFIX}{tool_output}"]

        return [part.text for part in candidate.parts if part.text]


def format_tool_output(result: Mapping[str, Any]) -> str:
    """
    Render a ``tools/call`` result as text.

    Text parts are joined with newlines, other parts are dumped as JSON.
    ``structuredContent`` is used when there are no content parts.
    """
    content = result.get("content")
    if isinstance(content, str):
        return content

    output_parts: List[str] = []
    for part in content or []:
        if isinstance(part, dict) and part.get("type", "text") == "text" and "text" in part:
            output_parts.append(str(part["text"]))
        elif isinstance(part, (dict, list)):
            output_parts.append(json.dumps(part, default=str))
        else:
            output_parts.append(str(part))

    if output_parts:
        return "\n".join(output_parts)
    if result.get("structuredContent") is not None:
        return json.dumps(result["structuredContent"], default=str)
    return ""
