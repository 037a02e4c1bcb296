"""Shared fakes for the registry and orchestrator tests."""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from gemcp.providers.base import Candidate, FunctionCall, ModelProvider, ModelResponse, Part
from gemcp.servers.schema import ProviderConnection, Tool
from gemcp.validation.config import ServerConfig


class FakeSession:
    """Stands in for MCPSession: canned tools, recorded calls."""

    def __init__(
        self,
        tools: Optional[List[Dict[str, Any]]] = None,
        results: Optional[Dict[str, Any]] = None,
        fail_close: bool = False,
        log: Optional[list] = None,
    ):
        self.raw_tools = tools or []
        self.log = log if log is not None else []
        self.results = results or {}
        self.fail_close = fail_close
        self.calls: List[tuple] = []
        self.closed = False

    async def list_tools(self) -> List[Dict[str, Any]]:
        return list(self.raw_tools)

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        self.calls.append((name, arguments))
        self.log.append(("call", name))
        result = self.results.get(name, {"content": [{"type": "text", "text": f"{name} done"}]})
        if isinstance(result, Exception):
            raise result
        return result

    async def close(self) -> None:
        self.closed = True
        if self.fail_close:
            raise RuntimeError("close failed")


class FakeProvider(ModelProvider):
    """Model provider that replays scripted responses and records requests."""

    provider_name = "fake"

    def __init__(self, responses: List[Any], log: Optional[list] = None):
        super().__init__(model="fake-model")
        self.responses = list(responses)
        self.log = log if log is not None else []
        self.requests: List[Dict[str, Any]] = []

    async def generate(self, contents, tools=None, system_instruction=None) -> ModelResponse:
        self.log.append(("generate",))
        self.requests.append({
            "contents": contents,
            "tools": tools,
            "system_instruction": system_instruction,
        })
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def text_response(*texts: str) -> ModelResponse:
    return ModelResponse(candidates=[Candidate(parts=[Part(text=t) for t in texts])])


def call_response(name: str, args: Optional[Dict[str, Any]] = None, text: Optional[str] = None) -> ModelResponse:
    parts = []
    if text:
        parts.append(Part(text=text))
    parts.append(Part(function_call=FunctionCall(name=name, args=args or {})))
    return ModelResponse(candidates=[Candidate(parts=parts)])


def raw_tool(name: str, description: str = "", schema: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "name": name,
        "description": description,
        "inputSchema": schema or {"type": "object", "properties": {}},
    }


def make_connector(sessions: Dict[str, FakeSession], delays: Optional[Dict[str, float]] = None,
                   failures: Optional[Dict[str, Exception]] = None):
    """Connector returning fake connections, optionally delayed or failing per server."""
    delays = delays or {}
    failures = failures or {}
    attempted: List[str] = []

    async def connect(name: str, config: ServerConfig) -> ProviderConnection:
        attempted.append(name)
        await asyncio.sleep(delays.get(name, 0))
        if name in failures:
            raise failures[name]
        session = sessions[name]
        tools = [Tool.from_mcp(raw, server=name) for raw in await session.list_tools()]
        return ProviderConnection(name=name, client=session, tools=tools)

    connect.attempted = attempted
    return connect


def servers(*names: str) -> Dict[str, ServerConfig]:
    return {name: ServerConfig(command="node", args=[f"{name}.js"]) for name in names}


@pytest.fixture
def weather_session():
    return FakeSession(
        tools=[raw_tool(
            "getForecast",
            "Get the weather forecast for a location",
            {
                "$schema": "http://json-schema.org/draft-07/schema#",
                "type": "object",
                "properties": {"city": {"type": "string"}},
                "required": ["city"],
                "additionalProperties": False,
            },
        )],
        results={"getForecast": {"content": [{"type": "text", "text": "Sunny, 75F"}]}},
    )
