"""Tests for the command-line interface."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from conftest import FakeProvider, FakeSession, make_connector, servers, text_response
from gemcp import __version__
from gemcp.cli.main import ChatLoop, cli, extract_json_block
from gemcp.core.client import MCPClient
from gemcp.errors import ToolNotFoundError


class TestExtractJsonBlock:
    def test_fenced_block(self):
        text = 'Here you go:\n```json\n{"header": {"success": true}}\n```\nBye'

        assert json.loads(extract_json_block(text)) == {"header": {"success": True}}

    def test_bare_object(self):
        text = 'Result: {"result": {"temp": 75}} done'

        assert extract_json_block(text) == '{"result": {"temp": 75}}'

    def test_no_json(self):
        assert extract_json_block("It is sunny.") is None

    def test_invalid_json(self):
        assert extract_json_block("set {not json}") is None


class TestCli:
    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_missing_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        result = CliRunner().invoke(cli, ["--config", "missing.json", "hi"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_missing_api_key(self, tmp_path, monkeypatch):
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        path = tmp_path / "mcpserver.json"
        path.write_text('{"mcpServers": {"a": {"command": "x"}}}')

        result = CliRunner().invoke(cli, ["--config", str(path), "hi"])

        assert result.exit_code == 1
        assert "API key" in result.output

    def test_one_shot_query(self, tmp_path):
        path = tmp_path / "mcpserver.json"
        path.write_text('{"mcpServers": {"weather": {"command": "x"}}}')
        session = FakeSession()
        client = MCPClient(
            FakeProvider([text_response("It is sunny.")]),
            servers("weather"),
            connector=make_connector({"weather": session}),
        )

        with patch.object(MCPClient, "from_config", return_value=client):
            result = CliRunner().invoke(cli, ["--config", str(path), "Weather", "in", "Sacramento?"])

        assert result.exit_code == 0
        assert "It is sunny." in result.output
        assert session.closed is True


@pytest.mark.asyncio
class TestChatLoop:
    async def _client(self, responses):
        client = MCPClient(
            FakeProvider(responses),
            servers("s"),
            connector=make_connector({"s": FakeSession()}),
        )
        await client.connect_to_servers()
        return client

    async def test_quit_ends_loop(self):
        client = await self._client([text_response("hello")])
        loop = ChatLoop(client)

        with patch.object(ChatLoop, "_read_query", side_effect=["hi", "", "quit"]):
            await loop.run()

        assert len(client.provider.requests) == 1

    async def test_query_error_does_not_end_loop(self):
        client = await self._client([text_response("ok")])
        loop = ChatLoop(client)

        with patch.object(MCPClient, "process_query", side_effect=[ToolNotFoundError("nope"), "fine"]) as pq, \
                patch.object(ChatLoop, "_read_query", side_effect=["a", "b", "exit"]):
            await loop.run()

        assert pq.call_count == 2

    async def test_eof_ends_loop(self):
        client = await self._client([])

        with patch.object(ChatLoop, "_read_query", side_effect=EOFError):
            await ChatLoop(client).run()
