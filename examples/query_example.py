"""
Single query against the servers in examples/mcpserver.json.

    export GOOGLE_API_KEY=...
    python examples/query_example.py
"""

import asyncio
import logging

from gemcp.cli.main import extract_json_block
from gemcp.core.client import MCPClient
from gemcp.validation.config import Config

SYSTEM_PROMPT = """
You are an intelligent assistant with access to tools. Use your knowledge and
available tools to solve problems proactively.

For final responses, use JSON format:
{
    "header": {
        "success": true|false,
        "usedTools": true|false,
        "message": "error description when success=false"
    },
    "result": {
        "your response content here"
    }
}"""


async def main() -> None:
    config = Config.load("examples/mcpserver.json")
    client = MCPClient.from_config(config, system_prompt=SYSTEM_PROMPT)

    try:
        await client.connect_to_servers()
        response = await client.process_query("What's the weather in Sacramento?")
        print("\nResponse:\n" + (extract_json_block(response) or response))
    finally:
        await client.cleanup()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
