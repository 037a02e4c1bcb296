"""Translate MCP tool schemas into Gemini function declarations."""

from typing import Any, Dict, List, Sequence

from gemcp.servers.schema import Tool

# Gemini rejects declarations carrying these JSON Schema keys.
UNSUPPORTED_SCHEMA_KEYS = ("$schema", "additionalProperties")


def to_function_declaration(tool: Tool) -> Dict[str, Any]:
    """
    Build ``{name, description, parameters}`` for one tool.

    The top-level schema is shallow-copied with the unsupported keys
    removed; nested structures are shared with the tool, not cloned.
    """
    parameters = dict(tool.input_schema)
    for key in UNSUPPORTED_SCHEMA_KEYS:
        parameters.pop(key, None)

    return {
        "name": tool.name,
        "description": tool.description,
        "parameters": parameters,
    }


def to_function_declarations(tools: Sequence[Tool]) -> List[Dict[str, Any]]:
    return [to_function_declaration(tool) for tool in tools]
