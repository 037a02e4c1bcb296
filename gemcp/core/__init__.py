"""
gemcp core module.

Provides the schema adapter and the single-round query orchestrator.
"""

from gemcp.core.adapter import to_function_declaration, to_function_declarations
from gemcp.core.client import FALLBACK_MESSAGE, MCPClient, format_tool_output

__all__ = [
    "MCPClient",
    "FALLBACK_MESSAGE",
    "format_tool_output",
    "to_function_declaration",
    "to_function_declarations",
]
