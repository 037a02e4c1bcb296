"""Exception hierarchy shared by the registry, the orchestrator and the CLI."""

from typing import Dict, List, Optional


class GemcpError(Exception):
    """Base class for all gemcp errors."""


class ConfigError(GemcpError):
    """Raised when the configuration is missing or invalid."""


class ProviderConnectionError(GemcpError):
    """
    Raised when one or more MCP servers fail to connect or list tools.

    ``failures`` maps server name to the underlying exception, in config order.
    ``connected`` holds the connections that did succeed; they are left open
    and must be closed by the caller.
    """

    def __init__(self, failures: Dict[str, BaseException], connected: Optional[List] = None):
        self.failures = failures
        self.connected = list(connected or [])
        details = "; ".join(f"{name}: {exc}" for name, exc in failures.items())
        super().__init__(f"Failed to connect to MCP server(s) {', '.join(failures)}: {details}")


class QueryError(GemcpError):
    """Raised when a query cannot be answered."""


class ToolNotFoundError(QueryError):
    """The model asked for a tool that no connected server exposes."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool {tool_name} not found in any connected server")


class ToolExecutionError(QueryError):
    """A server failed while executing a tool, or returned an error result."""

    def __init__(self, tool_name: str, cause: object):
        self.tool_name = tool_name
        self.cause = cause
        super().__init__(f"Error executing tool {tool_name}: {cause}")


class ModelCallError(QueryError):
    """The model API call failed."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Model request failed: {cause}")


class CleanupError(GemcpError):
    """Raised after closing all connections when at least one close failed."""

    def __init__(self, failures: Dict[str, BaseException]):
        self.failures = failures
        details = "; ".join(f"{name}: {exc}" for name, exc in failures.items())
        super().__init__(f"Error closing connection to server(s) {', '.join(failures)}: {details}")
