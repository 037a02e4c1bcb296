"""MCP server communication via stdio subprocess transport."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Tool lists with large schemas easily exceed asyncio's 64 KiB line default.
STREAM_LIMIT = 16 * 1024 * 1024


class MCPTransportError(Exception):
    """Raised when MCP transport communication fails."""


class MCPTransport:
    """
    Newline-delimited JSON messages over a subprocess's stdin/stdout.

    The transport only frames messages; request ids and the MCP protocol
    live in :class:`gemcp.servers.session.MCPSession`. The server's stderr
    is drained in the background and forwarded to the logger.
    """

    def __init__(
        self,
        command: str,
        args: Optional[List[str]] = None,
        env: Optional[Dict[str, str]] = None,
        name: Optional[str] = None,
    ):
        self.command = command
        self.args = args or []
        self.env = env or {}
        self.name = name or command
        self._process: Optional[asyncio.subprocess.Process] = None
        self._stderr_task: Optional[asyncio.Task] = None

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Spawn the MCP server subprocess."""
        if self.is_running:
            return

        merged_env = {**os.environ, **self.env}
        try:
            self._process = await asyncio.create_subprocess_exec(
                self.command,
                *self.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=merged_env,
                limit=STREAM_LIMIT,
            )
        except FileNotFoundError:
            raise MCPTransportError(f"MCP server command not found: {self.command}")
        except PermissionError:
            raise MCPTransportError(f"MCP server command is not executable: {self.command}")

        logger.debug("Started MCP server %s (pid %s)", self.name, self._process.pid)
        self._stderr_task = asyncio.ensure_future(self._drain_stderr(self._process))

    async def stop(self, timeout: float = 5.0) -> None:
        """Terminate the MCP server subprocess."""
        process, self._process = self._process, None
        if process is None:
            return

        if process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()

        if process.returncode is None:
            try:
                process.terminate()
                await asyncio.wait_for(process.wait(), timeout)
            except ProcessLookupError:
                pass
            except asyncio.TimeoutError:
                logger.warning("MCP server %s did not exit, killing it", self.name)
                process.kill()
                await process.wait()

        if self._stderr_task is not None:
            self._stderr_task.cancel()
            try:
                await self._stderr_task
            except asyncio.CancelledError:
                pass
            self._stderr_task = None

        logger.debug("Stopped MCP server %s", self.name)

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    # ── Framing ───────────────────────────────────────────────────────────

    async def write_message(self, message: Dict[str, Any]) -> None:
        """Write one JSON message followed by a newline."""
        if not self.is_running:
            raise MCPTransportError(f"MCP server {self.name} is not running")

        line = json.dumps(message) + "\n"
        try:
            self._process.stdin.write(line.encode())
            await self._process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError, OSError) as exc:
            raise MCPTransportError(f"MCP transport error: {exc}")

    async def read_message(self) -> Dict[str, Any]:
        """Read the next JSON message, skipping blank lines."""
        if self._process is None:
            raise MCPTransportError(f"MCP server {self.name} is not running")

        while True:
            try:
                raw = await self._process.stdout.readline()
            except (ValueError, OSError) as exc:
                raise MCPTransportError(f"MCP transport error: {exc}")

            if not raw:
                raise MCPTransportError("MCP server closed connection (empty response)")
            if not raw.strip():
                continue

            try:
                message = json.loads(raw.decode())
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                raise MCPTransportError(f"Invalid JSON from MCP server {self.name}: {exc}")

            if not isinstance(message, dict):
                raise MCPTransportError(f"Unexpected message from MCP server {self.name}: {message!r}")
            return message

    # ── Internals ─────────────────────────────────────────────────────────

    async def _drain_stderr(self, process: asyncio.subprocess.Process) -> None:
        while True:
            try:
                line = await process.stderr.readline()
            except ValueError:
                # over-long line; readline already discarded it
                continue
            if not line:
                return
            logger.debug("[%s] %s", self.name, line.decode(errors="replace").rstrip())
