"""
gemcp CLI - one-shot queries and an interactive chat loop.

Run `gemcp` to chat, or `gemcp "your question"` for a single answer.
"""

import asyncio
import json
import logging
import re
import sys
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt

from gemcp import __version__
from gemcp.core.client import MCPClient
from gemcp.errors import CleanupError, GemcpError, QueryError
from gemcp.validation.config import DEFAULT_CONFIG_FILE, Config

console = Console()
logger = logging.getLogger("gemcp")

EXIT_KEYWORDS = {"quit", "exit"}


def setup_logging(verbose: bool = False) -> None:
    """Route library logs through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=verbose)],
    )


def extract_json_block(text: str) -> Optional[str]:
    """
    Pull a JSON document out of a model answer.

    Prefers a fenced ```json block, then the outermost ``{...}`` span.
    Returns None when neither parses.
    """
    fenced = re.search(r"```json\s*\n(.*?)\n\s*```", text, re.DOTALL)
    braces = re.search(r"\{.*\}", text, re.DOTALL)
    for match in (fenced, braces):
        if match is None:
            continue
        candidate = match.group(1) if match is fenced else match.group(0)
        try:
            json.loads(candidate)
        except ValueError:
            continue
        return candidate
    return None


def _render_answer(answer: str, as_json: bool) -> None:
    if as_json:
        console.print_json(extract_json_block(answer) or json.dumps({"text": answer}))
    else:
        console.print(Markdown(answer))


class ChatLoop:
    """Interactive chat over a connected client. Type 'quit' to exit."""

    def __init__(self, client: MCPClient, as_json: bool = False):
        self.client = client
        self.as_json = as_json

    def _print_banner(self) -> None:
        tools = ", ".join(tool.name for tool in self.client.tools) or "(none)"
        console.print(Panel(
            f"[bold blue]gemcp v{__version__}[/bold blue]\n"
            f"[dim]Model:[/dim] {self.client.provider.model}\n"
            f"[dim]Tools:[/dim] {tools}\n\n"
            "[dim]Type your queries or 'quit' to exit.[/dim]",
            title="Chat started",
            border_style="blue",
        ))

    def _read_query(self) -> str:
        # runs on the loop thread so Ctrl+C lands here
        return Prompt.ask("\n[bold green]Query[/bold green]", console=console).strip()

    async def run(self) -> None:
        self._print_banner()

        while True:
            try:
                query = self._read_query()
            except (EOFError, KeyboardInterrupt):
                console.print()
                break

            if not query:
                continue
            if query.lower() in EXIT_KEYWORDS:
                break

            try:
                with console.status("[bold blue]Thinking...[/bold blue]"):
                    answer = await self.client.process_query(query)
            except QueryError as e:
                console.print(f"[red]Error: {e}[/red]")
                continue

            console.print("\n[bold]Response:[/bold]")
            _render_answer(answer, self.as_json)


async def _run(client: MCPClient, query: Optional[str], as_json: bool) -> None:
    try:
        with console.status("[bold blue]Connecting to MCP servers...[/bold blue]"):
            await client.connect_to_servers()

        if query:
            with console.status("[bold blue]Working...[/bold blue]"):
                answer = await client.process_query(query)
            _render_answer(answer, as_json)
        else:
            await ChatLoop(client, as_json=as_json).run()
    finally:
        try:
            await client.cleanup()
        except CleanupError as e:
            logger.error("%s", e)


@click.command()
@click.option("--config", "-c", "config_path", default=DEFAULT_CONFIG_FILE, show_default=True,
              help="MCP server configuration file (JSON or YAML)")
@click.option("--model", "-m", default=None, help="Gemini model name (overrides config)")
@click.option("--system-prompt", "-s", default=None, help="System instruction (overrides config)")
@click.option("--json", "as_json", is_flag=True, help="Extract and print the JSON part of the answer")
@click.option("--verbose", is_flag=True, help="Show debug logs")
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.argument("query", required=False, nargs=-1)
def cli(config_path: str, model: Optional[str], system_prompt: Optional[str],
        as_json: bool, verbose: bool, version: bool, query: tuple) -> None:
    """
    gemcp - Gemini with MCP tools.

    Run without arguments to start interactive mode.

    \b
    Examples:
        gemcp                                  # Start interactive chat
        gemcp "What's the weather in Sacramento?"
        gemcp -c servers.yaml -m gemini-1.5-pro
    """
    if version:
        console.print(f"gemcp v{__version__}")
        return

    setup_logging(verbose)

    try:
        config = Config.load(config_path)
        client = MCPClient.from_config(config, model=model, system_prompt=system_prompt)
    except (GemcpError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    try:
        asyncio.run(_run(client, " ".join(query) or None, as_json))
    except GemcpError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted[/dim]")
        sys.exit(130)


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
