#!/usr/bin/env python3
"""
JARVIS - Local Command Assistant
================================

Text front end for the command engine.

Usage:
    python main.py                          # Interactive text mode
    python main.py "read my notes"          # One-shot command
    python main.py --serve --port 8000      # HTTP API (see infra.server)
"""

import argparse
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from core.dispatcher import Result
from core.engine import CommandEngine, create_engine
from core.errors import EngineError
from infra.config import EngineConfig
from infra.logging import configure_logging


console = Console()

SUGGESTIONS = [
    "Open the website YouTube",
    "Launch VS Code",
    "What is our system status?",
    "List the files in downloads",
    "Take note that I scheduled a meeting at 4 PM",
    "Read my notes",
    "Run the command status",
]


def print_banner() -> None:
    """Print the JARVIS banner."""
    banner = Text()
    banner.append("JARVIS", style="bold cyan")
    banner.append(" - Local Command Assistant\n\n", style="dim")
    banner.append("Try:\n", style="dim")
    for suggestion in SUGGESTIONS:
        banner.append(f"  {suggestion}\n", style="green")
    banner.append("\nType ", style="dim")
    banner.append("quit", style="bold red")
    banner.append(" to exit", style="dim")

    console.print(Panel(banner, title="Welcome", border_style="blue"))


def print_result(result: Result) -> None:
    """Render a Result."""
    console.print(Panel(Text(result.detail), title=f"[bold green]{result.title}[/bold green]", border_style="green"))


def print_error(error: EngineError) -> None:
    """Render an engine error as one line."""
    console.print(f"[bold red]{error.kind.name}:[/bold red] {escape(error.message)}")


def run_command(engine: CommandEngine, text: str) -> bool:
    """Execute one command and render the outcome. Returns success."""
    try:
        result = engine.execute(text)
    except EngineError as e:
        print_error(e)
        return False

    print_result(result)
    return True


def run_text_mode(engine: CommandEngine) -> None:
    """Interactive text loop."""
    print_banner()

    while True:
        try:
            text = console.input("\n[bold cyan]>[/bold cyan] ").strip()
        except (KeyboardInterrupt, EOFError):
            break

        if not text:
            continue

        if text.lower() in ("quit", "exit", "q"):
            break

        run_command(engine, text)

    console.print("\n[yellow]Shutting down...[/yellow]")


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="JARVIS - Local Command Assistant")
    parser.add_argument("command", nargs="*", help="Run a single command and exit")
    parser.add_argument("--config", "-c", default="config.yaml", help="Path to configuration file")
    parser.add_argument(
        "--log-level", "-l",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console logging level"
    )
    parser.add_argument("--serve", action="store_true", help="Run the HTTP API instead")
    parser.add_argument("--host", default="127.0.0.1", help="HTTP host (with --serve)")
    parser.add_argument("--port", type=int, default=8000, help="HTTP port (with --serve)")

    args = parser.parse_args(argv)

    if args.serve:
        from infra import server
        server_args = ["--host", args.host, "--port", str(args.port), "--config", args.config]
        if args.log_level:
            server_args += ["--log-level", args.log_level]
        return server.main(server_args)

    config = EngineConfig.load(args.config)
    level = args.log_level or ("WARNING" if args.command else config.log_level.upper())
    configure_logging(level=getattr(logging, level), log_dir=config.log_dir)
    logger = logging.getLogger("jarvis.main")

    try:
        engine = create_engine(config)

        if args.command:
            return 0 if run_command(engine, " ".join(args.command)) else 1

        run_text_mode(engine)
        return 0

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        return 130
    except Exception as e:
        logger.exception("Fatal error")
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
