#!/usr/bin/env python3
"""
JARVIS Service Bus Server
-------------------------
Runs the FastAPI adapter in front of a command engine.

Usage:
    python -m infra.server --port 8000
    python -m infra.server --config config.yaml --log-level DEBUG
"""

import argparse
import logging
import sys
from typing import Optional

import uvicorn
from rich.console import Console

from core.engine import create_engine
from infra.config import EngineConfig
from infra.logging import configure_logging
from infra.service_bus import ServiceBus

console = Console()


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="JARVIS Service Bus Server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--config", "-c", default="config.yaml", help="Path to configuration file")
    parser.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    args = parser.parse_args(argv)

    config = EngineConfig.load(args.config)
    level = args.log_level or config.log_level.upper()
    configure_logging(level=getattr(logging, level), log_dir=config.log_dir)

    console.print("[dim]Creating command engine...[/dim]")
    engine = create_engine(config)

    bus = ServiceBus(engine)
    app = bus.create_app()

    console.print("\n[bold green]JARVIS Command API[/bold green]")
    console.print(f"Running on http://{args.host}:{args.port}")
    console.print(f"API docs: http://{args.host}:{args.port}/docs")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level=level.lower()
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
