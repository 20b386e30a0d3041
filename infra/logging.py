"""
JARVIS Centralized Logging
--------------------------
Structured logging with turn_id propagation for full request traceability.

Design:
- Every execute() call gets a unique turn_id
- turn_id propagates through: Engine -> Matcher -> Dispatcher -> Tools
- Console output via Rich, file output as JSON lines
- Clear severity discipline: INFO=state, WARNING=recoverable, ERROR=abort

Usage:
    from infra.logging import get_logger, TurnContext, log_turn_end

    logger = get_logger("jarvis.core")

    with TurnContext() as turn_id:
        logger.info("Processing user input")
        # ... processing ...
        log_turn_end(turn_id, success=True, intent="ReadNotes")

Library modules only call logging.getLogger(); adapters call
configure_logging() once at startup.
"""

import contextvars
import json
import logging
import logging.handlers
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# Context variable for turn_id - thread-safe and async-safe
_turn_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "turn_id", default=None
)

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUPS = 3


def generate_turn_id() -> str:
    """Generate a unique turn ID."""
    return f"turn_{uuid.uuid4().hex[:12]}"


def get_turn_id() -> Optional[str]:
    """Get the current turn ID from context."""
    return _turn_id_var.get()


class TurnContext:
    """
    Context manager for turn scoping.

    Usage:
        with TurnContext() as turn_id:
            # All logs within this block will have turn_id
            logger.info("Processing...")
    """

    def __init__(self, turn_id: Optional[str] = None):
        self._turn_id = turn_id or generate_turn_id()
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = _turn_id_var.set(self._turn_id)
        return self._turn_id

    def __exit__(self, *args) -> None:
        if self._token is not None:
            _turn_id_var.reset(self._token)


class TurnIdFilter(logging.Filter):
    """Logging filter that adds turn_id to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "turn_id", None) is None:
            record.turn_id = get_turn_id() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured file logging."""

    EXTRA_FIELDS = ("intent", "success", "error_kind", "duration_ms")

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "turn_id": getattr(record, "turn_id", "-"),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key in self.EXTRA_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry)


class TurnConsoleFormatter(logging.Formatter):
    """Prefixes console messages with the turn id when one is set."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        turn_id = getattr(record, "turn_id", "-")
        return f"[{turn_id}] {message}" if turn_id != "-" else message


# Global configuration state
_logging_initialized = False


def configure_logging(
    level: int = logging.INFO,
    log_dir: Optional[str] = None,
    console: bool = True,
    file: bool = True,
) -> None:
    """
    Configure the JARVIS logging system.

    Args:
        level: Logging level (default INFO)
        log_dir: Directory for log files (default: ./logs)
        console: Enable console output
        file: Enable file output
    """
    global _logging_initialized

    if _logging_initialized:
        return

    root_logger = logging.getLogger("jarvis")
    root_logger.setLevel(logging.DEBUG if file else level)
    root_logger.handlers.clear()

    turn_filter = TurnIdFilter()

    if console:
        console_handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_path=False,
        )
        console_handler.setLevel(level)
        console_handler.setFormatter(TurnConsoleFormatter("%(message)s"))
        console_handler.addFilter(turn_filter)
        root_logger.addHandler(console_handler)

    if file:
        log_path = Path(log_dir) if log_dir else Path("logs")
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            str(log_path / "jarvis.log"),
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)  # File gets everything
        file_handler.setFormatter(JSONFormatter())
        file_handler.addFilter(turn_filter)
        root_logger.addHandler(file_handler)

    _logging_initialized = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the JARVIS namespace.

    Args:
        name: Logger name (will be prefixed with 'jarvis.' if not already)
    """
    if not name.startswith("jarvis"):
        name = f"jarvis.{name}"

    return logging.getLogger(name)


def log_turn_end(
    turn_id: str,
    success: bool,
    intent: str = "",
    error_kind: Optional[str] = None,
    duration_ms: float = 0.0,
) -> None:
    """
    Log the end of a turn with summary information.

    This is the TURN_END boundary event for post-mortems.
    """
    logger = get_logger("core.turn")

    extra = {
        "turn_id": turn_id,
        "success": success,
        "intent": intent,
        "duration_ms": round(duration_ms, 2),
    }

    if success:
        logger.info(f"TURN_END: intent={intent} success=True ({duration_ms:.1f}ms)", extra=extra)
    else:
        extra["error_kind"] = error_kind or "UNKNOWN"
        logger.warning(
            f"TURN_END: intent={intent} success=False error={error_kind or 'UNKNOWN'}",
            extra=extra,
        )
