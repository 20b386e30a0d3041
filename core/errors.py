"""
Error Handling Module
---------------------
Closed error taxonomy for the command engine.

Every failure that leaves the engine is one of these kinds. Raw host
errors (paths, tracebacks, command internals) never reach the caller;
they are logged and replaced by a one-line, user-safe message.
"""

from enum import Enum, auto
from typing import Any, Dict, Optional
import logging


class ErrorKind(Enum):
    """Kinds of engine errors surfaced to adapters."""
    UNSUPPORTED_TARGET = auto()   # Alias not in whitelist
    TIMEOUT = auto()              # Whitelisted command ran past its timeout
    EXECUTION_FAILED = auto()     # Launch/open/exec could not start
    STORAGE_UNAVAILABLE = auto()  # Notes store unreadable/unwritable
    INTERNAL_ERROR = auto()       # Anything else


# Log level per error kind
LOG_LEVELS: Dict[ErrorKind, int] = {
    ErrorKind.UNSUPPORTED_TARGET: logging.INFO,
    ErrorKind.TIMEOUT: logging.WARNING,
    ErrorKind.EXECUTION_FAILED: logging.ERROR,
    ErrorKind.STORAGE_UNAVAILABLE: logging.ERROR,
    ErrorKind.INTERNAL_ERROR: logging.CRITICAL,
}


class EngineError(Exception):
    """
    Base class for all typed engine errors.

    `message` is safe to show to the user. `details` is for logs only.
    """

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def log_level(self) -> int:
        return LOG_LEVELS.get(self.kind, logging.ERROR)

    def to_dict(self) -> Dict[str, str]:
        """Serialize for adapters (no details)."""
        return {"kind": self.kind.name, "message": self.message}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind.name}: {self.message})"


class UnsupportedTarget(EngineError):
    """The requested app, website, command or directory is not whitelisted."""

    kind = ErrorKind.UNSUPPORTED_TARGET

    def __init__(self, category: str, target: str):
        super().__init__(
            f"Sorry, '{target}' is not a supported {category}.",
            details={"category": category, "target": target},
        )
        self.category = category
        self.target = target


class CommandTimeout(EngineError):
    """A whitelisted command ran past its timeout and was killed."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, command: str, timeout_seconds: float):
        super().__init__(
            f"The command '{command}' took longer than {timeout_seconds:g} seconds and was stopped.",
            details={"command": command, "timeout_seconds": timeout_seconds},
        )
        self.command = command
        self.timeout_seconds = timeout_seconds


class ExecutionFailed(EngineError):
    """The underlying launch, open or exec call could not start."""

    kind = ErrorKind.EXECUTION_FAILED

    def __init__(self, action: str, target: str, reason: str = ""):
        super().__init__(
            f"I couldn't {action} '{target}'.",
            details={"action": action, "target": target, "reason": reason},
        )
        self.action = action
        self.target = target


class StorageUnavailable(EngineError):
    """The notes store cannot be read or written."""

    kind = ErrorKind.STORAGE_UNAVAILABLE

    def __init__(self, reason: str = ""):
        super().__init__(
            "Your notes are unavailable right now.",
            details={"reason": reason},
        )


class InternalError(EngineError):
    """Catch-all for unexpected faults. Never carries the raw error text."""

    kind = ErrorKind.INTERNAL_ERROR

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__("Something went wrong internally. Please try again.", details)

    @classmethod
    def from_exception(cls, exception: BaseException) -> "InternalError":
        """Wrap an unexpected exception, keeping its type for the logs."""
        return cls(details={"exception": type(exception).__name__})
