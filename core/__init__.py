# Core module - Command engine, dispatcher and error taxonomy
# The engine is the ONLY entry point - adapters call CommandEngine.execute()
#
# Only errors are exported here (memory/ and tools/ import them).
# Import the engine directly: from core.engine import create_engine

from .errors import (
    ErrorKind, EngineError, UnsupportedTarget, CommandTimeout,
    ExecutionFailed, StorageUnavailable, InternalError,
)

__all__ = [
    "ErrorKind",
    "EngineError",
    "UnsupportedTarget",
    "CommandTimeout",
    "ExecutionFailed",
    "StorageUnavailable",
    "InternalError",
]
