"""
FastAPI Service Bus
-------------------
Thin HTTP adapter around the command engine.

POST /api/command {"command": "..."} -> {"ok": true, "result": {...}}
Engine errors become {"ok": false, "error": "...", "kind": "..."} with a
status code per error kind. No engine logic lives here.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional
import logging

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from core.engine import CommandEngine
from core.errors import EngineError, ErrorKind


VERSION = "0.1.0"

# HTTP status per engine error kind
STATUS_CODES: Dict[ErrorKind, int] = {
    ErrorKind.UNSUPPORTED_TARGET: 422,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.EXECUTION_FAILED: 502,
    ErrorKind.STORAGE_UNAVAILABLE: 503,
    ErrorKind.INTERNAL_ERROR: 500,
}


# Request/Response Models

class CommandRequest(BaseModel):
    """Text command input."""
    command: Optional[Any] = Field("", description="Utterance to interpret")

    def text(self) -> str:
        """The command as a string; null reads as empty."""
        return "" if self.command is None else str(self.command)


class ResultPayload(BaseModel):
    """Structured engine result."""
    title: str
    detail: str
    spoken: Optional[str] = None


class CommandResponse(BaseModel):
    """Successful command response."""
    ok: bool = True
    result: ResultPayload


class ErrorResponse(BaseModel):
    """Failed command response."""
    ok: bool = False
    error: str
    kind: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str = VERSION
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())


class ServiceBus:
    """
    HTTP adapter for the command engine.

    The engine runs in a worker thread so a blocking command never stalls
    the event loop.
    """

    def __init__(self, engine: Optional[CommandEngine] = None):
        self._engine = engine
        self._logger = logging.getLogger("jarvis.infra.service_bus")
        self._app: Optional[FastAPI] = None

    def set_engine(self, engine: CommandEngine) -> None:
        """Set the engine instance."""
        self._engine = engine

    def create_app(self) -> FastAPI:
        """Create and configure the FastAPI application."""

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            self._logger.info("Service bus starting...")
            yield
            self._logger.info("Service bus shutting down...")

        app = FastAPI(
            title="JARVIS Command API",
            description="HTTP adapter for the JARVIS command engine",
            version=VERSION,
            lifespan=lifespan,
        )

        self._register_routes(app)

        self._app = app
        return app

    def _register_routes(self, app: FastAPI) -> None:
        """Register all API routes."""

        @app.get("/health", response_model=HealthResponse, tags=["System"])
        async def health_check():
            """Liveness check."""
            return HealthResponse(status="healthy" if self._engine else "starting")

        @app.post(
            "/api/command",
            response_model=CommandResponse,
            responses={code: {"model": ErrorResponse} for code in set(STATUS_CODES.values())},
            tags=["Commands"],
        )
        async def process_command(request: CommandRequest):
            """Interpret and execute one command."""
            if self._engine is None:
                return _error_response(503, "The assistant is not ready yet.", "NOT_READY")

            try:
                result = await run_in_threadpool(self._engine.execute, request.text())
            except EngineError as e:
                return _error_response(STATUS_CODES.get(e.kind, 500), e.message, e.kind.name)

            return CommandResponse(result=ResultPayload(**result.to_dict()))


def _error_response(status_code: int, message: str, kind: str) -> JSONResponse:
    body = ErrorResponse(error=message, kind=kind)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app(engine: Optional[CommandEngine] = None) -> FastAPI:
    """Create the FastAPI application."""
    bus = ServiceBus(engine)
    return bus.create_app()
