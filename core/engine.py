"""
Command Engine
--------------
Single entry point: execute(text) -> Result.

Composes the intent matcher and the action dispatcher and owns error
normalization. Every call is independent; the only state behind the
engine is the notes store.

Exit Criterion: every call returns a Result or raises an EngineError.
"""

from datetime import datetime
from typing import Optional
import logging

from commands.registry import IntentMatcher
from infra.config import EngineConfig
from infra.logging import TurnContext, log_turn_end
from memory.notes import NotesStore, get_notes_store
from security.whitelist import CommandWhitelist

from .dispatcher import ActionDispatcher, Result
from .errors import EngineError, InternalError


class CommandEngine:
    """
    Facade over matching and dispatch.

    Responsibilities:
    - Classify raw text
    - Dispatch the intent
    - Map any unexpected fault to InternalError

    This engine never touches HTTP, audio or display concepts.
    """

    def __init__(self, matcher: IntentMatcher, dispatcher: ActionDispatcher):
        self.matcher = matcher
        self.dispatcher = dispatcher
        self._logger = logging.getLogger("jarvis.engine")

    def execute(self, command: str) -> Result:
        """
        Interpret and execute one utterance.

        Raises:
            EngineError: One of the closed error kinds; never anything else
        """
        with TurnContext() as turn_id:
            start_time = datetime.now()
            intent_name = ""

            try:
                text = command if isinstance(command, str) else str(command or "")
                self._logger.info(f"Processing text: {text!r}")

                intent = self.matcher.match(text)
                intent_name = type(intent).__name__

                result = self.dispatcher.dispatch(intent)

            except EngineError as e:
                self._log_error(e)
                log_turn_end(
                    turn_id,
                    success=False,
                    intent=intent_name,
                    error_kind=e.kind.name,
                    duration_ms=self._elapsed_ms(start_time),
                )
                raise

            except Exception as e:
                self._logger.exception(f"Unexpected failure handling {intent_name or 'input'}")
                error = InternalError.from_exception(e)
                log_turn_end(
                    turn_id,
                    success=False,
                    intent=intent_name,
                    error_kind=error.kind.name,
                    duration_ms=self._elapsed_ms(start_time),
                )
                raise error from e

            log_turn_end(
                turn_id,
                success=True,
                intent=intent_name,
                duration_ms=self._elapsed_ms(start_time),
            )
            return result

    def _log_error(self, error: EngineError) -> None:
        """Log with a level matched to the error kind."""
        self._logger.log(
            error.log_level,
            f"{error.kind.name}: {error.message}",
            extra={"error_kind": error.kind.name},
        )
        if error.details:
            self._logger.debug(f"Error details: {error.details}")

    @staticmethod
    def _elapsed_ms(start_time: datetime) -> float:
        return (datetime.now() - start_time).total_seconds() * 1000


def create_engine(
    config: Optional[EngineConfig] = None,
    notes: Optional[NotesStore] = None,
    **capabilities,
) -> CommandEngine:
    """
    Build an engine from configuration.

    Extra keyword arguments (launcher, opener, shell, lister, health) are
    passed to the dispatcher.
    """
    config = config or EngineConfig()

    matcher = IntentMatcher(config.command_map_path)
    whitelist = CommandWhitelist.load(config.whitelist_path)
    notes = notes or get_notes_store(config.notes_db_path)
    notes.initialize()

    dispatcher = ActionDispatcher(
        whitelist=whitelist,
        notes=notes,
        shell_timeout=float(config.shell_timeout_seconds),
        max_output_chars=int(config.max_output_chars),
        examples=[phrase for _, phrase in matcher.examples()],
        **capabilities,
    )

    return CommandEngine(matcher, dispatcher)
