"""
Action Dispatcher
-----------------
Maps a matched intent to exactly one execution path.

Rules:
- Every target is resolved through the whitelist first
- One explicit branch per intent variant; unknown variants are errors
- Only typed EngineErrors leave this module
"""

from dataclasses import dataclass
from typing import Dict, List, Optional
import logging

from commands.intents import (
    AddNote,
    Intent,
    LaunchApp,
    ListFiles,
    OpenWebsite,
    ReadNotes,
    RunWhitelistedCommand,
    SystemStatus,
    Unrecognized,
)
from infra.health import UNAVAILABLE, HealthInspector, HealthReport, format_duration
from memory.notes import NotesStore
from security.whitelist import CommandWhitelist
from tools.files import DirectoryLister
from tools.launchers import ProcessLauncher, ShellExecutor, UrlOpener

from .errors import InternalError, UnsupportedTarget


DEFAULT_SHELL_TIMEOUT = 5.0
MAX_OUTPUT_CHARS = 2000
TRUNCATION_MARKER = "\n... (output truncated)"


@dataclass(frozen=True)
class Result:
    """
    The engine's only output type.

    spoken is set only when a shorter spoken form exists; adapters fall
    back to detail.
    """
    title: str
    detail: str
    spoken: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        data = {"title": self.title, "detail": self.detail}
        if self.spoken is not None:
            data["spoken"] = self.spoken
        return data


def truncate_output(text: str, limit: int = MAX_OUTPUT_CHARS) -> str:
    """Cap text at limit characters, marking the cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


class ActionDispatcher:
    """
    Executes intents against the host through injected capabilities.

    Capabilities (launcher, opener, shell, lister) are plain objects so
    tests can pass fakes.
    """

    def __init__(
        self,
        whitelist: CommandWhitelist,
        notes: NotesStore,
        health: Optional[HealthInspector] = None,
        launcher: Optional[ProcessLauncher] = None,
        opener: Optional[UrlOpener] = None,
        shell: Optional[ShellExecutor] = None,
        lister: Optional[DirectoryLister] = None,
        shell_timeout: float = DEFAULT_SHELL_TIMEOUT,
        max_output_chars: int = MAX_OUTPUT_CHARS,
        examples: Optional[List[str]] = None,
    ):
        self.whitelist = whitelist
        self.notes = notes
        self.health = health or HealthInspector()
        self.launcher = launcher or ProcessLauncher()
        self.opener = opener or UrlOpener()
        self.shell = shell or ShellExecutor(default_timeout=shell_timeout)
        self.lister = lister or DirectoryLister()
        self.shell_timeout = shell_timeout
        self.max_output_chars = max_output_chars
        self.examples = list(examples or [])
        self._logger = logging.getLogger("jarvis.dispatcher")

    def dispatch(self, intent: Intent) -> Result:
        """
        Execute an intent and shape the Result.

        Raises:
            EngineError: UnsupportedTarget, CommandTimeout, ExecutionFailed,
                StorageUnavailable or InternalError
        """
        self._logger.info(f"Dispatching {intent!r}")

        if isinstance(intent, LaunchApp):
            return self._launch_app(intent)
        elif isinstance(intent, OpenWebsite):
            return self._open_website(intent)
        elif isinstance(intent, SystemStatus):
            return self._system_status()
        elif isinstance(intent, RunWhitelistedCommand):
            return self._run_command(intent)
        elif isinstance(intent, AddNote):
            return self._add_note(intent)
        elif isinstance(intent, ReadNotes):
            return self._read_notes()
        elif isinstance(intent, ListFiles):
            return self._list_files(intent)
        elif isinstance(intent, Unrecognized):
            return self._unrecognized(intent)

        raise InternalError(details={"intent": type(intent).__name__})

    # Handlers

    def _launch_app(self, intent: LaunchApp) -> Result:
        descriptor = self.whitelist.resolve_app(intent.name)
        if descriptor is None:
            raise UnsupportedTarget("app", intent.name)

        self.launcher.launch(descriptor.argv)

        return Result(
            title="App Launched",
            detail=f"Launching {intent.name}.",
            spoken=f"Launching {intent.name}",
        )

    def _open_website(self, intent: OpenWebsite) -> Result:
        url = self.whitelist.resolve_website(intent.name)
        if url is None:
            raise UnsupportedTarget("website", intent.name)

        self.opener.open(url)

        return Result(
            title="Website Opened",
            detail=f"Opening {intent.name} ({url}).",
            spoken=f"Opening {intent.name}",
        )

    def _system_status(self) -> Result:
        report = self.health.inspect()
        return Result(
            title="System Status",
            detail=_format_health_detail(report),
            spoken=_format_health_spoken(report),
        )

    def _run_command(self, intent: RunWhitelistedCommand) -> Result:
        descriptor = self.whitelist.resolve_shell_command(intent.name)
        if descriptor is None:
            raise UnsupportedTarget("command", intent.name)

        result = self.shell.run(descriptor.argv, timeout=self.shell_timeout)
        output = truncate_output(result.output, self.max_output_chars) or "(no output)"

        if result.success:
            return Result(
                title="Command Finished",
                detail=f"$ {descriptor.display}\n{output}",
                spoken=f"The command {descriptor.name} finished",
            )

        return Result(
            title="Command Finished With Errors",
            detail=f"$ {descriptor.display}\nexit code {result.exit_code}\n{output}",
            spoken=f"The command {descriptor.name} failed with exit code {result.exit_code}",
        )

    def _add_note(self, intent: AddNote) -> Result:
        if not intent.text.strip():
            return self._unrecognized(Unrecognized(text=""))

        note = self.notes.append(intent.text)
        return Result(
            title="Note Saved",
            detail=f"I noted: {note.text}",
            spoken="Got it, I saved your note",
        )

    def _read_notes(self) -> Result:
        notes = self.notes.list()

        if not notes:
            return Result(title="Notes", detail="You have no notes yet.")

        lines = [
            f"{i}. [{note.created_at.strftime('%Y-%m-%d %H:%M')}] {note.text}"
            for i, note in enumerate(notes, start=1)
        ]
        count = len(notes)
        spoken = f"You have {count} note{'s' if count != 1 else ''}. " + ". ".join(
            note.text for note in notes
        )

        return Result(title="Notes", detail="\n".join(lines), spoken=spoken)

    def _list_files(self, intent: ListFiles) -> Result:
        path = self.whitelist.resolve_directory(intent.location)
        if path is None:
            raise UnsupportedTarget("folder", intent.location)

        listing = self.lister.list(path)

        if not listing.entries:
            return Result(title="Files", detail=f"{intent.location} is empty.")

        detail = "\n".join(listing.entries)
        if listing.truncated:
            detail += f"\n... and {listing.total - len(listing.entries)} more"

        return Result(
            title="Files",
            detail=detail,
            spoken=f"{intent.location} has {listing.total} items",
        )

    def _unrecognized(self, intent: Unrecognized) -> Result:
        detail = "I didn't understand that. Please try rephrasing."
        if self.examples:
            detail += "\nYou can say things like:\n" + "\n".join(
                f"- {example}" for example in self.examples
            )
        return Result(
            title="Not Understood",
            detail=detail,
            spoken="Sorry, I didn't understand that. Please try rephrasing.",
        )


def _format_health_detail(report: HealthReport) -> str:
    uptime = format_duration(report.uptime_seconds)
    memory = f"{report.memory_percent}% used" if report.memory_percent is not None else UNAVAILABLE
    if report.load_average is not None:
        load = ", ".join(f"{value:.2f}" for value in report.load_average) + " (1, 5, 15 min)"
    else:
        load = UNAVAILABLE

    return "\n".join([
        f"Uptime: {uptime}",
        f"Memory: {memory}",
        f"Load average: {load}",
    ])


def _format_health_spoken(report: HealthReport) -> str:
    verdict = "healthy" if report.is_healthy else "under pressure"
    parts = [f"System is {verdict}"]
    if report.uptime_seconds is not None:
        parts.append(f"{format_duration(report.uptime_seconds)} uptime")
    if report.memory_percent is not None:
        parts.append(f"{report.memory_percent} percent memory used")
    return ", ".join(parts)
