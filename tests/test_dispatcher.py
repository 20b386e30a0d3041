"""
Action Dispatcher Tests
-----------------------
Tests cover:
- One execution path per intent
- Whitelist enforcement before any capability is touched
- Result shaping (titles, details, spoken forms)
- Output truncation and non-zero exits
- Error propagation from capabilities
"""

import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from conftest import FakeHealth, FakeShell
from commands.intents import (
    AddNote,
    LaunchApp,
    ListFiles,
    OpenWebsite,
    ReadNotes,
    RunWhitelistedCommand,
    SystemStatus,
    Unrecognized,
)
from core.dispatcher import ActionDispatcher, Result, truncate_output
from core.errors import (
    CommandTimeout,
    ExecutionFailed,
    InternalError,
    StorageUnavailable,
    UnsupportedTarget,
)
from infra.health import HealthReport
from tools.launchers import ShellResult


def make_dispatcher(whitelist, notes_store, **overrides):
    return ActionDispatcher(whitelist=whitelist, notes=notes_store, **overrides)


class TestLaunchApp:

    def test_launches_whitelisted_argv(self, dispatcher, launcher):
        result = dispatcher.dispatch(LaunchApp("VS Code"))

        assert launcher.launched == [("code",)]
        assert result.title == "App Launched"
        assert "VS Code" in result.detail

    def test_unknown_app_never_launches(self, dispatcher, launcher):
        with pytest.raises(UnsupportedTarget) as exc_info:
            dispatcher.dispatch(LaunchApp("Photoshop"))

        assert launcher.launched == []
        assert exc_info.value.target == "Photoshop"
        assert "Photoshop" in exc_info.value.message

    def test_launch_failure_propagates(self, dispatcher, launcher):
        launcher.error = ExecutionFailed("launch", "code", reason="not installed")

        with pytest.raises(ExecutionFailed):
            dispatcher.dispatch(LaunchApp("vs code"))


class TestOpenWebsite:

    def test_opens_whitelisted_url(self, dispatcher, opener):
        result = dispatcher.dispatch(OpenWebsite("YouTube"))

        assert opener.opened == ["https://www.youtube.com"]
        assert result.title == "Website Opened"
        assert "YouTube" in result.detail

    def test_raw_url_is_not_opened(self, dispatcher, opener):
        with pytest.raises(UnsupportedTarget):
            dispatcher.dispatch(OpenWebsite("https://evil.example.com"))
        assert opener.opened == []


class TestSystemStatus:

    def test_healthy_report(self, dispatcher, health):
        result = dispatcher.dispatch(SystemStatus())

        assert result.title == "System Status"
        assert "Uptime: 3 hours" in result.detail
        assert "Memory: 42% used" in result.detail
        assert "Load average: 0.50, 0.40, 0.30" in result.detail
        assert result.spoken == "System is healthy, 3 hours uptime, 42 percent memory used"

    def test_unavailable_metrics(self, whitelist, notes_store):
        report = HealthReport(
            memory_used_ratio=0.5,
            unavailable=["uptime", "load", "cpu_count"],
        )
        dispatcher = make_dispatcher(whitelist, notes_store, health=FakeHealth(report))

        result = dispatcher.dispatch(SystemStatus())

        assert "Uptime: unavailable" in result.detail
        assert "Load average: unavailable" in result.detail
        assert result.spoken == "System is healthy, 50 percent memory used"

    def test_under_pressure(self, whitelist, notes_store):
        report = HealthReport(uptime_seconds=120, memory_used_ratio=0.97)
        dispatcher = make_dispatcher(whitelist, notes_store, health=FakeHealth(report))

        assert dispatcher.dispatch(SystemStatus()).spoken.startswith("System is under pressure")

    def test_fresh_reading_each_time(self, dispatcher, health):
        dispatcher.dispatch(SystemStatus())
        dispatcher.dispatch(SystemStatus())
        assert health.calls == 2


class TestRunWhitelistedCommand:

    def test_runs_with_timeout(self, dispatcher, shell):
        shell.result = ShellResult(argv=["uptime"], exit_code=0, stdout="up 3 days\n")

        result = dispatcher.dispatch(RunWhitelistedCommand("status"))

        assert shell.calls == [(("uptime",), 5.0)]
        assert result.title == "Command Finished"
        assert result.detail == "$ uptime\nup 3 days"

    def test_output_truncated(self, dispatcher, shell):
        shell.result = ShellResult(argv=["uptime"], exit_code=0, stdout="x" * 5000)

        result = dispatcher.dispatch(RunWhitelistedCommand("status"))

        assert "x" * 2000 in result.detail
        assert "x" * 2001 not in result.detail
        assert result.detail.endswith("(output truncated)")

    def test_nonzero_exit_is_reported_not_raised(self, dispatcher, shell):
        shell.result = ShellResult(argv=["uptime"], exit_code=2, stderr="boom")

        result = dispatcher.dispatch(RunWhitelistedCommand("status"))

        assert result.title == "Command Finished With Errors"
        assert "exit code 2" in result.detail
        assert "boom" in result.detail

    def test_empty_output(self, dispatcher, shell):
        shell.result = ShellResult(argv=["uptime"], exit_code=0)
        assert "(no output)" in dispatcher.dispatch(RunWhitelistedCommand("status")).detail

    def test_timeout_propagates(self, whitelist, notes_store):
        shell = FakeShell(error=CommandTimeout("uptime", 5.0))
        dispatcher = make_dispatcher(whitelist, notes_store, shell=shell)

        with pytest.raises(CommandTimeout):
            dispatcher.dispatch(RunWhitelistedCommand("status"))

    def test_unknown_command_never_runs(self, dispatcher, shell):
        with pytest.raises(UnsupportedTarget):
            dispatcher.dispatch(RunWhitelistedCommand("rm -rf /"))
        assert shell.calls == []

    def test_custom_limits(self, whitelist, notes_store):
        shell = FakeShell(result=ShellResult(argv=["uptime"], exit_code=0, stdout="abcdef"))
        dispatcher = make_dispatcher(
            whitelist, notes_store, shell=shell, shell_timeout=1.5, max_output_chars=3,
        )

        result = dispatcher.dispatch(RunWhitelistedCommand("status"))

        assert shell.calls[0][1] == 1.5
        assert result.detail.startswith("$ uptime\nabc\n")


class TestNotes:

    def test_add_note(self, dispatcher, notes_store):
        result = dispatcher.dispatch(AddNote("I scheduled a meeting at 4 PM"))

        assert result.title == "Note Saved"
        assert "I scheduled a meeting at 4 PM" in result.detail
        assert notes_store.list()[-1].text == "I scheduled a meeting at 4 PM"

    def test_blank_note_is_not_understood(self, dispatcher, notes_store):
        result = dispatcher.dispatch(AddNote("   "))

        assert result.title == "Not Understood"
        assert notes_store.count() == 0

    def test_read_empty(self, dispatcher):
        result = dispatcher.dispatch(ReadNotes())

        assert result.title == "Notes"
        assert result.detail == "You have no notes yet."

    def test_read_in_order(self, dispatcher):
        dispatcher.dispatch(AddNote("first"))
        dispatcher.dispatch(AddNote("second"))

        result = dispatcher.dispatch(ReadNotes())
        lines = result.detail.splitlines()

        assert lines[0].startswith("1. [") and lines[0].endswith("] first")
        assert lines[1].startswith("2. [") and lines[1].endswith("] second")
        assert result.spoken == "You have 2 notes. first. second"

    def test_read_is_idempotent(self, dispatcher, notes_store):
        dispatcher.dispatch(AddNote("only"))

        first = dispatcher.dispatch(ReadNotes())
        second = dispatcher.dispatch(ReadNotes())

        assert first == second
        assert notes_store.count() == 1

    def test_degraded_store(self, whitelist, tmp_path):
        from memory.notes import NotesStore

        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        store = NotesStore(str(blocker / "notes.db"))
        dispatcher = make_dispatcher(whitelist, store)

        assert dispatcher.dispatch(ReadNotes()).detail == "You have no notes yet."
        with pytest.raises(StorageUnavailable):
            dispatcher.dispatch(AddNote("lost"))


class TestListFiles:

    @pytest.fixture
    def home(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("USERPROFILE", str(tmp_path))
        return tmp_path

    def test_lists_whitelisted_folder(self, dispatcher, home):
        downloads = home / "Downloads"
        downloads.mkdir()
        (downloads / "b.txt").write_text("b")
        (downloads / "a.txt").write_text("a")
        (downloads / ".secret").write_text("s")
        (downloads / "sub").mkdir()

        result = dispatcher.dispatch(ListFiles("downloads"))

        assert result.title == "Files"
        assert result.detail == "a.txt\nb.txt\nsub/"
        assert result.spoken == "downloads has 3 items"

    def test_empty_folder(self, dispatcher, home):
        (home / "Desktop").mkdir()
        assert dispatcher.dispatch(ListFiles("Desktop")).detail == "Desktop is empty."

    def test_missing_folder(self, dispatcher, home):
        with pytest.raises(ExecutionFailed):
            dispatcher.dispatch(ListFiles("documents"))

    @pytest.mark.parametrize("location", ["/etc", "~/.ssh", "secrets", "../.."])
    def test_unlisted_folder(self, dispatcher, home, location):
        with pytest.raises(UnsupportedTarget):
            dispatcher.dispatch(ListFiles(location))


class TestUnrecognized:

    def test_shows_examples(self, dispatcher):
        result = dispatcher.dispatch(Unrecognized("hello"))

        assert result.title == "Not Understood"
        assert "Please try rephrasing" in result.detail
        assert "- launch <name>" in result.detail
        assert "{" not in result.detail

    def test_without_examples(self, whitelist, notes_store):
        result = make_dispatcher(whitelist, notes_store).dispatch(Unrecognized())
        assert result.detail == "I didn't understand that. Please try rephrasing."

    def test_unknown_variant_is_internal_error(self, dispatcher):
        with pytest.raises(InternalError):
            dispatcher.dispatch(object())


class TestHelpers:

    def test_truncate_output(self):
        assert truncate_output("short", limit=10) == "short"
        assert truncate_output("abcdef", limit=3) == "abc\n... (output truncated)"

    def test_result_to_dict_omits_missing_spoken(self):
        assert Result("T", "D").to_dict() == {"title": "T", "detail": "D"}
        assert Result("T", "D", "S").to_dict() == {"title": "T", "detail": "D", "spoken": "S"}
