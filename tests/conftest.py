"""
JARVIS Test Configuration
-------------------------
Shared fixtures and configuration for all tests.

Side effects are blocked: no browser opens, and the only process tests
may spawn is the current Python interpreter.
"""

import subprocess
import sys
import webbrowser
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from commands.registry import IntentMatcher
from core.dispatcher import ActionDispatcher
from core.engine import CommandEngine
from infra.health import HealthReport
from memory.notes import NotesStore
from security.whitelist import CommandWhitelist
from tools.launchers import ShellResult


# =============================================================================
# Test Isolation: Block Side Effects
# =============================================================================

@pytest.fixture(autouse=True)
def block_browser_open(monkeypatch):
    """
    Block webbrowser.open() during tests.

    If something tries to open a browser, it raises RuntimeError.
    """
    def _blocked(*args, **kwargs):
        raise RuntimeError(
            "webbrowser.open() is forbidden during tests. "
            "Use a fake UrlOpener or mock it."
        )

    monkeypatch.setattr(webbrowser, "open", _blocked)
    monkeypatch.setattr(webbrowser, "open_new", _blocked)
    monkeypatch.setattr(webbrowser, "open_new_tab", _blocked)


@pytest.fixture(autouse=True)
def block_app_launch(monkeypatch):
    """
    Block subprocess.Popen() for anything but the Python interpreter.

    Keeps real apps from launching while letting timeout tests spawn
    `sys.executable -c ...` children.
    """
    _original_popen = subprocess.Popen

    def _guarded_popen(args, *a, **kwargs):
        program = args[0] if isinstance(args, (list, tuple)) and args else args
        if program != sys.executable:
            raise RuntimeError(f"Spawning {program!r} is forbidden during tests.")
        return _original_popen(args, *a, **kwargs)

    monkeypatch.setattr(subprocess, "Popen", _guarded_popen)


# =============================================================================
# Fakes for host capabilities
# =============================================================================

class FakeLauncher:
    """Records launches instead of starting processes."""

    def __init__(self, error: Optional[Exception] = None):
        self.launched: List[Tuple[str, ...]] = []
        self.error = error

    def launch(self, argv) -> None:
        if self.error:
            raise self.error
        self.launched.append(tuple(argv))


class FakeOpener:
    """Records URLs instead of opening a browser."""

    def __init__(self, error: Optional[Exception] = None):
        self.opened: List[str] = []
        self.error = error

    def open(self, url: str) -> None:
        if self.error:
            raise self.error
        self.opened.append(url)


class FakeShell:
    """Returns a canned ShellResult (or raises) and records calls."""

    def __init__(self, result: Optional[ShellResult] = None, error: Optional[Exception] = None):
        self.calls: List[Tuple[Tuple[str, ...], Optional[float]]] = []
        self.result = result
        self.error = error

    def run(self, argv, timeout=None) -> ShellResult:
        self.calls.append((tuple(argv), timeout))
        if self.error:
            raise self.error
        if self.result is not None:
            return self.result
        return ShellResult(argv=list(argv), exit_code=0, stdout="ok\n")


class FakeHealth:
    """Returns a fixed HealthReport and counts calls."""

    def __init__(self, report: Optional[HealthReport] = None):
        self.calls = 0
        self.report = report or HealthReport(
            uptime_seconds=3 * 3600,
            memory_used_ratio=0.42,
            load_average=(0.5, 0.4, 0.3),
            cpu_count=4,
        )

    def inspect(self) -> HealthReport:
        self.calls += 1
        return self.report


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def project_root():
    """Return the project root path."""
    return PROJECT_ROOT


@pytest.fixture
def whitelist():
    """Bundled whitelist, resolved as if running on Linux."""
    return CommandWhitelist.load(system="linux")


@pytest.fixture
def notes_store(tmp_path):
    """Notes store backed by a temporary SQLite file."""
    store = NotesStore(str(tmp_path / "notes.db"))
    yield store
    store.close()


@pytest.fixture
def launcher():
    return FakeLauncher()


@pytest.fixture
def opener():
    return FakeOpener()


@pytest.fixture
def shell():
    return FakeShell()


@pytest.fixture
def health():
    return FakeHealth()


@pytest.fixture
def matcher():
    return IntentMatcher()


@pytest.fixture
def dispatcher(whitelist, notes_store, health, launcher, opener, shell, matcher):
    """Dispatcher wired to fakes."""
    return ActionDispatcher(
        whitelist=whitelist,
        notes=notes_store,
        health=health,
        launcher=launcher,
        opener=opener,
        shell=shell,
        examples=[phrase for _, phrase in matcher.examples()],
    )


@pytest.fixture
def engine(matcher, dispatcher):
    """Command engine wired to fakes."""
    return CommandEngine(matcher, dispatcher)
