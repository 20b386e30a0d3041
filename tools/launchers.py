"""
Host Launchers
--------------
Small capability classes that touch the host: launch a process, open a
URL, run a command with a timeout.

Rules:
- No shell=True in subprocess
- argv always comes from the whitelist, never from user text
- Launches are fire-and-forget; waiter threads reap the children
- Command runs have a hard wall-clock timeout; on expiry the whole
  process group is killed and reaped
"""

from dataclasses import dataclass
from typing import Optional, Sequence
import logging
import os
import signal
import subprocess
import threading
import webbrowser

from core.errors import CommandTimeout, ExecutionFailed


_POSIX = os.name == "posix"


@dataclass
class ShellResult:
    """Captured outcome of a whitelisted command."""
    argv: Sequence[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        """stdout followed by stderr, without trailing blank lines."""
        parts = [self.stdout.rstrip(), self.stderr.rstrip()]
        return "\n".join(part for part in parts if part)


class ProcessLauncher:
    """
    Starts an application detached from the engine.

    The caller never waits on the child. A daemon thread waits so the
    process handle is released when the app exits.
    """

    def __init__(self):
        self._logger = logging.getLogger("jarvis.tools.launcher")

    def launch(self, argv: Sequence[str]) -> None:
        """
        Launch argv detached.

        Raises:
            ExecutionFailed: If the process could not be started
        """
        try:
            proc = subprocess.Popen(
                list(argv),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                close_fds=True,
                start_new_session=_POSIX,
            )
        except (OSError, ValueError) as e:
            self._logger.error(f"Launch failed for {argv[0]}: {e}")
            raise ExecutionFailed("launch", argv[0], reason=str(e)) from e

        self._logger.info(f"Launched {argv[0]} (pid={proc.pid})")

        waiter = threading.Thread(
            target=proc.wait,
            name=f"reap-{proc.pid}",
            daemon=True,
        )
        waiter.start()


class UrlOpener:
    """Opens a URL with the host's default handler."""

    def __init__(self):
        self._logger = logging.getLogger("jarvis.tools.browser")

    def open(self, url: str) -> None:
        """
        Open url in the default browser.

        Raises:
            ExecutionFailed: If no browser could handle the URL
        """
        try:
            opened = webbrowser.open(url, new=2)
        except webbrowser.Error as e:
            self._logger.error(f"Browser error for {url}: {e}")
            raise ExecutionFailed("open", url, reason=str(e)) from e

        if not opened:
            self._logger.error(f"No browser available to open {url}")
            raise ExecutionFailed("open", url, reason="no browser available")

        self._logger.info(f"Opened {url}")


class ShellExecutor:
    """
    Runs a whitelisted command to completion and captures its output.

    This is the only blocking host operation.
    """

    def __init__(self, default_timeout: float = 5.0):
        self.default_timeout = default_timeout
        self._logger = logging.getLogger("jarvis.tools.shell")

    def run(self, argv: Sequence[str], timeout: Optional[float] = None) -> ShellResult:
        """
        Run argv with a timeout.

        Raises:
            CommandTimeout: If the command outlived the timeout (it is killed)
            ExecutionFailed: If the command could not be started
        """
        timeout = self.default_timeout if timeout is None else timeout
        argv = list(argv)

        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                start_new_session=_POSIX,
            )
        except (OSError, ValueError) as e:
            self._logger.error(f"Could not start {argv[0]}: {e}")
            raise ExecutionFailed("run", argv[0], reason=str(e)) from e

        with proc:
            try:
                stdout, stderr = proc.communicate(timeout=timeout)
            except subprocess.TimeoutExpired:
                self._logger.warning(f"{argv[0]} exceeded {timeout}s, killing pid {proc.pid}")
                self._kill(proc)
                proc.communicate()
                raise CommandTimeout(argv[0], timeout)

        self._logger.info(f"{argv[0]} exited with {proc.returncode}")
        return ShellResult(
            argv=argv,
            exit_code=proc.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
        )

    def _kill(self, proc: subprocess.Popen) -> None:
        """Kill the child and, on POSIX, everything in its session."""
        try:
            if _POSIX:
                os.killpg(proc.pid, signal.SIGKILL)
            else:
                proc.kill()
        except ProcessLookupError:
            # Already exited
            pass
