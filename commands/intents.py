"""
Intents
-------
Tagged intent variants produced by the matcher.

One frozen dataclass per supported action. The dispatcher branches on
the concrete type, so adding a variant without a handler fails loudly.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class LaunchApp:
    """Launch a whitelisted application."""
    name: str


@dataclass(frozen=True)
class OpenWebsite:
    """Open a whitelisted website in the default browser."""
    name: str


@dataclass(frozen=True)
class SystemStatus:
    """Report host health."""


@dataclass(frozen=True)
class RunWhitelistedCommand:
    """Run a whitelisted shell command and capture its output."""
    name: str


@dataclass(frozen=True)
class AddNote:
    """Append a note to the notes store."""
    text: str


@dataclass(frozen=True)
class ReadNotes:
    """Read back all notes."""


@dataclass(frozen=True)
class ListFiles:
    """List the files in a whitelisted directory."""
    location: str


@dataclass(frozen=True)
class Unrecognized:
    """The utterance did not match any rule."""
    text: str = ""


Intent = Union[
    LaunchApp,
    OpenWebsite,
    SystemStatus,
    RunWhitelistedCommand,
    AddNote,
    ReadNotes,
    ListFiles,
    Unrecognized,
]
