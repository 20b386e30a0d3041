# Commands module - Intent matching
# This module does NOT execute commands, only classifies them
# No OS execution, no LLM logic

from .intents import (
    Intent, LaunchApp, OpenWebsite, SystemStatus, RunWhitelistedCommand,
    AddNote, ReadNotes, ListFiles, Unrecognized,
)
from .registry import IntentMatcher, CommandDefinition, normalize_utterance

__all__ = [
    "Intent",
    "LaunchApp",
    "OpenWebsite",
    "SystemStatus",
    "RunWhitelistedCommand",
    "AddNote",
    "ReadNotes",
    "ListFiles",
    "Unrecognized",
    "IntentMatcher",
    "CommandDefinition",
    "normalize_utterance",
]
