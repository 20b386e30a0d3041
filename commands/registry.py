"""
Command Registry
----------------
Deterministic intent matching from user text.
No LLM logic. No OS execution. Only pattern matching.

Rules are loaded from YAML and evaluated longest-trigger-first.
Anything that does not match cleanly is Unrecognized (fail closed).
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Type
import logging
import re

import yaml

from .intents import (
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


DEFAULT_COMMAND_MAP = Path(__file__).parent / "command_map.yaml"

# Command id -> intent variant it produces
INTENT_TYPES: Dict[str, Type] = {
    "app.launch": LaunchApp,
    "website.open": OpenWebsite,
    "system.status": SystemStatus,
    "shell.run": RunWhitelistedCommand,
    "notes.add": AddNote,
    "notes.read": ReadNotes,
    "files.list": ListFiles,
}

_PLACEHOLDER = re.compile(r"\{(\w+)\}")
_WHITESPACE = re.compile(r"\s+")

# Wake word and politeness that may precede a command in transcribed speech
_FILLER = re.compile(
    r"^(?:(?:hey\s+|ok\s+)?jarvis\b[\s,.!]*)?(?:please\b[\s,]*)?",
    re.IGNORECASE,
)


def normalize_utterance(text: str) -> str:
    """Trim and collapse whitespace. Case is kept for slot values."""
    return _WHITESPACE.sub(" ", text or "").strip()


@dataclass
class CommandDefinition:
    """Definition of a command from the registry."""
    id: str
    name: str
    patterns: List[str]
    description: str = ""

    def __repr__(self) -> str:
        return f"CommandDefinition(id={self.id}, name={self.name})"


@dataclass
class MatchRule:
    """One compiled pattern belonging to a command."""
    command_id: str
    pattern: str
    trigger: str
    slot: Optional[str]
    regex: re.Pattern = field(repr=False)

    @property
    def has_slot(self) -> bool:
        return self.slot is not None


class IntentMatcher:
    """
    Classifies an utterance into an intent plus slots.

    Responsibilities:
    - Load command patterns from YAML
    - Match user text, longest trigger first
    - Extract the trailing slot value

    Forbidden:
    - Any LLM logic
    - Any OS execution
    - Guessing: a partial match is Unrecognized
    """

    def __init__(self, registry_path: Optional[str] = None):
        self._logger = logging.getLogger("jarvis.commands")
        self._commands: Dict[str, CommandDefinition] = {}
        self._rules: List[MatchRule] = []

        self.load(registry_path or str(DEFAULT_COMMAND_MAP))

    def load(self, registry_path: str) -> None:
        """Load command definitions from a YAML file."""
        path = Path(registry_path)

        if not path.exists():
            raise FileNotFoundError(f"Command registry not found: {registry_path}")

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        commands: Dict[str, CommandDefinition] = {}
        rules: List[MatchRule] = []

        for cmd_data in data.get("commands", []):
            cmd = CommandDefinition(
                id=cmd_data["id"],
                name=cmd_data.get("name", cmd_data["id"]),
                patterns=list(cmd_data["patterns"]),
                description=cmd_data.get("description", ""),
            )

            if cmd.id not in INTENT_TYPES:
                raise ValueError(f"Unknown command id in registry: {cmd.id}")

            for pattern in cmd.patterns:
                rules.append(self._compile_rule(cmd.id, pattern))

            commands[cmd.id] = cmd

        # Longest trigger first; sort is stable so file order breaks ties
        rules.sort(key=lambda rule: len(rule.trigger), reverse=True)

        self._commands = commands
        self._rules = rules
        self._logger.debug(f"Loaded {len(commands)} commands, {len(rules)} patterns")

    def _compile_rule(self, command_id: str, pattern: str) -> MatchRule:
        """
        Compile a pattern to an anchored, case-insensitive regex.

        "launch {name}" becomes "^launch(?:\\s+(?P<slot>.*?))?[\\s.!?]*$"
        "read my notes" becomes "(?<!\\w)read\\s+my\\s+notes(?!\\w)"

        Slot rules are always anchored. Phrase rules are anchored only by
        how match() applies them.
        """
        pattern = normalize_utterance(pattern).lower()
        placeholders = _PLACEHOLDER.findall(pattern)
        trigger = _PLACEHOLDER.sub("", pattern).strip()

        if not trigger:
            raise ValueError(f"Pattern has no trigger phrase: {pattern!r}")
        if len(placeholders) > 1 or (placeholders and not pattern.endswith("}")):
            raise ValueError(f"Only one trailing placeholder is supported: {pattern!r}")

        slot = placeholders[0] if placeholders else None
        expects_slot = bool(fields(INTENT_TYPES[command_id]))
        if expects_slot != (slot is not None):
            raise ValueError(f"Pattern {pattern!r} does not fit command {command_id}")

        words = r"\s+".join(re.escape(word) for word in trigger.split(" "))

        if slot:
            regex = re.compile(rf"^{words}(?:\s+(?P<slot>.*?))?[\s.!?]*$", re.IGNORECASE)
        else:
            regex = re.compile(rf"(?<!\w){words}(?!\w)", re.IGNORECASE)

        return MatchRule(
            command_id=command_id,
            pattern=pattern,
            trigger=trigger,
            slot=slot,
            regex=regex,
        )

    def match(self, utterance: str) -> Intent:
        """
        Match user text to an intent.

        Two passes, each longest trigger first:
        1. Every rule anchored at the start of the utterance
        2. Phrase rules anywhere, on word boundaries

        So "take note that what is our system status" stays a note while
        "can you read my notes" still reads them.

        Never raises. Returns Unrecognized when nothing matches or when a
        slot-requiring rule matched with nothing left to act on.
        """
        text = normalize_utterance(utterance)
        text = _FILLER.sub("", text, count=1).strip()

        if not text:
            return Unrecognized(text="")

        for rule in self._rules:
            found = rule.regex.match(text)
            if not found:
                continue

            intent_type = INTENT_TYPES[rule.command_id]

            if not rule.has_slot:
                self._logger.debug(f"Matched {rule.command_id} via '{rule.pattern}'")
                return intent_type()

            value = (found.group("slot") or "").strip()
            if not value:
                self._logger.info(f"Matched '{rule.pattern}' without a target")
                return Unrecognized(text=text)

            self._logger.debug(f"Matched {rule.command_id} via '{rule.pattern}'")
            return intent_type(value)

        for rule in self._rules:
            if not rule.has_slot and rule.regex.search(text):
                self._logger.debug(f"Matched {rule.command_id} via '{rule.pattern}' inside text")
                return INTENT_TYPES[rule.command_id]()

        return Unrecognized(text=text)

    def get_command(self, command_id: str) -> Optional[CommandDefinition]:
        """Get a command definition by ID."""
        return self._commands.get(command_id)

    def list_commands(self) -> List[CommandDefinition]:
        """List all registered commands, in file order."""
        return list(self._commands.values())

    def examples(self) -> List[Tuple[str, str]]:
        """
        First pattern of each command, as (name, phrase) pairs.

        Placeholders read as "<name>" so the phrase can be shown to users.
        """
        return [
            (cmd.name, _PLACEHOLDER.sub(r"<\1>", cmd.patterns[0]))
            for cmd in self._commands.values()
        ]

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, command_id: str) -> bool:
        return command_id in self._commands
