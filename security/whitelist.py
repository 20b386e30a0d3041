"""
Command Whitelist
-----------------
Static alias table of everything the engine may launch, open, run or list.
Default deny. No fallback to raw user input.

Exit Criterion: No user-supplied string ever reaches a process launcher.
"""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple
import logging
import platform
import re

import yaml


DEFAULT_WHITELIST = Path(__file__).parent / "whitelist.yaml"

PLATFORMS = ("darwin", "linux", "windows")
CATEGORIES = ("apps", "websites", "commands", "directories")

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")
_LEADING_ARTICLE = re.compile(r"^(?:the|my)\s+")


def normalize_alias(name: str) -> str:
    """
    Normalize a target name for lookup.

    "The VS-Code!" -> "vs code"
    """
    key = _PUNCTUATION.sub(" ", (name or "").lower())
    key = _WHITESPACE.sub(" ", key).strip()
    return _LEADING_ARTICLE.sub("", key)


@dataclass(frozen=True)
class ExecutionDescriptor:
    """Fixed argv for a whitelisted executable, taken from the table."""
    name: str
    argv: Tuple[str, ...]

    @property
    def display(self) -> str:
        return " ".join(self.argv)


@dataclass(frozen=True)
class WhitelistEntry:
    """One row of the whitelist."""
    category: str
    name: str
    aliases: Tuple[str, ...] = ()
    argv: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    url: Optional[str] = None
    path: Optional[str] = None

    def descriptor_for(self, system: str) -> Optional[ExecutionDescriptor]:
        argv = self.argv.get(system)
        if not argv:
            return None
        return ExecutionDescriptor(name=self.name, argv=tuple(argv))


class CommandWhitelist:
    """
    Authoritative allowlist.

    Rules:
    - Loaded once, immutable afterwards
    - Case-insensitive, punctuation-insensitive alias lookup
    - Missing alias -> None, never an error and never the raw input
    """

    def __init__(
        self,
        entries: List[WhitelistEntry],
        system: Optional[str] = None,
    ):
        self._logger = logging.getLogger("jarvis.security.whitelist")
        self._system = (system or platform.system()).lower()
        tables: Dict[str, Dict[str, WhitelistEntry]] = {c: {} for c in CATEGORIES}

        for entry in entries:
            if entry.category not in tables:
                raise ValueError(f"Unknown whitelist category: {entry.category}")

            table = tables[entry.category]
            for alias in (entry.name,) + tuple(entry.aliases):
                key = normalize_alias(alias)
                if not key:
                    raise ValueError(f"Empty alias in {entry.category} entry '{entry.name}'")
                existing = table.get(key)
                if existing is not None and existing.name != entry.name:
                    raise ValueError(
                        f"Alias '{alias}' maps to both '{existing.name}' and '{entry.name}'"
                    )
                table[key] = entry

        self._tables = MappingProxyType(
            {category: MappingProxyType(table) for category, table in tables.items()}
        )

    @classmethod
    def load(cls, path: Optional[str] = None, system: Optional[str] = None) -> "CommandWhitelist":
        """Load the whitelist from a YAML file (defaults to the bundled table)."""
        path_obj = Path(path) if path else DEFAULT_WHITELIST

        if not path_obj.exists():
            raise FileNotFoundError(f"Whitelist not found: {path_obj}")

        with open(path_obj, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Whitelist must be a mapping: {path_obj}")

        entries = [
            _parse_entry(category, item)
            for category in CATEGORIES
            for item in (data.get(category) or [])
        ]

        whitelist = cls(entries, system=system)
        logging.getLogger("jarvis.security.whitelist").info(
            f"Whitelist loaded from {path_obj.name}: {whitelist.counts()}"
        )
        return whitelist

    @property
    def system(self) -> str:
        return self._system

    def _lookup(self, category: str, name: str) -> Optional[WhitelistEntry]:
        entry = self._tables[category].get(normalize_alias(name))
        if entry is None:
            self._logger.info(f"Not whitelisted ({category}): {name!r}")
        return entry

    def resolve_app(self, name: str) -> Optional[ExecutionDescriptor]:
        """Resolve an app alias to its launch descriptor for this platform."""
        entry = self._lookup("apps", name)
        return entry.descriptor_for(self._system) if entry else None

    def resolve_website(self, name: str) -> Optional[str]:
        """Resolve a website alias to its URL."""
        entry = self._lookup("websites", name)
        return entry.url if entry else None

    def resolve_shell_command(self, name: str) -> Optional[ExecutionDescriptor]:
        """Resolve a command alias to its argv for this platform."""
        entry = self._lookup("commands", name)
        return entry.descriptor_for(self._system) if entry else None

    def resolve_directory(self, name: str) -> Optional[Path]:
        """Resolve a folder alias to an absolute path under the user's home."""
        entry = self._lookup("directories", name)
        if entry is None:
            return None
        return Path(entry.path).expanduser()

    def names(self, category: str) -> List[str]:
        """Canonical names in a category, sorted."""
        return sorted({entry.name for entry in self._tables[category].values()})

    def counts(self) -> Dict[str, int]:
        return {category: len(self.names(category)) for category in CATEGORIES}


def _parse_entry(category: str, item: Dict[str, Any]) -> WhitelistEntry:
    """Validate one YAML item into a WhitelistEntry."""
    if not isinstance(item, dict) or not item.get("name"):
        raise ValueError(f"Whitelist {category} entry needs a name: {item!r}")

    name = str(item["name"])
    aliases = tuple(str(alias) for alias in item.get("aliases") or [])

    if category in ("apps", "commands"):
        raw_argv = item.get("argv") or {}
        if not isinstance(raw_argv, dict):
            raise ValueError(f"argv for '{name}' must be a per-platform mapping")
        argv = {}
        for system, args in raw_argv.items():
            if system not in PLATFORMS:
                raise ValueError(f"Unknown platform '{system}' for '{name}'")
            if not isinstance(args, list) or not args:
                raise ValueError(f"argv for '{name}' on {system} must be a non-empty list")
            argv[system] = tuple(str(arg) for arg in args)
        return WhitelistEntry(category, name, aliases, argv=MappingProxyType(argv))

    if category == "websites":
        url = str(item.get("url") or "")
        if not url.startswith(("https://", "http://")):
            raise ValueError(f"Website '{name}' needs an http(s) url")
        return WhitelistEntry(category, name, aliases, url=url)

    path = str(item.get("path") or "")
    if not path.startswith("~"):
        raise ValueError(f"Directory '{name}' must be a path under the home folder (~)")
    if ".." in Path(path).parts:
        raise ValueError(f"Directory '{name}' may not contain '..'")
    return WhitelistEntry(category, name, aliases, path=path)
