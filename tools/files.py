"""
Directory Lister
----------------
Read-only listing of a whitelisted folder.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List
import logging

from core.errors import ExecutionFailed


MAX_ENTRIES = 50


@dataclass
class DirectoryListing:
    """Entries of one folder, capped at MAX_ENTRIES."""
    path: Path
    entries: List[str]
    total: int

    @property
    def truncated(self) -> bool:
        return self.total > len(self.entries)


class DirectoryLister:
    """Lists directory contents. Hidden files are skipped."""

    def __init__(self, max_entries: int = MAX_ENTRIES):
        self.max_entries = max_entries
        self._logger = logging.getLogger("jarvis.tools.files")

    def list(self, path: Path) -> DirectoryListing:
        """
        List a directory.

        Raises:
            ExecutionFailed: If the folder is missing or unreadable
        """
        try:
            items = sorted(
                (item for item in path.iterdir() if not item.name.startswith(".")),
                key=lambda item: item.name.lower(),
            )
            entries = [
                f"{item.name}/" if item.is_dir() else item.name
                for item in items[:self.max_entries]
            ]
        except OSError as e:
            self._logger.error(f"Cannot list {path}: {e}")
            raise ExecutionFailed("list", path.name or str(path), reason=str(e)) from e

        return DirectoryListing(path=path, entries=entries, total=len(items))
