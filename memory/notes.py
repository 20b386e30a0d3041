"""
Notes Store
-----------
Append-only, persisted scratch notes.

Design:
- SQLite file with a schema version table (forward migrations only)
- One lock around initialization, appends and reads
- Lazy initialization on first use, exactly once
- Corrupt storage on startup is moved aside; the store starts empty
- A locked or busy file is never moved; the open is retried on next use
- Notes are a convenience feature: storage problems degrade, never crash

Usage:
    store = NotesStore("data/notes.db")
    store.append("buy milk")
    for note in store.list():
        print(note.created_at, note.text)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
import logging
import sqlite3
import threading

from core.errors import StorageUnavailable


# Current schema version - increment on any schema change
SCHEMA_VERSION = 1

# Forward migrations, keyed by the version they produce
MIGRATIONS = {
    # 2: "ALTER TABLE notes ADD COLUMN source TEXT;"
}

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    version INTEGER NOT NULL,
    applied_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS notes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at TEXT NOT NULL,
    text TEXT NOT NULL
);
"""


@dataclass(frozen=True)
class Note:
    """A single note. Never mutated after creation."""
    text: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: Optional[int] = None


class SchemaMismatchError(Exception):
    """Notes database was written by a newer schema version."""
    pass


class NotesStore:
    """
    Lock-guarded, append-only notes log backed by SQLite.

    Thread-safe: a single mutex serializes appends against each other
    and against reads.
    """

    def __init__(self, db_path: str = "data/notes.db", busy_timeout: float = 5.0):
        self._db_path = Path(db_path)
        self._busy_timeout = busy_timeout
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()
        self._initialized = False
        self._degraded = False
        self._logger = logging.getLogger("jarvis.memory.notes")

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def is_degraded(self) -> bool:
        """True when storage could not be opened; reads are empty, writes fail."""
        return self._degraded

    # ===== Lifecycle =====

    def initialize(self) -> None:
        """
        Open (and if needed create or migrate) the store. Idempotent.

        A busy file is not fatal here; the next append or list retries.
        """
        with self._lock:
            try:
                self._ensure_initialized()
            except StorageUnavailable as e:
                self._logger.warning(f"Notes store not opened yet: {e.details.get('reason')}")

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._close_connection()
            self._initialized = False

    def _ensure_initialized(self) -> None:
        # Caller holds self._lock
        if self._initialized or self._degraded:
            return

        try:
            self._open()
        except SchemaMismatchError as e:
            self._close_connection()
            self._logger.error(f"Notes storage left untouched, running degraded: {e}")
            self._degraded = True
            return
        except sqlite3.OperationalError as e:
            self._close_connection()
            if _is_busy(e):
                # Another process holds the file; retried on next use
                self._logger.warning(f"Notes storage busy, leaving it untouched: {e}")
                raise StorageUnavailable(str(e)) from e
            self._logger.error(f"Notes storage cannot be opened, running degraded: {e}")
            self._degraded = True
            return
        except OSError as e:
            self._close_connection()
            self._logger.error(f"Notes storage location unusable, running degraded: {e}")
            self._degraded = True
            return
        except sqlite3.DatabaseError as e:
            # "file is not a database", malformed image, failed integrity check
            self._close_connection()
            self._logger.warning(f"Notes storage unreadable ({e}); starting with an empty store")
            try:
                self._quarantine()
                self._open()
            except (sqlite3.Error, OSError, SchemaMismatchError) as retry_error:
                self._close_connection()
                self._logger.error(f"Notes storage unavailable, running degraded: {retry_error}")
                self._degraded = True
                return

        self._initialized = True

    def _open(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(
            str(self._db_path),
            timeout=self._busy_timeout,
            check_same_thread=False,
        )
        self._conn.row_factory = sqlite3.Row

        db_version = self._get_schema_version()

        if db_version is None:
            self._logger.info(f"Creating notes store at {self._db_path}")
            self._conn.executescript(SCHEMA_SQL)
            self._set_schema_version(SCHEMA_VERSION)
        elif db_version < SCHEMA_VERSION:
            self._logger.info(f"Migrating notes store from v{db_version} to v{SCHEMA_VERSION}")
            self._migrate(db_version, SCHEMA_VERSION)
        elif db_version > SCHEMA_VERSION:
            raise SchemaMismatchError(
                f"Notes schema version ({db_version}) is newer than code version ({SCHEMA_VERSION})"
            )

        self._verify_integrity()

    def _get_schema_version(self) -> Optional[int]:
        """Get the current schema version, or None for a fresh file."""
        tables = {
            row["name"]
            for row in self._conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
        if "schema_version" not in tables:
            return None

        row = self._conn.execute(
            "SELECT version FROM schema_version ORDER BY id DESC LIMIT 1"
        ).fetchone()
        return row["version"] if row else None

    def _set_schema_version(self, version: int) -> None:
        self._conn.execute(
            "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
            (version, datetime.now(timezone.utc).isoformat())
        )
        self._conn.commit()

    def _migrate(self, from_version: int, to_version: int) -> None:
        for version in range(from_version + 1, to_version + 1):
            if version in MIGRATIONS:
                self._logger.info(f"Applying notes migration to v{version}")
                self._conn.executescript(MIGRATIONS[version])
            self._set_schema_version(version)

    def _verify_integrity(self) -> None:
        result = self._conn.execute("PRAGMA integrity_check").fetchone()[0]
        if result != "ok":
            raise sqlite3.DatabaseError(f"integrity check failed: {result}")

    def _quarantine(self) -> None:
        """Move an unreadable database aside so a fresh one can be created."""
        if not self._db_path.exists():
            return

        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        target = self._db_path.with_name(f"{self._db_path.name}.corrupt-{stamp}")
        self._db_path.rename(target)
        self._logger.warning(f"Moved unreadable notes file to {target.name}")

    def _close_connection(self) -> None:
        if self._conn is not None:
            try:
                self._conn.close()
            except sqlite3.Error as e:
                self._logger.debug(f"Error closing notes connection: {e}")
            self._conn = None

    # ===== Operations =====

    def append(self, text: str) -> Note:
        """
        Append a note.

        Raises:
            ValueError: If text is empty
            StorageUnavailable: If the store cannot be written
        """
        text = (text or "").strip()
        if not text:
            raise ValueError("Note text must not be empty")

        note = Note(text=text)

        with self._lock:
            self._ensure_initialized()
            if self._degraded:
                raise StorageUnavailable("notes store is degraded")

            try:
                cursor = self._conn.execute(
                    "INSERT INTO notes (created_at, text) VALUES (?, ?)",
                    (note.created_at.isoformat(), note.text)
                )
                self._conn.commit()
            except sqlite3.Error as e:
                self._conn.rollback()
                self._logger.error(f"Failed to save note: {e}")
                raise StorageUnavailable(str(e)) from e

        stored = Note(text=note.text, created_at=note.created_at, id=cursor.lastrowid)
        self._logger.info(f"Saved note #{stored.id}")
        return stored

    def list(self) -> List[Note]:
        """
        All notes, oldest first.

        A degraded store reads as empty.
        """
        with self._lock:
            self._ensure_initialized()
            if self._degraded:
                return []

            try:
                rows = self._conn.execute(
                    "SELECT id, created_at, text FROM notes ORDER BY id ASC"
                ).fetchall()
            except sqlite3.Error as e:
                self._logger.error(f"Failed to read notes: {e}")
                raise StorageUnavailable(str(e)) from e

        return [
            Note(
                id=row["id"],
                created_at=datetime.fromisoformat(row["created_at"]),
                text=row["text"],
            )
            for row in rows
        ]

    def count(self) -> int:
        """Number of stored notes."""
        return len(self.list())


def _is_busy(error: sqlite3.OperationalError) -> bool:
    """True for lock contention, as opposed to a broken or unreachable file."""
    message = str(error).lower()
    return "locked" in message or "busy" in message


# Process-wide store
_default_store: Optional[NotesStore] = None
_default_store_lock = threading.Lock()


def get_notes_store(db_path: str = "data/notes.db") -> NotesStore:
    """Get or create the process-wide notes store."""
    global _default_store
    with _default_store_lock:
        if _default_store is None:
            _default_store = NotesStore(db_path)
        return _default_store
