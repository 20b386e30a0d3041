# Memory module - Persisted notes
# Append-only, no inference, explicit writes only

from .notes import NotesStore, Note, get_notes_store, SCHEMA_VERSION

__all__ = ["NotesStore", "Note", "get_notes_store", "SCHEMA_VERSION"]
