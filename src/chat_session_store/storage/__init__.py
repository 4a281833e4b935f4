"""Storage backend subpackage.

All backends implement the ``StorageBackend`` ABC, which supplies the
whole session contract (CRUD, listing, search, export, branches, merges)
on top of five raw payload primitives.

Public surface
--------------
- StorageBackend    — abstract base class
- FilesystemBackend — persist sessions as JSON files (reference backend)
- SQLiteBackend     — persist sessions in a local SQLite database
- InMemoryBackend   — in-process dict (useful for testing)
- BackendRegistry   — select a backend class by type name
- builtin_registry  — registry pre-populated with the backends above
- ExportFormat      — enum: JSON, MARKDOWN, YAML
"""
from __future__ import annotations

from chat_session_store.storage.base import StorageBackend
from chat_session_store.storage.export import ExportFormat
from chat_session_store.storage.filesystem import FilesystemBackend
from chat_session_store.storage.memory import InMemoryBackend
from chat_session_store.storage.registry import BackendRegistry, builtin_registry
from chat_session_store.storage.sqlite import SQLiteBackend

__all__ = [
    "BackendRegistry",
    "ExportFormat",
    "FilesystemBackend",
    "InMemoryBackend",
    "SQLiteBackend",
    "StorageBackend",
    "builtin_registry",
]
