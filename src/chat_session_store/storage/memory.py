"""In-memory storage backend.

Stores serialized sessions in a plain Python dict.  All data is lost when
the process exits.  This backend is primarily useful for tests and local
prototyping.

Classes
-------
- InMemoryBackend  — dict-backed ephemeral storage
"""
from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from chat_session_store.errors import SessionNotFoundError
from chat_session_store.storage.base import StorageBackend


class InMemoryBackend(StorageBackend):
    """Ephemeral, in-process storage backend backed by a Python dict.

    Sessions are stored as JSON payloads, not live objects, so a loaded
    session never aliases one that was saved.

    Parameters
    ----------
    initial_data:
        Optional pre-populated mapping of session IDs to raw payloads.
        A shallow copy is taken so the caller's dict is not mutated.
    **kwargs:
        Forwarded to ``StorageBackend``.
    """

    def __init__(self, initial_data: dict[str, str] | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._store: dict[str, str] = dict(initial_data or {})

    @classmethod
    def from_settings(cls, settings: dict[str, Any]) -> "InMemoryBackend":
        return cls()

    # ------------------------------------------------------------------
    # StorageBackend primitives
    # ------------------------------------------------------------------

    def _write(self, session_id: str, payload: str) -> None:
        self._store[session_id] = payload

    def _read(self, session_id: str) -> str:
        try:
            return self._store[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def _remove(self, session_id: str) -> None:
        try:
            del self._store[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def _scan(self) -> Iterator[tuple[str, str]]:
        # Snapshot so saves during iteration do not break the scan.
        yield from list(self._store.items())

    def exists(self, session_id: str) -> bool:
        return session_id in self._store

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Remove all stored sessions."""
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"InMemoryBackend(sessions={len(self._store)})"
