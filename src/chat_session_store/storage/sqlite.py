"""SQLite storage backend.

Stores sessions in a single SQLite database file using the Python standard
library ``sqlite3`` module — no third-party dependencies required.

Classes
-------
- SQLiteBackend  — SQLite-backed session storage
"""
from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from chat_session_store.errors import SessionNotFoundError, StorageIOError
from chat_session_store.storage.base import StorageBackend

DEFAULT_DB_PATH: Path = Path.home() / ".chat-sessions" / "sessions.db"
_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS sessions (
    session_id TEXT PRIMARY KEY,
    name       TEXT NOT NULL DEFAULT '',
    parent_id  TEXT NOT NULL DEFAULT '',
    payload    TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
)
"""
_CREATE_INDEX_SQL = "CREATE INDEX IF NOT EXISTS idx_sessions_parent ON sessions(parent_id)"
_UPSERT_SQL = """
INSERT INTO sessions (session_id, name, parent_id, payload, updated_at)
VALUES (?, ?, ?, ?, datetime('now'))
ON CONFLICT(session_id) DO UPDATE SET
    name       = excluded.name,
    parent_id  = excluded.parent_id,
    payload    = excluded.payload,
    updated_at = excluded.updated_at
"""


def _columns_from_payload(payload: str) -> tuple[str, str]:
    """Pull ``(name, parent_id)`` out of a payload for the indexed columns."""
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        return "", ""
    if not isinstance(data, dict):
        return "", ""
    return str(data.get("name") or ""), str(data.get("parent_id") or "")


class SQLiteBackend(StorageBackend):
    """Persists sessions in a local SQLite database.

    Each session occupies one row with the ``session_id`` as the primary key
    and the JSON payload stored as TEXT.  ``name`` and ``parent_id`` are
    copied into their own columns for ad-hoc queries.

    Parameters
    ----------
    db_path:
        Path to the SQLite file.  Defaults to
        ``~/.chat-sessions/sessions.db``.  The parent directory and table
        are created automatically on first use.
    **kwargs:
        Forwarded to ``StorageBackend``.
    """

    def __init__(self, db_path: str | Path | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._db_path: Path = (
            Path(db_path).expanduser() if db_path is not None else DEFAULT_DB_PATH
        )

    @classmethod
    def from_settings(cls, settings: dict[str, Any]) -> "SQLiteBackend":
        """Build from ``{"db_path": ...}``; ``path`` is accepted too."""
        return cls(db_path=settings.get("db_path") or settings.get("path"))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_connection(self) -> sqlite3.Connection:
        """Open a connection and ensure the schema exists.

        Returns
        -------
        sqlite3.Connection
            A ready-to-use connection with row_factory set.
        """
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self._db_path))
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(_CREATE_TABLE_SQL)
            conn.execute(_CREATE_INDEX_SQL)
            conn.commit()
        except (OSError, sqlite3.Error) as exc:
            raise StorageIOError("open database", str(self._db_path), str(exc)) from exc
        return conn

    def _execute(
        self, operation: str, sql: str, params: tuple[Any, ...] = ()
    ) -> tuple[list[sqlite3.Row], int]:
        """Run one statement in its own transaction; return ``(rows, rowcount)``."""
        conn = self._get_connection()
        try:
            with conn:
                cursor = conn.execute(sql, params)
                rows = cursor.fetchall()
            return rows, cursor.rowcount
        except sqlite3.Error as exc:
            raise StorageIOError(operation, str(self._db_path), str(exc)) from exc
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # StorageBackend primitives
    # ------------------------------------------------------------------

    def _write(self, session_id: str, payload: str) -> None:
        name, parent_id = _columns_from_payload(payload)
        self._execute("write session", _UPSERT_SQL, (session_id, name, parent_id, payload))

    def _read(self, session_id: str) -> str:
        rows, _ = self._execute(
            "read session", "SELECT payload FROM sessions WHERE session_id = ?", (session_id,)
        )
        if not rows:
            raise SessionNotFoundError(session_id)
        return str(rows[0]["payload"])

    def _remove(self, session_id: str) -> None:
        _, rowcount = self._execute(
            "delete session", "DELETE FROM sessions WHERE session_id = ?", (session_id,)
        )
        if rowcount == 0:
            raise SessionNotFoundError(session_id)

    def _scan(self) -> Iterator[tuple[str, str]]:
        rows, _ = self._execute(
            "list sessions", "SELECT session_id, payload FROM sessions ORDER BY session_id"
        )
        for row in rows:
            yield str(row["session_id"]), str(row["payload"])

    def exists(self, session_id: str) -> bool:
        rows, _ = self._execute(
            "check session", "SELECT 1 FROM sessions WHERE session_id = ?", (session_id,)
        )
        return bool(rows)

    def child_ids_of(self, parent_id: str) -> list[str]:
        """Return IDs of stored sessions whose ``parent_id`` is ``parent_id``.

        Unlike ``get_children`` this reads the child side of the link, so it
        also finds branches the parent's ``child_ids`` lost track of.
        """
        rows, _ = self._execute(
            "list children",
            "SELECT session_id FROM sessions WHERE parent_id = ? ORDER BY session_id",
            (parent_id,),
        )
        return [str(row["session_id"]) for row in rows]

    def __repr__(self) -> str:
        return f"SQLiteBackend(db_path={str(self._db_path)!r})"
