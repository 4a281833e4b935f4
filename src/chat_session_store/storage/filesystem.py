"""Filesystem storage backend.

Persists each session as an individual JSON file under a configurable
directory.  Defaults to ``~/.chat-sessions/``.

Classes
-------
- FilesystemBackend  — JSON-file-per-session storage
"""
from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from chat_session_store.errors import (
    SessionNotFoundError,
    SessionValidationError,
    StorageIOError,
)
from chat_session_store.storage.base import StorageBackend

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_DIR: Path = Path.home() / ".chat-sessions"
_FILE_EXTENSION = ".json"
_FILE_MODE = 0o644


class FilesystemBackend(StorageBackend):
    """Stores sessions as individual JSON files.

    Each session is stored as ``<storage_dir>/<session_id>.json``.  The
    directory is created, with any missing parents, when the backend is
    constructed.

    Parameters
    ----------
    storage_dir:
        Root directory for session files.  Defaults to
        ``~/.chat-sessions/``.
    **kwargs:
        Forwarded to ``StorageBackend``.

    Raises
    ------
    StorageIOError
        If the directory cannot be created.
    """

    def __init__(self, storage_dir: str | Path | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._storage_dir: Path = (
            Path(storage_dir).expanduser() if storage_dir is not None else DEFAULT_STORAGE_DIR
        )
        try:
            self._storage_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageIOError("create storage directory", str(self._storage_dir), str(exc)) from exc
        logger.debug("FilesystemBackend: using %s", self._storage_dir)

    @classmethod
    def from_settings(cls, settings: dict[str, Any]) -> "FilesystemBackend":
        """Build from ``{"base_dir": ...}``; ``storage_dir`` is accepted too."""
        directory = settings.get("base_dir") or settings.get("storage_dir")
        return cls(storage_dir=directory)

    @property
    def storage_dir(self) -> Path:
        return self._storage_dir

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _path_for(self, session_id: str) -> Path:
        """Return the file path for ``session_id``.

        Raises
        ------
        SessionNotFoundError
            If ``session_id`` contains a path component; no stored session
            can have such an ID.
        """
        # Guard against path traversal attacks.
        if not session_id or os.path.basename(session_id) != session_id:
            raise SessionNotFoundError(session_id)
        return self._storage_dir / f"{session_id}{_FILE_EXTENSION}"

    # ------------------------------------------------------------------
    # StorageBackend primitives
    # ------------------------------------------------------------------

    def _write(self, session_id: str, payload: str) -> None:
        try:
            path = self._path_for(session_id)
        except SessionNotFoundError:
            raise SessionValidationError(
                f"Invalid session ID {session_id!r}: must not contain a path."
            ) from None
        try:
            path.write_text(payload, encoding="utf-8")
            path.chmod(_FILE_MODE)
        except OSError as exc:
            raise StorageIOError("write session file", str(path), str(exc)) from exc

    def _read(self, session_id: str) -> str:
        path = self._path_for(session_id)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise SessionNotFoundError(session_id) from None
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageIOError("read session file", str(path), str(exc)) from exc

    def _remove(self, session_id: str) -> None:
        path = self._path_for(session_id)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Session %r not found for deletion", session_id)
            raise SessionNotFoundError(session_id) from None
        except OSError as exc:
            raise StorageIOError("delete session file", str(path), str(exc)) from exc

    def _scan(self) -> Iterator[tuple[str, str]]:
        try:
            entries = sorted(self._storage_dir.iterdir())
        except OSError as exc:
            raise StorageIOError("read storage directory", str(self._storage_dir), str(exc)) from exc

        for path in entries:
            if path.suffix != _FILE_EXTENSION or not path.is_file():
                continue
            try:
                payload = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping unreadable session file %s: %s", path, exc)
                continue
            yield path.stem, payload

    def exists(self, session_id: str) -> bool:
        """Return True if the file for ``session_id`` exists."""
        try:
            return self._path_for(session_id).is_file()
        except SessionNotFoundError:
            return False

    def __repr__(self) -> str:
        return f"FilesystemBackend(storage_dir={str(self._storage_dir)!r})"
