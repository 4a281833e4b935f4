"""Abstract base class for session storage backends.

Concrete backends implement only the raw payload primitives defined here
(``_write``, ``_read``, ``_remove``, ``_scan``, ``exists``).  The payload
exchanged with a backend is always the UTF-8 JSON document produced by
``SessionSerializer``.  Everything else in the backend contract (listing,
search, export, branching, merging) is implemented once in this class on
top of those primitives, so every medium behaves identically.

Concurrency
-----------
All operations are synchronous and blocking.  Backends take no locks:
two concurrent saves of the same session race and the last writer wins.
Scans (``list_sessions``, ``search_sessions``) read records one at a time
with no snapshot isolation.  Callers needing stronger guarantees must
serialise writes per session themselves.

Classes
-------
- StorageBackend  — abstract base for all backends
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from types import TracebackType
from typing import Any, TextIO

from chat_session_store.branching.merge import MergeOptions, MergeResult, execute_merge
from chat_session_store.errors import SessionDecodeError, SessionNotFoundError, StorageIOError
from chat_session_store.search.engine import SearchEngine
from chat_session_store.search.results import SearchResult
from chat_session_store.session.message import new_id
from chat_session_store.session.serializer import SessionSerializer
from chat_session_store.session.state import BranchTree, Session, SessionInfo
from chat_session_store.storage.export import ExportFormat, write_export

logger = logging.getLogger(__name__)


class StorageBackend(ABC):
    """Contract shared by every session storage medium.

    Parameters
    ----------
    serializer:
        Optional custom serializer.  Defaults to ``SessionSerializer()``.
    search_engine:
        Optional search engine.  Defaults to ``SearchEngine()`` with the
        standard 50-character snippet context.
    """

    def __init__(
        self,
        serializer: SessionSerializer | None = None,
        search_engine: SearchEngine | None = None,
    ) -> None:
        self._serializer = serializer or SessionSerializer()
        self._search_engine = search_engine or SearchEngine()

    @classmethod
    def from_settings(cls, settings: dict[str, Any]) -> "StorageBackend":
        """Construct a backend from a ``StorageConfig.settings`` mapping."""
        return cls(**settings)

    # ------------------------------------------------------------------
    # Raw payload primitives
    # ------------------------------------------------------------------

    @abstractmethod
    def _write(self, session_id: str, payload: str) -> None:
        """Persist ``payload`` under ``session_id``, overwriting any prior value."""

    @abstractmethod
    def _read(self, session_id: str) -> str:
        """Return the payload stored under ``session_id``.

        Raises
        ------
        SessionNotFoundError
            If no entry exists for ``session_id``.
        """

    @abstractmethod
    def _remove(self, session_id: str) -> None:
        """Remove the entry for ``session_id``.

        Raises
        ------
        SessionNotFoundError
            If no entry exists for ``session_id``.
        """

    @abstractmethod
    def _scan(self) -> Iterator[tuple[str, str]]:
        """Yield ``(session_id, payload)`` for every stored entry.

        Entries that cannot be read at all may be skipped by the
        implementation; decoding is the caller's job.
        """

    @abstractmethod
    def exists(self, session_id: str) -> bool:
        """Return True if an entry for ``session_id`` exists."""

    def close(self) -> None:
        """Release any resources held by the backend."""

    def __enter__(self) -> "StorageBackend":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def new_session(self, name: str = "") -> Session:
        """Create an empty session with a fresh ID.  It is not persisted."""
        session = Session.new(name)
        logger.info("Created new session %r (name=%r)", session.id, name)
        return session

    def save_session(self, session: Session) -> None:
        """Persist the full state of ``session``.

        ``updated`` is refreshed first.  Any prior version is overwritten
        unconditionally.
        """
        session.touch()
        payload = self._serializer.to_json(session)
        self._write(session.id, payload)
        logger.info("Saved session %r (%d messages)", session.id, len(session.messages))

    update_session = save_session

    def load_session(self, session_id: str) -> Session:
        """Load a session by ID.

        Raises
        ------
        SessionNotFoundError
            If no session with ``session_id`` exists.
        SessionDecodeError
            If the stored record cannot be decoded.
        """
        payload = self._read(session_id)
        session = self._serializer.from_json(payload, session_id=session_id)
        logger.info("Loaded session %r", session_id)
        return session

    get_session = load_session

    def delete_session(self, session_id: str, *, unlink: bool = False) -> None:
        """Delete a session.

        Parameters
        ----------
        session_id:
            The session to delete.
        unlink:
            Also remove ``session_id`` from its parent's ``child_ids``.
            Failure to update the parent is logged, not raised; the child
            reference would be skipped as dangling anyway.

        Raises
        ------
        SessionNotFoundError
            If no session with ``session_id`` exists.
        """
        parent_id = ""
        if unlink:
            try:
                parent_id = self.load_session(session_id).parent_id
            except SessionDecodeError:
                logger.warning("Cannot read parent of corrupt session %r", session_id)

        self._remove(session_id)
        logger.info("Deleted session %r", session_id)

        if parent_id:
            try:
                parent = self.load_session(parent_id)
            except (SessionNotFoundError, SessionDecodeError) as exc:
                logger.warning(
                    "Could not unlink %r from parent %r: %s", session_id, parent_id, exc
                )
                return
            parent.remove_child(session_id)
            self.save_session(parent)

    def session_exists(self, session_id: str) -> bool:
        return self.exists(session_id)

    # ------------------------------------------------------------------
    # Scans
    # ------------------------------------------------------------------

    def iter_sessions(self) -> Iterator[Session]:
        """Yield every decodable session; corrupt records are skipped with a warning."""
        for session_id, payload in self._scan():
            try:
                yield self._serializer.from_json(payload, session_id=session_id)
            except SessionDecodeError as exc:
                logger.warning("Skipping unreadable session %r: %s", session_id, exc)

    def list_sessions(self) -> list[SessionInfo]:
        """Return summaries of all stored sessions, most recently updated first."""
        infos = [session.to_info() for session in self.iter_sessions()]
        infos.sort(key=lambda info: info.updated, reverse=True)
        logger.debug("Listed %d sessions", len(infos))
        return infos

    def search_sessions(self, query: str) -> list[SearchResult]:
        """Return a result for every session matching ``query``.

        This is a full scan of the backend; there is no index.
        """
        logger.info("Searching sessions for %r", query)
        return self._search_engine.search(self.iter_sessions(), query)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_session(
        self, session_id: str, format: ExportFormat | str, writer: TextIO
    ) -> None:
        """Write session ``session_id`` to ``writer`` in ``format``.

        Raises
        ------
        UnsupportedFormatError
            If ``format`` is unknown.  Checked before the session is loaded.
        SessionNotFoundError
            If no session with ``session_id`` exists.
        """
        fmt = ExportFormat.parse(format)
        session = self.load_session(session_id)
        write_export(session, fmt, writer, self._serializer)
        logger.info("Exported session %r as %s", session_id, fmt.value)

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def create_branch(
        self, parent_id: str, branch_name: str, message_index: int | None = None
    ) -> Session:
        """Branch ``parent_id`` at ``message_index`` and persist both sessions.

        ``message_index`` defaults to the parent's full history.
        """
        parent = self.load_session(parent_id)
        index = len(parent.messages) if message_index is None else message_index
        branch = parent.create_branch(new_id(), branch_name, index)
        self.save_session(branch)
        self.save_session(parent)
        logger.info(
            "Created branch %r (%r) of %r at message %d", branch.id, branch_name, parent_id, index
        )
        return branch

    def get_children(self, session_id: str) -> list[SessionInfo]:
        """Return summaries of the direct branches of ``session_id``.

        Child IDs that no longer load are skipped.

        Raises
        ------
        SessionNotFoundError
            If the parent itself does not exist.
        """
        parent = self.load_session(session_id)
        return [child.to_info() for child in self._load_children(parent)]

    def get_branch_tree(self, session_id: str) -> BranchTree:
        """Return the tree of branches rooted at ``session_id``.

        Unloadable children are skipped at every level.  A session reached
        twice (a cycle in ``child_ids``) is not expanded again.

        Raises
        ------
        SessionNotFoundError
            If the root does not exist.
        """
        root = self.load_session(session_id)
        return self._build_tree(root, visited={root.id})

    def _load_children(self, parent: Session) -> Iterator[Session]:
        for child_id in parent.child_ids:
            try:
                child = self.load_session(child_id)
            except SessionNotFoundError as exc:
                logger.debug("Skipping child %r of %r: %s", child_id, parent.id, exc)
            except (SessionDecodeError, StorageIOError) as exc:
                logger.warning("Skipping unreadable child %r of %r: %s", child_id, parent.id, exc)
            else:
                yield child

    def _build_tree(self, session: Session, visited: set[str]) -> BranchTree:
        tree = BranchTree(session=session.to_info())
        for child in self._load_children(session):
            if child.id in visited:
                logger.warning("Branch cycle detected at %r under %r", child.id, session.id)
                continue
            visited.add(child.id)
            tree.children.append(self._build_tree(child, visited))
        return tree

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    def merge_sessions(
        self, target_id: str, source_id: str, options: MergeOptions | None = None
    ) -> MergeResult:
        """Merge ``source_id`` into ``target_id`` and persist the outcome.

        Nothing is written unless the in-memory merge succeeds.  When the
        merge creates a branch, the target is saved again so its
        ``child_ids`` include the branch.
        """
        options = (options or MergeOptions()).model_copy(
            update={"target_id": target_id, "source_id": source_id}
        )
        logger.info(
            "Merging %r into %r (type=%s, create_branch=%s)",
            source_id,
            target_id,
            options.type.value,
            options.create_branch,
        )
        target = self.load_session(target_id)
        source = self.load_session(source_id)

        merged, result = execute_merge(target, source, options)

        self.save_session(merged)
        if result.new_branch_id:
            self.save_session(target)

        logger.info(
            "Merged %d messages from %r into %r", result.merged_count, source_id, merged.id
        )
        return result
