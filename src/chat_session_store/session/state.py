"""Session domain models.

All types are Pydantic BaseModel subclasses to enable runtime validation
and JSON serialisation.  Nothing in this module performs I/O: the storage
backends load and save whole ``Session`` values and are responsible for
persisting both sides of a parent/child link.

Parent/child links are references by session ID (``parent_id`` and
``child_ids``), never embedded objects, so a session can always be
serialised on its own.

Classes
-------
- Session      — a persisted conversation plus branch metadata
- SessionInfo  — lightweight read-only summary of a Session
- BranchTree   — query-time view of a session and its descendants
"""
from __future__ import annotations

import copy
from collections.abc import Iterator
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from chat_session_store.errors import SessionValidationError
from chat_session_store.session.conversation import Conversation
from chat_session_store.session.message import Message, MessageRole, new_id, utcnow


class SessionInfo(BaseModel):
    """Read-only summary of a session, without its messages.

    Used for listing and searching so full conversations need not be held
    in memory by callers.
    """

    id: str
    name: str = ""
    created: datetime
    updated: datetime
    message_count: int = 0
    model: str = ""
    provider: str = ""
    tags: list[str] = Field(default_factory=list)
    parent_id: str = ""
    branch_name: str = ""
    child_count: int = 0
    is_branch: bool = False

    model_config = {"frozen": True}


class Session(BaseModel):
    """A chat session: one conversation plus branch bookkeeping.

    This is the central domain object.  A session owns its conversation
    exclusively; branching copies a prefix of the history into a *new*
    session instead of sharing message objects.

    Parameters
    ----------
    id:
        Globally unique session identifier.
    name:
        Human-readable name.
    conversation:
        The owned message history and model settings.
    config:
        Free-form per-session configuration captured by the caller.
    created:
        Creation timestamp (UTC).
    updated:
        Last modification timestamp (UTC).
    tags:
        Labels with set semantics (no duplicates, insertion order kept).
    metadata:
        Arbitrary additional key-value data.
    parent_id:
        ID of the session this one was branched from; empty for roots.
    branch_point:
        Number of parent messages copied when the branch was created.
    branch_name:
        Name given to the branch at creation time.
    child_ids:
        IDs of branches created from this session, in creation order.
    """

    id: str = Field(default_factory=new_id)
    name: str = ""
    conversation: Conversation = Field(default_factory=Conversation)
    config: dict[str, Any] = Field(default_factory=dict)
    created: datetime = Field(default_factory=utcnow)
    updated: datetime = Field(default_factory=utcnow)
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    parent_id: str = ""
    branch_point: int = Field(default=0, ge=0)
    branch_name: str = ""
    child_ids: list[str] = Field(default_factory=list)

    model_config = {"frozen": False}

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def new(cls, name: str = "", session_id: str | None = None) -> "Session":
        """Create an empty, unsaved session with fresh timestamps.

        The conversation shares the session's ID.
        """
        sid = session_id or new_id()
        now = utcnow()
        return cls(
            id=sid,
            name=name,
            conversation=Conversation(id=sid, created=now, updated=now),
            created=now,
            updated=now,
        )

    def touch(self) -> None:
        """Refresh ``updated`` to the current time."""
        self.updated = utcnow()

    # ------------------------------------------------------------------
    # Conversation helpers
    # ------------------------------------------------------------------

    @property
    def messages(self) -> list[Message]:
        """Shortcut for ``self.conversation.messages``."""
        return self.conversation.messages

    def add_message(
        self,
        role: MessageRole | str,
        content: str,
        *,
        attachments: list[Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        """Append a new message to the conversation and return it."""
        message = Message(
            role=MessageRole(role),
            content=content,
            attachments=attachments or [],
            metadata=metadata or {},
        )
        self.conversation.add_message(message)
        self.touch()
        return message

    def append_message(self, message: Message) -> Message:
        """Append an already-constructed message."""
        self.conversation.add_message(message)
        self.touch()
        return message

    def set_model(self, provider: str, model: str) -> None:
        self.conversation.set_model(provider, model)
        self.touch()

    def set_parameters(self, temperature: float, max_tokens: int) -> None:
        self.conversation.set_parameters(temperature, max_tokens)
        self.touch()

    def set_system_prompt(self, prompt: str) -> None:
        self.conversation.set_system_prompt(prompt)
        self.touch()

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def add_tag(self, tag: str) -> None:
        """Add ``tag`` unless it is already present."""
        if tag in self.tags:
            return
        self.tags.append(tag)
        self.touch()

    def remove_tag(self, tag: str) -> None:
        self.tags = [t for t in self.tags if t != tag]
        self.touch()

    # ------------------------------------------------------------------
    # Branching
    # ------------------------------------------------------------------

    def is_branch(self) -> bool:
        """Return True if this session was branched from another session."""
        return self.parent_id != ""

    def has_branches(self) -> bool:
        return bool(self.child_ids)

    def is_ancestor_of(self, other: "Session") -> bool:
        """Return True if ``other`` was branched directly from this session."""
        return bool(other.parent_id) and other.parent_id == self.id

    def add_child(self, child_id: str) -> None:
        """Register ``child_id`` as a branch of this session (idempotent)."""
        if child_id in self.child_ids:
            return
        self.child_ids.append(child_id)
        self.touch()

    def remove_child(self, child_id: str) -> None:
        self.child_ids = [c for c in self.child_ids if c != child_id]
        self.touch()

    def create_branch(
        self, branch_id: str, branch_name: str, message_index: int
    ) -> "Session":
        """Create a new session holding the first ``message_index`` messages.

        Tags and config are copied by value, the conversation settings are
        copied verbatim, and every copied message receives a fresh ID.  The
        new branch is registered in this session's ``child_ids``; persisting
        both sessions is the caller's job.

        Parameters
        ----------
        branch_id:
            ID for the new session.
        branch_name:
            Name for the new session, also stored as ``branch_name``.
        message_index:
            How many leading messages to copy, ``0 <= index <= len(messages)``.

        Returns
        -------
        Session
            The new, unsaved branch.

        Raises
        ------
        SessionValidationError
            If ``message_index`` is out of range or ``branch_id`` is empty
            or equal to this session's ID.
        """
        total = len(self.conversation.messages)
        if message_index < 0 or message_index > total:
            raise SessionValidationError(
                f"Invalid message index {message_index!r} for branching: "
                f"session {self.id!r} has {total} messages."
            )
        if not branch_id or branch_id == self.id:
            raise SessionValidationError(f"Invalid branch ID {branch_id!r}.")

        now = utcnow()
        parent_conv = self.conversation
        conversation = Conversation(
            id=branch_id,
            messages=[m.copy_with_new_id() for m in parent_conv.messages[:message_index]],
            model=parent_conv.model,
            provider=parent_conv.provider,
            temperature=parent_conv.temperature,
            max_tokens=parent_conv.max_tokens,
            system_prompt=parent_conv.system_prompt,
            created=now,
            updated=now,
            metadata=copy.deepcopy(parent_conv.metadata),
        )
        branch = Session(
            id=branch_id,
            name=branch_name,
            conversation=conversation,
            config=copy.deepcopy(self.config),
            created=now,
            updated=now,
            tags=list(self.tags),
            parent_id=self.id,
            branch_point=message_index,
            branch_name=branch_name,
        )
        self.add_child(branch_id)
        return branch

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def to_info(self) -> SessionInfo:
        """Return the ``SessionInfo`` summary of this session."""
        return SessionInfo(
            id=self.id,
            name=self.name,
            created=self.created,
            updated=self.updated,
            message_count=len(self.conversation.messages),
            model=self.conversation.model,
            provider=self.conversation.provider,
            tags=list(self.tags),
            parent_id=self.parent_id,
            branch_name=self.branch_name,
            child_count=len(self.child_ids),
            is_branch=self.is_branch(),
        )


class BranchTree(BaseModel):
    """A session and, recursively, the branches reachable from it.

    Built on demand by ``StorageBackend.get_branch_tree``; never persisted.
    """

    session: SessionInfo
    children: list[BranchTree] = Field(default_factory=list)

    def walk(self, depth: int = 0) -> Iterator[tuple[int, BranchTree]]:
        """Yield ``(depth, node)`` pairs in pre-order."""
        yield depth, self
        for child in self.children:
            yield from child.walk(depth + 1)

    def size(self) -> int:
        """Total number of sessions in the tree, root included."""
        return sum(1 for _ in self.walk())

    def depth(self) -> int:
        """Length of the longest root-to-leaf path (0 for a lone root)."""
        if not self.children:
            return 0
        return 1 + max(child.depth() for child in self.children)

    def find(self, session_id: str) -> BranchTree | None:
        for _, node in self.walk():
            if node.session.id == session_id:
                return node
        return None
