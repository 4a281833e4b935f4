"""chat-session-store — persistent, branchable LLM chat sessions.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import chat_session_store
>>> chat_session_store.__version__
'0.1.0'
"""
from __future__ import annotations

# Domain model
from chat_session_store.session.conversation import Conversation
from chat_session_store.session.message import (
    Attachment,
    AttachmentType,
    Message,
    MessageRole,
)
from chat_session_store.session.serializer import SessionSerializer
from chat_session_store.session.state import BranchTree, Session, SessionInfo

# Errors
from chat_session_store.errors import (
    BackendAlreadyRegisteredError,
    BackendNotFoundError,
    MergeError,
    SessionDecodeError,
    SessionNotFoundError,
    SessionValidationError,
    StorageError,
    StorageIOError,
    UnsupportedFormatError,
)

# Merge engine
from chat_session_store.branching.merge import (
    MergeOptions,
    MergeResult,
    MergeType,
    execute_merge,
)

# Search
from chat_session_store.search.engine import SearchEngine, extract_snippet
from chat_session_store.search.results import MatchType, SearchMatch, SearchResult

# Storage backends and configuration
from chat_session_store.config import StorageConfig
from chat_session_store.storage.base import StorageBackend
from chat_session_store.storage.export import ExportFormat
from chat_session_store.storage.filesystem import FilesystemBackend
from chat_session_store.storage.memory import InMemoryBackend
from chat_session_store.storage.registry import BackendRegistry, builtin_registry
from chat_session_store.storage.sqlite import SQLiteBackend
from chat_session_store.convenience import open_backend

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Domain model
    "Attachment",
    "AttachmentType",
    "BranchTree",
    "Conversation",
    "Message",
    "MessageRole",
    "Session",
    "SessionInfo",
    "SessionSerializer",
    # Errors
    "BackendAlreadyRegisteredError",
    "BackendNotFoundError",
    "MergeError",
    "SessionDecodeError",
    "SessionNotFoundError",
    "SessionValidationError",
    "StorageError",
    "StorageIOError",
    "UnsupportedFormatError",
    # Merge
    "MergeOptions",
    "MergeResult",
    "MergeType",
    "execute_merge",
    # Search
    "MatchType",
    "SearchEngine",
    "SearchMatch",
    "SearchResult",
    "extract_snippet",
    # Storage
    "BackendRegistry",
    "ExportFormat",
    "FilesystemBackend",
    "InMemoryBackend",
    "SQLiteBackend",
    "StorageBackend",
    "StorageConfig",
    "builtin_registry",
    "open_backend",
]
