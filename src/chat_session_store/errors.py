"""Exception hierarchy for chat-session-store.

Every error raised by the storage layer derives from ``StorageError`` so
callers can catch the whole family with one clause.  The more specific
classes also inherit from the matching built-in (``KeyError``,
``ValueError``, ``OSError``) so code written against plain Python
exceptions keeps working.

Classes
-------
- StorageError                  — base class
- SessionNotFoundError          — no record for a session ID
- SessionValidationError        — bad branch index, bad merge options, ...
- UnsupportedFormatError        — unknown export format
- StorageIOError                — file / database failure with context
- SessionDecodeError            — a stored record could not be decoded
- MergeError                    — merge strategy precondition violated
- BackendNotFoundError          — unknown backend type in the registry
- BackendAlreadyRegisteredError — duplicate backend registration
"""
from __future__ import annotations


class StorageError(Exception):
    """Base class for all chat-session-store errors."""


class SessionNotFoundError(StorageError, KeyError):
    """Raised when a requested session does not exist in the backend."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id!r} not found.")

    def __str__(self) -> str:
        return str(self.args[0])


class SessionValidationError(StorageError, ValueError):
    """Raised when an operation receives arguments that violate an invariant."""


class UnsupportedFormatError(SessionValidationError):
    """Raised when an export format is not supported."""

    def __init__(self, format: str, supported: list[str] | None = None) -> None:
        self.format = format
        message = f"Unsupported export format {format!r}."
        if supported:
            message += f" Supported formats: {', '.join(supported)}"
        super().__init__(message)


class StorageIOError(StorageError, OSError):
    """Raised when the persistence medium fails.

    Parameters
    ----------
    operation:
        Short verb describing what was attempted (``"write"``, ``"read"``).
    path:
        File path or database location involved.
    detail:
        Underlying error message.
    """

    def __init__(self, operation: str, path: str, detail: str = "") -> None:
        self.operation = operation
        self.path = path
        message = f"Failed to {operation} {path}"
        if detail:
            message += f": {detail}"
        super().__init__(message)

    def __str__(self) -> str:
        return str(self.args[0])


class SessionDecodeError(StorageError, ValueError):
    """Raised when a stored session payload cannot be decoded."""

    def __init__(self, detail: str, session_id: str = "") -> None:
        self.session_id = session_id
        prefix = f"Session {session_id!r} is corrupt" if session_id else "Corrupt session data"
        super().__init__(f"{prefix}: {detail}")


class MergeError(StorageError):
    """Raised when a merge strategy's precondition is not met."""


class BackendNotFoundError(StorageError, KeyError):
    """Raised when a backend type has not been registered."""

    def __init__(self, backend_type: str, available: list[str]) -> None:
        self.backend_type = backend_type
        names = ", ".join(available) or "<none>"
        super().__init__(
            f"Unknown storage backend type {backend_type!r}. Available: {names}"
        )

    def __str__(self) -> str:
        return str(self.args[0])


class BackendAlreadyRegisteredError(StorageError, ValueError):
    """Raised when a backend type name is registered twice."""

    def __init__(self, backend_type: str) -> None:
        self.backend_type = backend_type
        super().__init__(f"Storage backend {backend_type!r} is already registered.")
