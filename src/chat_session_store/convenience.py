"""Convenience API for chat-session-store — quickstart helpers.

Example
-------
::

    from chat_session_store import open_backend
    backend = open_backend()
    session = backend.new_session("scratch")
    session.add_message("user", "hello")
    backend.save_session(session)

"""
from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from chat_session_store.config import StorageConfig
from chat_session_store.storage.base import StorageBackend
from chat_session_store.storage.registry import BackendRegistry, builtin_registry


def open_backend(
    config: StorageConfig | Mapping[str, Any] | str | Path | None = None,
    registry: BackendRegistry | None = None,
) -> StorageBackend:
    """Return a ready-to-use backend.

    Parameters
    ----------
    config:
        A ``StorageConfig``, a mapping in the same shape, or a path to a
        YAML config file.  ``None`` selects the filesystem backend in its
        default directory.
    registry:
        Registry to resolve the backend type against.  Defaults to
        ``builtin_registry()``.

    Returns
    -------
    StorageBackend
    """
    if config is None:
        resolved = StorageConfig()
    elif isinstance(config, StorageConfig):
        resolved = config
    elif isinstance(config, (str, Path)):
        resolved = StorageConfig.from_yaml(config)
    else:
        resolved = StorageConfig.from_mapping(config)
    return (registry or builtin_registry()).create(resolved)
