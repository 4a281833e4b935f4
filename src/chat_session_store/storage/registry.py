"""Backend registry — select a storage backend by type name.

A ``BackendRegistry`` maps type names (``"filesystem"``, ``"sqlite"``,
...) to ``StorageBackend`` subclasses.  There is no module-level registry:
the application builds one at startup, usually with
``builtin_registry()``, and passes it to whatever constructs backends.

Third-party backends can be discovered through ``importlib.metadata``
entry-points under the ``chat_session_store.backends`` group:

.. code-block:: toml

    [project.entry-points."chat_session_store.backends"]
    redis = "my_package.storage:RedisBackend"

Classes
-------
- BackendRegistry  — name → backend class mapping with factory helper

Functions
---------
- builtin_registry — fresh registry with the bundled backends
"""
from __future__ import annotations

import importlib.metadata
import logging
from collections.abc import Callable

from chat_session_store.config import StorageConfig
from chat_session_store.errors import BackendAlreadyRegisteredError, BackendNotFoundError
from chat_session_store.storage.base import StorageBackend

logger = logging.getLogger(__name__)

ENTRYPOINT_GROUP = "chat_session_store.backends"


class BackendRegistry:
    """Name-keyed collection of ``StorageBackend`` subclasses.

    Parameters
    ----------
    name:
        Label used in log messages and ``repr``.
    """

    def __init__(self, name: str = "storage-backends") -> None:
        self._name = name
        self._backends: dict[str, type[StorageBackend]] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self, backend_type: str
    ) -> Callable[[type[StorageBackend]], type[StorageBackend]]:
        """Class decorator registering the decorated backend under ``backend_type``."""

        def decorator(cls: type[StorageBackend]) -> type[StorageBackend]:
            self.register_class(backend_type, cls)
            return cls

        return decorator

    def register_class(self, backend_type: str, cls: type[StorageBackend]) -> None:
        """Register ``cls`` under ``backend_type``.

        Raises
        ------
        BackendAlreadyRegisteredError
            If ``backend_type`` is taken.
        TypeError
            If ``cls`` is not a ``StorageBackend`` subclass.
        """
        if not (isinstance(cls, type) and issubclass(cls, StorageBackend)):
            raise TypeError(
                f"{cls!r} must be a subclass of StorageBackend to be registered."
            )
        key = backend_type.lower()
        if key in self._backends:
            raise BackendAlreadyRegisteredError(key)
        self._backends[key] = cls
        logger.debug("Registry %r: registered backend %r -> %s", self._name, key, cls.__name__)

    def deregister(self, backend_type: str) -> None:
        key = backend_type.lower()
        if key not in self._backends:
            raise BackendNotFoundError(key, self.list_backends())
        del self._backends[key]
        logger.debug("Registry %r: deregistered backend %r", self._name, key)

    def load_entrypoints(self, group: str = ENTRYPOINT_GROUP) -> None:
        """Register backends advertised under the entry-point ``group``.

        Names already registered are skipped.  Entry-points that fail to
        import or do not resolve to a ``StorageBackend`` subclass are logged
        and skipped.
        """
        for entry_point in importlib.metadata.entry_points(group=group):
            if entry_point.name.lower() in self._backends:
                logger.debug("Registry %r: %r already registered, skipping", self._name, entry_point.name)
                continue
            try:
                cls = entry_point.load()
            except Exception:  # noqa: BLE001
                logger.error(
                    "Registry %r: failed to load backend entry-point %r",
                    self._name,
                    entry_point.name,
                    exc_info=True,
                )
                continue
            try:
                self.register_class(entry_point.name, cls)
            except TypeError as exc:
                logger.warning("Registry %r: %s", self._name, exc)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, backend_type: str) -> type[StorageBackend]:
        """Return the class registered under ``backend_type``.

        Raises
        ------
        BackendNotFoundError
            If nothing is registered under that name.
        """
        try:
            return self._backends[backend_type.lower()]
        except KeyError:
            raise BackendNotFoundError(backend_type, self.list_backends()) from None

    def list_backends(self) -> list[str]:
        """Return registered type names, sorted."""
        return sorted(self._backends)

    def create(self, config: StorageConfig) -> StorageBackend:
        """Instantiate the backend selected by ``config``."""
        cls = self.get(config.type)
        logger.debug("Registry %r: creating %r backend", self._name, config.type)
        return cls.from_settings(dict(config.settings))

    def __contains__(self, backend_type: object) -> bool:
        return isinstance(backend_type, str) and backend_type.lower() in self._backends

    def __len__(self) -> int:
        return len(self._backends)

    def __repr__(self) -> str:
        return f"BackendRegistry(name={self._name!r}, backends={self.list_backends()!r})"


def builtin_registry() -> BackendRegistry:
    """Return a new registry holding the bundled backends.

    Each call returns an independent registry, so registering extra
    backends on one never affects another.
    """
    from chat_session_store.storage.filesystem import FilesystemBackend
    from chat_session_store.storage.memory import InMemoryBackend
    from chat_session_store.storage.sqlite import SQLiteBackend

    registry = BackendRegistry()
    registry.register_class("filesystem", FilesystemBackend)
    registry.register_class("sqlite", SQLiteBackend)
    registry.register_class("memory", InMemoryBackend)
    return registry
