"""Storage backend selection config.

The application's configuration layer decides which backend to use; this
module only defines the shape of that decision and how to read it from a
YAML file.

Example YAML
------------
.. code-block:: yaml

    storage:
      type: filesystem
      settings:
        base_dir: ~/.chat-sessions

Classes
-------
- StorageConfig  — ``{type, settings}`` backend selection
"""
from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_BACKEND_TYPE = "filesystem"


class StorageConfig(BaseModel):
    """Selects a registered backend and the settings passed to it.

    Parameters
    ----------
    type:
        Registered backend type name, e.g. ``"filesystem"``.
    settings:
        Backend-specific keyword settings (``base_dir`` for filesystem,
        ``db_path`` for sqlite).
    """

    type: str = DEFAULT_BACKEND_TYPE
    settings: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": False}

    @field_validator("type")
    @classmethod
    def _normalise_type(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("storage type must not be empty")
        return value

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "StorageConfig":
        """Build from a mapping, accepting a nested ``storage:`` section."""
        if not data:
            return cls()
        section = data.get("storage", data)
        if not isinstance(section, Mapping):
            raise ValueError(f"storage section must be a mapping, got {type(section).__name__}")
        return cls.model_validate(dict(section))

    @classmethod
    def from_yaml(cls, path: str | Path) -> "StorageConfig":
        """Read a ``StorageConfig`` from a YAML file.

        Raises
        ------
        FileNotFoundError
            If ``path`` does not exist.
        ValueError
            If the document is not a mapping or fails validation.
        """
        with Path(path).expanduser().open(encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
        if data is not None and not isinstance(data, Mapping):
            raise ValueError(f"{path}: expected a YAML mapping")
        return cls.from_mapping(data)
