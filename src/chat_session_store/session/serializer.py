"""Session serialization.

Supports JSON and YAML round-trips.  The JSON document is the on-disk
format used by every storage backend: one object per session with the
field names of ``Session`` and RFC 3339 timestamps.

Classes
-------
- SessionSerializer  — serialize/deserialize Session to JSON or YAML
"""
from __future__ import annotations

import json
from typing import Literal

import yaml
from pydantic import ValidationError

from chat_session_store.errors import SessionDecodeError, UnsupportedFormatError
from chat_session_store.session.state import Session

SerializationFormat = Literal["json", "yaml"]


class SessionSerializer:
    """Serialize and deserialize ``Session`` objects.

    Decoding errors of any kind (malformed JSON/YAML, wrong shape, invalid
    field values) surface as ``SessionDecodeError`` so that callers need a
    single except clause for corrupt records.
    """

    # ------------------------------------------------------------------
    # JSON
    # ------------------------------------------------------------------

    def to_json(self, session: Session, *, indent: int = 2) -> str:
        """Serialise a ``Session`` to an indented JSON string."""
        data = session.model_dump(mode="json")
        return json.dumps(data, indent=indent, ensure_ascii=False)

    def from_json(self, raw: str, *, session_id: str = "") -> Session:
        """Deserialize a ``Session`` from a JSON string.

        Parameters
        ----------
        raw:
            JSON string previously produced by ``to_json``.
        session_id:
            Optional ID used only to give error messages context.

        Raises
        ------
        SessionDecodeError
            If ``raw`` is not valid JSON or does not describe a session.
        """
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SessionDecodeError(str(exc), session_id) from exc
        return self._deserialize(data, session_id)

    # ------------------------------------------------------------------
    # YAML
    # ------------------------------------------------------------------

    def to_yaml(self, session: Session) -> str:
        data = session.model_dump(mode="json")
        return yaml.dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)

    def from_yaml(self, raw: str, *, session_id: str = "") -> Session:
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise SessionDecodeError(str(exc), session_id) from exc
        return self._deserialize(data, session_id)

    # ------------------------------------------------------------------
    # Format dispatch
    # ------------------------------------------------------------------

    def serialize(self, session: Session, format: SerializationFormat = "json") -> str:
        if format == "json":
            return self.to_json(session)
        if format == "yaml":
            return self.to_yaml(session)
        raise UnsupportedFormatError(format, ["json", "yaml"])

    def deserialize(self, raw: str, format: SerializationFormat = "json") -> Session:
        if format == "json":
            return self.from_json(raw)
        if format == "yaml":
            return self.from_yaml(raw)
        raise UnsupportedFormatError(format, ["json", "yaml"])

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _deserialize(self, data: object, session_id: str) -> Session:
        if not isinstance(data, dict):
            raise SessionDecodeError(
                f"expected a JSON object, got {type(data).__name__}", session_id
            )
        try:
            return Session.model_validate(data)
        except ValidationError as exc:
            raise SessionDecodeError(str(exc), session_id) from exc
