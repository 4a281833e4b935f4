"""Session export renderers.

Classes
-------
- ExportFormat  — enum of supported export formats

Functions
---------
- write_markdown  — human-readable transcript
- write_export    — dispatch on ``ExportFormat``
"""
from __future__ import annotations

from enum import Enum
from typing import TextIO

from chat_session_store.errors import UnsupportedFormatError
from chat_session_store.session.serializer import SessionSerializer
from chat_session_store.session.state import Session


class ExportFormat(str, Enum):
    """Formats accepted by ``StorageBackend.export_session``."""

    JSON = "json"
    MARKDOWN = "markdown"
    YAML = "yaml"

    @classmethod
    def parse(cls, value: "ExportFormat | str") -> "ExportFormat":
        """Return the member for ``value`` or raise ``UnsupportedFormatError``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise UnsupportedFormatError(str(value), [f.value for f in cls]) from None


def write_markdown(session: Session, writer: TextIO) -> None:
    """Write ``session`` to ``writer`` as a Markdown transcript."""
    writer.write(f"# Session: {session.name}\n\n")
    writer.write(f"**ID:** {session.id}\n")
    writer.write(f"**Created:** {session.created.isoformat()}\n")
    writer.write(f"**Updated:** {session.updated.isoformat()}\n")
    if session.tags:
        writer.write(f"**Tags:** {', '.join(session.tags)}\n")
    if session.is_branch():
        writer.write(f"**Parent:** {session.parent_id}\n")
        writer.write(f"**Branch point:** {session.branch_point}\n")
    writer.write("\n")

    conversation = session.conversation
    if conversation.system_prompt:
        writer.write(f"## System Prompt\n\n{conversation.system_prompt}\n\n")

    writer.write("## Conversation\n\n")
    for message in conversation.messages:
        role = message.role.value
        writer.write(f"### {role[:1].upper()}{role[1:]}\n\n")
        writer.write(f"{message.content}\n\n")
        if message.attachments:
            writer.write("**Attachments:**\n")
            for attachment in message.attachments:
                name = attachment.display_name() or f"{attachment.type.value}_attachment"
                kind = attachment.mime_type or attachment.type.value
                writer.write(f"- {name} ({kind})\n")
            writer.write("\n")


def write_export(
    session: Session,
    format: ExportFormat | str,
    writer: TextIO,
    serializer: SessionSerializer | None = None,
) -> None:
    """Render ``session`` in ``format`` onto ``writer``.

    Raises
    ------
    UnsupportedFormatError
        If ``format`` is not an ``ExportFormat`` value.
    """
    fmt = ExportFormat.parse(format)
    serializer = serializer or SessionSerializer()
    if fmt is ExportFormat.JSON:
        writer.write(serializer.to_json(session))
        writer.write("\n")
    elif fmt is ExportFormat.YAML:
        writer.write(serializer.to_yaml(session))
    else:
        write_markdown(session, writer)
