"""Message and attachment domain models.

Classes
-------
- MessageRole     — enum of conversation roles
- AttachmentType  — enum of attachment kinds
- Attachment      — a file, image, or other payload attached to a message
- Message         — one turn of a conversation
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


def new_id() -> str:
    """Return a fresh globally unique identifier."""
    return str(uuid4())


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class MessageRole(str, Enum):
    """Author of a message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class AttachmentType(str, Enum):
    """Kind of content carried by an attachment."""

    IMAGE = "image"
    FILE = "file"
    TEXT = "text"
    AUDIO = "audio"
    VIDEO = "video"


class Attachment(BaseModel):
    """Content attached to a message.

    Parameters
    ----------
    id:
        Unique identifier for this attachment.
    type:
        Attachment kind (see ``AttachmentType``).
    content:
        Inline content.  Plain text for text attachments, base64 for
        binary payloads.
    file_path:
        Local path the attachment was read from, if any.
    url:
        Remote location of the attachment, if any.
    name:
        Display name.
    mime_type:
        MIME type, e.g. ``"image/png"``.
    size:
        Payload size in bytes.
    metadata:
        Arbitrary additional key-value data.
    """

    id: str = Field(default_factory=new_id)
    type: AttachmentType = AttachmentType.FILE
    content: str = ""
    file_path: str = ""
    url: str = ""
    name: str = ""
    mime_type: str = ""
    size: int = Field(default=0, ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": False}

    def display_name(self) -> str:
        """Return the most descriptive available name for this attachment."""
        return self.name or self.file_path or self.url or self.id

    def has_content(self) -> bool:
        return bool(self.content)

    def has_reference(self) -> bool:
        return bool(self.file_path or self.url)


class Message(BaseModel):
    """A single message in a conversation.

    Parameters
    ----------
    id:
        Identifier, unique within the owning conversation.
    role:
        Who authored the message.
    content:
        The message text.
    timestamp:
        When the message was created (UTC).
    attachments:
        Files or media attached to the message.
    metadata:
        Arbitrary additional key-value data.
    """

    id: str = Field(default_factory=new_id)
    role: MessageRole
    content: str = ""
    timestamp: datetime = Field(default_factory=utcnow)
    attachments: list[Attachment] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": False}

    def add_attachment(self, attachment: Attachment) -> None:
        self.attachments.append(attachment)

    def remove_attachment(self, attachment_id: str) -> None:
        """Drop every attachment whose ID equals ``attachment_id``."""
        self.attachments = [a for a in self.attachments if a.id != attachment_id]

    def is_valid(self) -> bool:
        """Return True if the message has an ID and either content or attachments."""
        return bool(self.id) and bool(self.content or self.attachments)

    def copy_with_new_id(self) -> "Message":
        """Return a deep copy of this message carrying a fresh ID.

        Timestamp, attachments, and metadata are preserved so a copied
        message reads exactly like the original.
        """
        clone = self.model_copy(deep=True)
        clone.id = new_id()
        return clone
