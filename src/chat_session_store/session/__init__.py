"""Session domain subpackage.

Pure data types and invariant-preserving operations; no I/O happens here.

Public surface
--------------
- Session            — conversation plus branch metadata
- SessionInfo        — lightweight summary of a Session
- BranchTree         — recursive parent → children view
- Conversation       — ordered message history and model settings
- Message            — single conversation turn
- MessageRole        — enum: USER, ASSISTANT, SYSTEM
- Attachment         — content attached to a message
- AttachmentType     — enum: IMAGE, FILE, TEXT, AUDIO, VIDEO
- SessionSerializer  — JSON/YAML round-trip
"""
from __future__ import annotations

from chat_session_store.session.conversation import Conversation
from chat_session_store.session.message import (
    Attachment,
    AttachmentType,
    Message,
    MessageRole,
)
from chat_session_store.session.serializer import SessionSerializer
from chat_session_store.session.state import BranchTree, Session, SessionInfo

__all__ = [
    "Attachment",
    "AttachmentType",
    "BranchTree",
    "Conversation",
    "Message",
    "MessageRole",
    "Session",
    "SessionInfo",
    "SessionSerializer",
]
