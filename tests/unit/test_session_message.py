"""Unit tests for chat_session_store.session.message and .conversation."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from chat_session_store.errors import SessionValidationError
from chat_session_store.session.conversation import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    Conversation,
)
from chat_session_store.session.message import (
    Attachment,
    AttachmentType,
    Message,
    MessageRole,
)


# ---------------------------------------------------------------------------
# Attachment
# ---------------------------------------------------------------------------


class TestAttachment:
    def test_display_name_prefers_name(self) -> None:
        att = Attachment(name="diagram.png", file_path="/tmp/d.png")
        assert att.display_name() == "diagram.png"

    def test_display_name_falls_back_to_path_then_url(self) -> None:
        assert Attachment(file_path="/tmp/d.png").display_name() == "/tmp/d.png"
        assert Attachment(url="https://x/y").display_name() == "https://x/y"

    def test_display_name_falls_back_to_id(self) -> None:
        att = Attachment()
        assert att.display_name() == att.id

    def test_has_content_and_reference(self) -> None:
        att = Attachment(type=AttachmentType.TEXT, content="hello")
        assert att.has_content()
        assert not att.has_reference()
        assert Attachment(url="https://x").has_reference()

    def test_negative_size_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Attachment(size=-1)


# ---------------------------------------------------------------------------
# Message
# ---------------------------------------------------------------------------


class TestMessage:
    def test_role_accepts_string(self) -> None:
        assert Message(role="user", content="hi").role is MessageRole.USER

    def test_unknown_role_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Message(role="robot", content="hi")

    def test_ids_are_unique(self) -> None:
        assert Message(role="user").id != Message(role="user").id

    def test_timestamp_is_timezone_aware(self) -> None:
        assert Message(role="user").timestamp.tzinfo is not None

    def test_is_valid_requires_content_or_attachment(self) -> None:
        msg = Message(role="user")
        assert not msg.is_valid()
        msg.add_attachment(Attachment(name="a.txt"))
        assert msg.is_valid()
        assert Message(role="user", content="x").is_valid()

    def test_remove_attachment(self) -> None:
        msg = Message(role="user", content="x")
        att = Attachment(name="a")
        msg.add_attachment(att)
        msg.add_attachment(Attachment(name="b"))
        msg.remove_attachment(att.id)
        assert [a.name for a in msg.attachments] == ["b"]

    def test_copy_with_new_id_preserves_everything_else(self) -> None:
        msg = Message(role="assistant", content="answer", metadata={"k": [1]})
        msg.add_attachment(Attachment(name="a"))
        clone = msg.copy_with_new_id()
        assert clone.id != msg.id
        assert clone.role == msg.role
        assert clone.content == msg.content
        assert clone.timestamp == msg.timestamp
        assert clone.attachments[0].name == "a"
        clone.metadata["k"].append(2)
        assert msg.metadata == {"k": [1]}


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------


class TestConversation:
    def test_defaults(self) -> None:
        conv = Conversation()
        assert conv.messages == []
        assert conv.temperature == DEFAULT_TEMPERATURE
        assert conv.max_tokens == DEFAULT_MAX_TOKENS
        assert conv.is_empty()
        assert conv.last_message() is None

    def test_add_message_appends_in_order(self) -> None:
        conv = Conversation()
        first = conv.add_message(Message(role="user", content="one"))
        second = conv.add_message(Message(role="assistant", content="two"))
        assert conv.message_ids() == [first.id, second.id]
        assert conv.last_message() is second

    def test_add_message_rejects_duplicate_id(self) -> None:
        conv = Conversation()
        msg = conv.add_message(Message(role="user", content="one"))
        with pytest.raises(SessionValidationError):
            conv.add_message(Message(id=msg.id, role="user", content="again"))
        assert conv.message_count() == 1

    def test_add_message_refreshes_updated(self) -> None:
        conv = Conversation()
        before = conv.updated
        conv.add_message(Message(role="user", content="x"))
        assert conv.updated >= before

    def test_role_counts(self) -> None:
        conv = Conversation()
        conv.add_message(Message(role="user", content="a"))
        conv.add_message(Message(role="assistant", content="b"))
        conv.add_message(Message(role="user", content="c"))
        conv.add_message(Message(role="system", content="d"))
        assert conv.user_message_count() == 2
        assert conv.assistant_message_count() == 1
        assert conv.message_count() == 4

    def test_set_model(self) -> None:
        conv = Conversation()
        conv.set_model("openai", "gpt-4o")
        assert (conv.provider, conv.model) == ("openai", "gpt-4o")

    def test_set_parameters(self) -> None:
        conv = Conversation()
        conv.set_parameters(0.2, 512)
        assert conv.temperature == 0.2
        assert conv.max_tokens == 512

    def test_set_parameters_rejects_negative_max_tokens(self) -> None:
        conv = Conversation()
        with pytest.raises(SessionValidationError):
            conv.set_parameters(0.2, -1)
        assert conv.max_tokens == DEFAULT_MAX_TOKENS

    def test_set_system_prompt(self) -> None:
        conv = Conversation()
        conv.set_system_prompt("Be terse.")
        assert conv.system_prompt == "Be terse."
