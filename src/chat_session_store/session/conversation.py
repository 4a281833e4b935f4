"""Conversation domain model.

A ``Conversation`` is the ordered message history owned by exactly one
``Session`` together with the LLM settings used to produce it.  Messages
are append-only: nothing in this module reorders or removes them.

Classes
-------
- Conversation  — ordered message history plus model settings
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from chat_session_store.errors import SessionValidationError
from chat_session_store.session.message import Message, MessageRole, new_id, utcnow

DEFAULT_TEMPERATURE: float = 0.7
DEFAULT_MAX_TOKENS: int = 0  # 0 defers to the model's own limit


class Conversation(BaseModel):
    """Ordered message history and the settings it was produced with.

    Parameters
    ----------
    id:
        Identifier; equal to the owning session's ID for sessions created
        through ``Session.new``.
    messages:
        Messages in conversation order.
    model:
        Model name, e.g. ``"gpt-4o"``.
    provider:
        Provider name, e.g. ``"openai"``.
    temperature:
        Sampling temperature.
    max_tokens:
        Completion token limit; ``0`` means the model default.
    system_prompt:
        System prompt sent ahead of the messages.
    created:
        Creation timestamp (UTC).
    updated:
        Last modification timestamp (UTC).
    metadata:
        Arbitrary additional key-value data.
    """

    id: str = Field(default_factory=new_id)
    messages: list[Message] = Field(default_factory=list)
    model: str = ""
    provider: str = ""
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=0)
    system_prompt: str = ""
    created: datetime = Field(default_factory=utcnow)
    updated: datetime = Field(default_factory=utcnow)
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": False}

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_message(self, message: Message) -> Message:
        """Append ``message`` to the history.

        Raises
        ------
        SessionValidationError
            If a message with the same ID is already present.
        """
        if any(existing.id == message.id for existing in self.messages):
            raise SessionValidationError(
                f"Message ID {message.id!r} already exists in conversation {self.id!r}."
            )
        self.messages.append(message)
        self.updated = utcnow()
        return message

    def set_model(self, provider: str, model: str) -> None:
        self.provider = provider
        self.model = model
        self.updated = utcnow()

    def set_parameters(self, temperature: float, max_tokens: int) -> None:
        if max_tokens < 0:
            raise SessionValidationError(f"max_tokens must be >= 0, got {max_tokens!r}.")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.updated = utcnow()

    def set_system_prompt(self, prompt: str) -> None:
        self.system_prompt = prompt
        self.updated = utcnow()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def last_message(self) -> Message | None:
        """Return the most recent message, or None for an empty history."""
        return self.messages[-1] if self.messages else None

    def message_count(self) -> int:
        return len(self.messages)

    def user_message_count(self) -> int:
        return sum(1 for m in self.messages if m.role == MessageRole.USER)

    def assistant_message_count(self) -> int:
        return sum(1 for m in self.messages if m.role == MessageRole.ASSISTANT)

    def is_empty(self) -> bool:
        return not self.messages

    def message_ids(self) -> list[str]:
        return [m.id for m in self.messages]
