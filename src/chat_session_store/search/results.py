"""Search result types.

Classes
-------
- MatchType     — which part of a session matched
- SearchMatch   — a single match inside one session
- SearchResult  — all matches for one session
"""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from chat_session_store.session.state import SessionInfo


class MatchType(str, Enum):
    """Searchable parts of a session."""

    NAME = "name"
    MESSAGE = "message"
    SYSTEM_PROMPT = "system-prompt"
    TAG = "tag"


class SearchMatch(BaseModel):
    """A single occurrence of the query inside a session.

    Parameters
    ----------
    type:
        Which field matched.
    role:
        Author role for message matches, empty otherwise.
    full_text:
        The complete text of the matching field.
    snippet:
        Excerpt around the match, word-aligned, with ``...`` markers.
    message_index:
        Zero-based position of the message, ``-1`` for non-message matches.
    """

    type: MatchType
    role: str = ""
    full_text: str
    snippet: str = ""
    message_index: int = -1

    model_config = {"frozen": True}


class SearchResult(BaseModel):
    """Matches found in one session."""

    session: SessionInfo
    matches: list[SearchMatch] = Field(default_factory=list)

    def add_match(self, match: SearchMatch) -> None:
        self.matches.append(match)

    def has_matches(self) -> bool:
        return bool(self.matches)

    def match_count(self) -> int:
        return len(self.matches)

    def matches_by_type(self, match_type: MatchType | str) -> list[SearchMatch]:
        wanted = MatchType(match_type)
        return [m for m in self.matches if m.type == wanted]
