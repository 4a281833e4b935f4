"""Search subpackage.

Public surface
--------------
- SearchEngine     — linear-scan search across sessions
- SearchResult     — matches for one session
- SearchMatch      — a single match
- MatchType        — enum: NAME, MESSAGE, SYSTEM_PROMPT, TAG
- extract_snippet  — word-aligned excerpt around a match
- search_session   — match a single session
"""
from __future__ import annotations

from chat_session_store.search.engine import SearchEngine, extract_snippet, search_session
from chat_session_store.search.results import MatchType, SearchMatch, SearchResult

__all__ = [
    "MatchType",
    "SearchEngine",
    "SearchMatch",
    "SearchResult",
    "extract_snippet",
    "search_session",
]
