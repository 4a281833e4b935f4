"""Cross-session search.

A deliberately simple engine: every session handed to it is scanned in
full, there is no index and no ranking.  Matching is case-insensitive
substring search over the session name, each message, the system prompt,
and each tag.

Functions
---------
- extract_snippet  — word-aligned excerpt around the first match
- search_session   — match one session against a query

Classes
-------
- SearchEngine     — applies ``search_session`` over many sessions
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from chat_session_store.search.results import MatchType, SearchMatch, SearchResult
from chat_session_store.session.state import Session

logger = logging.getLogger(__name__)

DEFAULT_SNIPPET_CONTEXT: int = 50
ELLIPSIS: str = "..."


def _find(text: str, query: str) -> re.Match[str] | None:
    return re.search(re.escape(query), text, flags=re.IGNORECASE)


def extract_snippet(text: str, query: str, context: int = DEFAULT_SNIPPET_CONTEXT) -> str:
    """Return an excerpt of ``text`` around the first occurrence of ``query``.

    The window spans ``context`` characters on each side of the match and
    is then widened outward so that it never starts or ends mid-word.
    ``...`` is prepended when the excerpt does not start at the beginning
    of ``text`` and appended when it does not reach the end.

    Parameters
    ----------
    text:
        Field content to excerpt.
    query:
        Search term; matched case-insensitively.
    context:
        Half-width of the window in characters.

    Returns
    -------
    str
        The excerpt, or ``""`` if ``query`` does not occur in ``text``.
    """
    if not query:
        return ""
    match = _find(text, query)
    if match is None:
        return ""

    length = len(text)
    start = max(0, match.start() - context)
    end = min(length, match.end() + context)

    while start > 0 and not text[start - 1].isspace():
        start -= 1
    while end < length and not text[end].isspace():
        end += 1

    snippet = text[start:end]
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < length:
        snippet = snippet + ELLIPSIS
    return snippet


def search_session(
    session: Session, query: str, context: int = DEFAULT_SNIPPET_CONTEXT
) -> SearchResult:
    """Match ``session`` against ``query``.

    The returned result may be empty; check ``has_matches()``.
    """
    result = SearchResult(session=session.to_info())
    if not query:
        return result

    if _find(session.name, query):
        result.add_match(
            SearchMatch(type=MatchType.NAME, full_text=session.name, snippet=session.name)
        )

    conversation = session.conversation
    for index, message in enumerate(conversation.messages):
        if _find(message.content, query):
            result.add_match(
                SearchMatch(
                    type=MatchType.MESSAGE,
                    role=message.role.value,
                    full_text=message.content,
                    snippet=extract_snippet(message.content, query, context),
                    message_index=index,
                )
            )

    if conversation.system_prompt and _find(conversation.system_prompt, query):
        result.add_match(
            SearchMatch(
                type=MatchType.SYSTEM_PROMPT,
                full_text=conversation.system_prompt,
                snippet=extract_snippet(conversation.system_prompt, query, context),
            )
        )

    for tag in session.tags:
        if _find(tag, query):
            result.add_match(SearchMatch(type=MatchType.TAG, full_text=tag, snippet=tag))

    return result


class SearchEngine:
    """Linear-scan search over a stream of sessions.

    Parameters
    ----------
    context:
        Snippet half-width in characters.  Defaults to 50.
    """

    def __init__(self, context: int = DEFAULT_SNIPPET_CONTEXT) -> None:
        if context < 0:
            raise ValueError(f"context must be non-negative, got {context!r}.")
        self.context = context

    def search(self, sessions: Iterable[Session], query: str) -> list[SearchResult]:
        """Return one result per session with at least one match.

        Results keep the order in which ``sessions`` yields them.  A blank
        query matches nothing.
        """
        if not query.strip():
            return []
        results: list[SearchResult] = []
        scanned = 0
        for session in sessions:
            scanned += 1
            result = search_session(session, query, self.context)
            if result.has_matches():
                results.append(result)
        logger.debug(
            "SearchEngine: query %r matched %d of %d sessions", query, len(results), scanned
        )
        return results

    def __repr__(self) -> str:
        return f"SearchEngine(context={self.context})"
