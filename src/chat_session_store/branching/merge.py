"""Session merging — combine two conversation histories.

Design
------
A merge takes a *target* session (the one receiving messages) and a
*source* session (the one providing them) and runs one of three
strategies:

``continuation``
    Append the whole source history after the whole target history.
``rebase``
    Keep the first ``merge_point`` target messages (all of them by
    default), drop the prefix the source already shares with that history,
    and replay the rest of the source on top.  The shared prefix is the
    longest run of leading messages with equal role and content, which is
    exactly what ``Session.create_branch`` leaves behind.
``cherry-pick``
    Copy only the source messages at ``message_indices``, in the order
    given.  Picks whose role and content already appear in the target
    history are skipped.

Strategies only *plan* the merge; ``execute_merge`` validates the plan
before touching either session, so a failed merge leaves both sessions
unchanged.  Every incoming message is copied with a fresh ID.

With ``create_branch`` set the merged history is written to a new branch
of the target instead of the target itself.  Rewriting history in place is
never allowed: a rebase that would drop target messages requires
``create_branch``.

Usage
-----
::

    from chat_session_store.branching import MergeOptions, MergeType, execute_merge

    merged, result = execute_merge(
        target,
        source,
        MergeOptions(type=MergeType.CONTINUATION, create_branch=True, branch_name="combined"),
    )
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field

from chat_session_store.errors import MergeError, SessionValidationError
from chat_session_store.session.message import Message, new_id, utcnow
from chat_session_store.session.state import Session

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Options and result
# ---------------------------------------------------------------------------


class MergeType(str, Enum):
    """Available merge strategies."""

    CONTINUATION = "continuation"
    REBASE = "rebase"
    CHERRY_PICK = "cherry-pick"


class MergeOptions(BaseModel):
    """Parameters for a merge.

    Parameters
    ----------
    type:
        Strategy to run.
    source_id:
        Session providing messages.  Filled in by the backend when empty.
    target_id:
        Session receiving messages.  Filled in by the backend when empty.
    create_branch:
        Write the result to a new branch of the target instead of the
        target itself.
    branch_name:
        Name of the new branch.  Defaults to ``"Merge of <source name>"``.
    merge_point:
        Rebase only: number of leading target messages to keep.  ``None``
        keeps all of them.
    message_indices:
        Cherry-pick only: zero-based source message positions to copy.
    """

    type: MergeType = MergeType.CONTINUATION
    source_id: str = ""
    target_id: str = ""
    create_branch: bool = False
    branch_name: str = ""
    merge_point: int | None = None
    message_indices: list[int] = Field(default_factory=list)

    model_config = {"frozen": False}


class MergeResult(BaseModel):
    """Outcome of a merge.

    Parameters
    ----------
    merged_count:
        Number of source messages written into the result.
    new_branch_id:
        ID of the branch created for the result; empty for in-place merges.
    session_id:
        ID of the session that received the messages.
    merge_type:
        Strategy that ran.
    skipped_count:
        Cherry-picked messages skipped because the target already had them.
    """

    merged_count: int = 0
    new_branch_id: str = ""
    session_id: str = ""
    merge_type: MergeType = MergeType.CONTINUATION
    skipped_count: int = 0


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


@dataclass
class MergePlan:
    """What a strategy wants done, before anything is mutated.

    ``keep`` is how many leading target messages survive; ``incoming`` are
    the source messages to append after them.
    """

    keep: int
    incoming: list[Message] = field(default_factory=list)
    skipped: int = 0


def _same_turn(a: Message, b: Message) -> bool:
    return a.role == b.role and a.content == b.content


def common_prefix_length(left: list[Message], right: list[Message]) -> int:
    """Return how many leading messages ``left`` and ``right`` share."""
    count = 0
    for a, b in zip(left, right):
        if not _same_turn(a, b):
            break
        count += 1
    return count


def _plan_continuation(target: Session, source: Session, options: MergeOptions) -> MergePlan:
    return MergePlan(keep=len(target.messages), incoming=list(source.messages))


def _plan_rebase(target: Session, source: Session, options: MergeOptions) -> MergePlan:
    total = len(target.messages)
    keep = total if options.merge_point is None else options.merge_point
    if keep < 0 or keep > total:
        raise SessionValidationError(
            f"Invalid merge point {keep!r}: target {target.id!r} has {total} messages."
        )
    divergence = common_prefix_length(target.messages[:keep], source.messages)
    incoming = list(source.messages[divergence:])
    if not incoming:
        raise MergeError(
            f"Nothing to rebase: source {source.id!r} has no messages beyond "
            f"the {divergence} it shares with target {target.id!r}."
        )
    logger.debug(
        "rebase: keeping %d target messages, source diverges at %d", keep, divergence
    )
    return MergePlan(keep=keep, incoming=incoming)


def _plan_cherry_pick(target: Session, source: Session, options: MergeOptions) -> MergePlan:
    indices = options.message_indices
    if not indices:
        raise MergeError("Cherry-pick requires at least one source message index.")
    total = len(source.messages)
    seen: set[int] = set()
    for index in indices:
        if index < 0 or index >= total:
            raise SessionValidationError(
                f"Invalid message index {index!r}: source {source.id!r} has {total} messages."
            )
        if index in seen:
            raise SessionValidationError(f"Message index {index!r} selected more than once.")
        seen.add(index)

    incoming: list[Message] = []
    skipped = 0
    for index in indices:
        candidate = source.messages[index]
        if any(_same_turn(candidate, existing) for existing in target.messages):
            skipped += 1
            continue
        incoming.append(candidate)
    return MergePlan(keep=len(target.messages), incoming=incoming, skipped=skipped)


_STRATEGIES: dict[MergeType, Callable[[Session, Session, MergeOptions], MergePlan]] = {
    MergeType.CONTINUATION: _plan_continuation,
    MergeType.REBASE: _plan_rebase,
    MergeType.CHERRY_PICK: _plan_cherry_pick,
}


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def can_merge(target: Session, source: Session) -> None:
    """Raise ``MergeError`` if ``source`` cannot be merged into ``target``."""
    if target.id == source.id:
        raise MergeError(f"Cannot merge session {target.id!r} with itself.")


def execute_merge(
    target: Session, source: Session, options: MergeOptions
) -> tuple[Session, MergeResult]:
    """Merge ``source`` into ``target`` in memory.

    Parameters
    ----------
    target:
        Session receiving messages.  Mutated in place unless
        ``options.create_branch`` is set, in which case only its
        ``child_ids`` change.
    source:
        Session providing messages.  Never mutated.
    options:
        Strategy and branch settings.

    Returns
    -------
    tuple[Session, MergeResult]
        The session holding the merged history (``target`` itself or the
        new branch) and a summary of the merge.

    Raises
    ------
    MergeError
        If the strategy's preconditions are not met.
    SessionValidationError
        If an index or merge point is out of range.
    """
    can_merge(target, source)
    strategy = _STRATEGIES[MergeType(options.type)]
    plan = strategy(target, source, options)

    if not options.create_branch and plan.keep != len(target.messages):
        raise MergeError(
            f"Rebase onto the first {plan.keep} of {len(target.messages)} messages would "
            f"rewrite the history of {target.id!r}; use create_branch."
        )

    if options.create_branch:
        name = options.branch_name or f"Merge of {source.name or source.id}"
        merged = target.create_branch(new_id(), name, plan.keep)
    else:
        merged = target

    for message in plan.incoming:
        merged.append_message(message.copy_with_new_id())

    merged.metadata.update(
        {
            "merge_source": source.id,
            "merge_target": target.id,
            "merge_type": MergeType(options.type).value,
            "merged_at": utcnow().isoformat(),
        }
    )
    merged.touch()

    result = MergeResult(
        merged_count=len(plan.incoming),
        new_branch_id=merged.id if options.create_branch else "",
        session_id=merged.id,
        merge_type=MergeType(options.type),
        skipped_count=plan.skipped,
    )
    logger.debug(
        "execute_merge: %s merged %d messages from %r into %r",
        result.merge_type.value,
        result.merged_count,
        source.id,
        merged.id,
    )
    return merged, result
