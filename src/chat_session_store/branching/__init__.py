"""Session merging.

Branch creation lives on ``Session.create_branch``; this subpackage
combines histories once branches have diverged.

Classes
-------
MergeType
    Enum of merge strategies: continuation, rebase, cherry-pick.
MergeOptions
    Strategy and branch settings for a merge.
MergeResult
    Summary of a completed merge.

Functions
---------
execute_merge
    Run a merge in memory.
can_merge
    Check the preconditions shared by every strategy.
"""
from __future__ import annotations

from chat_session_store.branching.merge import (
    MergeOptions,
    MergeResult,
    MergeType,
    can_merge,
    execute_merge,
)

__all__ = [
    "MergeOptions",
    "MergeResult",
    "MergeType",
    "can_merge",
    "execute_merge",
]
