#!/usr/bin/env python3
"""Example: Branching and Merging

Branches a conversation to explore an alternative answer, renders the
branch tree, then folds the alternative back into a new merge branch.

Usage:
    python examples/03_branching_and_merge.py

Requirements:
    pip install chat-session-store
"""
from __future__ import annotations

import sys

from chat_session_store import BranchTree, InMemoryBackend, MergeOptions, MergeType


def print_tree(tree: BranchTree) -> None:
    for depth, node in tree.walk():
        print(f"{'  ' * depth}- {node.session.name} ({node.session.message_count} messages)")


def main() -> None:
    backend = InMemoryBackend()

    main_session = backend.new_session("architecture")
    main_session.add_message("user", "Should we use a message queue?")
    main_session.add_message("assistant", "Yes, Kafka fits the throughput needs.")
    backend.save_session(main_session)

    # Branch after the question and try a different answer.
    alt = backend.create_branch(main_session.id, "lighter option", 1)
    alt.add_message("assistant", "A Redis stream may be enough at this scale.")
    backend.save_session(alt)

    print("Branch tree:")
    print_tree(backend.get_branch_tree(main_session.id))

    # Rebase the alternative onto the question only, as a new branch.
    result = backend.merge_sessions(
        main_session.id,
        alt.id,
        MergeOptions(
            type=MergeType.REBASE,
            merge_point=1,
            create_branch=True,
            branch_name="rebased alternative",
        ),
    )
    print(f"\nRebase replayed {result.merged_count} message(s) into {result.new_branch_id}")

    print("\nBranch tree after merge:")
    print_tree(backend.get_branch_tree(main_session.id))

    print("\nMarkdown export of the merged branch:\n")
    backend.export_session(result.new_branch_id, "markdown", sys.stdout)


if __name__ == "__main__":
    main()
