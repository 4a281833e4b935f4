#!/usr/bin/env python3
"""Example: Quickstart — chat-session-store

Minimal working example: create a session, add a few messages, save it
to the filesystem backend, and load it back.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install chat-session-store
"""
from __future__ import annotations

import tempfile

import chat_session_store
from chat_session_store import open_backend


def main() -> None:
    print(f"chat-session-store version: {chat_session_store.__version__}")

    with tempfile.TemporaryDirectory() as tmpdir:
        backend = open_backend({"type": "filesystem", "settings": {"base_dir": tmpdir}})

        # Step 1: Create and fill a session
        session = backend.new_session("Q3 revenue")
        session.set_model("openai", "gpt-4o")
        session.add_tag("finance")
        session.add_message("user", "What was Q3 revenue?")
        session.add_message("assistant", "Q3 revenue was $4.2M, up 12% quarter on quarter.")
        backend.save_session(session)
        print(f"Saved session {session.id} with {len(session.messages)} messages")

        # Step 2: Load it back
        restored = backend.load_session(session.id)
        for message in restored.messages:
            print(f"  {message.role.value}: {message.content}")

        # Step 3: List and search
        for info in backend.list_sessions():
            print(f"Listed: {info.name} ({info.message_count} messages, tags={info.tags})")
        for result in backend.search_sessions("revenue"):
            print(f"Search hit in {result.session.name}: {result.match_count()} matches")


if __name__ == "__main__":
    main()
