"""Test that the quickstart API works for chat-session-store."""
from __future__ import annotations

from pathlib import Path


def test_quickstart_import() -> None:
    import chat_session_store

    assert chat_session_store.__version__ == "0.1.0"


def test_quickstart_save_and_load(tmp_path: Path) -> None:
    from chat_session_store import open_backend

    backend = open_backend({"type": "filesystem", "settings": {"base_dir": str(tmp_path)}})
    session = backend.new_session("scratch")
    session.add_message("user", "hello")
    backend.save_session(session)

    restored = backend.load_session(session.id)
    assert restored.messages[0].content == "hello"


def test_quickstart_branch_and_merge() -> None:
    from chat_session_store import InMemoryBackend, MergeOptions

    backend = InMemoryBackend()
    session = backend.new_session("main")
    session.add_message("user", "question")
    session.add_message("assistant", "answer")
    backend.save_session(session)

    branch = backend.create_branch(session.id, "alternative", 1)
    branch.add_message("assistant", "another answer")
    backend.save_session(branch)

    result = backend.merge_sessions(session.id, branch.id, MergeOptions(create_branch=True))
    assert result.new_branch_id
    assert backend.get_branch_tree(session.id).size() == 3
