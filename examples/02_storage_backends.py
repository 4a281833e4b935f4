#!/usr/bin/env python3
"""Example: Storage Backends

Demonstrates saving and restoring the same session through the
in-memory, filesystem, and SQLite storage backends, each selected by
type name through the backend registry.

Usage:
    python examples/02_storage_backends.py

Requirements:
    pip install chat-session-store
"""
from __future__ import annotations

import tempfile
from pathlib import Path

import chat_session_store
from chat_session_store import StorageBackend, StorageConfig, builtin_registry


def demo_backend(label: str, backend: StorageBackend) -> None:
    session = backend.new_session(f"{label} demo")
    session.add_message("user", "Is the deployment pipeline green?")
    session.add_message("assistant", "Yes, the last three runs passed.")
    backend.save_session(session)
    loaded = backend.load_session(session.id)
    print(f"  [{label}] {backend!r}: saved + loaded {len(loaded.messages)} messages")


def main() -> None:
    print(f"chat-session-store version: {chat_session_store.__version__}")
    registry = builtin_registry()
    print(f"Registered backends: {', '.join(registry.list_backends())}")

    with tempfile.TemporaryDirectory() as tmpdir:
        configs = [
            StorageConfig(type="memory"),
            StorageConfig(type="filesystem", settings={"base_dir": str(Path(tmpdir) / "sessions")}),
            StorageConfig(type="sqlite", settings={"db_path": str(Path(tmpdir) / "sessions.db")}),
        ]
        for config in configs:
            with registry.create(config) as backend:
                demo_backend(config.type, backend)


if __name__ == "__main__":
    main()
