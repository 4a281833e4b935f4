"""CLI entry point for chat-session-store.

Invoked as::

    chat-sessions [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m chat_session_store.cli.main

Commands
--------
- version   — Show version information
- backends  — List registered storage backends
- new       — Create and persist a new session
- add       — Append a message to a session
- list      — List all stored sessions
- show      — Display a session
- delete    — Delete a session
- search    — Search across all sessions
- export    — Export a session as JSON, Markdown, or YAML
- branch    — Branch a session at a message index
- children  — List the direct branches of a session
- tree      — Show the branch tree rooted at a session
- merge     — Merge one session into another
"""
from __future__ import annotations

import functools
import io
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from chat_session_store.config import StorageConfig
from chat_session_store.errors import StorageError
from chat_session_store.session.state import BranchTree, SessionInfo
from chat_session_store.storage.base import StorageBackend
from chat_session_store.storage.registry import builtin_registry

console = Console()

F = TypeVar("F", bound=Callable[..., Any])


# ---------------------------------------------------------------------------
# Storage backend factory
# ---------------------------------------------------------------------------


def _make_backend(
    storage: str | None,
    db_path: str | None,
    storage_dir: str | None,
    config_path: str | None = None,
) -> StorageBackend:
    """Instantiate the requested storage backend.

    Command-line options override the config file; with neither, the
    filesystem backend in its default directory is used.

    Parameters
    ----------
    storage:
        Backend type name: ``"memory"``, ``"filesystem"``, or ``"sqlite"``.
    db_path:
        Path to the SQLite database (used when the type is ``"sqlite"``).
    storage_dir:
        Directory for the filesystem backend.
    config_path:
        Optional YAML file holding a ``storage:`` section.

    Returns
    -------
    StorageBackend
        A configured storage backend instance.
    """
    config = StorageConfig.from_yaml(config_path) if config_path else StorageConfig()
    if storage:
        config = StorageConfig(type=storage, settings=dict(config.settings) if storage == config.type else {})
    if storage_dir:
        config.settings["base_dir"] = storage_dir
    if db_path:
        config.settings["db_path"] = db_path
    return builtin_registry().create(config)


def _backend(ctx: click.Context) -> StorageBackend:
    return ctx.obj["backend"]


def _handle_errors(func: F) -> F:
    """Print storage errors in red and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except StorageError as exc:
            console.print(f"[red]Error:[/red] {escape(str(exc))}")
            sys.exit(1)

    return wrapper  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="chat-session-store")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="YAML file with a 'storage:' section.",
)
@click.option(
    "--storage",
    default=None,
    type=click.Choice(["memory", "filesystem", "sqlite"], case_sensitive=False),
    help="Storage backend to use (default: filesystem).",
)
@click.option("--storage-dir", default=None, help="Directory for the filesystem backend.")
@click.option("--db-path", default=None, help="Path to SQLite database (sqlite backend).")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    storage: str | None,
    storage_dir: str | None,
    db_path: str | None,
    verbose: bool,
) -> None:
    """Persist, branch, merge, and search LLM chat sessions."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )
    ctx.ensure_object(dict)
    if ctx.invoked_subcommand in ("version", "backends"):
        return
    try:
        ctx.obj["backend"] = _make_backend(storage, db_path, storage_dir, config_path)
    except (StorageError, OSError, ValueError) as exc:
        console.print(f"[red]Cannot open storage:[/red] {escape(str(exc))}")
        sys.exit(1)


# ---------------------------------------------------------------------------
# version / backends
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show version information."""
    from chat_session_store import __version__

    console.print(f"[bold]chat-session-store[/bold] v{__version__}")


@cli.command(name="backends")
def backends_command() -> None:
    """List registered storage backends."""
    registry = builtin_registry()
    registry.load_entrypoints()
    console.print("[bold]Registered storage backends:[/bold]")
    for name in registry.list_backends():
        console.print(f"  {name}")


# ---------------------------------------------------------------------------
# Session CRUD
# ---------------------------------------------------------------------------


@cli.command(name="new")
@click.argument("name")
@click.option("--tag", "tags", multiple=True, help="Tag to attach (repeatable).")
@click.option("--system-prompt", default=None, help="System prompt for the conversation.")
@click.option("--model", default=None, help="Model as PROVIDER/MODEL, e.g. openai/gpt-4o.")
@click.pass_context
@_handle_errors
def new_command(
    ctx: click.Context,
    name: str,
    tags: tuple[str, ...],
    system_prompt: str | None,
    model: str | None,
) -> None:
    """Create and persist a new session called NAME.

    Prints the new session ID on success.
    """
    backend = _backend(ctx)
    session = backend.new_session(name)
    for tag in tags:
        session.add_tag(tag)
    if system_prompt:
        session.set_system_prompt(system_prompt)
    if model:
        provider, _, model_name = model.partition("/")
        if not model_name:
            provider, model_name = "", provider
        session.set_model(provider, model_name)
    backend.save_session(session)
    console.print(f"[green]Session created:[/green] {session.id}")


@cli.command(name="add")
@click.argument("session_id")
@click.argument("role", type=click.Choice(["user", "assistant", "system"]))
@click.argument("content")
@click.pass_context
@_handle_errors
def add_command(ctx: click.Context, session_id: str, role: str, content: str) -> None:
    """Append a ROLE message with CONTENT to SESSION_ID."""
    backend = _backend(ctx)
    session = backend.load_session(session_id)
    message = session.add_message(role, content)
    backend.save_session(session)
    console.print(
        f"[green]Added message[/green] {message.id} "
        f"(#{len(session.messages) - 1}) to {session_id}"
    )


def _sessions_table(title: str, infos: list[SessionInfo]) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("Session ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Messages", justify="right")
    table.add_column("Model")
    table.add_column("Branch")
    table.add_column("Tags")
    table.add_column("Updated")
    for info in infos:
        branch = info.branch_name if info.is_branch else ""
        if info.child_count:
            branch = f"{branch} (+{info.child_count})".strip()
        table.add_row(
            info.id,
            escape(info.name),
            str(info.message_count),
            "/".join(part for part in (info.provider, info.model) if part),
            escape(branch),
            escape(", ".join(info.tags)),
            info.updated.strftime("%Y-%m-%d %H:%M"),
        )
    return table


@cli.command(name="list")
@click.option("--limit", default=50, show_default=True, help="Maximum sessions to show.")
@click.pass_context
@_handle_errors
def list_command(ctx: click.Context, limit: int) -> None:
    """List all sessions in the storage backend."""
    infos = _backend(ctx).list_sessions()
    if not infos:
        console.print("[yellow]No sessions found.[/yellow]")
        return
    console.print(_sessions_table("Sessions", infos[:limit]))
    console.print(f"\n[dim]Showing {min(limit, len(infos))} of {len(infos)} sessions.[/dim]")


@cli.command(name="show")
@click.argument("session_id")
@click.option("--json-output", is_flag=True, help="Output raw JSON instead of formatted view.")
@click.pass_context
@_handle_errors
def show_command(ctx: click.Context, session_id: str, json_output: bool) -> None:
    """Load and display a session by SESSION_ID."""
    session = _backend(ctx).load_session(session_id)

    if json_output:
        console.print_json(session.model_dump_json(indent=2))
        return

    conversation = session.conversation
    table = Table(title=f"Session {session.id}", show_lines=True)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("name", escape(session.name))
    table.add_row("messages", str(len(conversation.messages)))
    table.add_row("model", "/".join(p for p in (conversation.provider, conversation.model) if p))
    table.add_row("temperature", str(conversation.temperature))
    table.add_row("tags", escape(", ".join(session.tags)))
    table.add_row("created", session.created.isoformat())
    table.add_row("updated", session.updated.isoformat())
    if session.is_branch():
        table.add_row("parent_id", session.parent_id)
        table.add_row("branch", f"{escape(session.branch_name)} @ {session.branch_point}")
    if session.child_ids:
        table.add_row("children", "\n".join(session.child_ids))
    console.print(table)

    if conversation.system_prompt:
        console.print(Panel(escape(conversation.system_prompt), title="system prompt", expand=False))
    role_styles = {"user": "green", "assistant": "blue", "system": "yellow"}
    for index, message in enumerate(conversation.messages):
        style = role_styles.get(message.role.value, "white")
        header = f"[{style}]{message.role.value.upper()}[/{style}] | #{index}"
        console.print(Panel(escape(message.content), title=header, expand=False))


@cli.command(name="delete")
@click.argument("session_id")
@click.option("--unlink", is_flag=True, help="Also remove the session from its parent's children.")
@click.pass_context
@_handle_errors
def delete_command(ctx: click.Context, session_id: str, unlink: bool) -> None:
    """Delete SESSION_ID."""
    _backend(ctx).delete_session(session_id, unlink=unlink)
    console.print(f"[green]Deleted session[/green] {session_id}")


# ---------------------------------------------------------------------------
# Search / export
# ---------------------------------------------------------------------------


@cli.command(name="search")
@click.argument("query")
@click.pass_context
@_handle_errors
def search_command(ctx: click.Context, query: str) -> None:
    """Search session names, messages, system prompts, and tags for QUERY."""
    results = _backend(ctx).search_sessions(query)
    if not results:
        console.print(f"[yellow]No sessions match {escape(query)!r}.[/yellow]")
        return
    for result in results:
        info = result.session
        console.print(
            f"[bold cyan]{info.id}[/bold cyan] {escape(info.name)} "
            f"[dim]({result.match_count()} matches)[/dim]"
        )
        for match in result.matches:
            where = match.type.value
            if match.message_index >= 0:
                where = f"{where} #{match.message_index} ({match.role})"
            console.print(f"  [green]{where}[/green]: {escape(match.snippet)}")


@cli.command(name="export")
@click.argument("session_id")
@click.option(
    "--format",
    "fmt",
    default="markdown",
    show_default=True,
    help="Export format: json, markdown, or yaml.",
)
@click.option(
    "--output",
    "output_file",
    default=None,
    type=click.Path(dir_okay=False, writable=True),
    help="Write to this file instead of stdout.",
)
@click.pass_context
@_handle_errors
def export_command(
    ctx: click.Context, session_id: str, fmt: str, output_file: str | None
) -> None:
    """Export SESSION_ID."""
    backend = _backend(ctx)
    if output_file is None:
        backend.export_session(session_id, fmt, sys.stdout)
        return
    # A failed export must leave an existing output file untouched.
    buffer = io.StringIO()
    backend.export_session(session_id, fmt, buffer)
    Path(output_file).write_text(buffer.getvalue(), encoding="utf-8")
    console.print(f"[green]Exported[/green] {session_id} to {output_file}")


# ---------------------------------------------------------------------------
# Branches
# ---------------------------------------------------------------------------


@cli.command(name="branch")
@click.argument("session_id")
@click.argument("name")
@click.option(
    "--at",
    "message_index",
    type=int,
    default=None,
    help="Number of messages to carry over (default: all).",
)
@click.pass_context
@_handle_errors
def branch_command(
    ctx: click.Context, session_id: str, name: str, message_index: int | None
) -> None:
    """Branch SESSION_ID into a new session called NAME."""
    branch = _backend(ctx).create_branch(session_id, name, message_index)
    console.print(
        f"[green]Created branch[/green] {branch.id} '{escape(name)}' "
        f"with {len(branch.messages)} messages"
    )


@cli.command(name="children")
@click.argument("session_id")
@click.pass_context
@_handle_errors
def children_command(ctx: click.Context, session_id: str) -> None:
    """List the direct branches of SESSION_ID."""
    children = _backend(ctx).get_children(session_id)
    if not children:
        console.print("[yellow]No branches.[/yellow]")
        return
    console.print(_sessions_table(f"Branches of {session_id}", children))


def _render_tree(node: BranchTree, tree: Tree | None = None) -> Tree:
    info = node.session
    label = f"[cyan]{info.id}[/cyan] {escape(info.name)} [dim]({info.message_count} messages)[/dim]"
    branch = Tree(label) if tree is None else tree.add(label)
    for child in node.children:
        _render_tree(child, branch)
    return branch


@cli.command(name="tree")
@click.argument("session_id")
@click.pass_context
@_handle_errors
def tree_command(ctx: click.Context, session_id: str) -> None:
    """Show the branch tree rooted at SESSION_ID."""
    console.print(_render_tree(_backend(ctx).get_branch_tree(session_id)))


@cli.command(name="merge")
@click.argument("target_id")
@click.argument("source_id")
@click.option(
    "--type",
    "merge_type",
    default="continuation",
    show_default=True,
    type=click.Choice(["continuation", "rebase", "cherry-pick"]),
    help="Merge strategy.",
)
@click.option("--create-branch", is_flag=True, help="Write the result to a new branch of TARGET.")
@click.option("--branch-name", default="", help="Name for the new branch.")
@click.option("--merge-point", type=int, default=None, help="Rebase: target messages to keep.")
@click.option(
    "--pick",
    "picks",
    type=int,
    multiple=True,
    help="Cherry-pick: source message index (repeatable).",
)
@click.pass_context
@_handle_errors
def merge_command(
    ctx: click.Context,
    target_id: str,
    source_id: str,
    merge_type: str,
    create_branch: bool,
    branch_name: str,
    merge_point: int | None,
    picks: tuple[int, ...],
) -> None:
    """Merge SOURCE_ID into TARGET_ID."""
    from chat_session_store.branching.merge import MergeOptions, MergeType

    options = MergeOptions(
        type=MergeType(merge_type),
        create_branch=create_branch,
        branch_name=branch_name,
        merge_point=merge_point,
        message_indices=list(picks),
    )
    result = _backend(ctx).merge_sessions(target_id, source_id, options)
    console.print(
        f"[green]Merged {result.merged_count} messages[/green] from {source_id} into {result.session_id}"
    )
    if result.skipped_count:
        console.print(f"[dim]Skipped {result.skipped_count} messages already present.[/dim]")
    if result.new_branch_id:
        console.print(f"[green]Created new branch:[/green] {result.new_branch_id}")


if __name__ == "__main__":
    cli()
