"""CLI entry point for drawvault."""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from datetime import datetime
from pathlib import Path
from typing import Annotated, TypeVar

import typer
import yaml
from rich import print as rprint
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from drawvault.config import AutoCommitConfig, DrawVaultConfig, GitConfig, load_config
from drawvault.config.loader import DEFAULT_CONFIG_TEMPLATE
from drawvault.errors import NotFoundError, StoreError
from drawvault.logging_config import setup_logging
from drawvault.store import DocumentEntry, DocumentStore
from drawvault.vcs import create_bridge

T = TypeVar("T")

app = typer.Typer(
    name="drawvault",
    help="Drawings in a folder tree, versioned with git.",
)

config_app = typer.Typer(help="Manage drawvault configuration.")
app.add_typer(config_app, name="config")

settings_app = typer.Typer(help="Per-root settings: git identity, auto-commit, theme.")
app.add_typer(settings_app, name="settings")

# Global state
_config: DrawVaultConfig | None = None


def _get_config() -> DrawVaultConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to drawvault.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    setup_logging(_config.log_level, _config.log_format)


def root_path(cfg: DrawVaultConfig) -> Path:
    return Path(cfg.store.data_dir).expanduser() / cfg.store.root_name


def build_store(cfg: DrawVaultConfig) -> DocumentStore:
    """Compose a DocumentStore for the configured root."""
    root = root_path(cfg)
    return DocumentStore(root, create_bridge(cfg.vcs, root))


def _run(action: Callable[[DocumentStore], Awaitable[T]]) -> T:
    """Initialize a store, run ``action`` on it, and map store errors to exit 1."""
    cfg = _get_config()

    async def _main() -> T:
        store = build_store(cfg)
        await store.initialize()
        return await action(store)

    try:
        return asyncio.run(_main())
    except (StoreError, ValueError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _lookup(store: DocumentStore, path: str) -> DocumentEntry:
    entry = store.tree.get(path)
    if entry is None:
        raise NotFoundError(path)
    return entry


def _render_tree(store: DocumentStore) -> Tree:
    tree = Tree(f"[bold]{store.root.name}[/bold] ({len(store.tree)} entries)")

    def _add(node: Tree, parent: str | None) -> None:
        for child in store.tree.children_of(parent):
            if child.is_folder:
                _add(node.add(f"[blue]{child.name}/[/blue]"), child.path)
            else:
                node.add(f"[green]{child.name}[/green]")

    _add(tree, None)
    return tree


# ---------------------------------------------------------------------------
# Tree commands
# ---------------------------------------------------------------------------


@app.command()
def init() -> None:
    """Create the managed root and its git repository."""

    async def _action(store: DocumentStore) -> int:
        return len(store.tree)

    count = _run(_action)
    rprint(f"[green]Ready:[/green] {root_path(_get_config())} ({count} entries)")


@app.command("ls")
def list_entries() -> None:
    """Show the document tree."""

    async def _action(store: DocumentStore) -> Tree:
        return _render_tree(store)

    rprint(_run(_action))


@app.command()
def new(
    name: str = typer.Argument(..., help="Document name (.drawing is appended)"),
    folder: str | None = typer.Option(None, "--in", help="Parent folder path"),
) -> None:
    """Create an empty drawing."""

    async def _action(store: DocumentStore) -> DocumentEntry:
        return await store.create_document(name, folder)

    entry = _run(_action)
    rprint(f"[green]Created[/green] {entry.path}")


@app.command()
def mkdir(
    name: str = typer.Argument(..., help="Folder name"),
    folder: str | None = typer.Option(None, "--in", help="Parent folder path"),
) -> None:
    """Create a folder."""

    async def _action(store: DocumentStore) -> DocumentEntry:
        return await store.create_folder(name, folder)

    entry = _run(_action)
    rprint(f"[green]Created[/green] {entry.path}/")


@app.command()
def mv(
    path: str = typer.Argument(..., help="Entry to move"),
    target: str | None = typer.Argument(None, help="Destination folder (omit for root)"),
) -> None:
    """Move a document or folder."""

    async def _action(store: DocumentStore) -> DocumentEntry:
        return await store.move_entry(_lookup(store, path), target)

    entry = _run(_action)
    rprint(f"[green]Moved[/green] {path} -> {entry.path}")


@app.command()
def rename(
    path: str = typer.Argument(..., help="Entry to rename"),
    new_name: str = typer.Argument(..., help="New name"),
) -> None:
    """Rename a document or folder in place."""

    async def _action(store: DocumentStore) -> DocumentEntry:
        return await store.rename_entry(_lookup(store, path), new_name)

    entry = _run(_action)
    rprint(f"[green]Renamed[/green] {path} -> {entry.path}")


@app.command()
def rm(
    path: str = typer.Argument(..., help="Entry to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete a document, or a folder with everything in it."""
    if not yes:
        typer.confirm(f"Delete {path}? This cannot be undone here", abort=True)

    async def _action(store: DocumentStore) -> list[DocumentEntry]:
        return await store.delete_entry(_lookup(store, path))

    removed = _run(_action)
    rprint(f"[green]Deleted[/green] {path} ({len(removed)} entries)")


# ---------------------------------------------------------------------------
# Document commands
# ---------------------------------------------------------------------------


@app.command()
def show(path: str = typer.Argument(..., help="Document path")) -> None:
    """Print a drawing's elements."""

    async def _action(store: DocumentStore) -> list:
        return await store.open_document(_lookup(store, path))

    payload = _run(_action)
    rprint(Syntax(json.dumps(payload, indent=2), "json"))


@app.command()
def write(
    path: str = typer.Argument(..., help="Document path"),
    source: str = typer.Argument("-", help="JSON file with the element array ('-' for stdin)"),
) -> None:
    """Replace a drawing's elements; auto-commits when the policy says so."""
    raw = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        rprint(f"[red]Error:[/red] invalid JSON: {e}")
        raise typer.Exit(1)
    if not isinstance(payload, list):
        rprint("[red]Error:[/red] expected a JSON array of elements")
        raise typer.Exit(1)

    async def _action(store: DocumentStore) -> str | None:
        await store.open_document(_lookup(store, path))
        return await store.write_payload(payload)

    commit_id = _run(_action)
    rprint(f"[green]Saved[/green] {path} ({len(payload)} elements)")
    if commit_id:
        rprint(f"[dim]Auto-committed {commit_id[:8]}[/dim]")


@app.command()
def commit(
    path: str | None = typer.Argument(None, help="Document to commit (omit for everything)"),
    message: str = typer.Option(..., "--message", "-m", help="Commit message"),
) -> None:
    """Commit a document, or every change under the root."""

    async def _action(store: DocumentStore) -> str:
        if path:
            await store.open_document(_lookup(store, path))
        return await store.commit_changes(message)

    commit_id = _run(_action)
    rprint(f"[green]Committed[/green] {commit_id[:8]}")


@app.command()
def history(path: str = typer.Argument(..., help="Document path")) -> None:
    """List the commits that touched a document."""

    async def _action(store: DocumentStore) -> list:
        return await store.list_history(_lookup(store, path))

    entries = _run(_action)
    if not entries:
        rprint(f"[yellow]No history for {path}.[/yellow]")
        raise typer.Exit(0)
    table = Table(title=f"History of {path} ({len(entries)})")
    table.add_column("Commit", style="cyan")
    table.add_column("Date")
    table.add_column("Author", style="green")
    table.add_column("Message")
    for h in entries:
        when = datetime.fromtimestamp(h.timestamp).strftime("%Y-%m-%d %H:%M")
        table.add_row(h.commit_id[:8], when, h.author, h.message)
    rprint(table)


@app.command()
def restore(
    path: str = typer.Argument(..., help="Document path"),
    commit_id: str = typer.Argument(..., help="Commit to restore from"),
) -> None:
    """Restore a document to an earlier commit (left uncommitted)."""

    async def _action(store: DocumentStore) -> list:
        await store.open_document(_lookup(store, path))
        return await store.restore_version(commit_id)

    payload = _run(_action)
    rprint(f"[green]Restored[/green] {path} ({len(payload)} elements)")


# ---------------------------------------------------------------------------
# Remote commands
# ---------------------------------------------------------------------------


@app.command()
def keygen(email: str | None = typer.Argument(None, help="Key comment (defaults to git email)")) -> None:
    """Generate an SSH key pair for the git remote."""

    async def _action(store: DocumentStore):
        return await store.generate_key_pair(email)

    key = _run(_action)
    rprint(f"[green]Private key:[/green] {key.key_path}")
    rprint(key.public_key)


@app.command("test-connection")
def test_connection() -> None:
    """Check that the configured remote is reachable."""

    async def _action(store: DocumentStore) -> bool:
        return await store.test_connection()

    _run(_action)
    rprint("[green]Connection successful![/green]")


@app.command()
def push() -> None:
    """Push committed history to the configured remote."""

    async def _action(store: DocumentStore) -> str:
        return await store.push()

    rprint(f"[green]{_run(_action)}[/green]")


# ---------------------------------------------------------------------------
# Config & settings
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default drawvault.yaml in current directory."""
    target = Path("drawvault.yaml")
    if target.exists() and not force:
        rprint("[yellow]drawvault.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


@settings_app.command("show")
def settings_show() -> None:
    """Show the settings stored in the managed root."""

    async def _action(store: DocumentStore) -> dict:
        return store.settings.model_dump(by_alias=True)

    rprint(Syntax(json.dumps(_run(_action), indent=2), "json"))


@settings_app.command("git")
def settings_git(
    remote_url: str | None = typer.Option(None, "--remote-url", help="Remote URL ('' for local-only)"),
    username: str | None = typer.Option(None, "--username"),
    email: str | None = typer.Option(None, "--email"),
) -> None:
    """Update git identity and remote."""

    async def _action(store: DocumentStore) -> None:
        current = store.settings.git_config
        updates = {"remote_url": remote_url, "username": username, "email": email}
        git = current.model_copy(update={k: v for k, v in updates.items() if v is not None})
        await store.update_git_config(GitConfig.model_validate(git.model_dump()))

    _run(_action)
    rprint("[green]Git settings saved[/green]")


@settings_app.command("autocommit")
def settings_autocommit(
    enabled: bool | None = typer.Option(None, "--enable/--disable", help="Turn auto-commit on or off"),
    interval: int | None = typer.Option(None, "--interval", help="Minutes between commits"),
    message: str | None = typer.Option(None, "--message", help="Commit message"),
) -> None:
    """Update the auto-commit policy."""

    async def _action(store: DocumentStore) -> AutoCommitConfig:
        data = store.settings.auto_commit_config.model_dump()
        updates = {"enabled": enabled, "interval": interval, "message": message}
        data.update({k: v for k, v in updates.items() if v is not None})
        settings = await store.update_auto_commit_config(AutoCommitConfig.model_validate(data))
        return settings.auto_commit_config

    cfg = _run(_action)
    state = "on" if cfg.enabled else "off"
    rprint(f"[green]Auto-commit {state}[/green] (every {cfg.interval} min, {cfg.message!r})")


@settings_app.command("theme")
def settings_theme(
    theme: str = typer.Argument("toggle", help="light | dark | system | toggle"),
) -> None:
    """Set or toggle the UI theme."""

    async def _action(store: DocumentStore) -> str:
        if theme == "toggle":
            return await store.toggle_theme()
        return (await store.set_theme(theme)).theme

    rprint(f"[green]Theme:[/green] {_run(_action)}")
