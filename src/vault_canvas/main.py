import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from vault_canvas.config import ENV_FILE, Settings, get_settings, reload_settings, set_env_value
from vault_canvas.lib.console import ConsoleNamePrompt, ConsoleNotifier, ConsoleWorkspace
from vault_canvas.models.document import Document
from vault_canvas.services.canvas_store import CanvasStore
from vault_canvas.services.layout import LayoutEngine
from vault_canvas.services.links import VaultLinkResolver
from vault_canvas.services.transform import CanvasTransformer
from vault_canvas.services.traversal import TraversalSession, TraversalStateError
from vault_canvas.services.vault import VaultService

logger = logging.getLogger(__name__)

APP_HELP = """
vcanvas: Turn linked vault notes into canvas diagrams.

COMMANDS:
- traverse:  Walk the link graph outward from a seed note. Each discovered note
             is shown in turn; 'add' keeps it and queues its links and
             backlinks, 'ignore' skips it. When nothing is left to review you
             name the canvas, and every kept note is laid out on a grid next to
             one text node holding their combined content.
- transform: Build a star canvas around one note: backlinks on the left,
             outbound links on the right. An existing canvas is reused.
- links:     Show a note's outbound links and backlinks.
"""

app = typer.Typer(name="vcanvas", help=APP_HELP, no_args_is_help=True)
config_app = typer.Typer(name="config", help="Show and change settings.")
app.add_typer(config_app, name="config")

console = Console()
state = {"vault": None}


def _settings() -> Settings:
    settings = get_settings()
    if state["vault"] is not None:
        settings = settings.model_copy(update={"vault_path": Path(state["vault"]).expanduser().resolve()})
    return settings


def _load_document(vault: VaultService, document_path: str) -> Document:
    try:
        return vault.get_document(document_path)
    except (ValueError, FileNotFoundError) as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(code=1)


@app.callback()
def main(
    vault: Optional[Path] = typer.Option(None, "--vault", help="Vault root (overrides VCANVAS_VAULT_PATH)."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr."),
):
    """
    vcanvas: vault notes to canvas diagrams.
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    state["vault"] = vault


@app.command("traverse")
def traverse(
    seed: str = typer.Argument(..., help="Vault-relative path of the note to start from (e.g. 'Home.md')"),
):
    """
    Review linked notes one by one, then write the kept ones to a new canvas.

    Answer 'add' to keep the shown note (its links and backlinks are queued
    behind the notes already waiting) or 'ignore' to skip it. The session ends
    when the queue is empty: enter a canvas name to write it, or press Ctrl-C at
    the name prompt to leave without writing.
    """
    settings = _settings()
    try:
        canvas = asyncio.run(_run_traversal(settings, seed))
    except TraversalStateError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(code=1)

    if canvas:
        console.print(f"[bold green]CREATED:[/bold green] {canvas}")
    else:
        console.print("[yellow]No canvas written.[/yellow]")


async def _run_traversal(settings: Settings, seed_path: str) -> Optional[str]:
    vault = VaultService(settings)
    seed = _load_document(vault, seed_path)
    resolver = VaultLinkResolver(vault)
    session = TraversalSession(
        resolver=resolver,
        layout=LayoutEngine(resolver, vault, settings),
        sink=CanvasStore(settings),
        prompt=ConsoleNamePrompt(console),
        notifier=ConsoleNotifier(console),
        workspace=ConsoleWorkspace(console, vault),
        settings=settings,
    )

    console.print(f"[bold]Seeded at[/bold] {seed.path}")
    candidate = await session.add_note(seed)
    while candidate is not None:
        choice = Prompt.ask("Keep this note?", choices=["add", "ignore"], default="add", console=console)
        if choice == "add":
            candidate = await session.add_note(candidate)
        else:
            candidate = await session.ignore_note(candidate)
    return session.last_canvas_path


@app.command("transform")
def transform(
    note: str = typer.Argument(..., help="Vault-relative path of the note to transform"),
):
    """
    Transform a note into a star canvas named '<note> Canvas'.
    """
    settings = _settings()
    path = asyncio.run(_run_transform(settings, note))
    if path is None:
        raise typer.Exit(code=1)


async def _run_transform(settings: Settings, note_path: str) -> Optional[str]:
    vault = VaultService(settings)
    document = _load_document(vault, note_path)
    resolver = VaultLinkResolver(vault)
    transformer = CanvasTransformer(
        layout=LayoutEngine(resolver, vault, settings),
        sink=CanvasStore(settings),
        notifier=ConsoleNotifier(console),
        workspace=ConsoleWorkspace(console, vault),
        settings=settings,
    )
    return await transformer.transform(document)


@app.command("links")
def links(
    note: str = typer.Argument(..., help="Vault-relative path of the note"),
):
    """
    Show a note's outbound links and backlinks.
    """
    settings = _settings()
    vault = VaultService(settings)
    document = _load_document(vault, note)
    neighbors = asyncio.run(VaultLinkResolver(vault).resolve_neighbors(document))

    table = Table(title=f"Links of {document.path}")
    table.add_column("Direction", style="cyan")
    table.add_column("Note")
    for linked in neighbors.outbound:
        table.add_row("outbound", linked.path)
    for linked in neighbors.inbound:
        table.add_row("inbound", linked.path)
    console.print(table)
    console.print(f"[dim]Degree: {neighbors.degree}[/dim]")


@config_app.command("show")
def config_show():
    """
    Print the effective settings.
    """
    settings = _settings()
    table = Table(title="vcanvas settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for field_name in Settings.model_fields:
        table.add_row(field_name, str(getattr(settings, field_name)))
    console.print(table)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Setting name, e.g. 'node_width' or 'VCANVAS_NODE_WIDTH'"),
    value: str = typer.Argument(..., help="New value"),
):
    """
    Save a setting to ~/.vcanvas/.env.

    Examples:
        vcanvas config set canvas_folder Maps
        vcanvas config set excluded_sections "Log, Scratch"
    """
    try:
        env_path = set_env_value(key, value, ENV_FILE)
        reload_settings()
    except ValueError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Saved {key} to {env_path}[/green]")


if __name__ == "__main__":
    app()
