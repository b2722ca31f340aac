"""Terminal implementations of the operator-facing ports."""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt

from ..models.document import Document
from ..services.interfaces import IContentStore, INamePrompt, INotifier, IWorkspace
from ..services.sections import truncate_at_second_heading

logger = logging.getLogger(__name__)

EMPTY_NAME_MESSAGE = "File name cannot be empty"


def clean_name_input(raw: Optional[str]) -> Optional[str]:
    """Trimmed name, or None when nothing usable was typed."""
    cleaned = (raw or "").strip()
    return cleaned or None


class ConsoleNamePrompt(INamePrompt):
    """Ask for the canvas name until a non-empty one is given; Ctrl-C/EOF cancels."""

    def __init__(self, console: Console) -> None:
        self.console = console

    async def request_name(self) -> Optional[str]:
        while True:
            try:
                raw = Prompt.ask("[bold]Enter the file name[/bold]", console=self.console, default="")
            except (EOFError, KeyboardInterrupt):
                self.console.print("[dim]Cancelled.[/dim]")
                return None
            name = clean_name_input(raw)
            if name:
                return name
            self.console.print(f"[yellow]{EMPTY_NAME_MESSAGE}[/yellow]")


class ConsoleNotifier(INotifier):
    def __init__(self, console: Console) -> None:
        self.console = console

    def notify(self, message: str) -> None:
        self.console.print(f"[cyan]{message}[/cyan]")


class ConsoleWorkspace(IWorkspace):
    """Show documents as a Markdown preview panel and report opened canvases."""

    def __init__(self, console: Console, content_store: IContentStore) -> None:
        self.console = console
        self.content_store = content_store

    async def open_document(self, document: Document) -> None:
        try:
            content = await self.content_store.read_content(document)
        except Exception as exc:
            logger.warning("Preview unavailable", extra={"document": document.path, "error": str(exc)})
            content = ""
        preview = truncate_at_second_heading(content) or "_(empty)_"
        self.console.print(Panel(Markdown(preview), title=document.path, border_style="blue"))

    async def open_canvas(self, path: str) -> None:
        self.console.print(f"[bold green]Canvas ready:[/bold green] {path}")


__all__ = ["ConsoleNamePrompt", "ConsoleNotifier", "ConsoleWorkspace", "clean_name_input"]
