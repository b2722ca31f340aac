"""Transform a single document into a star canvas."""

from __future__ import annotations

import logging
from typing import Optional

from ..config import Settings, get_settings
from ..models.document import Document
from .canvas_store import CanvasWriteError, canvas_path
from .interfaces import ICanvasSink, INotifier, IWorkspace
from .layout import LayoutEngine

logger = logging.getLogger(__name__)


def star_canvas_name(document: Document) -> str:
    return f"{document.basename} Canvas"


class CanvasTransformer:
    """The "Transform Note to Canvas" command."""

    def __init__(
        self,
        layout: LayoutEngine,
        sink: ICanvasSink,
        notifier: INotifier,
        workspace: IWorkspace,
        settings: Settings | None = None,
    ) -> None:
        self.layout = layout
        self.sink = sink
        self.notifier = notifier
        self.workspace = workspace
        self.settings = settings or get_settings()

    async def transform(self, document: Optional[Document]) -> Optional[str]:
        """
        Open the star canvas for ``document``, building it first if it does not exist.

        Returns the canvas path, or None when there is no active document or the
        write failed.
        """
        if document is None:
            self.notifier.notify("No active note to transform.")
            return None

        folder = self.settings.canvas_folder
        try:
            path = canvas_path(folder, star_canvas_name(document))
            if await self.sink.exists(path):
                logger.info("Canvas already exists, opening", extra={"canvas": path})
                await self.workspace.open_canvas(path)
                return path

            canvas = await self.layout.build_star(document)
            await self.sink.ensure_folder(folder)
            await self.sink.overwrite(path, canvas)
        except CanvasWriteError as exc:
            logger.error("Canvas write failed", extra={"document": document.path, "error": exc.message})
            self.notifier.notify(f"Could not create canvas: {exc.message}")
            return None

        await self.workspace.open_canvas(path)
        return path


__all__ = ["CanvasTransformer", "star_canvas_name"]
