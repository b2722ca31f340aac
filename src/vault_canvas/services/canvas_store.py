"""Persist canvases inside the vault."""

from __future__ import annotations

import asyncio
import logging
import posixpath
from pathlib import Path

from ..config import Settings, get_settings
from ..models.canvas import Canvas
from .interfaces import ICanvasSink
from .vault import INVALID_PATH_CHARS, sanitize_path

logger = logging.getLogger(__name__)

CANVAS_SUFFIX = ".canvas"


class CanvasWriteError(Exception):
    """A canvas could not be written (collision, invalid name or filesystem failure)."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


def canvas_path(folder: str, name: str) -> str:
    """
    Vault-relative path of the canvas called ``name`` in ``folder``.

    Raises CanvasWriteError for names that are empty or not a single file name.
    """
    cleaned = (name or "").strip()
    if not cleaned:
        raise CanvasWriteError("Canvas name cannot be empty")
    if "/" in cleaned or "\\" in cleaned or cleaned in {".", ".."}:
        raise CanvasWriteError(f"Canvas name must not contain path separators: {cleaned}")
    if any(char in INVALID_PATH_CHARS for char in cleaned):
        raise CanvasWriteError(f"Canvas name contains invalid characters: {cleaned}")
    file_name = cleaned if cleaned.endswith(CANVAS_SUFFIX) else f"{cleaned}{CANVAS_SUFFIX}"
    folder = (folder or "").strip().strip("/")
    return posixpath.join(folder, file_name) if folder else file_name


class CanvasStore(ICanvasSink):
    """Write canvas files under the vault root."""

    def __init__(self, settings: Settings | None = None, *, root: Path | None = None) -> None:
        self.settings = settings or get_settings()
        self.root = (root or self.settings.vault_path).resolve()

    def _absolute(self, path: str) -> Path:
        try:
            return sanitize_path(self.root, path)
        except ValueError as exc:
            raise CanvasWriteError(str(exc), path=path) from exc

    async def exists(self, path: str) -> bool:
        return self._absolute(path).exists()

    async def ensure_folder(self, folder: str) -> None:
        if not folder:
            return
        absolute = self._absolute(folder)
        try:
            await asyncio.to_thread(absolute.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            raise CanvasWriteError(f"Could not create folder '{folder}': {exc}", path=folder) from exc

    async def create(self, path: str, canvas: Canvas) -> str:
        absolute = self._absolute(path)
        payload = canvas.to_json()
        try:
            await asyncio.to_thread(self._write, absolute, payload, "x")
        except FileExistsError as exc:
            raise CanvasWriteError(f"Canvas already exists: {path}", path=path) from exc
        except OSError as exc:
            raise CanvasWriteError(f"Could not write canvas '{path}': {exc}", path=path) from exc
        logger.info("Canvas created", extra={"canvas": path, "nodes": len(canvas.nodes)})
        return path

    async def overwrite(self, path: str, canvas: Canvas) -> str:
        absolute = self._absolute(path)
        payload = canvas.to_json()
        try:
            await asyncio.to_thread(self._write, absolute, payload, "w")
        except OSError as exc:
            raise CanvasWriteError(f"Could not write canvas '{path}': {exc}", path=path) from exc
        logger.info("Canvas written", extra={"canvas": path, "nodes": len(canvas.nodes)})
        return path

    def read(self, path: str) -> Canvas:
        """Load a canvas file."""
        absolute = self._absolute(path)
        return Canvas.from_json(absolute.read_text(encoding="utf-8"))

    @staticmethod
    def _write(absolute: Path, payload: str, mode: str) -> None:
        absolute.parent.mkdir(parents=True, exist_ok=True)
        with open(absolute, mode, encoding="utf-8") as handle:
            handle.write(payload)


__all__ = ["CanvasStore", "CanvasWriteError", "canvas_path", "CANVAS_SUFFIX"]
