"""Interactive breadth-first traversal of the link graph."""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import Deque, Dict, List, Optional, Set

from ..config import Settings, get_settings
from ..models.document import Document
from .canvas_store import CanvasWriteError, canvas_path
from .interfaces import ICanvasSink, ILinkResolver, INamePrompt, INotifier, IWorkspace
from .layout import LayoutEngine

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Lifecycle of a traversal session."""
    IDLE = "idle"
    AWAITING_DECISION = "awaiting_decision"
    FINALIZING = "finalizing"


class TraversalStateError(RuntimeError):
    """A traversal operation was called out of order."""


class TraversalSession:
    """
    Walk outward from a seed document, one keep/discard decision at a time.

    Kept documents are expanded breadth-first: their neighbors join the tail of
    the pending queue unless already pending or kept. When the queue runs dry the
    operator names the canvas, the kept set is laid out on a grid and written,
    and the session returns to idle. A session is one-shot: after finalizing,
    both the pending queue and the kept set are empty.
    """

    def __init__(
        self,
        resolver: ILinkResolver,
        layout: LayoutEngine,
        sink: ICanvasSink,
        prompt: INamePrompt,
        notifier: INotifier,
        workspace: IWorkspace,
        settings: Settings | None = None,
    ) -> None:
        self.resolver = resolver
        self.layout = layout
        self.sink = sink
        self.prompt = prompt
        self.notifier = notifier
        self.workspace = workspace
        self.settings = settings or get_settings()

        self.state = SessionState.IDLE
        self.candidate: Optional[Document] = None
        self.last_canvas_path: Optional[str] = None
        self._pending: Deque[Document] = deque()
        self._pending_paths: Set[str] = set()
        self._accepted: Dict[str, Document] = {}

    @property
    def pending(self) -> List[Document]:
        return list(self._pending)

    @property
    def accepted(self) -> List[Document]:
        return list(self._accepted.values())

    @property
    def remaining(self) -> int:
        return len(self._pending)

    async def start(self, seed: Document) -> Optional[Document]:
        """Begin a session at ``seed`` and keep it. Returns the next candidate, or None when done."""
        if self.state is not SessionState.IDLE:
            raise TraversalStateError("A traversal is already in progress")
        self._reset()
        self.last_canvas_path = None
        self.state = SessionState.AWAITING_DECISION
        self.candidate = seed
        logger.info("Traversal started", extra={"seed": seed.path})
        return await self.keep(seed)

    async def keep(self, document: Document) -> Optional[Document]:
        """Keep the current candidate, enqueue its unseen neighbors and advance."""
        self._require_candidate(document)
        if document.path not in self._accepted:
            self._accepted[document.path] = document
            neighbors = await self.resolver.resolve_neighbors(document)
            for neighbor in neighbors.combined():
                self._enqueue(neighbor)
            logger.info(
                "Document kept",
                extra={"document": document.path, "kept": len(self._accepted), "pending": len(self._pending)},
            )
        return await self._advance()

    async def discard(self, document: Document) -> Optional[Document]:
        """Drop the current candidate without expanding it and advance."""
        self._require_candidate(document)
        logger.info("Document discarded", extra={"document": document.path})
        return await self._advance()

    async def add_note(self, active: Document) -> Optional[Document]:
        """The "Add Note" command: start a session at ``active`` or keep it."""
        if self.state is SessionState.IDLE:
            return await self.start(active)
        return await self.keep(active)

    async def ignore_note(self, active: Document) -> Optional[Document]:
        """The "Ignore Note" command."""
        return await self.discard(active)

    def _require_candidate(self, document: Document) -> None:
        if self.state is not SessionState.AWAITING_DECISION or self.candidate is None:
            raise TraversalStateError("No traversal in progress")
        if document.path != self.candidate.path:
            raise TraversalStateError(
                f"'{document.path}' is not the current candidate ('{self.candidate.path}')"
            )

    def _enqueue(self, document: Document) -> None:
        if document.path in self._accepted or document.path in self._pending_paths:
            return
        self._pending.append(document)
        self._pending_paths.add(document.path)

    async def _advance(self) -> Optional[Document]:
        if self._pending:
            self.notifier.notify(f"{len(self._pending)} notes remaining to review.")
            next_document = self._pending.popleft()
            self._pending_paths.discard(next_document.path)
            self.candidate = next_document
            await self.workspace.open_document(next_document)
            return next_document

        self.state = SessionState.FINALIZING
        self.candidate = None
        try:
            name = (await self.prompt.request_name() or "").strip()
            if name:
                await self._write_canvas(name)
            else:
                logger.info("Canvas naming cancelled, nothing written")
        finally:
            self._reset()
        return None

    async def _write_canvas(self, name: str) -> None:
        folder = self.settings.canvas_folder
        try:
            path = canvas_path(folder, name)
            canvas = await self.layout.build_grid(self.accepted)
            await self.sink.ensure_folder(folder)
            await self.sink.create(path, canvas)
        except CanvasWriteError as exc:
            logger.error("Canvas write failed", extra={"canvas_name": name, "error": exc.message})
            self.notifier.notify(f"Could not create canvas: {exc.message}")
            return

        self.last_canvas_path = path
        logger.info("Traversal canvas written", extra={"canvas": path, "documents": len(self._accepted)})
        await self.workspace.open_canvas(path)

    def _reset(self) -> None:
        self._pending.clear()
        self._pending_paths.clear()
        self._accepted.clear()
        self.candidate = None
        self.state = SessionState.IDLE


__all__ = ["TraversalSession", "TraversalStateError", "SessionState"]
