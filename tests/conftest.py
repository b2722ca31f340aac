from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import frontmatter
import pytest

from vault_canvas.config import Settings
from vault_canvas.models.canvas import Canvas
from vault_canvas.models.document import Document, NeighborSet
from vault_canvas.services.canvas_store import CanvasWriteError
from vault_canvas.services.interfaces import (
    ICanvasSink,
    IContentStore,
    ILinkResolver,
    INamePrompt,
    INotifier,
    IWorkspace,
)


def make_doc(path: str, day: int = 1, **metadata) -> Document:
    return Document(
        path=path,
        metadata=metadata,
        created=datetime(2024, 1, day, tzinfo=timezone.utc),
    )


def write_note(root: Path, path: str, body: str, **metadata) -> Path:
    target = root / path
    target.parent.mkdir(parents=True, exist_ok=True)
    post = frontmatter.Post(body, **metadata)
    target.write_text(frontmatter.dumps(post), encoding="utf-8")
    return target


class FakeResolver(ILinkResolver):
    """Neighbors from an explicit graph: path -> (outbound paths, inbound paths)."""

    def __init__(self, documents: Sequence[Document], graph: Dict[str, Tuple[List[str], List[str]]]):
        self.documents = {document.path: document for document in documents}
        self.graph = graph
        self.calls: List[str] = []

    async def resolve_neighbors(self, document: Document) -> NeighborSet:
        self.calls.append(document.path)
        outbound, inbound = self.graph.get(document.path, ([], []))
        return NeighborSet(
            outbound=[self.documents[path] for path in outbound],
            inbound=[self.documents[path] for path in inbound],
        )


class FakeContentStore(IContentStore):
    def __init__(self, contents: Dict[str, str], failing: Sequence[str] = ()):
        self.contents = contents
        self.failing = set(failing)

    async def read_content(self, document: Document) -> str:
        if document.path in self.failing:
            raise OSError(f"cannot read {document.path}")
        return self.contents.get(document.path, "")


class FakePrompt(INamePrompt):
    def __init__(self, answers: Sequence[Optional[str]] = ()):
        self.answers = list(answers)
        self.calls = 0

    async def request_name(self) -> Optional[str]:
        self.calls += 1
        return self.answers.pop(0) if self.answers else None


class RecordingNotifier(INotifier):
    def __init__(self):
        self.messages: List[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)


class RecordingWorkspace(IWorkspace):
    def __init__(self):
        self.documents: List[str] = []
        self.canvases: List[str] = []

    async def open_document(self, document: Document) -> None:
        self.documents.append(document.path)

    async def open_canvas(self, path: str) -> None:
        self.canvases.append(path)


class MemorySink(ICanvasSink):
    def __init__(self, existing: Sequence[str] = (), fail_folders: bool = False):
        self.files: Dict[str, Canvas] = {path: Canvas() for path in existing}
        self.folders: List[str] = []
        self.fail_folders = fail_folders
        self.writes = 0

    async def exists(self, path: str) -> bool:
        return path in self.files

    async def ensure_folder(self, folder: str) -> None:
        if self.fail_folders:
            raise CanvasWriteError(f"Could not create folder '{folder}'")
        self.folders.append(folder)

    async def create(self, path: str, canvas: Canvas) -> str:
        if path in self.files:
            raise CanvasWriteError(f"Canvas already exists: {path}", path=path)
        self.files[path] = canvas
        self.writes += 1
        return path

    async def overwrite(self, path: str, canvas: Canvas) -> str:
        self.files[path] = canvas
        self.writes += 1
        return path


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(_env_file=None, vault_path=tmp_path / "vault")


@pytest.fixture
def vault_root(settings: Settings) -> Path:
    settings.vault_path.mkdir(parents=True, exist_ok=True)
    return settings.vault_path


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def workspace() -> RecordingWorkspace:
    return RecordingWorkspace()
