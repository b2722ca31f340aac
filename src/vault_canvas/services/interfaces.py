from abc import ABC, abstractmethod
from typing import Optional

from ..models.canvas import Canvas
from ..models.document import Document, NeighborSet


# Collaborators the engines depend on. Every method that touches storage or the
# operator is a coroutine; the engines await them one at a time.

class ILinkResolver(ABC):
    @abstractmethod
    async def resolve_neighbors(self, document: Document) -> NeighborSet:
        """One-hop outbound and inbound neighbors. Never raises for unresolvable links."""
        ...


class IContentStore(ABC):
    @abstractmethod
    async def read_content(self, document: Document) -> str: ...


class ICanvasSink(ABC):
    @abstractmethod
    async def exists(self, path: str) -> bool: ...

    @abstractmethod
    async def ensure_folder(self, folder: str) -> None:
        """Create ``folder`` if absent. Idempotent."""
        ...

    @abstractmethod
    async def create(self, path: str, canvas: Canvas) -> str:
        """Write a new canvas; fails if ``path`` already exists."""
        ...

    @abstractmethod
    async def overwrite(self, path: str, canvas: Canvas) -> str: ...


class INamePrompt(ABC):
    @abstractmethod
    async def request_name(self) -> Optional[str]:
        """Ask the operator for a canvas name. None means cancelled."""
        ...


class INotifier(ABC):
    @abstractmethod
    def notify(self, message: str) -> None: ...


class IWorkspace(ABC):
    @abstractmethod
    async def open_document(self, document: Document) -> None: ...

    @abstractmethod
    async def open_canvas(self, path: str) -> None: ...
