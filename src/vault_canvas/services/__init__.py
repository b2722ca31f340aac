"""Service layer: vault access, link resolution, layout and the operator commands."""

from .canvas_store import CanvasStore, CanvasWriteError, canvas_path
from .interfaces import (
    ICanvasSink,
    IContentStore,
    ILinkResolver,
    INamePrompt,
    INotifier,
    IWorkspace,
)
from .layout import LayoutEngine
from .links import VaultLinkResolver, extract_link_targets
from .sections import strip_sections, truncate_at_second_heading
from .transform import CanvasTransformer, star_canvas_name
from .traversal import SessionState, TraversalSession, TraversalStateError
from .vault import VaultService, sanitize_path, validate_document_path

__all__ = [
    "CanvasStore",
    "CanvasWriteError",
    "canvas_path",
    "ICanvasSink",
    "IContentStore",
    "ILinkResolver",
    "INamePrompt",
    "INotifier",
    "IWorkspace",
    "LayoutEngine",
    "VaultLinkResolver",
    "extract_link_targets",
    "strip_sections",
    "truncate_at_second_heading",
    "CanvasTransformer",
    "star_canvas_name",
    "SessionState",
    "TraversalSession",
    "TraversalStateError",
    "VaultService",
    "sanitize_path",
    "validate_document_path",
]
