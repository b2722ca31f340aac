"""Pydantic models for documents and canvases."""

from .canvas import Canvas, CanvasEdge, CanvasNode, NodeKind, Side
from .document import (
    Document,
    MetadataValue,
    NeighborSet,
    coerce_metadata,
    coerce_metadata_value,
    compare_values,
    parse_timestamp,
)

__all__ = [
    "Canvas",
    "CanvasEdge",
    "CanvasNode",
    "NodeKind",
    "Side",
    "Document",
    "MetadataValue",
    "NeighborSet",
    "coerce_metadata",
    "coerce_metadata_value",
    "compare_values",
    "parse_timestamp",
]
