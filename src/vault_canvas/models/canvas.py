"""Canvas (diagram document) models."""

from __future__ import annotations

import json
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class NodeKind(str, Enum):
    """Kind of canvas node."""
    FILE = "file"
    TEXT = "text"


class Side(str, Enum):
    """Node side an edge attaches to."""
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


class CanvasNode(BaseModel):
    """A positioned node referencing a document or carrying literal text."""

    id: str = Field(..., min_length=1, description="Unique within one canvas")
    x: int
    y: int
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    type: NodeKind
    file: Optional[str] = Field(None, description="Document path (file nodes)")
    text: Optional[str] = Field(None, description="Literal content (text nodes)")
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")

    @model_validator(mode="after")
    def _check_payload(self) -> "CanvasNode":
        if self.type is NodeKind.FILE and not self.file:
            raise ValueError(f"File node '{self.id}' requires a file path")
        if self.type is NodeKind.TEXT and self.text is None:
            raise ValueError(f"Text node '{self.id}' requires text")
        return self


class CanvasEdge(BaseModel):
    """A connection between two nodes of the same canvas."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    from_node: str = Field(..., alias="fromNode")
    from_side: Side = Field(..., alias="fromSide")
    to_node: str = Field(..., alias="toNode")
    to_side: Side = Field(..., alias="toSide")


class Canvas(BaseModel):
    """The diagram document: ordered nodes and edges."""

    nodes: List[CanvasNode] = Field(default_factory=list)
    edges: List[CanvasEdge] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_integrity(self) -> "Canvas":
        node_ids = [node.id for node in self.nodes]
        if len(node_ids) != len(set(node_ids)):
            raise ValueError("Canvas node ids must be unique")
        edge_ids = [edge.id for edge in self.edges]
        if len(edge_ids) != len(set(edge_ids)):
            raise ValueError("Canvas edge ids must be unique")
        known = set(node_ids)
        for edge in self.edges:
            if edge.from_node not in known or edge.to_node not in known:
                raise ValueError(f"Edge '{edge.id}' references a node outside the canvas")
        if sum(1 for node in self.nodes if node.type is NodeKind.TEXT) > 1:
            raise ValueError("A canvas holds at most one text node")
        return self

    def to_json(self) -> str:
        """Serialize to the canvas file format."""
        payload = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        return json.dumps(payload, indent=2, ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str) -> "Canvas":
        """Parse canvas file content; an absent ``edges`` array reads as empty."""
        return cls.model_validate_json(raw)


__all__ = ["Canvas", "CanvasEdge", "CanvasNode", "NodeKind", "Side"]
