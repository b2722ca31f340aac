"""Canvas layout: grid of kept documents, or a star around one document."""

from __future__ import annotations

import asyncio
import logging
import math
from functools import cmp_to_key
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import Settings, get_settings
from ..models.canvas import Canvas, CanvasEdge, CanvasNode, NodeKind, Side
from ..models.document import Document, compare_values
from .interfaces import IContentStore, ILinkResolver
from .sections import strip_sections, truncate_at_second_heading

logger = logging.getLogger(__name__)

# Highest degree first.
DEGREE_PALETTE = ["#FF0000", "#FFA500", "#FFFF00", "#8A2BE2", "#0000FF"]
AGGREGATE_COLOR = "#00FF00"
AGGREGATE_NODE_ID = "aggregate"
GRID_SPACING = 40

# Star mode sizing: fixed width, height of 50 per line of the truncated content.
STAR_NODE_WIDTH = 400
STAR_LINE_HEIGHT = 50
STAR_COLUMN_GAP = 200
STAR_ROW_GAP = 40
CENTER_NODE_ID = "center"


def grid_columns(count: int) -> int:
    """Columns of a square-ish grid holding ``count`` nodes."""
    if count <= 0:
        return 0
    return math.ceil(math.sqrt(count))


def grid_position(index: int, columns: int, node_width: int, node_height: int) -> Tuple[int, int]:
    x = (index % columns) * (node_width + GRID_SPACING)
    y = (index // columns) * (node_height + GRID_SPACING)
    return x, y


def band_color(rank: int, total: int) -> str:
    """Palette color for the percentile band of ``rank`` (0 = highest degree)."""
    band = min(rank * len(DEGREE_PALETTE) // total, len(DEGREE_PALETTE) - 1)
    return DEGREE_PALETTE[band]


def rank_colors(documents: Sequence[Document], degrees: Dict[str, int]) -> Dict[str, str]:
    """Color each document by its rank in descending degree order (ties keep input order)."""
    ranked = sorted(documents, key=lambda document: -degrees.get(document.path, 0))
    total = len(ranked)
    return {document.path: band_color(rank, total) for rank, document in enumerate(ranked)}


def sort_for_layout(documents: Sequence[Document], sort_property: Optional[str]) -> List[Document]:
    """Stable ascending sort by the configured frontmatter key (creation time as fallback)."""
    return sorted(
        documents,
        key=cmp_to_key(
            lambda left, right: compare_values(
                left.sort_value(sort_property), right.sort_value(sort_property)
            )
        ),
    )


def aggregate_section(document: Document, filtered_content: str) -> str:
    return f"--- {document.name} ---\n{filtered_content}\n\n"


def star_node_extent(truncated_content: str) -> Tuple[int, int]:
    """(width, height) of a star-mode node; at least one line tall."""
    line_count = max(len(truncated_content.splitlines()), 1)
    return STAR_NODE_WIDTH, line_count * STAR_LINE_HEIGHT


class LayoutEngine:
    """Build canvases from documents using the link resolver and content store."""

    def __init__(
        self,
        resolver: ILinkResolver,
        content_store: IContentStore,
        settings: Settings | None = None,
    ) -> None:
        self.resolver = resolver
        self.content_store = content_store
        self.settings = settings or get_settings()

    async def build_grid(self, documents: Sequence[Document]) -> Canvas:
        """
        Lay kept documents out on a grid and append the aggregate text node.

        Nodes are placed in sort order and colored by degree rank. The aggregate
        node holds every document's content, in the same order, with excluded
        sections removed. No edges are emitted.
        """
        node_width = self.settings.node_width
        node_height = self.settings.node_height
        columns = grid_columns(len(documents))

        neighbor_sets = await asyncio.gather(
            *(self.resolver.resolve_neighbors(document) for document in documents)
        )
        degrees = {
            document.path: neighbors.degree
            for document, neighbors in zip(documents, neighbor_sets)
        }
        colors = rank_colors(documents, degrees)

        ordered = sort_for_layout(documents, self.settings.sort_property)
        nodes: List[CanvasNode] = []
        for index, document in enumerate(ordered):
            x, y = grid_position(index, columns, node_width, node_height)
            nodes.append(
                CanvasNode(
                    id=f"node-{index}",
                    x=x,
                    y=y,
                    width=node_width,
                    height=node_height,
                    type=NodeKind.FILE,
                    file=document.path,
                    color=colors[document.path],
                )
            )

        contents = await asyncio.gather(*(self._read(document) for document in ordered))
        excluded = self.settings.excluded_section_titles
        aggregate = "".join(
            aggregate_section(document, strip_sections(content, excluded))
            for document, content in zip(ordered, contents)
        )

        nodes.append(
            CanvasNode(
                id=AGGREGATE_NODE_ID,
                x=(columns + 1) * (node_width + GRID_SPACING),
                y=0,
                width=2 * node_width + GRID_SPACING,
                height=2 * node_height + GRID_SPACING,
                type=NodeKind.TEXT,
                text=aggregate,
                color=AGGREGATE_COLOR,
            )
        )

        logger.info(
            "Grid canvas built",
            extra={"documents": len(ordered), "columns": columns, "aggregate_chars": len(aggregate)},
        )
        return Canvas(nodes=nodes, edges=[])

    async def build_star(self, document: Document) -> Canvas:
        """
        Place ``document`` at the center with backlinks to the left and outbound
        links to the right, one edge per neighbor.
        """
        center_width, center_height = star_node_extent(
            truncate_at_second_heading(await self._read(document))
        )
        center = CanvasNode(
            id=CENTER_NODE_ID,
            x=0,
            y=0,
            width=center_width,
            height=center_height,
            type=NodeKind.FILE,
            file=document.path,
        )

        neighbors = await self.resolver.resolve_neighbors(document)
        back_nodes = await self._column(
            neighbors.inbound, "back", -(STAR_NODE_WIDTH + STAR_COLUMN_GAP), center_height
        )
        forward_nodes = await self._column(
            neighbors.outbound, "forward", center_width + STAR_COLUMN_GAP, center_height
        )

        edges: List[CanvasEdge] = []
        for node in back_nodes:
            edges.append(
                CanvasEdge(
                    id=f"edge-{node.id}",
                    from_node=node.id,
                    from_side=Side.RIGHT,
                    to_node=CENTER_NODE_ID,
                    to_side=Side.LEFT,
                )
            )
        for node in forward_nodes:
            edges.append(
                CanvasEdge(
                    id=f"edge-{node.id}",
                    from_node=CENTER_NODE_ID,
                    from_side=Side.RIGHT,
                    to_node=node.id,
                    to_side=Side.LEFT,
                )
            )

        logger.info(
            "Star canvas built",
            extra={
                "document": document.path,
                "backlinks": len(back_nodes),
                "forward_links": len(forward_nodes),
            },
        )
        return Canvas(nodes=[center, *back_nodes, *forward_nodes], edges=edges)

    async def _column(
        self, documents: Sequence[Document], prefix: str, x: int, center_height: int
    ) -> List[CanvasNode]:
        """Stack nodes in one column, vertically centered on the center node."""
        extents = [
            star_node_extent(truncate_at_second_heading(await self._read(document)))
            for document in documents
        ]
        total_height = sum(height for _, height in extents) + STAR_ROW_GAP * max(len(extents) - 1, 0)
        y = center_height // 2 - total_height // 2

        nodes: List[CanvasNode] = []
        for index, (document, (width, height)) in enumerate(zip(documents, extents)):
            nodes.append(
                CanvasNode(
                    id=f"{prefix}-{index}",
                    x=x,
                    y=y,
                    width=width,
                    height=height,
                    type=NodeKind.FILE,
                    file=document.path,
                )
            )
            y += height + STAR_ROW_GAP
        return nodes

    async def _read(self, document: Document) -> str:
        try:
            return await self.content_store.read_content(document)
        except Exception as exc:
            logger.warning(
                "Failed to read document content, using empty text",
                extra={"document": document.path, "error": str(exc)},
            )
            return ""


__all__ = [
    "LayoutEngine",
    "DEGREE_PALETTE",
    "AGGREGATE_COLOR",
    "band_color",
    "grid_columns",
    "grid_position",
    "rank_colors",
    "sort_for_layout",
    "star_node_extent",
]
