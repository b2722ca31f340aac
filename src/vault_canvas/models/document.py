"""Document-related Pydantic models."""

from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Frontmatter values after coercion. A key that is absent is "missing".
MetadataValue = Union[int, float, datetime, str]


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def coerce_metadata_value(raw: Any) -> Optional[MetadataValue]:
    """Map a raw frontmatter value onto the metadata value union (None = missing)."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        return str(raw).lower()
    if isinstance(raw, (int, float)):
        return raw
    if isinstance(raw, datetime):
        return _as_aware(raw)
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day, tzinfo=timezone.utc)
    if isinstance(raw, (list, tuple)):
        return ", ".join(str(item) for item in raw)
    return str(raw)


def coerce_metadata(raw: Dict[str, Any] | None) -> Dict[str, MetadataValue]:
    """Coerce a frontmatter mapping, dropping missing values."""
    metadata: Dict[str, MetadataValue] = {}
    for key, value in (raw or {}).items():
        coerced = coerce_metadata_value(value)
        if coerced is not None:
            metadata[str(key)] = coerced
    return metadata


def parse_timestamp(raw: Any) -> Optional[datetime]:
    """Parse a frontmatter timestamp (datetime, date or ISO string)."""
    if isinstance(raw, datetime):
        return _as_aware(raw)
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day, tzinfo=timezone.utc)
    if isinstance(raw, str) and raw.strip():
        try:
            return _as_aware(datetime.fromisoformat(raw.strip()))
        except ValueError:
            return None
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_text(value: MetadataValue) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def compare_values(left: MetadataValue, right: MetadataValue) -> int:
    """
    Generic ordering comparison.

    Numbers compare numerically and datetimes chronologically when both sides
    share the kind; anything else compares as strings.
    """
    if _is_number(left) and _is_number(right):
        a, b = left, right
    elif isinstance(left, datetime) and isinstance(right, datetime):
        a, b = left, right
    else:
        a, b = _as_text(left), _as_text(right)
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


class Document(BaseModel):
    """A note in the vault, identified by its vault-relative path."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Vault-relative POSIX path (includes extension)")
    metadata: Dict[str, MetadataValue] = Field(default_factory=dict, description="Frontmatter")
    created: datetime = Field(..., description="Creation timestamp")

    @property
    def name(self) -> str:
        """File name with extension, e.g. ``Home.md``."""
        return PurePosixPath(self.path).name

    @property
    def basename(self) -> str:
        """File name without extension, e.g. ``Home``."""
        return PurePosixPath(self.path).stem

    @property
    def folder(self) -> str:
        parent = PurePosixPath(self.path).parent.as_posix()
        return "" if parent == "." else parent

    def sort_value(self, key: Optional[str]) -> MetadataValue:
        """Value of ``key`` in frontmatter, or the creation timestamp when unset or missing."""
        if key:
            value = self.metadata.get(key)
            if value is not None:
                return value
        return self.created

    def __hash__(self) -> int:
        return hash(self.path)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return self.path == other.path


class NeighborSet(BaseModel):
    """One-hop neighbors of a document, each side deduplicated, in resolver order."""

    outbound: List[Document] = Field(default_factory=list)
    inbound: List[Document] = Field(default_factory=list)

    @property
    def degree(self) -> int:
        """Outbound plus inbound count; a document linked both ways counts twice."""
        return len(self.outbound) + len(self.inbound)

    def combined(self) -> List[Document]:
        """Outbound neighbors followed by inbound neighbors (may repeat a document)."""
        return [*self.outbound, *self.inbound]


__all__ = [
    "Document",
    "MetadataValue",
    "NeighborSet",
    "coerce_metadata",
    "coerce_metadata_value",
    "compare_values",
    "parse_timestamp",
]
