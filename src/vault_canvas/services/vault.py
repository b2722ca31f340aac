"""Filesystem vault access."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Tuple

import frontmatter

from ..config import Settings, get_settings
from ..models.document import Document, coerce_metadata, parse_timestamp
from .interfaces import IContentStore

logger = logging.getLogger(__name__)

INVALID_PATH_CHARS = {'<', '>', ':', '"', '|', '?', '*'}
DOCUMENT_SUFFIX = ".md"
CREATED_KEY = "created"


def validate_document_path(document_path: str) -> Tuple[bool, str]:
    """
    Validate a vault-relative Markdown path.

    Returns (is_valid, message). Message is empty when valid.
    """
    if not document_path or len(document_path) > 256:
        return False, "Path must be 1-256 characters"
    if not document_path.endswith(DOCUMENT_SUFFIX):
        return False, "Path must end with .md"
    if ".." in document_path.split("/"):
        return False, "Path must not contain '..'"
    if "\\" in document_path:
        return False, "Path must use Unix separators (/)"
    if document_path.startswith("/"):
        return False, "Path must be relative (no leading /)"
    if any(char in INVALID_PATH_CHARS for char in document_path):
        return False, "Path contains invalid characters"
    return True, ""


def sanitize_path(vault_root: Path, relative_path: str) -> Path:
    """
    Resolve a path within the vault.

    Raises ValueError if the resolved path escapes the vault root.
    """
    vault = vault_root.resolve()
    full_path = (vault / relative_path).resolve()
    if full_path != vault and vault not in full_path.parents:
        raise ValueError(f"Path escapes vault root: {relative_path}")
    return full_path


def _is_hidden(relative: Path) -> bool:
    return any(part.startswith(".") for part in relative.parts)


def _file_created(absolute_path: Path) -> datetime:
    stat = absolute_path.stat()
    timestamp = getattr(stat, "st_birthtime", None) or stat.st_ctime
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


class VaultService(IContentStore):
    """Read-only view of a vault directory of Markdown documents."""

    def __init__(self, settings: Settings | None = None, *, root: Path | None = None) -> None:
        self.settings = settings or get_settings()
        self.root = (root or self.settings.vault_path).resolve()

    def resolve_document_path(self, document_path: str) -> Path:
        """
        Validate and resolve a document path inside the vault.

        Raises ValueError for invalid paths.
        """
        is_valid, message = validate_document_path(document_path)
        if not is_valid:
            raise ValueError(message)
        return sanitize_path(self.root, document_path)

    def get_document(self, document_path: str) -> Document:
        """Load a single document's metadata."""
        cleaned = document_path.strip()
        if cleaned.startswith("./"):
            cleaned = cleaned[2:]
        absolute_path = self.resolve_document_path(cleaned)
        if not absolute_path.is_file():
            raise FileNotFoundError(f"Document not found: {document_path}")
        return self._load_document(absolute_path)

    def list_documents(self) -> List[Document]:
        """All Markdown documents in the vault, sorted by path. Hidden folders are skipped."""
        if not self.root.is_dir():
            logger.warning("Vault root does not exist", extra={"vault_root": str(self.root)})
            return []

        documents: List[Document] = []
        for file_path in self.root.rglob(f"*{DOCUMENT_SUFFIX}"):
            relative = file_path.relative_to(self.root)
            if _is_hidden(relative) or not file_path.is_file():
                continue
            documents.append(self._load_document(file_path))

        logger.info("Vault scanned", extra={"vault_root": str(self.root), "documents": len(documents)})
        return sorted(documents, key=lambda document: document.path.lower())

    async def read_content(self, document: Document) -> str:
        """Document body without frontmatter."""
        absolute_path = sanitize_path(self.root, document.path)
        return await asyncio.to_thread(self._read_body, absolute_path)

    def _read_body(self, absolute_path: Path) -> str:
        post = frontmatter.load(absolute_path)
        return post.content or ""

    def _load_document(self, absolute_path: Path) -> Document:
        relative_path = absolute_path.relative_to(self.root).as_posix()
        raw_metadata: Dict[str, Any] = {}
        try:
            post = frontmatter.load(absolute_path)
            raw_metadata = dict(post.metadata or {})
        except Exception as exc:
            logger.warning(
                "Unreadable frontmatter, using empty metadata",
                extra={"document": relative_path, "error": str(exc)},
            )

        created = parse_timestamp(raw_metadata.get(CREATED_KEY)) or _file_created(absolute_path)
        return Document(path=relative_path, metadata=coerce_metadata(raw_metadata), created=created)


__all__ = ["VaultService", "validate_document_path", "sanitize_path"]
