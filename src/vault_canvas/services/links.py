"""Link extraction and one-hop neighbor resolution over the vault."""

from __future__ import annotations

import asyncio
import logging
import posixpath
import re
from pathlib import PurePosixPath
from typing import Dict, List, Optional, Tuple
from urllib.parse import unquote

from ..models.document import Document, NeighborSet
from .interfaces import ILinkResolver
from .vault import DOCUMENT_SUFFIX, VaultService

logger = logging.getLogger(__name__)

WIKILINK_PATTERN = re.compile(r"(?<!!)\[\[([^\]]+)\]\]")
MARKDOWN_LINK_PATTERN = re.compile(r"(?<!!)\[[^\]]*\]\(<?([^)<>\s]+)>?(?:\s+\"[^\"]*\")?\)")
URL_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")


def _clean_wikilink(raw: str) -> str:
    target = raw.split("|", 1)[0]
    target = target.split("#", 1)[0]
    return target.strip()


def _clean_markdown_link(raw: str) -> str:
    if URL_SCHEME_PATTERN.match(raw):
        return ""
    target = unquote(raw).split("#", 1)[0]
    return target.strip()


def extract_link_targets(body: str) -> List[str]:
    """Link targets in order of first occurrence. Embeds, URLs and same-note anchors are skipped."""
    found: List[Tuple[int, str]] = []
    for match in WIKILINK_PATTERN.finditer(body or ""):
        found.append((match.start(), _clean_wikilink(match.group(1))))
    for match in MARKDOWN_LINK_PATTERN.finditer(body or ""):
        found.append((match.start(), _clean_markdown_link(match.group(1))))

    # Preserve order but drop duplicates
    seen: Dict[str, None] = {}
    for _, target in sorted(found, key=lambda item: item[0]):
        if target and target not in seen:
            seen[target] = None
    return list(seen.keys())


def _path_candidates(link_text: str) -> List[str]:
    if link_text.lower().endswith(DOCUMENT_SUFFIX):
        return [link_text]
    return [link_text, f"{link_text}{DOCUMENT_SUFFIX}"]


class VaultLinkResolver(ILinkResolver):
    """Resolve outbound links and backlinks from a full scan of the vault."""

    def __init__(self, vault: VaultService) -> None:
        self.vault = vault
        self._documents: List[Document] = []
        self._by_path: Dict[str, Document] = {}
        self._outbound: Optional[Dict[str, List[Document]]] = None
        self._inbound: Dict[str, List[Document]] = {}

    def refresh(self) -> None:
        """Drop the cached link index; the next lookup rescans the vault."""
        self._outbound = None

    async def resolve_neighbors(self, document: Document) -> NeighborSet:
        outbound = await self._ensure_index()
        if document.path not in outbound:
            logger.debug("Document not in link index", extra={"document": document.path})
            return NeighborSet()
        return NeighborSet(
            outbound=list(outbound[document.path]),
            inbound=list(self._inbound.get(document.path, [])),
        )

    def resolve_link(self, link_text: str, source_path: str) -> Optional[Document]:
        """Resolve link text written in ``source_path`` to a vault document, or None."""
        source_folder = PurePosixPath(source_path).parent.as_posix()
        explicit_relative = link_text.startswith(("./", "../"))
        candidates = _path_candidates(link_text.strip())

        for candidate in candidates:
            relative = posixpath.normpath(posixpath.join(source_folder, candidate))
            if not relative.startswith("../") and relative.lower() in self._by_path:
                return self._by_path[relative.lower()]
            if explicit_relative:
                continue
            absolute = posixpath.normpath(candidate.lstrip("/"))
            if absolute.lower() in self._by_path:
                return self._by_path[absolute.lower()]

        if explicit_relative:
            return None

        for candidate in candidates:
            wanted = candidate.lstrip("/").lower()
            matches = [
                document
                for document in self._documents
                if document.path.lower() == wanted or document.path.lower().endswith(f"/{wanted}")
            ]
            if matches:
                return sorted(
                    matches,
                    key=lambda document: (
                        document.folder != ("" if source_folder == "." else source_folder),
                        len(document.path),
                        document.path.lower(),
                    ),
                )[0]
        return None

    async def _ensure_index(self) -> Dict[str, List[Document]]:
        if self._outbound is not None:
            return self._outbound

        self._documents = await asyncio.to_thread(self.vault.list_documents)
        self._by_path = {document.path.lower(): document for document in self._documents}
        outbound: Dict[str, List[Document]] = {}

        for document in self._documents:
            try:
                body = await self.vault.read_content(document)
            except Exception as exc:
                logger.warning(
                    "Could not read document while indexing links",
                    extra={"document": document.path, "error": str(exc)},
                )
                body = ""

            resolved: Dict[str, Document] = {}
            for target in extract_link_targets(body):
                linked = self.resolve_link(target, document.path)
                if linked is None:
                    logger.debug(
                        "Unresolved link dropped",
                        extra={"document": document.path, "link": target},
                    )
                    continue
                resolved.setdefault(linked.path, linked)
            outbound[document.path] = list(resolved.values())

        inbound: Dict[str, List[Document]] = {}
        for source in self._documents:
            for target in outbound[source.path]:
                sources = inbound.setdefault(target.path, [])
                if source not in sources:
                    sources.append(source)

        self._outbound = outbound
        self._inbound = inbound
        logger.info(
            "Link index built",
            extra={
                "documents": len(self._documents),
                "links": sum(len(targets) for targets in outbound.values()),
            },
        )
        return outbound


__all__ = ["VaultLinkResolver", "extract_link_targets"]
