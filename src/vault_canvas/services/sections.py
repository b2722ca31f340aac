"""Heading-aware text filters for Markdown content."""

from __future__ import annotations

import re
from typing import Iterable, Optional

HEADING_PATTERN = re.compile(r"^\s*(#{1,6}) (.+?)\s*$")


def heading_level(line: str) -> Optional[int]:
    """Marker depth of a heading line, or None for body text."""
    match = HEADING_PATTERN.match(line.rstrip("\r\n"))
    if not match:
        return None
    return len(match.group(1))


def strip_sections(content: str, excluded_titles: Iterable[str]) -> str:
    """
    Remove every section whose heading title is in ``excluded_titles``.

    An excluded section runs until the next heading at the same or a shallower
    depth; that heading is evaluated on its own and may start another excluded
    section. Kept lines are returned verbatim, with the result trimmed.
    """
    excluded = {title.strip() for title in excluded_titles if title and title.strip()}
    if not excluded:
        return (content or "").strip()

    kept = []
    excluding_depth: Optional[int] = None

    for line in (content or "").splitlines(keepends=True):
        match = HEADING_PATTERN.match(line.rstrip("\r\n"))
        if match:
            depth = len(match.group(1))
            if excluding_depth is not None and depth <= excluding_depth:
                excluding_depth = None
            if excluding_depth is None and match.group(2).strip() in excluded:
                excluding_depth = depth
        if excluding_depth is None:
            kept.append(line)

    return "".join(kept).strip()


def truncate_at_second_heading(content: str) -> str:
    """Content up to (not including) the second heading line, trimmed."""
    kept = []
    headings_seen = 0
    for line in (content or "").splitlines(keepends=True):
        if heading_level(line) is not None:
            headings_seen += 1
            if headings_seen == 2:
                break
        kept.append(line)
    return "".join(kept).strip()


__all__ = ["HEADING_PATTERN", "heading_level", "strip_sections", "truncate_at_second_heading"]
