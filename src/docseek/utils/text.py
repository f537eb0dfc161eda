"""Text helpers: heading-based section splitting and slug generation."""

from __future__ import annotations

import re
import unicodedata
from typing import List

from docseek.models import Section

_SECTION_BOUNDARY = re.compile(r"(?=^#{1,6}\s)", re.MULTILINE)
_HEADING_LINE = re.compile(r"^(#{1,6})\s+(.+)$")


def slugify(text: str) -> str:
    """Convert heading text into the anchor slug used in record IDs.

    Record IDs are durable keys that consumers turn into navigation links, so
    every step here must stay stable: lowercase, NFD-normalize, trim, drop
    periods, whitespace runs to single hyphens, drop anything outside ASCII
    word characters and hyphens, then collapse repeated hyphens.
    """
    slug = unicodedata.normalize("NFD", str(text).lower()).strip()
    slug = slug.replace(".", "")
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^\w-]+", "", slug, flags=re.ASCII)
    return re.sub(r"--+", "-", slug)


def split_sections(text: str) -> List[Section]:
    """Split markdown into flat, heading-anchored sections.

    Every heading line (one to six ``#`` followed by whitespace) opens a new
    section that runs until the next heading of any level, so a level-3
    heading does not nest under the level-2 heading above it. Content before
    the first heading is dropped.
    """
    sections: List[Section] = []
    normalized = text.replace("\r\n", "\n")
    for chunk in _SECTION_BOUNDARY.split(normalized):
        lines = chunk.strip().split("\n")
        match = _HEADING_LINE.match(lines[0])
        if not match:
            continue
        hashes, title = match.groups()
        sections.append(
            Section(
                level=len(hashes),
                title=title,
                content="\n".join(lines[1:]).strip(),
            )
        )
    return sections
