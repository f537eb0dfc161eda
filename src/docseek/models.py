"""Core docseek data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping

SECTION_TYPE = "section"

_KNOWN_METADATA_KEYS = ("title", "path", "level", "type", "content", "documentTitle")


@dataclass(slots=True)
class Document:
    """One markdown source file, read once per indexing run."""

    path: Path
    relative_path: str
    text: str
    title: str


@dataclass(slots=True)
class Section:
    """Heading-anchored span of a document."""

    level: int
    title: str
    content: str


@dataclass(slots=True)
class SectionMetadata:
    """Metadata stored alongside every indexed section.

    The shape is closed; fields the index returns that are not part of it are
    kept in ``extra`` so they survive a round trip.
    """

    title: str
    path: str
    level: int
    type: str = SECTION_TYPE
    content: str = ""
    document_title: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(self.extra)
        payload.update(
            {
                "title": self.title,
                "path": self.path,
                "level": self.level,
                "type": self.type,
                "content": self.content,
                "documentTitle": self.document_title,
            }
        )
        return payload

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "SectionMetadata":
        raw = raw or {}
        try:
            level = int(raw.get("level", 0))
        except (TypeError, ValueError):
            level = 0
        return cls(
            title=str(raw.get("title", "")),
            path=str(raw.get("path", "")),
            level=level,
            type=str(raw.get("type", SECTION_TYPE)),
            content=str(raw.get("content", "")),
            document_title=str(raw.get("documentTitle", "")),
            extra={k: v for k, v in raw.items() if k not in _KNOWN_METADATA_KEYS},
        )


@dataclass(slots=True)
class IndexRecord:
    """One queryable unit written to the vector index."""

    id: str
    data: str
    metadata: SectionMetadata

    def to_payload(self) -> Dict[str, Any]:
        return {"id": self.id, "data": self.data, "metadata": self.metadata.to_dict()}
