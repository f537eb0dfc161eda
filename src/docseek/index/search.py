"""Semantic search interface."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from docseek.config import DEFAULT_NAMESPACE
from docseek.errors import RetrievalError, VectorIndexError
from docseek.index.vector import VectorIndex
from docseek.models import SectionMetadata

LOGGER = logging.getLogger(__name__)

DEFAULT_TOP_K = 15


@dataclass(slots=True)
class SearchResult:
    id: str
    data: str
    metadata: SectionMetadata
    score: float | None = None

    @property
    def route(self) -> str:
        """Site-relative navigation target for this hit."""
        return "/" + self.id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "score": self.score,
            "data": self.data,
            "metadata": self.metadata.to_dict(),
        }


class Searcher:
    """High-level API to query the vector index."""

    def __init__(
        self,
        index: VectorIndex,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        top_k: int = DEFAULT_TOP_K,
    ) -> None:
        self.index = index
        self.namespace = namespace
        self.top_k = top_k

    async def query(
        self, text: str, *, top_k: int | None = None, namespace: str | None = None
    ) -> List[SearchResult]:
        """Return hits in the order the index ranked them; blank text returns nothing."""
        if not text or not text.strip():
            return []

        try:
            rows = await self.index.query(
                text,
                top_k=self.top_k if top_k is None else top_k,
                namespace=namespace or self.namespace,
            )
        except VectorIndexError as exc:
            LOGGER.error("Search error: %s", exc)
            raise RetrievalError("Failed to perform search") from exc

        try:
            return [_to_result(row) for row in rows]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            LOGGER.error("Malformed search hit: %s", exc)
            raise RetrievalError("Failed to perform search") from exc


def _to_result(row: Dict[str, Any]) -> SearchResult:
    score = row.get("score")
    return SearchResult(
        id=str(row["id"]),
        data=row.get("data") or "",
        metadata=SectionMetadata.from_dict(row.get("metadata")),
        score=float(score) if score is not None else None,
    )
