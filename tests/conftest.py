"""Shared test doubles."""

from __future__ import annotations

from typing import Dict, List, Sequence

import pytest

from docseek.errors import VectorIndexError
from docseek.models import IndexRecord


class FakeVectorIndex:
    """In-memory vector index that records every call."""

    def __init__(self) -> None:
        self.namespaces: Dict[str, Dict[str, IndexRecord]] = {}
        self.calls: List[tuple] = []
        self.query_rows: List[dict] = []
        self.fail_paths: set[str] = set()
        self.fail_reset = False
        self.fail_query = False
        self.closed = False

    async def reset(self, namespace: str) -> None:
        self.calls.append(("reset", namespace))
        if self.fail_reset:
            raise VectorIndexError("reset rejected")
        self.namespaces[namespace] = {}

    async def upsert(self, records: Sequence[IndexRecord], namespace: str) -> None:
        self.calls.append(("upsert", namespace, [record.id for record in records]))
        for record in records:
            if record.metadata.path in self.fail_paths:
                raise VectorIndexError(f"upsert rejected for {record.id}")
        bucket = self.namespaces.setdefault(namespace, {})
        for record in records:
            bucket[record.id] = record

    async def query(self, text: str, *, top_k: int, namespace: str) -> List[dict]:
        self.calls.append(("query", text, top_k, namespace))
        if self.fail_query:
            raise VectorIndexError("query rejected")
        return self.query_rows[:top_k]

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_index() -> FakeVectorIndex:
    return FakeVectorIndex()


@pytest.fixture
def docs_tree(tmp_path):
    """A small documentation tree rooted at ``tmp_path/docs``."""
    docs = tmp_path / "docs"
    (docs / "guides").mkdir(parents=True)
    (docs / ".drafts").mkdir()

    (docs / "getting-started.md").write_text(
        '---\ntitle: "Getting Started"\n---\n\nIntro text.\n\n## Installation\n\nRun the installer.\n',
        encoding="utf-8",
    )
    (docs / "guides" / "deploy_to_prod.mdx").write_text(
        "# Deploy\n\nShip it.\n\n### Rollback\n\nRevert the release.\n\n## Empty\n",
        encoding="utf-8",
    )
    (docs / ".drafts" / "secret.md").write_text("# Secret\n\nHidden.\n", encoding="utf-8")
    (docs / "notes.txt").write_text("# Not markdown\n\nIgnored.\n", encoding="utf-8")
    return docs
