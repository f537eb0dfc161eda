"""Tests for SQLiteVectorIndex."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import numpy as np
import pytest

from docseek.errors import VectorIndexError
from docseek.index.storage import SQLiteVectorIndex
from docseek.models import IndexRecord, SectionMetadata

_VOCAB = ("install", "deploy", "config")


class KeywordEmbedder:
    """Deterministic embedder: one dimension per vocabulary word, L2-normalized."""

    dimension = len(_VOCAB)

    def embed(self, texts: Sequence[str]) -> np.ndarray:
        rows = []
        for text in texts:
            lowered = text.lower()
            vector = np.array([lowered.count(word) for word in _VOCAB], dtype="float32") + 0.01
            rows.append(vector / np.linalg.norm(vector))
        return np.vstack(rows).astype("float32")

    def embed_query(self, text: str) -> np.ndarray:
        return self.embed([text])[0]


def _record(record_id: str, data: str) -> IndexRecord:
    return IndexRecord(
        id=record_id,
        data=data,
        metadata=SectionMetadata(title=record_id.split("#")[-1], path="docs/x", level=2, content=data),
    )


@pytest.fixture
def store(tmp_path: Path):
    index = SQLiteVectorIndex(tmp_path / "test.db", KeywordEmbedder())
    yield index
    index.close()


class TestSchema:
    """Test schema creation."""

    def test_init_creates_database(self, tmp_path: Path) -> None:
        db_path = tmp_path / "new.db"
        index = SQLiteVectorIndex(db_path, KeywordEmbedder())

        assert db_path.exists()
        cursor = index.connection.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='records'"
        )
        assert cursor.fetchone() is not None
        index.close()

    def test_wal_mode(self, store: SQLiteVectorIndex) -> None:
        mode = store.connection.execute("PRAGMA journal_mode").fetchone()[0]
        assert mode.lower() == "wal"


class TestSyncOperations:
    """Test reset/upsert/query."""

    def test_upsert_and_query_ranked(self, store: SQLiteVectorIndex) -> None:
        store.upsert_sync(
            [
                _record("docs/x#install", "Install: run the install script to install"),
                _record("docs/x#deploy", "Deploy to production"),
                _record("docs/x#config", "Config file options"),
            ],
            "ns",
        )

        rows = store.query_sync("how do I install", top_k=15, namespace="ns")

        assert rows[0]["id"] == "docs/x#install"
        assert rows[0]["metadata"]["title"] == "install"
        assert all("embedding" not in row and "vector" not in row for row in rows)
        scores = [row["score"] for row in rows]
        assert scores == sorted(scores, reverse=True)

    def test_top_k_limits(self, store: SQLiteVectorIndex) -> None:
        store.upsert_sync([_record(f"docs/x#s{i}", f"deploy {i}") for i in range(5)], "ns")
        assert len(store.query_sync("deploy", top_k=2, namespace="ns")) == 2

    def test_upsert_overwrites_same_id(self, store: SQLiteVectorIndex) -> None:
        store.upsert_sync([_record("docs/x#dup", "first install")], "ns")
        store.upsert_sync([_record("docs/x#dup", "second deploy")], "ns")

        rows = store.query_sync("deploy", top_k=10, namespace="ns")

        assert len(rows) == 1
        assert rows[0]["data"] == "second deploy"

    def test_namespaces_are_isolated(self, store: SQLiteVectorIndex) -> None:
        store.upsert_sync([_record("docs/x#a", "install")], "one")
        store.upsert_sync([_record("docs/x#b", "install")], "two")

        removed = store.reset_sync("one")

        assert removed == 1
        assert store.query_sync("install", top_k=10, namespace="one") == []
        assert [r["id"] for r in store.query_sync("install", top_k=10, namespace="two")] == ["docs/x#b"]

    def test_query_empty_namespace(self, store: SQLiteVectorIndex) -> None:
        assert store.query_sync("anything", top_k=5, namespace="empty") == []


class TestAsyncInterface:
    """Test the async VectorIndex surface."""

    @pytest.mark.asyncio
    async def test_round_trip(self, store: SQLiteVectorIndex) -> None:
        await store.reset("ns")
        await store.upsert([_record("docs/x#config", "config values")], "ns")

        rows = await store.query("config", top_k=3, namespace="ns")

        assert [row["id"] for row in rows] == ["docs/x#config"]

    @pytest.mark.asyncio
    async def test_errors_are_wrapped(self, tmp_path: Path) -> None:
        index = SQLiteVectorIndex(tmp_path / "closed.db", KeywordEmbedder())
        index.close()

        with pytest.raises(VectorIndexError):
            await index.reset("ns")
