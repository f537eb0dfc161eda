"""SQLite-backed local vector index."""

from __future__ import annotations

import asyncio
import json
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Protocol, Sequence

import numpy as np

from docseek.errors import VectorIndexError
from docseek.models import IndexRecord


class Embedder(Protocol):
    dimension: int

    def embed(self, texts: Sequence[str]) -> np.ndarray: ...

    def embed_query(self, text: str) -> np.ndarray: ...


class SQLiteVectorIndex:
    """Local stand-in for the hosted index: embeds with a local model, ranks by cosine."""

    def __init__(self, db_path: Path, embedder: Embedder) -> None:
        self.db_path = Path(db_path)
        self.embedder = embedder
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._ensure_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS records (
                    namespace TEXT NOT NULL,
                    id TEXT NOT NULL,
                    data TEXT NOT NULL,
                    metadata TEXT,
                    embedding BLOB NOT NULL,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (namespace, id)
                )
                """
            )

    def reset_sync(self, namespace: str) -> int:
        with self.transaction() as conn:
            return conn.execute("DELETE FROM records WHERE namespace = ?", (namespace,)).rowcount

    def upsert_sync(self, records: Sequence[IndexRecord], namespace: str) -> None:
        if not records:
            return
        embeddings = self.embedder.embed([record.data for record in records])
        if embeddings.shape[0] != len(records):
            raise ValueError("Embeddings and records length mismatch")

        with self.transaction() as conn:
            for record, vector in zip(records, embeddings):
                conn.execute(
                    """
                    INSERT OR REPLACE INTO records(namespace, id, data, metadata, embedding)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        namespace,
                        record.id,
                        record.data,
                        json.dumps(record.metadata.to_dict(), ensure_ascii=True),
                        sqlite3.Binary(np.asarray(vector, dtype="float32").tobytes()),
                    ),
                )

    def query_sync(self, text: str, *, top_k: int, namespace: str) -> List[dict]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT id, data, metadata, embedding FROM records WHERE namespace = ?",
                (namespace,),
            ).fetchall()

        if not rows or top_k <= 0:
            return []

        query = np.asarray(self.embedder.embed_query(text), dtype="float32")
        embeddings = np.vstack([np.frombuffer(row["embedding"], dtype="float32") for row in rows])
        scores = embeddings @ query

        if top_k < len(scores):
            top_indices = np.argpartition(scores, -top_k)[-top_k:]
            top_indices = top_indices[np.argsort(scores[top_indices])[::-1]]
        else:
            top_indices = np.argsort(scores)[::-1]

        return [
            {
                "id": rows[idx]["id"],
                "score": float(scores[idx]),
                "data": rows[idx]["data"],
                "metadata": json.loads(rows[idx]["metadata"]) if rows[idx]["metadata"] else {},
            }
            for idx in top_indices
        ]

    async def reset(self, namespace: str) -> None:
        await self._run(self.reset_sync, namespace)

    async def upsert(self, records: Sequence[IndexRecord], namespace: str) -> None:
        await self._run(self.upsert_sync, records, namespace)

    async def query(self, text: str, *, top_k: int, namespace: str) -> List[dict]:
        return await self._run(self.query_sync, text, top_k=top_k, namespace=namespace)

    async def aclose(self) -> None:
        self.close()

    @staticmethod
    async def _run(func, *args, **kwargs):
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except (sqlite3.Error, ValueError) as exc:
            raise VectorIndexError(str(exc)) from exc
