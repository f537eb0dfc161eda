"""Construct the configured vector index backend."""

from __future__ import annotations

import logging
from pathlib import Path

from docseek.config import AppConfig
from docseek.index.vector import UpstashVectorIndex, VectorIndex

LOGGER = logging.getLogger(__name__)


def open_vector_index(config: AppConfig, base_dir: Path | None = None) -> VectorIndex:
    """Open the vector index named by ``config.vector_backend``.

    Raises ``ConfigurationError`` when the hosted backend lacks its URL or token.
    """
    if config.vector_backend == "local":
        # Deferred so the hosted backend never loads the embedding stack.
        from docseek.embedding.encoder import EmbeddingConfig, EmbeddingModel
        from docseek.index.storage import SQLiteVectorIndex

        db_path = config.resolve_db_path(base_dir)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        LOGGER.info("Using local vector index at %s", db_path)
        embedder = EmbeddingModel(EmbeddingConfig(model_name=config.model_name))
        return SQLiteVectorIndex(db_path, embedder)

    LOGGER.info("Using hosted vector index at %s", config.vector_url)
    return UpstashVectorIndex(config.vector_url, config.vector_token)
