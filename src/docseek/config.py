"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from docseek.errors import ConfigurationError

DEFAULT_NAMESPACE = "docusaurus-ai-search-upstash"
DEFAULT_EMBEDDING_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
DEFAULT_CHAT_MODEL = "gpt-4o"
DEFAULT_DB_PATH = Path("data/docseek.db")

VECTOR_BACKENDS = ("upstash", "local")


@dataclass(slots=True)
class AppConfig:
    namespace: str = DEFAULT_NAMESPACE
    docs_dir: Path = Path("docs")
    base_dir: Path = field(default_factory=Path.cwd)
    vector_backend: str = "upstash"
    vector_url: str | None = None
    vector_token: str | None = None
    db_path: Path = DEFAULT_DB_PATH
    model_name: str = DEFAULT_EMBEDDING_MODEL
    openai_api_key: str | None = None
    chat_model: str = DEFAULT_CHAT_MODEL
    max_tokens: int = 500
    temperature: float = 0.7
    top_k: int = 15
    debounce_seconds: float = 0.3

    def __post_init__(self) -> None:
        if self.vector_backend not in VECTOR_BACKENDS:
            raise ConfigurationError(
                f"Unknown vector backend {self.vector_backend!r}; "
                f"expected one of {', '.join(VECTOR_BACKENDS)}"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> "AppConfig":
        """Build a config from environment variables; keyword overrides win."""
        env = os.environ if environ is None else environ
        values = {
            "namespace": env.get("UPSTASH_VECTOR_INDEX_NAMESPACE") or DEFAULT_NAMESPACE,
            "vector_backend": env.get("DOCSEEK_VECTOR_BACKEND") or "upstash",
            "vector_url": env.get("UPSTASH_VECTOR_REST_URL") or None,
            "vector_token": env.get("UPSTASH_VECTOR_REST_TOKEN") or None,
            "openai_api_key": env.get("OPENAI_API_KEY") or None,
            "chat_model": env.get("DOCSEEK_CHAT_MODEL") or DEFAULT_CHAT_MODEL,
        }
        if env.get("DOCSEEK_DB"):
            values["db_path"] = Path(env["DOCSEEK_DB"])
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        if Path(self.db_path).is_absolute() or base_dir is None:
            return Path(self.db_path)
        return base_dir / self.db_path
