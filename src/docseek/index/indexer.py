"""Document indexing pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence

from docseek.index.vector import VectorIndex
from docseek.ingestion.markdown_loader import load_document
from docseek.models import Document, IndexRecord, SectionMetadata
from docseek.utils.files import iter_markdown_paths
from docseek.utils.text import slugify, split_sections

LOGGER = logging.getLogger(__name__)


def find_markdown(paths: Sequence[Path]) -> list[Path]:
    """Find all markdown files under the given paths."""
    return list(iter_markdown_paths(paths))


def build_records(document: Document) -> List[IndexRecord]:
    """Turn every non-empty section of a document into an index record.

    Two sections with the same title in one document share an ID; the later
    one overwrites the earlier in the index.
    """
    records: List[IndexRecord] = []
    for section in split_sections(document.text):
        if not section.content:
            continue
        records.append(
            IndexRecord(
                id=f"{document.relative_path}#{slugify(section.title)}",
                data=f"{section.title}\n\n{section.content}",
                metadata=SectionMetadata(
                    title=section.title,
                    path=document.relative_path,
                    level=section.level,
                    content=section.content,
                    document_title=document.title,
                ),
            )
        )
    return records


@dataclass(slots=True)
class IndexStats:
    documents: int = 0
    sections: int = 0
    failed: int = 0
    processed_files: list[Path] = field(default_factory=list)
    failures: dict[Path, str] = field(default_factory=dict)

    def record_success(self, path: Path, sections: int) -> None:
        self.documents += 1
        self.sections += sections
        self.processed_files.append(path)

    def record_failure(self, path: Path, error: BaseException) -> None:
        self.failed += 1
        self.failures[path] = str(error)
        self.processed_files.append(path)


class Indexer:
    """Rebuilds one namespace of the vector index from a documentation tree."""

    def __init__(self, index: VectorIndex, *, base_dir: Path | None = None) -> None:
        self.index = index
        self.base_dir = base_dir

    async def index_all(self, root_dir: Path, namespace: str) -> IndexStats:
        """Wipe ``namespace`` and re-index every markdown document under ``root_dir``.

        The reset happens before any write; a failure there propagates. After
        that, failures are per document: they are logged and counted, and the
        run continues, leaving the namespace partially populated.
        """
        base_dir = self.base_dir or Path.cwd()
        stats = IndexStats()

        paths = find_markdown([root_dir])
        LOGGER.info("Found %d markdown files under %s", len(paths), root_dir)

        documents: list[Document] = []
        for path in paths:
            try:
                documents.append(load_document(path, base_dir))
            except (OSError, UnicodeDecodeError) as e:
                LOGGER.error(f"Failed to read {path}: {e}")
                stats.record_failure(path, e)

        await self.index.reset(namespace)
        LOGGER.info("Reset namespace %r for fresh indexing", namespace)

        for document in documents:
            try:
                records = build_records(document)
                await self.index.upsert(records, namespace)
            except Exception as e:
                LOGGER.error(f"Failed to index {document.path} ({document.title}): {e}")
                stats.record_failure(document.path, e)
                continue

            LOGGER.info("Indexed %d sections: %s", len(records), document.title)
            stats.record_success(document.path, len(records))

        return stats
