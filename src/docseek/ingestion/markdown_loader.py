"""Markdown document loading and title extraction."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from docseek.models import Document
from docseek.utils.files import MARKDOWN_SUFFIXES

LOGGER = logging.getLogger(__name__)

_FRONT_MATTER_TITLE = re.compile(r"^---[\s\S]*?\ntitle:\s*[\"']?(.*?)[\"']?\n[\s\S]*?---")


def title_from_filename(file_name: str) -> str:
    """Build a title from a file name: ``getting-started.md`` -> ``Getting Started``."""
    stem = Path(file_name).stem
    return " ".join(word[:1].upper() + word[1:].lower() for word in re.split(r"[-_]", stem))


def extract_title(text: str, file_name: str) -> str:
    """Return the front-matter ``title`` if present, else a title derived from the file name."""
    match = _FRONT_MATTER_TITLE.match(text)
    if match:
        return re.sub(r"[\"']", "", match.group(1)).strip()
    return title_from_filename(file_name)


def relative_doc_path(path: Path, base_dir: Path) -> str:
    """Site-relative path used as the ID prefix, with the markdown extension removed."""
    try:
        relative = path.resolve().relative_to(base_dir.resolve())
    except ValueError:
        relative = Path(path.name)
    posix = relative.as_posix()
    for suffix in MARKDOWN_SUFFIXES:
        if posix.lower().endswith(suffix):
            return posix[: -len(suffix)]
    return posix


def load_document(path: Path, base_dir: Path) -> Document:
    """Read a markdown file and derive its relative path and title."""
    text = path.read_text(encoding="utf-8")
    LOGGER.debug("Loaded %s (%d chars)", path, len(text))
    return Document(
        path=path,
        relative_path=relative_doc_path(path, base_dir),
        text=text,
        title=extract_title(text, path.name),
    )
