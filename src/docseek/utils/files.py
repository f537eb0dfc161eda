"""Utility helpers for working with files."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator

MARKDOWN_SUFFIXES = (".md", ".mdx")


def is_markdown(path: Path) -> bool:
    return path.suffix.lower() in MARKDOWN_SUFFIXES


def iter_markdown_paths(inputs: Iterable[Path]) -> Iterator[Path]:
    """Yield markdown paths from input paths, descending into non-hidden directories."""
    for item in inputs:
        if item.is_dir():
            children = sorted(
                child
                for child in item.iterdir()
                if not (child.is_dir() and child.name.startswith("."))
            )
            yield from iter_markdown_paths(children)
        elif item.is_file() and is_markdown(item):
            yield item
