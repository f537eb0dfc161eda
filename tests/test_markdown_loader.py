"""Tests for markdown loading and title extraction."""

from __future__ import annotations

from pathlib import Path

import pytest

from docseek.ingestion.markdown_loader import (
    extract_title,
    load_document,
    relative_doc_path,
    title_from_filename,
)


class TestTitleFromFilename:
    """Test filename-derived titles."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("getting-started.md", "Getting Started"),
            ("deploy_to_prod.mdx", "Deploy To Prod"),
            ("README.md", "Readme"),
            ("api-V2_guide.md", "Api V2 Guide"),
        ],
    )
    def test_title_case(self, name: str, expected: str) -> None:
        assert title_from_filename(name) == expected


class TestExtractTitle:
    """Test front-matter title extraction."""

    def test_quoted_front_matter(self) -> None:
        text = '---\nsidebar_position: 1\ntitle: "Getting Started"\n---\n# Body'
        assert extract_title(text, "intro.md") == "Getting Started"

    def test_single_quoted_front_matter(self) -> None:
        text = "---\ntitle: 'Setup'\nslug: /setup\n---\n"
        assert extract_title(text, "intro.md") == "Setup"

    def test_unquoted_front_matter(self) -> None:
        text = "---\ntitle: Plain Title\n---\n"
        assert extract_title(text, "intro.md") == "Plain Title"

    def test_falls_back_to_filename(self) -> None:
        assert extract_title("# Heading\n\nBody", "my-page.md") == "My Page"

    def test_front_matter_without_title(self) -> None:
        text = "---\nsidebar_position: 2\n---\n# Heading"
        assert extract_title(text, "faq.md") == "Faq"


class TestRelativeDocPath:
    """Test record ID path derivation."""

    def test_strips_extension(self, tmp_path: Path) -> None:
        doc = tmp_path / "docs" / "guides" / "setup.mdx"
        assert relative_doc_path(doc, tmp_path) == "docs/guides/setup"

    def test_outside_base_uses_name(self, tmp_path: Path) -> None:
        doc = tmp_path / "a" / "page.md"
        other = tmp_path / "b"
        assert relative_doc_path(doc, other) == "page"


class TestLoadDocument:
    """Test load_document."""

    def test_load(self, docs_tree: Path) -> None:
        path = docs_tree / "getting-started.md"
        document = load_document(path, docs_tree.parent)

        assert document.path == path
        assert document.relative_path == "docs/getting-started"
        assert document.title == "Getting Started"
        assert "## Installation" in document.text

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            load_document(tmp_path / "missing.md", tmp_path)
