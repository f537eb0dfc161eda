"""Command line interface for docseek."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from docseek.answer.synthesizer import AnswerSynthesizer, ContextItem, SynthesisConfig
from docseek.config import AppConfig
from docseek.errors import (
    ConfigurationError,
    PartialStreamError,
    RetrievalError,
    SynthesisError,
    VectorIndexError,
)
from docseek.index.backends import open_vector_index
from docseek.index.indexer import Indexer, IndexStats
from docseek.index.search import Searcher, SearchResult

console = Console()
app = typer.Typer(help="docseek - semantic documentation search with AI answers")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load_config(**overrides) -> AppConfig:
    try:
        return AppConfig.from_env(**overrides)
    except ConfigurationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc


async def _run_index(config: AppConfig, docs_dir: Path) -> IndexStats:
    index = open_vector_index(config, base_dir=config.base_dir)
    try:
        indexer = Indexer(index, base_dir=config.base_dir)
        return await indexer.index_all(docs_dir, config.namespace)
    finally:
        await index.aclose()


async def _run_search(config: AppConfig, query: str, top_k: int) -> List[SearchResult]:
    index = open_vector_index(config, base_dir=config.base_dir)
    try:
        searcher = Searcher(index, namespace=config.namespace, top_k=top_k)
        return await searcher.query(query)
    finally:
        await index.aclose()


@app.command()
def index(
    docs_dir: Path = typer.Argument(Path("docs"), help="Documentation directory to index."),
    namespace: Optional[str] = typer.Option(None, "--namespace", "-n", help="Vector index namespace"),
    backend: Optional[str] = typer.Option(None, "--backend", help="Vector backend: upstash or local"),
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite database path (local backend)"),
    base_dir: Optional[Path] = typer.Option(None, "--base-dir", help="Directory record IDs are relative to"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Reset the namespace and index every markdown document under DOCS_DIR."""
    _setup_logging(verbose)
    config = _load_config(
        namespace=namespace, vector_backend=backend, db_path=db, base_dir=base_dir
    )
    if not docs_dir.is_dir():
        console.print(f"[red]Documentation directory not found: {docs_dir}[/red]")
        raise typer.Exit(code=1)

    console.print(f"Indexing [bold]{docs_dir}[/bold] into namespace [bold]{config.namespace}[/bold]...")
    try:
        stats = asyncio.run(_run_index(config, docs_dir))
    except (ConfigurationError, VectorIndexError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    for path, reason in stats.failures.items():
        console.print(f"[red]Failed:[/red] {path}: {reason}")
    console.print(
        f"Documents: {stats.documents}, sections: {stats.sections}, failed: {stats.failed}"
    )


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    namespace: Optional[str] = typer.Option(None, "--namespace", "-n", help="Vector index namespace"),
    backend: Optional[str] = typer.Option(None, "--backend", help="Vector backend: upstash or local"),
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite database path (local backend)"),
    top_k: int = typer.Option(AppConfig().top_k, help="Number of results to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Execute a semantic search."""
    _setup_logging(verbose)
    config = _load_config(namespace=namespace, vector_backend=backend, db_path=db)
    try:
        results = asyncio.run(_run_search(config, query, top_k))
    except (ConfigurationError, RetrievalError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Document")
    table.add_column("Section")
    table.add_column("Route")

    for result in results:
        score = f"{result.score:.4f}" if result.score is not None else "-"
        table.add_row(score, result.metadata.document_title, result.metadata.title, result.route)

    console.print(table)


async def _run_ask(config: AppConfig, question: str) -> None:
    results = await _run_search(config, question, config.top_k)
    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    synthesizer = AnswerSynthesizer.from_api_key(
        config.openai_api_key,
        SynthesisConfig(
            model=config.chat_model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        ),
    )
    context = [
        ContextItem(content=result.data, metadata=result.metadata.to_dict()) for result in results
    ]
    try:
        async for piece in synthesizer.stream(question, context):
            console.print(piece, end="", markup=False, highlight=False)
    finally:
        console.print()
        await synthesizer.aclose()

    console.print("\n[bold]Sources[/bold]")
    for result in results[:5]:
        console.print(f"  {result.route}")


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to answer from the documentation"),
    namespace: Optional[str] = typer.Option(None, "--namespace", "-n", help="Vector index namespace"),
    backend: Optional[str] = typer.Option(None, "--backend", help="Vector backend: upstash or local"),
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite database path (local backend)"),
    model: Optional[str] = typer.Option(None, "--model", help="Chat model name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search, then stream an AI answer grounded in the results."""
    _setup_logging(verbose)
    config = _load_config(namespace=namespace, vector_backend=backend, db_path=db, chat_model=model)
    try:
        asyncio.run(_run_ask(config, question))
    except PartialStreamError as exc:
        console.print("[yellow]The answer was interrupted; the text above is incomplete.[/yellow]")
        raise typer.Exit(code=1) from exc
    except (ConfigurationError, RetrievalError, SynthesisError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
) -> None:
    """Serve the retrieval and answer endpoints."""
    import uvicorn

    from docseek.web.app import app as web_app

    console.print(f"Starting docseek API on http://{host}:{port}")
    uvicorn.run(web_app, host=host, port=port, reload=False, log_level="info")
