"""
CLI Main - Typer command-line interface.
========================================

Commands:
- ingest: Chunk, embed and index a course document
- query: Retrieve grounding passages for a question
- analyze: Analyze a transcript, report card or schedule
- clear-cache: Delete cached embeddings
- clear-vectors: Delete all indexed vectors
- info: Show configuration and index status
"""

import asyncio
import os
from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from course_advisor.shared.logging import (
    LogContext,
    get_console,
    get_logger,
    setup_logging_from_settings,
)

logger = get_logger(__name__)

app = typer.Typer(
    name="courseadvisor",
    help="""🎓 Course Advisor - retrieval and analysis over a school course catalog

Index catalog and handbook text, retrieve grounded passages for questions,
and analyze a student's own academic record against graduation and
UC/CSU A-G requirements.

QUICK START:

  courseadvisor ingest catalog.txt --tag catalog     # Index a document
  courseadvisor query "What math courses are offered?"
  courseadvisor analyze transcript.txt               # Gap analysis

Documents are plain text produced by an external PDF/OCR extractor.
Use 'courseadvisor <command> --help' for detailed command options.
""",
    add_completion=False,
    rich_markup_mode="rich",
)

console = get_console()


@app.callback()
def main():
    """Configure logging from settings before any command runs."""
    setup_logging_from_settings()


def _read_document(path: Path) -> str:
    if not path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8")


# ─────────────────────────────────────────────────────────────────────────────
# Ingest Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def ingest(
    file: Path = typer.Argument(..., help="Plain-text document to index."),
    tag: Optional[str] = typer.Option(
        None,
        "--tag", "-t",
        help="Source tag for the document (defaults to the file name).",
    ),
    backend: Optional[str] = typer.Option(
        None,
        "--backend", "-b",
        help="Vector store backend: memory or chroma (default from config).",
    ),
    replace: bool = typer.Option(
        False,
        "--replace",
        help="Delete this tag's existing vectors first (chroma backend only).",
    ),
):
    """
    📥 Chunk, embed and index a document.

    Examples:
        courseadvisor ingest data/catalog.txt --tag catalog
        courseadvisor ingest data/handbook.txt -t handbook --replace
    """
    from course_advisor.indexing.vector_store import ChromaVectorStore
    from course_advisor.service import create_service

    text = _read_document(file)
    source_tag = tag or file.stem

    service = create_service(backend)
    service.ingestion.show_progress = True

    if replace and isinstance(service.store, ChromaVectorStore):
        service.store.delete_source(source_tag)

    # Per-batch INFO logs would break up the progress bar
    with LogContext("WARNING", "course_advisor"):
        stored = asyncio.run(service.ingest(text, source_tag))

    if stored == 0:
        console.print("[yellow]No vectors stored; only lexical search will be available.[/yellow]")
    console.print(
        f"[green]✓ Stored {stored} vectors for '{source_tag}' "
        f"({service.vector_count()} total)[/green]"
    )


# ─────────────────────────────────────────────────────────────────────────────
# Query Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def query(
    question: str = typer.Argument(..., help="Question about the catalog (wrap in quotes)."),
    top_k: Optional[int] = typer.Option(
        None,
        "--top-k", "-k",
        help="Number of passages from semantic search (default from config).",
    ),
    documents: Optional[list[Path]] = typer.Option(
        None,
        "--doc", "-d",
        help="Document(s) to use for lexical fallback search. Repeatable.",
    ),
    backend: Optional[str] = typer.Option(
        None,
        "--backend", "-b",
        help="Vector store backend: memory or chroma (default from config).",
    ),
):
    """
    💬 Retrieve grounding passages for a question.

    Semantic search runs first; when it has nothing, the documents given
    with --doc are searched by keyword.

    Examples:
        courseadvisor query "What math courses are offered?"
        courseadvisor query "biology prerequisites" --doc data/catalog.txt -k 3
    """
    from course_advisor.rag.prompts import NO_INFORMATION_MESSAGE
    from course_advisor.service import create_service

    service = create_service(backend)
    for path in documents or []:
        service.registry.register(path.stem, service.ingestion.cleaner.clean(_read_document(path)))

    console.print(f"\n[bold]Question:[/bold] {question}\n")
    result = asyncio.run(service.retrieve_result(question, top_k))

    if result.is_empty:
        console.print(f"[yellow]{NO_INFORMATION_MESSAGE}[/yellow]")
        raise typer.Exit(0)

    table = Table(show_header=True, title=f"Passages ({result.tier} search)")
    table.add_column("#", justify="right")
    table.add_column("Passage")
    table.add_column("Score", justify="right")

    scores = [f"{hit.score:.3f}" for hit in result.hits]
    for i, passage in enumerate(result.passages):
        table.add_row(str(i + 1), passage[:300], scores[i] if i < len(scores) else "-")

    console.print(table)


# ─────────────────────────────────────────────────────────────────────────────
# Analyze Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def analyze(
    file: Path = typer.Argument(..., help="Transcript, report card or schedule as plain text."),
    show_briefing: bool = typer.Option(
        True,
        "--briefing/--no-briefing",
        help="Print the structured briefing.",
    ),
):
    """
    📊 Analyze a personal academic record.

    Extracts courses with the language model, then reports graduation and
    A-G requirement gaps.

    Examples:
        courseadvisor analyze transcript.txt
    """
    from course_advisor.service import create_service

    text = _read_document(file)
    service = create_service("memory")
    result = asyncio.run(service.analyze_document(text, file.name))

    if result.parse_error:
        console.print(f"[yellow]⚠ Could not extract courses: {result.parse_error}[/yellow]")

    table = Table(title="Graduation Requirements")
    table.add_column("Category")
    table.add_column("Completed", justify="right")
    table.add_column("Required", justify="right")
    table.add_column("Credits", justify="right")
    table.add_column("Status")

    gaps = result.gap_analysis
    for check in gaps.completed_requirements + gaps.missing_requirements:
        style = {"met": "green", "in_progress": "yellow"}.get(check.status, "red")
        table.add_row(
            check.category,
            str(check.completed),
            str(check.required),
            f"{check.credits_earned:g}/{check.credits_required}",
            f"[{style}]{check.status}[/{style}]",
        )
    console.print(table)

    on_track = "[green]✓ On track[/green]" if gaps.on_track else "[red]✗ Gaps remaining[/red]"
    console.print(
        f"\n{on_track}  ({len(result.courses)} courses, "
        f"{result.processing_time_ms:.0f}ms)\n"
    )

    if show_briefing:
        console.print(Panel(result.briefing, title="📋 Briefing", border_style="blue"))


# ─────────────────────────────────────────────────────────────────────────────
# Admin Commands
# ─────────────────────────────────────────────────────────────────────────────


@app.command("clear-cache")
def clear_cache():
    """🗑️ Delete all cached embeddings."""
    from course_advisor.indexing.embedding_cache import EmbeddingCache

    cleared = EmbeddingCache().clear()
    console.print(f"[green]✓ Cleared {cleared} cached embeddings[/green]")


@app.command("clear-vectors")
def clear_vectors(
    backend: Optional[str] = typer.Option(
        None,
        "--backend", "-b",
        help="Vector store backend: memory or chroma (default from config).",
    ),
):
    """🗑️ Delete all indexed vectors."""
    from course_advisor.indexing.vector_store import create_vector_store

    cleared = create_vector_store(backend).clear()
    console.print(f"[green]✓ Cleared {cleared} vectors[/green]")


@app.command()
def info():
    """
    ℹ️ Show configuration and index status.

    Displays:
      • Version information
      • Embedding, generation and vector store settings
      • Cache and index paths with their existence status
    """
    from course_advisor import __version__
    from course_advisor.indexing.embedding_cache import EmbeddingCache
    from course_advisor.shared.config import (
        CONFIG_ENV_VAR,
        DEFAULT_CONFIG_FILE,
        get_settings,
    )

    settings = get_settings()
    config_file = Path(os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILE)

    console.print(Panel(
        f"[bold]Course Advisor[/bold]\n"
        f"Version: {__version__}\n"
        f"Config: {config_file}",
        title="ℹ️ Info",
    ))

    table = Table(show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Embedding provider", settings.get_effective_embedding_provider())
    table.add_row("Embedding model", settings.embeddings.gemini.model_name)
    table.add_row("Generation model", settings.generation.model_name)
    table.add_row("Vector backend", settings.get_effective_vector_backend())
    table.add_row("Top-k", str(settings.get_effective_top_k()))
    table.add_row("Chunk size / overlap", f"{settings.chunking.chunk_size} / {settings.chunking.chunk_overlap}")
    table.add_row("API key set", "✓" if settings.gemini_api_key else "✗")
    console.print(table)

    cache_stats = EmbeddingCache().stats()
    console.print(f"\n[bold]Embedding cache:[/bold] {cache_stats['size']} entries")

    console.print("\n[bold]Data Paths:[/bold]")
    paths = {
        "embeddings_cache": settings.resolve_path(settings.cache.embeddings_file),
        "index_dir": settings.resolve_path(settings.vector_store.persist_directory),
    }
    for name, path in paths.items():
        exists = "✓" if path.exists() else "✗"
        console.print(f"  {name}: {path} [{exists}]")


# ─────────────────────────────────────────────────────────────────────────────
# Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def cli():
    """CLI entry point."""
    app()


if __name__ == "__main__":
    cli()
