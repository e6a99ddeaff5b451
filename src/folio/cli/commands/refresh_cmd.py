# ABOUTME: The `folio refresh` command: resolve and write metadata for EPUB and CBZ files.
# ABOUTME: Walks files or directories, refreshing each in place with read-back verification.

from pathlib import Path

import click
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

from folio.cli import options
from folio.core.pipeline import RefreshResult, refresh_book, refresh_comic
from folio.metadata.errors import LookupCancelledError

_SUFFIXES = (".epub", ".cbz")


def _find_documents(paths: tuple[Path, ...]) -> list[Path]:
    """Expand directories into the EPUB and CBZ files beneath them."""
    found: list[Path] = []
    for path in paths:
        if path.is_file():
            found.append(path)
            continue
        found.extend(
            sorted(p for p in path.rglob("*") if p.is_file() and p.suffix.lower() in _SUFFIXES)
        )
    return found


def _make_progress(console: Console) -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
    )


def _report(console: Console, result: RefreshResult) -> None:
    if result.success:
        state = result.outcome.value if result.outcome else "done"
        score = f" ({result.match.confidence:.2f})" if result.match else ""
        console.print(f"[green]{state}[/green] {result.path.name}{score}")
        return
    console.print(f"[red]failed[/red] {result.path.name}: {result.error}")
    for check in result.verified_fields:
        if not check.passed:
            console.print(
                f"  [dim]{check.field}: expected {check.expected!r}, got {check.actual!r}[/dim]"
            )


@click.command()
@click.argument(
    "paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path)
)
@click.option(
    "--threshold",
    type=click.FloatRange(0.0),
    default=None,
    help="Minimum comic match confidence to write (default: FOLIO_COMIC_APPLY_THRESHOLD or 0.5).",
)
@options.comicvine_key_option
@options.google_books_key_option
def refresh(
    paths: tuple[Path, ...],
    threshold: float | None,
    comicvine_api_key: str | None,
    google_books_api_key: str | None,
) -> None:
    """Resolve fresh metadata for EPUB and CBZ files and write it into them."""
    console = Console()
    documents = _find_documents(paths)
    if not documents:
        console.print("[yellow]No EPUB or CBZ files found.[/yellow]")
        return

    engine = options.create_engine(
        comicvine_api_key=comicvine_api_key, google_books_api_key=google_books_api_key
    )

    updated = 0
    failed = 0
    progress = _make_progress(console)
    task_id = progress.add_task("Refreshing", total=len(documents))

    with progress:
        for doc in documents:
            suffix = doc.suffix.lower()
            try:
                if suffix == ".epub":
                    result = refresh_book(engine, doc)
                elif suffix == ".cbz":
                    result = refresh_comic(engine, doc, threshold)
                else:
                    progress.console.print(f"[yellow]skipped[/yellow] {doc.name}: unsupported")
                    progress.advance(task_id)
                    continue
            except LookupCancelledError as exc:
                result = RefreshResult(path=doc, success=False, error=str(exc))

            _report(progress.console, result)
            if result.success:
                updated += 1
            else:
                failed += 1
            progress.advance(task_id)

    console.print(f"\n[bold]{updated} refreshed, {failed} failed[/bold]")
    if failed:
        raise SystemExit(1)
