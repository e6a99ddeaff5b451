# ABOUTME: The `folio write` command for writing metadata fields into a document.
# ABOUTME: Rewrites the OPF, ComicInfo.xml or PDF info dictionary in place, atomically.

from pathlib import Path

import click
from rich.console import Console

from folio.formats.archive import ArchiveError, RewriteOutcome, rewrite_archive_metadata
from folio.formats.types import ArchiveMetadata

console = Console()


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-t", "--title", default=None, help="Title.")
@click.option("-a", "--author", "authors", multiple=True, help="Author or writer (repeatable).")
@click.option("--isbn", default=None, help="ISBN (EPUB only).")
@click.option("--publisher", default=None, help="Publisher.")
@click.option("--language", default=None, help="Language code, e.g. en.")
@click.option("--date", "publish_date", default=None, help="Publication date (YYYY[-MM[-DD]]).")
@click.option("--description", default=None, help="Description or summary.")
@click.option("--series", default=None, help="Series name.")
@click.option("--series-index", type=float, default=None, help="Position in the series (EPUB).")
@click.option("--issue", "issue_number", default=None, help="Issue number (CBZ).")
@click.option("--volume", type=int, default=None, help="Volume number (CBZ).")
@click.option("--subject", "subjects", multiple=True, help="Subject or genre (repeatable).")
def write(
    path: Path,
    title: str | None,
    authors: tuple[str, ...],
    isbn: str | None,
    publisher: str | None,
    language: str | None,
    publish_date: str | None,
    description: str | None,
    series: str | None,
    series_index: float | None,
    issue_number: str | None,
    volume: int | None,
    subjects: tuple[str, ...],
) -> None:
    """Write metadata fields into an EPUB, CBZ or PDF file."""
    metadata = ArchiveMetadata(
        title=title,
        authors=authors,
        isbn=isbn,
        publisher=publisher,
        language=language,
        publish_date=publish_date,
        description=description,
        series=series,
        series_index=series_index,
        issue_number=issue_number,
        volume=volume,
        subjects=subjects,
    )
    if metadata.is_empty:
        raise click.UsageError("Nothing to write: pass at least one field option.")

    try:
        outcome = rewrite_archive_metadata(path, metadata)
    except ArchiveError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    if outcome is RewriteOutcome.UPDATED:
        console.print(f"[green]Updated[/green] {path.name}")
    else:
        console.print(f"[dim]Unchanged[/dim] {path.name}")
