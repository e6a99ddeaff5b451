# ABOUTME: The `folio inspect` command for viewing a document's embedded metadata.
# ABOUTME: Shows OPF fields for EPUB, ComicInfo.xml for CBZ and the info dictionary for PDF.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from folio.formats.comicinfo import read_comic_info
from folio.formats.epub import read_epub_metadata
from folio.formats.errors import ArchiveError
from folio.formats.pdf import read_pdf_metadata

console = Console()


def _epub_rows(path: Path) -> list[tuple[str, str]]:
    meta = read_epub_metadata(path)
    rows = [
        ("Title", meta.title or "[dim]unknown[/dim]"),
        ("Author", ", ".join(meta.authors) or "[dim]unknown[/dim]"),
        ("Language", meta.language or "[dim]unknown[/dim]"),
        ("Publisher", meta.publisher or "[dim]unknown[/dim]"),
        ("Date", meta.publish_date or "[dim]unknown[/dim]"),
        ("ISBN", meta.isbn or "[dim]none[/dim]"),
        ("Description", meta.description or "[dim]none[/dim]"),
        ("Series", meta.series or "[dim]none[/dim]"),
    ]
    if meta.series_index is not None:
        rows.append(("Series Index", f"{meta.series_index:g}"))
    if meta.subjects:
        rows.append(("Subjects", ", ".join(meta.subjects)))
    return rows


def _comic_rows(path: Path) -> list[tuple[str, str]]:
    info = read_comic_info(path)
    if not info:
        return [("ComicInfo.xml", "[dim]none[/dim]")]
    return [(tag, value) for tag, value in info.items() if value]


def _pdf_rows(path: Path) -> list[tuple[str, str]]:
    info = read_pdf_metadata(path)
    if not info:
        return [("Info", "[dim]none[/dim]")]
    return [(key.lstrip("/"), value) for key, value in info.items()]


_READERS = {
    ".epub": _epub_rows,
    ".cbz": _comic_rows,
    ".pdf": _pdf_rows,
}


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def inspect(path: Path) -> None:
    """Show metadata embedded in an EPUB, CBZ or PDF file."""
    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        console.print(f"[red]Error:[/red] Unsupported document type: {path.suffix or path.name}")
        raise SystemExit(1)

    try:
        rows = reader(path)
    except ArchiveError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    table = Table(title=str(path.name), show_header=False, pad_edge=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for field, value in rows:
        table.add_row(field, value)

    console.print(table)
