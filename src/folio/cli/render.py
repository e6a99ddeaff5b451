# ABOUTME: Rich table rendering for resolved metadata shown by the CLI.
# ABOUTME: Single-record detail tables and ranked result lists for books and comics.

from rich.table import Table

from folio.metadata.types import ResolvedComicMetadata, ResolvedMetadata

_NONE = "[dim]none[/dim]"
_UNKNOWN = "[dim]unknown[/dim]"


def _confidence_style(confidence: float) -> str:
    if confidence >= 0.8:
        return "green"
    if confidence >= 0.5:
        return "yellow"
    return "red"


def format_confidence(confidence: float) -> str:
    style = _confidence_style(confidence)
    return f"[{style}]{confidence:.2f}[/{style}]"


def book_table(meta: ResolvedMetadata) -> Table:
    """Detail view of one resolved book."""
    table = Table(title=meta.title, show_header=False, pad_edge=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Title", meta.title)
    table.add_row("Author", meta.author or _UNKNOWN)
    table.add_row("Publisher", meta.publisher or _UNKNOWN)
    table.add_row("Published", meta.publish_date or _UNKNOWN)
    table.add_row("ISBN-13", meta.isbn_13 or _NONE)
    table.add_row("ISBN-10", meta.isbn_10 or _NONE)
    table.add_row("Language", meta.language or _UNKNOWN)
    if meta.page_count:
        table.add_row("Pages", str(meta.page_count))
    if meta.subjects:
        table.add_row("Subjects", ", ".join(meta.subjects))
    if meta.series:
        index = f" #{meta.series_index:g}" if meta.series_index is not None else ""
        table.add_row("Series", f"{meta.series}{index}")
    table.add_row("Cover", meta.cover_url or _NONE)
    table.add_row("Source", f"{meta.source} ({meta.source_id or '-'})")
    table.add_row("Confidence", format_confidence(meta.confidence))
    return table


def comic_table(meta: ResolvedComicMetadata) -> Table:
    """Detail view of one resolved comic issue."""
    table = Table(title=meta.title, show_header=False, pad_edge=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Series", meta.series or _UNKNOWN)
    table.add_row("Issue", meta.issue_number or _NONE)
    if meta.volume:
        table.add_row("Volume", str(meta.volume))
    table.add_row("Publisher", meta.publisher or _UNKNOWN)
    table.add_row("Released", meta.release_date or _UNKNOWN)
    table.add_row("Writers", ", ".join(meta.writers) or _UNKNOWN)
    table.add_row("Artists", ", ".join(meta.artists) or _UNKNOWN)
    if meta.cover_artists:
        table.add_row("Cover Artists", ", ".join(meta.cover_artists))
    if meta.colorists:
        table.add_row("Colorists", ", ".join(meta.colorists))
    table.add_row("Cover", meta.cover_url or _NONE)
    table.add_row("Source", f"{meta.source} ({meta.source_id or '-'})")
    table.add_row("Confidence", format_confidence(meta.confidence))
    return table


def book_results_table(results: list[ResolvedMetadata]) -> Table:
    table = Table()
    table.add_column("#", style="dim", width=3)
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Published")
    table.add_column("Source")
    table.add_column("Score", justify="right")

    for idx, meta in enumerate(results, 1):
        table.add_row(
            str(idx),
            meta.title,
            meta.author or _UNKNOWN,
            meta.publish_date or "?",
            meta.source,
            format_confidence(meta.confidence),
        )
    return table


def comic_results_table(results: list[ResolvedComicMetadata]) -> Table:
    table = Table()
    table.add_column("#", style="dim", width=3)
    table.add_column("Series", style="bold")
    table.add_column("Issue")
    table.add_column("Released")
    table.add_column("ID", style="dim")
    table.add_column("Score", justify="right")

    for idx, meta in enumerate(results, 1):
        table.add_row(
            str(idx),
            meta.series or meta.title,
            meta.issue_number or "?",
            meta.release_date or "?",
            meta.source_id or "-",
            format_confidence(meta.confidence),
        )
    return table
