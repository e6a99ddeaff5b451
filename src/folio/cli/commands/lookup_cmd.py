# ABOUTME: The `folio lookup` and `folio cover` commands for book metadata.
# ABOUTME: Resolves a book by ISBN or title/author through the provider chain.

import click
from rich.console import Console

from folio.cli import options
from folio.cli.render import book_results_table, book_table
from folio.metadata.errors import MetadataError
from folio.metadata.types import CoverSize

console = Console()


@click.command()
@click.option("--isbn", default=None, help="ISBN-10 or ISBN-13 to look up.")
@click.option("-t", "--title", default=None, help="Book title.")
@click.option("-a", "--author", default=None, help="Author name.")
@click.option("-y", "--year", type=int, default=None, help="Prefer results published this year.")
@click.option(
    "--all",
    "show_all",
    is_flag=True,
    default=False,
    help="List every ranked candidate instead of the best match.",
)
@options.google_books_key_option
def lookup(
    isbn: str | None,
    title: str | None,
    author: str | None,
    year: int | None,
    show_all: bool,
    google_books_api_key: str | None,
) -> None:
    """Look up book metadata by ISBN or title and author."""
    if not (isbn or title):
        raise click.UsageError("Provide --isbn or --title.")

    engine = options.create_engine(google_books_api_key=google_books_api_key)
    try:
        if show_all:
            results = engine.search_book_metadata(isbn, title, author, year=year)
        else:
            best = engine.resolve_book_metadata(isbn, title, author)
    except MetadataError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    if show_all:
        console.print(book_results_table(results))
        console.print(f"\n[dim]{len(results)} result(s)[/dim]")
    else:
        console.print(book_table(best))


@click.command()
@click.argument("isbn")
@click.option(
    "-s",
    "--size",
    type=click.Choice([s.value for s in CoverSize], case_sensitive=False),
    default=CoverSize.MEDIUM.value,
    help="Cover size: S, M or L (default: M).",
)
def cover(isbn: str, size: str) -> None:
    """Print the cover image URL for an ISBN."""
    engine = options.create_engine()
    url = engine.book_cover_url(isbn, CoverSize(size.upper()))
    if not url:
        console.print("[yellow]No cover URL for that ISBN.[/yellow]")
        raise SystemExit(1)
    console.print(url, soft_wrap=True)
