# ABOUTME: The `folio comic` command for comic issue metadata.
# ABOUTME: Resolves an issue from a filename, series/issue/title options, or a ComicVine ID.

import click
from rich.console import Console

from folio.cli import options
from folio.cli.render import comic_results_table, comic_table
from folio.metadata.errors import MetadataError

console = Console()


@click.command()
@click.argument("filename", required=False)
@click.option("-s", "--series", default=None, help="Series name.")
@click.option("-i", "--issue", default=None, help="Issue number.")
@click.option("-t", "--title", default=None, help="Issue or story title.")
@click.option("-y", "--year", type=int, default=0, help="Publication year, 0 if unknown.")
@click.option("--id", "source_id", default=None, help="Fetch a ComicVine issue by ID.")
@click.option(
    "--all",
    "show_all",
    is_flag=True,
    default=False,
    help="List every ranked candidate instead of the best match.",
)
@options.comicvine_key_option
def comic(
    filename: str | None,
    series: str | None,
    issue: str | None,
    title: str | None,
    year: int,
    source_id: str | None,
    show_all: bool,
    comicvine_api_key: str | None,
) -> None:
    """Look up comic issue metadata.

    FILENAME, when given, is parsed for series, issue and year; explicit
    options override what the filename yields.
    """
    engine = options.create_engine(comicvine_api_key=comicvine_api_key)

    if filename:
        info = engine.parse_comic_filename(filename)
        series = series or info.series or None
        issue = issue or info.issue_number or None
        year = year or info.year
        console.print(f"[dim]Parsed: {info.title}[/dim]")

    if not (source_id or series or title):
        raise click.UsageError("Provide a FILENAME, --series, --title or --id.")

    try:
        if source_id:
            results = [engine.comic_issue_details(source_id)]
        elif show_all:
            results = engine.search_comic_metadata(series, issue, title, year)
        else:
            results = [engine.resolve_comic_metadata(series, issue, title, year)]
    except MetadataError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    if show_all and not source_id:
        console.print(comic_results_table(results))
        console.print(f"\n[dim]{len(results)} result(s)[/dim]")
    else:
        console.print(comic_table(results[0]))
