# ABOUTME: The `folio parse` command for inspecting the comic filename heuristics.
# ABOUTME: Prints the series, issue, volume and year recovered from each filename.

import click
from rich.console import Console
from rich.table import Table

from folio.formats.filename import parse_comic_filename

console = Console()


@click.command()
@click.argument("filenames", nargs=-1, required=True)
def parse(filenames: tuple[str, ...]) -> None:
    """Parse comic filenames into series, issue, volume and year."""
    table = Table()
    table.add_column("Filename", style="dim")
    table.add_column("Series", style="bold")
    table.add_column("Issue")
    table.add_column("Volume")
    table.add_column("Year")

    for filename in filenames:
        info = parse_comic_filename(filename)
        table.add_row(
            info.raw_filename,
            info.series or "[dim]?[/dim]",
            info.issue_number or "-",
            str(info.volume) if info.volume else "-",
            str(info.year) if info.year else "-",
        )

    console.print(table)
