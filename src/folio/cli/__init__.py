# ABOUTME: CLI package for Folio, built on Click.
# ABOUTME: Defines the root command group, configures Rich logging and registers subcommands.

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from folio.cli.commands import (
    comic_cmd,
    inspect_cmd,
    lookup_cmd,
    parse_cmd,
    refresh_cmd,
    write_cmd,
)


@click.group()
@click.version_option(package_name="folio")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Folio - resolve book and comic metadata and write it into your files."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


cli.add_command(parse_cmd.parse)
cli.add_command(lookup_cmd.lookup)
cli.add_command(lookup_cmd.cover)
cli.add_command(comic_cmd.comic)
cli.add_command(write_cmd.write)
cli.add_command(refresh_cmd.refresh)
cli.add_command(inspect_cmd.inspect)
