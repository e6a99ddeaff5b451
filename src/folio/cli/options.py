# ABOUTME: Shared Click options and engine construction for Folio CLI commands.
# ABOUTME: API key options fall back to the same environment variables FolioConfig reads.

from dataclasses import replace

import click

from folio.config import COMICVINE_API_KEY_ENV, GOOGLE_BOOKS_API_KEY_ENV, FolioConfig
from folio.core.engine import MetadataEngine

comicvine_key_option = click.option(
    "--comicvine-key",
    "comicvine_api_key",
    envvar=COMICVINE_API_KEY_ENV,
    default=None,
    help=f"ComicVine API key (default: ${COMICVINE_API_KEY_ENV}).",
)

google_books_key_option = click.option(
    "--google-books-key",
    "google_books_api_key",
    envvar=GOOGLE_BOOKS_API_KEY_ENV,
    default=None,
    help=f"Google Books API key (default: ${GOOGLE_BOOKS_API_KEY_ENV}).",
)


def create_engine(
    comicvine_api_key: str | None = None, google_books_api_key: str | None = None
) -> MetadataEngine:
    """Create an engine from the environment, with explicit keys taking precedence."""
    config = FolioConfig.from_env()
    if comicvine_api_key:
        config = replace(config, comicvine_api_key=comicvine_api_key)
    if google_books_api_key:
        config = replace(config, google_books_api_key=google_books_api_key)
    return MetadataEngine.from_config(config)
