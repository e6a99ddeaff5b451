# ABOUTME: Caller-facing facade over filename parsing, metadata resolution and archive rewriting.
# ABOUTME: Applies per-lookup deadlines from FolioConfig and wires the default providers.

import logging
from pathlib import Path

from folio.config import FolioConfig
from folio.formats.archive import rewrite_archive_metadata
from folio.formats.atomic import Verifier
from folio.formats.filename import FilenameInfo, parse_comic_filename
from folio.formats.types import ArchiveMetadata, RewriteOutcome
from folio.metadata.comicvine import ComicVineProvider
from folio.metadata.context import RequestContext
from folio.metadata.googlebooks import GoogleBooksProvider
from folio.metadata.http import FolioHttpClient
from folio.metadata.openlibrary import OpenLibraryProvider
from folio.metadata.ratelimit import RateLimiter
from folio.metadata.service import BookMetadataService, ComicMetadataService
from folio.metadata.types import CoverSize, ResolvedComicMetadata, ResolvedMetadata

logger = logging.getLogger(__name__)


class MetadataEngine:
    """Resolve metadata for library items and write it back into their files.

    Safe to share across threads: the services' rate limiters and the
    rewrite lock table are the only shared mutable state.

    A lookup without an explicit ctx gets a fresh RequestContext bounded by
    the configured deadline. A caller-supplied ctx is used as given.
    """

    def __init__(
        self,
        books: BookMetadataService,
        comics: ComicMetadataService,
        *,
        config: FolioConfig | None = None,
    ) -> None:
        self._books = books
        self._comics = comics
        self._config = config or FolioConfig()

    @classmethod
    def from_config(cls, config: FolioConfig | None = None) -> "MetadataEngine":
        """Build an engine with Open Library, Google Books and ComicVine providers."""
        config = config or FolioConfig.from_env()
        book_http = FolioHttpClient(timeout=config.book_provider_timeout)
        comic_http = FolioHttpClient(timeout=config.comic_provider_timeout)

        books = BookMetadataService(
            OpenLibraryProvider(book_http, timeout=config.book_provider_timeout),
            GoogleBooksProvider(
                book_http,
                api_key=config.google_books_api_key,
                timeout=config.book_provider_timeout,
            ),
            rate_limiter=RateLimiter(config.book_rate_interval),
        )
        comics = ComicMetadataService(
            ComicVineProvider(
                comic_http,
                api_key=config.comicvine_api_key,
                timeout=config.comic_provider_timeout,
            ),
            rate_limiter=RateLimiter(config.comic_rate_interval),
        )
        if not comics.is_configured:
            logger.debug("ComicVine API key not set; comic lookups are unavailable")
        return cls(books, comics, config=config)

    @property
    def config(self) -> FolioConfig:
        return self._config

    @property
    def comics_configured(self) -> bool:
        return self._comics.is_configured

    def resolve_book_metadata(
        self,
        isbn: str | None = None,
        title: str | None = None,
        author: str | None = None,
        *,
        ctx: RequestContext | None = None,
    ) -> ResolvedMetadata:
        return self._books.lookup(
            isbn, title, author, ctx=ctx or RequestContext(self._config.book_lookup_deadline)
        )

    def search_book_metadata(
        self,
        isbn: str | None = None,
        title: str | None = None,
        author: str | None = None,
        *,
        year: int | None = None,
        ctx: RequestContext | None = None,
    ) -> list[ResolvedMetadata]:
        return self._books.search(
            isbn,
            title,
            author,
            year=year,
            ctx=ctx or RequestContext(self._config.book_lookup_deadline),
        )

    def resolve_comic_metadata(
        self,
        series: str | None = None,
        issue: str | None = None,
        title: str | None = None,
        year: int = 0,
        *,
        ctx: RequestContext | None = None,
    ) -> ResolvedComicMetadata:
        return self._comics.lookup(
            series,
            issue,
            title,
            year,
            ctx=ctx or RequestContext(self._config.comic_lookup_deadline),
        )

    def search_comic_metadata(
        self,
        series: str | None = None,
        issue: str | None = None,
        title: str | None = None,
        year: int = 0,
        *,
        ctx: RequestContext | None = None,
    ) -> list[ResolvedComicMetadata]:
        return self._comics.search(
            series,
            issue,
            title,
            year,
            ctx=ctx or RequestContext(self._config.comic_lookup_deadline),
        )

    def comic_issue_details(
        self, source_id: str, *, ctx: RequestContext | None = None
    ) -> ResolvedComicMetadata:
        return self._comics.issue_details(
            source_id, ctx=ctx or RequestContext(self._config.comic_lookup_deadline)
        )

    def book_cover_url(self, isbn: str, size: CoverSize = CoverSize.MEDIUM) -> str:
        return self._books.cover_url(isbn, size)

    def parse_comic_filename(self, filename: str) -> FilenameInfo:
        return parse_comic_filename(filename)

    def rewrite_archive_metadata(
        self,
        path: Path,
        metadata: ArchiveMetadata | ResolvedMetadata | ResolvedComicMetadata,
        *,
        verify: Verifier | None = None,
    ) -> RewriteOutcome:
        """Write metadata into the file at `path`; resolved records are converted first."""
        if isinstance(metadata, ResolvedMetadata):
            metadata = ArchiveMetadata.from_resolved(metadata)
        elif isinstance(metadata, ResolvedComicMetadata):
            metadata = ArchiveMetadata.from_comic(metadata)
        return rewrite_archive_metadata(Path(path), metadata, verify=verify)
