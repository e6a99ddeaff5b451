# ABOUTME: Provider protocols defining the contract for book and comic metadata sources.
# ABOUTME: Services depend only on these protocols, never on a concrete provider class.

from typing import Protocol, runtime_checkable

from folio.metadata.context import RequestContext
from folio.metadata.types import CoverSize, ResolvedComicMetadata, ResolvedMetadata


@runtime_checkable
class BookMetadataProvider(Protocol):
    """Protocol for book metadata lookup services (Open Library, Google Books, ...).

    Implementations raise NoMatchError when nothing is found, RateLimitedError
    when throttled, and ProviderError (or ProviderUnavailableError) otherwise.
    An empty search result list is equivalent to NoMatchError.
    """

    @property
    def name(self) -> str: ...

    def lookup_by_isbn(self, ctx: RequestContext, isbn: str) -> ResolvedMetadata: ...

    def search(
        self, ctx: RequestContext, title: str, author: str | None = None
    ) -> list[ResolvedMetadata]: ...

    def get_cover_url(self, isbn: str, size: CoverSize = CoverSize.MEDIUM) -> str: ...


@runtime_checkable
class ComicMetadataProvider(Protocol):
    """Protocol for comic metadata lookup services (ComicVine, ...)."""

    @property
    def name(self) -> str: ...

    @property
    def is_configured(self) -> bool: ...

    def search_by_series_and_issue(
        self, ctx: RequestContext, series: str, issue_number: str
    ) -> list[ResolvedComicMetadata]: ...

    def search_by_title(self, ctx: RequestContext, title: str) -> list[ResolvedComicMetadata]: ...

    def get_issue_details(self, ctx: RequestContext, source_id: str) -> ResolvedComicMetadata: ...
