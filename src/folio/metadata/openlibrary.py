# ABOUTME: Open Library metadata provider implementation.
# ABOUTME: Looks up openlibrary.org by ISBN or searches by title/author; primary book source.

import logging
import re
from dataclasses import replace

from folio.metadata.context import RequestContext
from folio.metadata.errors import LookupCancelledError, MetadataError, NoMatchError
from folio.metadata.http import HttpClient
from folio.metadata.openlibrary_parser import (
    SOURCE_NAME,
    author_keys,
    build_cover_url,
    normalize_isbn,
    parse_author_name,
    parse_description,
    parse_edition,
    parse_search_results,
    works_key,
)
from folio.metadata.types import CoverSize, ResolvedMetadata

logger = logging.getLogger(__name__)

_OL_BASE = "https://openlibrary.org"
_SEARCH_LIMIT = 5
_SEARCH_FIELDS = "key,title,author_name,publisher,first_publish_year,isbn,cover_i,subject,language"
DEFAULT_TIMEOUT = 10.0

# Matches a colon followed by a space and remaining text (subtitle pattern).
_SUBTITLE_RE = re.compile(r"\s*:\s+.+$")


def _strip_subtitle(title: str) -> str | None:
    """Remove subtitle from a title string (text after ": ").

    Returns the stripped title, or None if no subtitle was found or
    stripping would produce an identical or empty string.
    """
    stripped = _SUBTITLE_RE.sub("", title).strip()
    if stripped and stripped != title.strip():
        return stripped
    return None


class OpenLibraryProvider:
    """Metadata provider backed by the Open Library API.

    Supports ISBN-based lookup (most precise) and title/author search (broader).
    Uses dependency-injected HttpClient for testability.
    """

    def __init__(self, http_client: HttpClient, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._http = http_client
        self._timeout = timeout

    @property
    def name(self) -> str:
        return SOURCE_NAME

    def lookup_by_isbn(self, ctx: RequestContext, isbn: str) -> ResolvedMetadata:
        """Look up a book by ISBN via the Open Library ISBN endpoint.

        Follows up with the author endpoints and, when the edition carries no
        description, the works endpoint. Enrichment failures are logged and
        skipped; the edition itself must resolve.

        Raises:
            NoMatchError: Empty ISBN or unknown edition.
        """
        clean_isbn = normalize_isbn(isbn)
        if not clean_isbn:
            raise NoMatchError("empty ISBN")

        data = self._http.get(
            f"{_OL_BASE}/isbn/{clean_isbn}.json",
            timeout=ctx.timeout_for(self._timeout),
            ctx=ctx,
        )
        metadata = parse_edition(data, clean_isbn)

        authors = self._resolve_authors(ctx, author_keys(data))
        if authors:
            metadata = replace(metadata, authors=tuple(authors))

        if metadata.description is None:
            key = works_key(data)
            if key:
                description = self._fetch_work_description(ctx, key)
                if description:
                    metadata = replace(metadata, description=description)

        return metadata

    def search(
        self, ctx: RequestContext, title: str, author: str | None = None
    ) -> list[ResolvedMetadata]:
        """Search Open Library by title and optional author.

        If the initial search finds nothing and the title contains a
        subtitle (text after ": "), retries with the subtitle stripped.
        Results are returned unscored in provider order.

        Raises:
            NoMatchError: Neither query found anything.
        """
        try:
            return self._search_ol(ctx, title, author)
        except NoMatchError:
            stripped = _strip_subtitle(title)
            if not stripped:
                raise
            logger.debug("Retrying Open Library search without subtitle: %r", stripped)
            return self._search_ol(ctx, stripped, author)

    def get_cover_url(self, isbn: str, size: CoverSize = CoverSize.MEDIUM) -> str:
        return build_cover_url(isbn, size)

    def _search_ol(
        self, ctx: RequestContext, title: str, author: str | None
    ) -> list[ResolvedMetadata]:
        params: dict[str, str] = {
            "title": title,
            "limit": str(_SEARCH_LIMIT),
            "fields": _SEARCH_FIELDS,
        }
        if author:
            params["author"] = author

        data = self._http.get(
            f"{_OL_BASE}/search.json",
            params=params,
            timeout=ctx.timeout_for(self._timeout),
            ctx=ctx,
        )
        if not data.get("numFound"):
            raise NoMatchError(f"no Open Library results for {title!r}")

        results = parse_search_results(data)
        if not results:
            raise NoMatchError(f"no Open Library results for {title!r}")
        return results

    def _resolve_authors(self, ctx: RequestContext, keys: list[str]) -> list[str]:
        authors: list[str] = []
        for key in keys:
            try:
                author_data = self._http.get(
                    f"{_OL_BASE}{key}.json",
                    timeout=ctx.timeout_for(self._timeout),
                    ctx=ctx,
                )
            except LookupCancelledError:
                raise
            except MetadataError as exc:
                logger.warning("Author lookup failed for %s: %s", key, exc)
                continue
            name = parse_author_name(author_data)
            if name:
                authors.append(name)
        return authors

    def _fetch_work_description(self, ctx: RequestContext, key: str) -> str | None:
        try:
            works_data = self._http.get(
                f"{_OL_BASE}{key}.json",
                timeout=ctx.timeout_for(self._timeout),
                ctx=ctx,
            )
        except LookupCancelledError:
            raise
        except MetadataError as exc:
            logger.warning("Works lookup failed for %s: %s", key, exc)
            return None
        return parse_description(works_data.get("description"))
