# ABOUTME: Google Books metadata provider, used as the fallback book source.
# ABOUTME: Queries the /books/v1/volumes endpoint by isbn: or intitle:/inauthor: terms.

import logging
import re
from typing import Any

from folio.metadata.context import RequestContext
from folio.metadata.errors import NoMatchError
from folio.metadata.http import HttpClient
from folio.metadata.openlibrary_parser import normalize_isbn
from folio.metadata.types import CoverSize, ResolvedMetadata

logger = logging.getLogger(__name__)

SOURCE_NAME = "googlebooks"

_GB_BASE = "https://www.googleapis.com/books/v1"
_COVER_BASE = "https://books.google.com/books/content"
_SEARCH_LIMIT = 10
DEFAULT_TIMEOUT = 10.0

_HTML_TAG_RE = re.compile(r"<[^>]+>")

_ZOOM_BY_SIZE = {
    CoverSize.SMALL: 5,
    CoverSize.MEDIUM: 1,
    CoverSize.LARGE: 0,
}

# Largest first.
_IMAGE_LINK_KEYS = ("extraLarge", "large", "medium", "small", "thumbnail", "smallThumbnail")


def _strip_html(text: str) -> str:
    return _HTML_TAG_RE.sub("", text).strip()


def parse_volume(item: dict[str, Any]) -> ResolvedMetadata:
    """Convert a Google Books volume item into ResolvedMetadata."""
    info = item.get("volumeInfo") or {}

    isbn_10 = None
    isbn_13 = None
    for ident in info.get("industryIdentifiers") or []:
        value = normalize_isbn(ident.get("identifier", ""))
        if ident.get("type") == "ISBN_10" and value:
            isbn_10 = value
        elif ident.get("type") == "ISBN_13" and value:
            isbn_13 = value

    cover_url = None
    image_links = info.get("imageLinks") or {}
    for key in _IMAGE_LINK_KEYS:
        url = image_links.get(key)
        if url:
            cover_url = url.replace("http://", "https://")
            break

    description = info.get("description")
    if isinstance(description, str) and description.strip():
        description = _strip_html(description)
    else:
        description = None

    subjects: list[str] = []
    for category in info.get("categories") or []:
        # Categories may be hierarchical, e.g. "Fiction / Mystery".
        for part in category.split("/"):
            part = part.strip()
            if part and part not in subjects:
                subjects.append(part)

    title = info.get("title", "")
    subtitle = info.get("subtitle")
    if title and subtitle:
        title = f"{title}: {subtitle}"

    page_count = info.get("pageCount")

    return ResolvedMetadata(
        title=title,
        authors=tuple(a for a in info.get("authors") or [] if isinstance(a, str) and a.strip()),
        publisher=info.get("publisher") or None,
        publish_date=info.get("publishedDate") or None,
        description=description,
        isbn_10=isbn_10,
        isbn_13=isbn_13,
        page_count=page_count if isinstance(page_count, int) else 0,
        subjects=tuple(subjects),
        cover_url=cover_url,
        language=info.get("language") or None,
        source=SOURCE_NAME,
        source_id=item.get("id") or None,
    )


class GoogleBooksProvider:
    """Metadata provider backed by the Google Books volumes API.

    An API key is optional; anonymous requests work with a lower quota.
    """

    def __init__(
        self,
        http_client: HttpClient,
        *,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._http = http_client
        self._api_key = api_key
        self._timeout = timeout

    @property
    def name(self) -> str:
        return SOURCE_NAME

    def lookup_by_isbn(self, ctx: RequestContext, isbn: str) -> ResolvedMetadata:
        clean_isbn = normalize_isbn(isbn)
        if not clean_isbn:
            raise NoMatchError("empty ISBN")
        items = self._volumes(ctx, f"isbn:{clean_isbn}", limit=1)
        return parse_volume(items[0]).with_confidence(1.0)

    def search(
        self, ctx: RequestContext, title: str, author: str | None = None
    ) -> list[ResolvedMetadata]:
        terms = [f'intitle:"{title}"']
        if author:
            terms.append(f'inauthor:"{author}"')
        items = self._volumes(ctx, "+".join(terms), limit=_SEARCH_LIMIT)
        return [parse_volume(item) for item in items]

    def get_cover_url(self, isbn: str, size: CoverSize = CoverSize.MEDIUM) -> str:
        clean_isbn = normalize_isbn(isbn)
        if not clean_isbn:
            return ""
        zoom = _ZOOM_BY_SIZE.get(CoverSize(size), 1)
        return f"{_COVER_BASE}?vid=ISBN{clean_isbn}&printsec=frontcover&img=1&zoom={zoom}"

    def _volumes(self, ctx: RequestContext, query: str, *, limit: int) -> list[dict[str, Any]]:
        params = {"q": query, "maxResults": str(limit)}
        if self._api_key:
            params["key"] = self._api_key

        logger.debug("Querying Google Books: %s", query)
        data = self._http.get(
            f"{_GB_BASE}/volumes",
            params=params,
            timeout=ctx.timeout_for(self._timeout),
            ctx=ctx,
        )
        items = data.get("items") or []
        if not data.get("totalItems") or not items:
            raise NoMatchError(f"no Google Books results for {query!r}")
        return items
