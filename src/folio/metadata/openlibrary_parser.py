# ABOUTME: Parsing functions for Open Library API JSON responses.
# ABOUTME: Converts OL editions, works and search docs into ResolvedMetadata instances.

import re
from typing import Any

from folio.metadata.types import CoverSize, ResolvedMetadata

SOURCE_NAME = "openlibrary"

_COVERS_BASE_URL = "https://covers.openlibrary.org/b"
_SEARCH_SUBJECT_LIMIT = 5

_ISBN_STRIP_RE = re.compile(r"[\s-]")
_URN_PREFIX = "urn:isbn:"


def normalize_isbn(isbn: str) -> str:
    """Strip hyphens, spaces and a urn:isbn: prefix from an ISBN."""
    cleaned = _ISBN_STRIP_RE.sub("", isbn.strip())
    if cleaned.lower().startswith(_URN_PREFIX):
        cleaned = cleaned[len(_URN_PREFIX):]
    return cleaned.upper()


def build_cover_url(isbn: str, size: CoverSize | str = CoverSize.MEDIUM) -> str:
    """Build an Open Library cover image URL for a given ISBN.

    Returns an empty string when the ISBN normalizes to nothing.
    """
    clean = normalize_isbn(isbn)
    if not clean:
        return ""
    size_code = size.value if isinstance(size, CoverSize) else size
    return f"{_COVERS_BASE_URL}/isbn/{clean}-{size_code}.jpg"


def build_cover_id_url(cover_id: int) -> str:
    return f"{_COVERS_BASE_URL}/id/{cover_id}-M.jpg"


def parse_description(value: Any) -> str | None:
    """Extract a description from an Open Library field.

    Handles the OL quirk where description can be either a plain string
    or a dict with {"type": ..., "value": "actual text"}.
    """
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        text = value.get("value")
        if isinstance(text, str) and text:
            return text
    return None


def parse_edition(data: dict[str, Any], isbn: str = "") -> ResolvedMetadata:
    """Parse an Open Library ISBN endpoint response into ResolvedMetadata.

    The ISBN endpoint returns edition-level data. Authors are references
    ({"key": "/authors/..."}) and are resolved separately; see
    author_keys().
    """
    publishers = data.get("publishers") or []
    isbn_10 = data.get("isbn_10") or []
    isbn_13 = data.get("isbn_13") or []

    languages = data.get("languages") or []
    language = None
    if languages:
        lang_key = languages[0].get("key", "")
        language = lang_key.rsplit("/", 1)[-1] or None

    covers = [c for c in data.get("covers") or [] if isinstance(c, int) and c > 0]
    if covers:
        cover_url: str | None = build_cover_id_url(covers[0])
    else:
        cover_url = build_cover_url(isbn) or None

    page_count = data.get("number_of_pages")

    return ResolvedMetadata(
        title=data.get("title", ""),
        publisher=publishers[0] if publishers else None,
        publish_date=data.get("publish_date") or None,
        description=parse_description(data.get("description")),
        isbn_10=isbn_10[0] if isbn_10 else None,
        isbn_13=isbn_13[0] if isbn_13 else None,
        page_count=page_count if isinstance(page_count, int) else 0,
        subjects=tuple(s for s in data.get("subjects") or [] if isinstance(s, str)),
        cover_url=cover_url,
        language=language,
        source=SOURCE_NAME,
        source_id=data.get("key") or (f"isbn:{isbn}" if isbn else None),
        confidence=1.0,
    )


def author_keys(data: dict[str, Any]) -> list[str]:
    """Collect author reference keys from an edition response."""
    keys = []
    for entry in data.get("authors") or []:
        key = entry.get("key", "") if isinstance(entry, dict) else ""
        if key:
            keys.append(key)
    return keys


def works_key(data: dict[str, Any]) -> str | None:
    works = data.get("works") or []
    if works and isinstance(works[0], dict):
        return works[0].get("key") or None
    return None


def parse_author_name(data: dict[str, Any]) -> str:
    """Extract the author name from an Open Library Author response."""
    return data.get("name") or data.get("personal_name") or ""


def parse_search_doc(doc: dict[str, Any]) -> ResolvedMetadata:
    """Convert one search.json doc into ResolvedMetadata.

    Only the first ISBN-10 and first ISBN-13 found are kept, subjects are
    capped, and the cover prefers the cover id over an ISBN cover.
    """
    isbn_10 = None
    isbn_13 = None
    for raw in doc.get("isbn") or []:
        normalized = normalize_isbn(raw)
        if len(normalized) == 10 and isbn_10 is None:
            isbn_10 = normalized
        elif len(normalized) == 13 and isbn_13 is None:
            isbn_13 = normalized

    cover_id = doc.get("cover_i")
    if isinstance(cover_id, int) and cover_id > 0:
        cover_url: str | None = build_cover_id_url(cover_id)
    elif isbn_13 or isbn_10:
        cover_url = build_cover_url(isbn_13 or isbn_10)
    else:
        cover_url = None

    year = doc.get("first_publish_year")
    publishers = doc.get("publisher") or []
    languages = doc.get("language") or []

    return ResolvedMetadata(
        title=doc.get("title", ""),
        authors=tuple(doc.get("author_name") or ()),
        publisher=publishers[0] if publishers else None,
        publish_date=str(year) if isinstance(year, int) and year > 0 else None,
        isbn_10=isbn_10,
        isbn_13=isbn_13,
        subjects=tuple((doc.get("subject") or [])[:_SEARCH_SUBJECT_LIMIT]),
        cover_url=cover_url,
        language=languages[0] if languages else None,
        source=SOURCE_NAME,
        source_id=doc.get("key") or None,
    )


def parse_search_results(data: dict[str, Any]) -> list[ResolvedMetadata]:
    """Parse an Open Library Search API response into a list of ResolvedMetadata."""
    return [parse_search_doc(doc) for doc in data.get("docs") or []]
