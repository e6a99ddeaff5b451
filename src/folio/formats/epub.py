# ABOUTME: EPUB metadata extraction using ebooklib.
# ABOUTME: Read-only view of an EPUB's OPF metadata, used to build queries and verify rewrites.

import logging
from pathlib import Path

from ebooklib import epub

from folio.formats.errors import MalformedArchiveError
from folio.formats.types import ArchiveMetadata

logger = logging.getLogger(__name__)

_OPF_SCHEME_ATTR = "{http://www.idpf.org/2007/opf}scheme"
_CALIBRE_NAMESPACES = ("calibre", "http://calibre.kovidgoyal.net/2009/metadata")
_URN_ISBN = "urn:isbn:"


def _get_metadata_value(book: epub.EpubBook, namespace: str, name: str) -> str | None:
    """Extract a single metadata value from an EpubBook, or None if missing."""
    values = book.get_metadata(namespace, name)
    if not values:
        return None
    # Metadata entries are tuples of (value, attributes)
    value = values[0][0]
    return str(value).strip() if value else None


def _get_values(book: epub.EpubBook, name: str) -> tuple[str, ...]:
    entries = book.get_metadata("DC", name)
    return tuple(str(entry[0]).strip() for entry in entries if entry[0])


def _get_identifiers(book: epub.EpubBook) -> dict[str, str]:
    """Extract all identifiers (ISBN, UUID, etc.) keyed by lower-cased scheme."""
    identifiers = {}
    for value, attrs in book.get_metadata("DC", "identifier"):
        if not value:
            continue
        scheme = attrs.get(_OPF_SCHEME_ATTR) or attrs.get("opf:scheme") or attrs.get("scheme")
        identifiers[(scheme or attrs.get("id") or "id").lower()] = str(value).strip()
    return identifiers


def detect_isbn(identifiers: dict[str, str]) -> str | None:
    """Find an ISBN among identifiers: by scheme, urn:isbn: prefix, or shape."""
    for key in ("isbn", "isbn13", "isbn-13", "isbn10", "isbn-10"):
        if key in identifiers:
            return identifiers[key]
    for value in identifiers.values():
        if value.lower().startswith(_URN_ISBN):
            return value[len(_URN_ISBN):]
    for value in identifiers.values():
        cleaned = value.replace("-", "").replace(" ", "")
        if len(cleaned) in (10, 13) and cleaned.upper().replace("X", "").isdigit():
            return value
    return None


def _calibre_meta(book: epub.EpubBook, name: str) -> str | None:
    for namespace in _CALIBRE_NAMESPACES:
        try:
            entries = book.get_metadata(namespace, name)
        except KeyError:
            # ebooklib raises for a namespace the book never declared.
            continue
        for _value, attrs in entries:
            content = attrs.get("content")
            if content:
                return content.strip()
    return None


def read_epub_metadata(path: Path) -> ArchiveMetadata:
    """Extract metadata from an EPUB file.

    Falls back to the file stem when the book has no title.

    Raises:
        MalformedArchiveError: If the file cannot be read or parsed.
    """
    path = Path(path)
    if not path.exists():
        raise MalformedArchiveError(f"File not found: {path}")

    try:
        book = epub.read_epub(str(path), options={"ignore_ncx": True})
    except Exception as exc:
        raise MalformedArchiveError(f"Failed to read EPUB: {path}: {exc}") from exc

    series_index = None
    raw_index = _calibre_meta(book, "series_index")
    if raw_index:
        try:
            series_index = float(raw_index)
        except ValueError:
            logger.debug("Ignoring non-numeric series index %r in %s", raw_index, path)

    return ArchiveMetadata(
        title=_get_metadata_value(book, "DC", "title") or path.stem,
        authors=_get_values(book, "creator"),
        isbn=detect_isbn(_get_identifiers(book)),
        publisher=_get_metadata_value(book, "DC", "publisher"),
        language=_get_metadata_value(book, "DC", "language"),
        publish_date=_get_metadata_value(book, "DC", "date"),
        description=_get_metadata_value(book, "DC", "description"),
        series=_calibre_meta(book, "series"),
        series_index=series_index,
        subjects=_get_values(book, "subject"),
    )
