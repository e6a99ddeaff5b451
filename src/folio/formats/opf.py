# ABOUTME: Targeted text patches for EPUB OPF package documents.
# ABOUTME: Edits only the touched metadata elements so the rest of the document stays byte-identical.

import logging
import re
from collections.abc import Iterable
from xml.sax.saxutils import escape

from folio.formats.types import ArchiveMetadata

logger = logging.getLogger(__name__)

_METADATA_OPEN_RE = re.compile(r"<(?:opf:)?metadata\b[^>]*>", re.IGNORECASE)
_METADATA_CLOSE_RE = re.compile(r"</(?:opf:)?metadata\s*>", re.IGNORECASE)

_ISBN_SCHEME_RE = re.compile(
    r"(<dc:identifier\b[^>]*\bscheme=[\"']ISBN[\"'][^>]*>)[^<]*(</dc:identifier>)",
    re.IGNORECASE,
)
_ISBN_URN_RE = re.compile(
    r"(<dc:identifier\b[^>]*>)\s*urn:isbn:[^<]*(</dc:identifier>)", re.IGNORECASE
)

_ATTR_ENTITIES = {'"': "&quot;", "'": "&apos;"}

SERIES_META = "calibre:series"
SERIES_INDEX_META = "calibre:series_index"


def escape_xml(value: str) -> str:
    """Escape a value for use in element text or a quoted attribute."""
    return escape(value, _ATTR_ENTITIES)


def _element_patterns(element: str) -> tuple[re.Pattern[str], ...]:
    name = re.escape(element)
    return (
        re.compile(rf"(<dc:{name}(?:\s[^>]*)?>)[^<]*(</dc:{name}>)", re.IGNORECASE),
        re.compile(rf"(<{name}(?:\s[^>]*)?>)[^<]*(</{name}>)", re.IGNORECASE),
    )


def _insert_after_open(opf: str, snippet: str, field: str) -> str:
    match = _METADATA_OPEN_RE.search(opf)
    if match is None:
        logger.debug("No <metadata> opening tag, skipping %s", field)
        return opf
    return f"{opf[:match.end()]}\n    {snippet}{opf[match.end():]}"


def _insert_before_close(opf: str, snippet: str, field: str) -> str:
    match = _METADATA_CLOSE_RE.search(opf)
    if match is None:
        logger.debug("No </metadata> closing tag, skipping %s", field)
        return opf
    return f"{opf[:match.start()]}{snippet}  {opf[match.start():]}"


def replace_or_insert_dc(opf: str, element: str, value: str) -> str:
    """Set the text of the first dc:<element>, inserting one if none exists."""
    escaped = escape_xml(value)
    for pattern in _element_patterns(element):
        if pattern.search(opf):
            return pattern.sub(lambda m: f"{m.group(1)}{escaped}{m.group(2)}", opf, count=1)
    return _insert_after_open(opf, f"<dc:{element}>{escaped}</dc:{element}>", element)


def replace_dc_list(opf: str, element: str, values: Iterable[str]) -> str:
    """Drop every dc:<element> and re-insert one per value before </metadata>."""
    if _METADATA_CLOSE_RE.search(opf) is None:
        logger.debug("No </metadata> closing tag, skipping %s", element)
        return opf
    name = re.escape(element)
    existing = re.compile(
        rf"\s*<dc:{name}(?:\s[^>]*)?>[^<]*</dc:{name}>", re.IGNORECASE
    )
    opf = existing.sub("", opf)
    snippet = "".join(
        f"    <dc:{element}>{escape_xml(value)}</dc:{element}>\n" for value in values
    )
    return _insert_before_close(opf, snippet, element)


def update_isbn(opf: str, isbn: str) -> str:
    """Update a scheme="ISBN" identifier, else a urn:isbn: one, else add one."""
    escaped = escape_xml(isbn)
    if _ISBN_SCHEME_RE.search(opf):
        return _ISBN_SCHEME_RE.sub(lambda m: f"{m.group(1)}{escaped}{m.group(2)}", opf, count=1)
    if _ISBN_URN_RE.search(opf):
        return _ISBN_URN_RE.sub(
            lambda m: f"{m.group(1)}urn:isbn:{escaped}{m.group(2)}", opf, count=1
        )
    return _insert_after_open(
        opf, f"<dc:identifier>urn:isbn:{escaped}</dc:identifier>", "isbn"
    )


def update_calibre_meta(opf: str, name: str, value: str) -> str:
    """Set a Calibre <meta name=... content=.../> tag, in either attribute order."""
    escaped = escape_xml(value)
    quoted_name = re.escape(name)
    name_first = re.compile(
        rf"(<meta\s+name=[\"']{quoted_name}[\"']\s+content=[\"'])[^\"']*([\"'][^>]*/>)",
        re.IGNORECASE,
    )
    content_first = re.compile(
        rf"(<meta\s+content=[\"'])[^\"']*([\"']\s+name=[\"']{quoted_name}[\"'][^>]*/>)",
        re.IGNORECASE,
    )
    for pattern in (name_first, content_first):
        if pattern.search(opf):
            return pattern.sub(lambda m: f"{m.group(1)}{escaped}{m.group(2)}", opf, count=1)
    return _insert_before_close(
        opf, f'    <meta name="{escape_xml(name)}" content="{escaped}"/>\n', name
    )


def patch_opf(opf: str, metadata: ArchiveMetadata) -> str:
    """Apply every non-empty field of `metadata` to an OPF document."""
    if metadata.title:
        opf = replace_or_insert_dc(opf, "title", metadata.title)
    if metadata.authors:
        opf = replace_dc_list(opf, "creator", metadata.authors)
    if metadata.isbn:
        opf = update_isbn(opf, metadata.isbn)
    if metadata.publisher:
        opf = replace_or_insert_dc(opf, "publisher", metadata.publisher)
    if metadata.language:
        opf = replace_or_insert_dc(opf, "language", metadata.language)
    if metadata.publish_date:
        opf = replace_or_insert_dc(opf, "date", metadata.publish_date)
    if metadata.description:
        opf = replace_or_insert_dc(opf, "description", metadata.description)
    if metadata.series:
        opf = update_calibre_meta(opf, SERIES_META, metadata.series)
        if metadata.series_index is not None:
            opf = update_calibre_meta(opf, SERIES_INDEX_META, f"{metadata.series_index:.1f}")
    if metadata.subjects:
        opf = replace_dc_list(opf, "subject", metadata.subjects)
    return opf
