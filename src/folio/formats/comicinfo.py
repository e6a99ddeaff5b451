# ABOUTME: ComicInfo.xml generation, targeted patching and reading for CBZ archives.
# ABOUTME: Existing documents are patched element by element; missing ones are created fresh.

import io
import logging
import re
import xml.etree.ElementTree as ET
import zipfile
from pathlib import Path, PurePosixPath

from folio.formats.errors import MalformedArchiveError
from folio.formats.opf import escape_xml
from folio.formats.types import ArchiveMetadata

logger = logging.getLogger(__name__)

COMIC_INFO_NAME = "ComicInfo.xml"

_CLOSE_RE = re.compile(r"</ComicInfo\s*>")
_DATE_RE = re.compile(r"^\s*(\d{4})(?:-(\d{1,2})(?:-(\d{1,2}))?)?")


def comic_info_fields(metadata: ArchiveMetadata) -> dict[str, str]:
    """Map the write payload onto ComicInfo element names, skipping empty values."""
    values: dict[str, str] = {}

    def add(tag: str, value: str | None) -> None:
        if value:
            values[tag] = value

    add("Title", metadata.title)
    add("Series", metadata.series)
    add("Number", metadata.issue_number)
    add("Volume", str(metadata.volume) if metadata.volume else None)
    add("Summary", metadata.description)
    add("Writer", ", ".join(metadata.authors))
    add("Penciller", ", ".join(metadata.artists))
    add("Publisher", metadata.publisher)

    match = _DATE_RE.match(metadata.publish_date or "")
    if match:
        year, month, day = match.groups()
        add("Year", year)
        if month and 1 <= int(month) <= 12:
            add("Month", str(int(month)))
            if day and 1 <= int(day) <= 31:
                add("Day", str(int(day)))

    add("Genre", ", ".join(metadata.subjects))
    add("LanguageISO", metadata.language)
    return values


def build_comic_info(metadata: ArchiveMetadata) -> bytes:
    """Generate a new ComicInfo.xml document (no namespaces, UTF-8 with declaration)."""
    root = ET.Element("ComicInfo")
    for tag, value in comic_info_fields(metadata).items():
        ET.SubElement(root, tag).text = value
    ET.indent(root)
    buf = io.BytesIO()
    ET.ElementTree(root).write(buf, encoding="utf-8", xml_declaration=True)
    return buf.getvalue()


def patch_comic_info(xml_text: str, metadata: ArchiveMetadata) -> str:
    """Set each field's element text in an existing ComicInfo document.

    An element that does not exist yet is appended before </ComicInfo>.
    """
    for tag, value in comic_info_fields(metadata).items():
        escaped = escape_xml(value)
        element = re.compile(rf"(<{tag}(?:\s[^>]*)?>)[^<]*(</{tag}>)")
        if element.search(xml_text):
            xml_text = element.sub(
                lambda m: f"{m.group(1)}{escaped}{m.group(2)}", xml_text, count=1
            )
            continue

        empty = re.compile(rf"<{tag}(\s[^>]*)?/>")
        if empty.search(xml_text):
            xml_text = empty.sub(
                lambda m: f"<{tag}{m.group(1) or ''}>{escaped}</{tag}>", xml_text, count=1
            )
            continue

        close = _CLOSE_RE.search(xml_text)
        if close is None:
            logger.debug("No </ComicInfo> closing tag, skipping %s", tag)
            continue
        xml_text = (
            f"{xml_text[:close.start()]}  <{tag}>{escaped}</{tag}>\n{xml_text[close.start():]}"
        )
    return xml_text


def find_comic_info(names: list[str]) -> str | None:
    """Return the archive entry holding ComicInfo.xml, matched case-insensitively.

    A root-level entry wins over one inside a directory.
    """
    matches = [n for n in names if PurePosixPath(n).name.lower() == COMIC_INFO_NAME.lower()]
    if not matches:
        return None
    matches.sort(key=lambda n: n.count("/"))
    return matches[0]


def read_comic_info(path: Path) -> dict[str, str]:
    """Read ComicInfo.xml from a CBZ into a tag -> text mapping.

    Returns an empty dict when the archive has no ComicInfo.xml.

    Raises:
        MalformedArchiveError: Not a zip archive, or the XML cannot be parsed.
    """
    try:
        with zipfile.ZipFile(path) as zf:
            entry = find_comic_info(zf.namelist())
            if entry is None:
                return {}
            raw = zf.read(entry)
    except (zipfile.BadZipFile, OSError) as exc:
        raise MalformedArchiveError(f"Cannot read {path}: {exc}") from exc

    try:
        root = ET.fromstring(raw)
    except ET.ParseError as exc:
        raise MalformedArchiveError(f"Invalid ComicInfo.xml in {path}: {exc}") from exc

    return {child.tag: (child.text or "").strip() for child in root}
