# ABOUTME: Transactional metadata rewriter for zip-based documents (EPUB, CBZ) and PDF.
# ABOUTME: Patches the internal descriptor, copies every other entry verbatim, and installs atomically.

import codecs
import logging
import shutil
import time
import xml.etree.ElementTree as ET
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from folio.formats.atomic import Verifier, atomic_write, locked
from folio.formats.comicinfo import (
    COMIC_INFO_NAME,
    build_comic_info,
    find_comic_info,
    patch_comic_info,
)
from folio.formats.errors import ArchiveError, ArchiveWriteError, MalformedArchiveError
from folio.formats.opf import patch_opf
from folio.formats.pdf import rewrite_pdf_metadata
from folio.formats.types import ArchiveMetadata, RewriteOutcome

logger = logging.getLogger(__name__)

__all__ = [
    "ArchiveError",
    "ArchiveMetadata",
    "ArchiveWriteError",
    "MalformedArchiveError",
    "RewriteOutcome",
    "opf_path_from_container",
    "replace_archive_entry",
    "rewrite_archive_metadata",
    "rewrite_cbz_metadata",
    "rewrite_epub_metadata",
]

CONTAINER_PATH = "META-INF/container.xml"
CONTAINER_NS = "urn:oasis:names:tc:opendocument:xmlns:container"

_COPY_CHUNK_SIZE = 1024 * 1024


@contextmanager
def _open_archive(path: Path) -> Iterator[zipfile.ZipFile]:
    try:
        zf = zipfile.ZipFile(path)
    except zipfile.BadZipFile as exc:
        raise MalformedArchiveError(f"{path} is not a zip archive") from exc
    except OSError as exc:
        raise MalformedArchiveError(f"Cannot open {path}: {exc}") from exc
    with zf:
        yield zf


def opf_path_from_container(zf: zipfile.ZipFile) -> str:
    """Return the full-path of the first rootfile declared in META-INF/container.xml.

    Raises:
        MalformedArchiveError: Missing or unparseable container, or no rootfile.
    """
    try:
        container_raw = zf.read(CONTAINER_PATH)
    except KeyError as exc:
        raise MalformedArchiveError(f"Missing {CONTAINER_PATH}") from exc

    try:
        root = ET.fromstring(container_raw)
    except ET.ParseError as exc:
        raise MalformedArchiveError(f"Invalid {CONTAINER_PATH}: {exc}") from exc

    rootfile = root.find(f".//{{{CONTAINER_NS}}}rootfile")
    if rootfile is None:
        # Some producers omit the namespace.
        rootfile = root.find(".//rootfile")
    full_path = (rootfile.attrib.get("full-path") or "").strip() if rootfile is not None else ""
    if not full_path:
        raise MalformedArchiveError(f"No rootfile declared in {CONTAINER_PATH}")
    return full_path


def _clone_zip_info(info: zipfile.ZipInfo) -> zipfile.ZipInfo:
    cloned = zipfile.ZipInfo(info.filename, date_time=info.date_time)
    cloned.compress_type = info.compress_type
    cloned.comment = info.comment
    cloned.extra = info.extra
    cloned.internal_attr = info.internal_attr
    cloned.external_attr = info.external_attr
    cloned.create_system = info.create_system
    return cloned


def _copy_entry(src: zipfile.ZipFile, dst: zipfile.ZipFile, info: zipfile.ZipInfo) -> None:
    if info.is_dir():
        dst.writestr(_clone_zip_info(info), b"")
        return
    with src.open(info) as src_stream, dst.open(_clone_zip_info(info), "w") as dst_stream:
        shutil.copyfileobj(src_stream, dst_stream, _COPY_CHUNK_SIZE)


def _write_rewritten_zip(
    source: Path, target: Path, entry_name: str, data: bytes
) -> None:
    with _open_archive(source) as src, zipfile.ZipFile(target, "w") as dst:
        dst.comment = src.comment
        replaced = False
        for info in src.infolist():
            if info.filename == entry_name and not replaced:
                dst.writestr(_clone_zip_info(info), data)
                replaced = True
            else:
                _copy_entry(src, dst, info)
        if not replaced:
            new_info = zipfile.ZipInfo(entry_name, date_time=time.localtime()[:6])
            new_info.compress_type = zipfile.ZIP_DEFLATED
            new_info.external_attr = 0o644 << 16
            dst.writestr(new_info, data)


def replace_archive_entry(
    path: Path,
    entry_name: str,
    data: bytes,
    *,
    verify: Verifier | None = None,
) -> None:
    """Rewrite a zip archive with one entry's bytes replaced (or appended).

    Every other entry is copied with its compression method, timestamp and
    attributes. The new archive is built next to the original, optionally
    verified, and then installed; on failure the original is untouched.

    Raises:
        MalformedArchiveError: The source cannot be read as a zip archive.
        ArchiveWriteError: Building, verifying or installing the new file failed.
    """
    path = Path(path)
    try:
        with atomic_write(path, verify=verify) as tmp_path:
            _write_rewritten_zip(path, tmp_path, entry_name, data)
    except ArchiveError:
        raise
    except zipfile.BadZipFile as exc:
        raise MalformedArchiveError(f"Corrupt entry in {path}: {exc}") from exc
    except (OSError, zipfile.LargeZipFile) as exc:
        raise ArchiveWriteError(f"Failed to rewrite {path}: {exc}") from exc


def rewrite_epub_metadata(
    path: Path, metadata: ArchiveMetadata, *, verify: Verifier | None = None
) -> RewriteOutcome:
    """Patch the OPF package document of an EPUB in place."""
    path = Path(path)
    if metadata.is_empty:
        return RewriteOutcome.UNCHANGED

    with locked(path):
        with _open_archive(path) as zf:
            opf_path = opf_path_from_container(zf)
            try:
                raw = zf.read(opf_path)
            except KeyError as exc:
                raise MalformedArchiveError(f"OPF {opf_path} missing from {path}") from exc
            except zipfile.BadZipFile as exc:
                raise MalformedArchiveError(f"Corrupt OPF entry in {path}: {exc}") from exc

        try:
            original = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedArchiveError(f"OPF {opf_path} is not UTF-8") from exc

        patched = patch_opf(original, metadata)
        if patched == original:
            logger.debug("No OPF changes for %s", path)
            return RewriteOutcome.UNCHANGED

        replace_archive_entry(path, opf_path, patched.encode("utf-8"), verify=verify)

    logger.info("Updated EPUB metadata in %s", path)
    return RewriteOutcome.UPDATED


def rewrite_cbz_metadata(
    path: Path, metadata: ArchiveMetadata, *, verify: Verifier | None = None
) -> RewriteOutcome:
    """Patch ComicInfo.xml inside a CBZ, creating it at the root if absent."""
    path = Path(path)
    if metadata.is_empty:
        return RewriteOutcome.UNCHANGED

    with locked(path):
        with _open_archive(path) as zf:
            entry = find_comic_info(zf.namelist())
            try:
                raw = zf.read(entry) if entry is not None else None
            except zipfile.BadZipFile as exc:
                raise MalformedArchiveError(f"Corrupt {entry} in {path}: {exc}") from exc

        if raw is None:
            entry = COMIC_INFO_NAME
            data = build_comic_info(metadata)
        else:
            try:
                original = raw.decode("utf-8-sig")
            except UnicodeDecodeError as exc:
                raise MalformedArchiveError(f"{entry} in {path} is not UTF-8") from exc
            patched = patch_comic_info(original, metadata)
            if patched == original:
                logger.debug("No ComicInfo changes for %s", path)
                return RewriteOutcome.UNCHANGED
            bom = codecs.BOM_UTF8 if raw.startswith(codecs.BOM_UTF8) else b""
            data = bom + patched.encode("utf-8")

        replace_archive_entry(path, entry, data, verify=verify)

    logger.info("Updated ComicInfo.xml in %s", path)
    return RewriteOutcome.UPDATED


_REWRITERS = {
    ".epub": rewrite_epub_metadata,
    ".cbz": rewrite_cbz_metadata,
    ".pdf": rewrite_pdf_metadata,
}


def rewrite_archive_metadata(
    path: Path, metadata: ArchiveMetadata, *, verify: Verifier | None = None
) -> RewriteOutcome:
    """Write metadata into a document, choosing the rewriter by file extension.

    Returns UNCHANGED when there is nothing to write or the descriptor
    already holds these values.

    Raises:
        ArchiveError: Unsupported file type.
        MalformedArchiveError: The document or its descriptor cannot be read.
        ArchiveWriteError: The rewritten file could not be written or installed.
    """
    path = Path(path)
    rewriter = _REWRITERS.get(path.suffix.lower())
    if rewriter is None:
        raise ArchiveError(f"Unsupported document type: {path.suffix or path.name}")
    return rewriter(path, metadata, verify=verify)
