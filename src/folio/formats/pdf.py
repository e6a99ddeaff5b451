# ABOUTME: PDF document-information rewriting using pypdf.
# ABOUTME: Writes /Title, /Author, /Subject and /Keywords through the same atomic install path.

import logging
from pathlib import Path

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError

from folio.formats.atomic import Verifier, atomic_write, locked
from folio.formats.errors import ArchiveError, ArchiveWriteError, MalformedArchiveError
from folio.formats.types import ArchiveMetadata, RewriteOutcome

logger = logging.getLogger(__name__)


def pdf_properties(metadata: ArchiveMetadata) -> dict[str, str]:
    """Document information entries for the non-empty fields of `metadata`."""
    props: dict[str, str] = {}
    if metadata.title:
        props["/Title"] = metadata.title
    if metadata.authors:
        props["/Author"] = ", ".join(metadata.authors)
    if metadata.description:
        props["/Subject"] = metadata.description
    if metadata.subjects:
        props["/Keywords"] = ", ".join(metadata.subjects)
    return props


def read_pdf_metadata(path: Path) -> dict[str, str]:
    """Return the PDF's document information dictionary as plain strings."""
    try:
        reader = PdfReader(path)
        info = reader.metadata or {}
    except (PdfReadError, OSError) as exc:
        raise MalformedArchiveError(f"Cannot read PDF {path}: {exc}") from exc
    return {str(key): str(value) for key, value in info.items()}


def rewrite_pdf_metadata(
    path: Path, metadata: ArchiveMetadata, *, verify: Verifier | None = None
) -> RewriteOutcome:
    """Update the document information dictionary of a PDF in place."""
    path = Path(path)
    props = pdf_properties(metadata)
    if not props:
        return RewriteOutcome.UNCHANGED

    with locked(path):
        try:
            reader = PdfReader(path)
            existing = reader.metadata or {}
        except (PdfReadError, OSError) as exc:
            raise MalformedArchiveError(f"Cannot read PDF {path}: {exc}") from exc

        if all(str(existing.get(key, "")) == value for key, value in props.items()):
            logger.debug("No PDF metadata changes for %s", path)
            return RewriteOutcome.UNCHANGED

        try:
            writer = PdfWriter(clone_from=reader)
            writer.add_metadata(props)
            with atomic_write(path, verify=verify) as tmp_path:
                with open(tmp_path, "wb") as fh:
                    writer.write(fh)
        except ArchiveError:
            raise
        except PdfReadError as exc:
            raise MalformedArchiveError(f"Cannot copy PDF {path}: {exc}") from exc
        except OSError as exc:
            raise ArchiveWriteError(f"Failed to rewrite {path}: {exc}") from exc

    logger.info("Updated PDF metadata in %s", path)
    return RewriteOutcome.UPDATED
