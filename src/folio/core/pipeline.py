# ABOUTME: Refresh pipeline: read a file's current metadata, resolve it, and write it back verified.
# ABOUTME: Verification reads the temporary file before it replaces the original.

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from folio.core.engine import MetadataEngine
from folio.formats.archive import ArchiveError, ArchiveWriteError, RewriteOutcome
from folio.formats.comicinfo import comic_info_fields, read_comic_info
from folio.formats.epub import read_epub_metadata
from folio.formats.types import ArchiveMetadata
from folio.metadata.errors import LookupCancelledError, MetadataError
from folio.metadata.types import ResolvedComicMetadata, ResolvedMetadata

logger = logging.getLogger(__name__)


@dataclass
class FieldVerification:
    """Result of verifying a single metadata field after write-back."""

    field: str
    expected: str | None
    actual: str | None
    passed: bool


@dataclass
class RefreshResult:
    """Result of a refresh with the match used and per-field verification."""

    path: Path
    success: bool
    outcome: RewriteOutcome | None = None
    match: ResolvedMetadata | ResolvedComicMetadata | None = None
    verified_fields: list[FieldVerification] = field(default_factory=list)
    error: str | None = None


def _verify_epub(tmp_path: Path, metadata: ArchiveMetadata) -> list[FieldVerification]:
    """Read back the EPUB at tmp_path and compare the fields that were written.

    Authors are compared as sorted lists. Language comparison is case-insensitive.
    """
    read_back = read_epub_metadata(tmp_path)
    verifications: list[FieldVerification] = []

    if metadata.title is not None:
        verifications.append(FieldVerification(
            field="title",
            expected=metadata.title,
            actual=read_back.title,
            passed=metadata.title == read_back.title,
        ))

    if metadata.authors:
        expected_sorted = ", ".join(sorted(metadata.authors))
        actual_sorted = ", ".join(sorted(read_back.authors))
        verifications.append(FieldVerification(
            field="authors",
            expected=expected_sorted,
            actual=actual_sorted,
            passed=expected_sorted == actual_sorted,
        ))

    if metadata.language is not None:
        actual_lang = read_back.language
        verifications.append(FieldVerification(
            field="language",
            expected=metadata.language,
            actual=actual_lang,
            passed=actual_lang is not None and metadata.language.lower() == actual_lang.lower(),
        ))

    for name in ("publisher", "description"):
        expected = getattr(metadata, name)
        if expected is None:
            continue
        actual = getattr(read_back, name)
        verifications.append(FieldVerification(
            field=name, expected=expected, actual=actual, passed=expected == actual
        ))

    return verifications


def _verify_comic(tmp_path: Path, metadata: ArchiveMetadata) -> list[FieldVerification]:
    """Read back ComicInfo.xml at tmp_path and compare every written element."""
    read_back = read_comic_info(tmp_path)
    return [
        FieldVerification(
            field=tag,
            expected=expected,
            actual=read_back.get(tag),
            passed=read_back.get(tag) == expected.strip(),
        )
        for tag, expected in comic_info_fields(metadata).items()
    ]


class _Verifier:
    """Callable handed to the rewriter; records results and rejects mismatches."""

    def __init__(
        self,
        check: Callable[[Path, ArchiveMetadata], list[FieldVerification]],
        metadata: ArchiveMetadata,
    ) -> None:
        self._check = check
        self._metadata = metadata
        self.results: list[FieldVerification] = []

    def __call__(self, tmp_path: Path) -> None:
        self.results = self._check(tmp_path, self._metadata)
        failed = [v.field for v in self.results if not v.passed]
        if failed:
            raise ArchiveWriteError(f"Verification failed for: {', '.join(failed)}")


def _write(
    engine: MetadataEngine,
    path: Path,
    match: ResolvedMetadata | ResolvedComicMetadata,
    payload: ArchiveMetadata,
    verifier: _Verifier,
) -> RefreshResult:
    try:
        outcome = engine.rewrite_archive_metadata(path, payload, verify=verifier)
    except ArchiveError as exc:
        return RefreshResult(
            path=path,
            success=False,
            match=match,
            verified_fields=verifier.results,
            error=str(exc),
        )
    return RefreshResult(
        path=path,
        success=True,
        outcome=outcome,
        match=match,
        verified_fields=verifier.results,
    )


def refresh_book(engine: MetadataEngine, path: Path) -> RefreshResult:
    """Resolve fresh metadata for an EPUB and write it into the file.

    The lookup uses the ISBN already in the book when there is one, else its
    title and first author. The original file is replaced only after the
    rewritten copy reads back with every written field intact.

    Raises:
        LookupCancelledError: The lookup deadline passed or was cancelled.
    """
    path = Path(path)
    try:
        current = read_epub_metadata(path)
    except ArchiveError as exc:
        return RefreshResult(path=path, success=False, error=str(exc))

    try:
        match = engine.resolve_book_metadata(
            isbn=current.isbn,
            title=current.title,
            author=current.authors[0] if current.authors else None,
        )
    except LookupCancelledError:
        raise
    except MetadataError as exc:
        logger.info("No metadata for %s: %s", path, exc)
        return RefreshResult(path=path, success=False, error=str(exc))

    payload = ArchiveMetadata.from_resolved(match)
    return _write(engine, path, match, payload, _Verifier(_verify_epub, payload))


def refresh_comic(
    engine: MetadataEngine, path: Path, threshold: float | None = None
) -> RefreshResult:
    """Resolve a comic from its filename and write ComicInfo.xml into the CBZ.

    Series, issue and year come from the filename; an existing ComicInfo.xml
    supplies the title and fills in what the filename lacks. Matches scoring
    below `threshold` (the configured apply threshold when None) are reported
    but not written.

    Raises:
        LookupCancelledError: The lookup deadline passed or was cancelled.
    """
    path = Path(path)
    if threshold is None:
        threshold = engine.config.comic_apply_threshold

    try:
        existing = read_comic_info(path)
    except ArchiveError as exc:
        return RefreshResult(path=path, success=False, error=str(exc))

    info = engine.parse_comic_filename(path.name)
    try:
        match = engine.resolve_comic_metadata(
            series=info.series or existing.get("Series") or None,
            issue=info.issue_number or existing.get("Number") or None,
            title=existing.get("Title") or None,
            year=info.year,
        )
    except LookupCancelledError:
        raise
    except MetadataError as exc:
        logger.info("No comic metadata for %s: %s", path, exc)
        return RefreshResult(path=path, success=False, error=str(exc))

    if match.confidence < threshold:
        logger.info(
            "Best match for %s scored %.2f, below %.2f; not writing",
            path, match.confidence, threshold,
        )
        return RefreshResult(
            path=path,
            success=False,
            match=match,
            error=f"Confidence {match.confidence:.2f} below threshold {threshold:.2f}",
        )

    payload = ArchiveMetadata.from_comic(match)
    return _write(engine, path, match, payload, _Verifier(_verify_comic, payload))
