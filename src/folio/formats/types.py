# ABOUTME: Write payload and outcome types shared by the archive rewriters.
# ABOUTME: ArchiveMetadata is built from resolved book or comic metadata; empty fields are never written.

from dataclasses import dataclass, fields
from enum import Enum

from folio.metadata.types import ResolvedComicMetadata, ResolvedMetadata


class RewriteOutcome(str, Enum):
    """Terminal state of a successful rewrite call."""

    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class ArchiveMetadata:
    """Fields to write into a document's internal metadata descriptor.

    None and empty tuples mean "leave the existing value alone".
    """

    title: str | None = None
    authors: tuple[str, ...] = ()
    isbn: str | None = None
    publisher: str | None = None
    language: str | None = None
    publish_date: str | None = None
    description: str | None = None
    series: str | None = None
    series_index: float | None = None
    issue_number: str | None = None
    volume: int | None = None
    subjects: tuple[str, ...] = ()
    artists: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not any(getattr(self, f.name) for f in fields(self))

    @classmethod
    def from_resolved(cls, meta: ResolvedMetadata) -> "ArchiveMetadata":
        return cls(
            title=meta.title or None,
            authors=meta.authors,
            isbn=meta.isbn,
            publisher=meta.publisher,
            language=meta.language,
            publish_date=meta.publish_date,
            description=meta.description,
            series=meta.series,
            series_index=meta.series_index,
            subjects=meta.subjects,
        )

    @classmethod
    def from_comic(cls, meta: ResolvedComicMetadata) -> "ArchiveMetadata":
        return cls(
            title=meta.title or None,
            authors=meta.writers,
            publisher=meta.publisher,
            publish_date=meta.release_date,
            description=meta.description,
            series=meta.series or None,
            issue_number=meta.issue_number or None,
            volume=meta.volume or None,
            subjects=meta.genres,
            artists=meta.artists,
        )
