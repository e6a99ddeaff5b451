# ABOUTME: Immutable value objects produced by the matching engine.
# ABOUTME: ResolvedMetadata (books) and ResolvedComicMetadata (comics) carry a confidence score.

from dataclasses import dataclass, replace
from enum import Enum


class CoverSize(str, Enum):
    """Cover image size options understood by book providers."""

    SMALL = "S"
    MEDIUM = "M"
    LARGE = "L"


@dataclass(frozen=True)
class ResolvedMetadata:
    """Book metadata resolved from an external provider.

    Never mutated after creation. Scoring produces a copy through
    with_confidence() rather than touching the provider's record.
    """

    title: str
    authors: tuple[str, ...] = ()
    publisher: str | None = None
    publish_date: str | None = None
    description: str | None = None
    isbn_10: str | None = None
    isbn_13: str | None = None
    page_count: int = 0
    subjects: tuple[str, ...] = ()
    cover_url: str | None = None
    language: str | None = None
    series: str | None = None
    series_index: float | None = None
    source: str = ""
    source_id: str | None = None
    confidence: float = 0.0

    @property
    def author(self) -> str:
        """Convenience property: joined author string for display."""
        return ", ".join(self.authors)

    @property
    def isbn(self) -> str | None:
        """Preferred ISBN: ISBN-13 when known, else ISBN-10."""
        return self.isbn_13 or self.isbn_10

    def with_confidence(self, confidence: float) -> "ResolvedMetadata":
        return replace(self, confidence=confidence)


@dataclass(frozen=True)
class ResolvedComicMetadata:
    """Comic issue metadata resolved from an external provider.

    Confidence is a ranking score. Year adjustments can push it outside
    [0.0, 1.0]; it is reported as computed.
    """

    title: str
    series: str = ""
    volume: int = 0
    issue_number: str = ""
    publisher: str | None = None
    release_date: str | None = None
    description: str | None = None
    writers: tuple[str, ...] = ()
    artists: tuple[str, ...] = ()
    cover_artists: tuple[str, ...] = ()
    colorists: tuple[str, ...] = ()
    genres: tuple[str, ...] = ()
    cover_url: str | None = None
    page_count: int = 0
    source: str = ""
    source_id: str | None = None
    confidence: float = 0.0

    def with_confidence(self, confidence: float) -> "ResolvedComicMetadata":
        return replace(self, confidence=confidence)
