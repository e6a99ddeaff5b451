# ABOUTME: Matching engine composing providers, rate limiting and scoring into lookups.
# ABOUTME: BookMetadataService and ComicMetadataService walk a primary -> fallback provider chain.

import logging
from collections.abc import Callable, Iterable
from typing import TypeVar

from folio.metadata.context import RequestContext, background
from folio.metadata.errors import (
    MetadataError,
    NoMatchError,
    ProviderError,
    RateLimitedError,
)
from folio.metadata.provider import BookMetadataProvider, ComicMetadataProvider
from folio.metadata.ratelimit import RateLimiter
from folio.metadata.scoring import score_book_candidate, score_comic_candidate, year_adjustment
from folio.metadata.similarity import normalize
from folio.metadata.types import CoverSize, ResolvedComicMetadata, ResolvedMetadata

logger = logging.getLogger(__name__)

BOOK_RATE_INTERVAL = 0.5
COMIC_RATE_INTERVAL = 1.0

T = TypeVar("T")


class _AttemptLog:
    """Outcome of every provider call made for one request.

    Decides which error to raise once the whole chain came up empty.
    """

    def __init__(self) -> None:
        self.attempts = 0
        self.rate_limited = False
        self.failures: list[ProviderError] = []

    def final_error(self) -> MetadataError:
        if self.rate_limited:
            return RateLimitedError()
        if self.attempts and len(self.failures) == self.attempts:
            return self.failures[-1]
        return NoMatchError()


def _call(
    limiter: RateLimiter,
    ctx: RequestContext,
    log: _AttemptLog,
    provider_name: str,
    method: Callable[..., T],
    *args: object,
) -> T | None:
    """Invoke one provider method behind the rate limiter.

    Returns None when the provider found nothing, throttled, or failed; the
    outcome is recorded in `log`. LookupCancelledError propagates.
    """
    limiter.wait(ctx)
    log.attempts += 1
    try:
        return method(ctx, *args)
    except NoMatchError:
        logger.debug("%s: no match", provider_name)
    except RateLimitedError as exc:
        logger.warning("%s is rate limiting requests: %s", provider_name, exc)
        log.rate_limited = True
    except ProviderError as exc:
        logger.warning("%s lookup failed: %s", provider_name, exc)
        log.failures.append(exc)
    return None


def _dedupe(items: Iterable[T], key: Callable[[T], tuple]) -> list[T]:
    seen: set[tuple] = set()
    unique = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        unique.append(item)
    return unique


def _book_key(meta: ResolvedMetadata) -> tuple:
    if meta.source_id:
        return (meta.source, meta.source_id)
    first_author = meta.authors[0] if meta.authors else ""
    return ("", normalize(meta.title), normalize(first_author))


def _comic_key(meta: ResolvedComicMetadata) -> tuple:
    if meta.source_id:
        return (meta.source, meta.source_id)
    return ("", normalize(meta.series), meta.issue_number.strip())


class BookMetadataService:
    """Resolves book metadata by ISBN, falling back to a scored title/author search."""

    def __init__(
        self,
        primary: BookMetadataProvider,
        fallback: BookMetadataProvider | None = None,
        *,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self._primary = primary
        self._providers = [primary] if fallback is None else [primary, fallback]
        self._rate_limiter = rate_limiter or RateLimiter(BOOK_RATE_INTERVAL)

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    def lookup(
        self,
        isbn: str | None = None,
        title: str | None = None,
        author: str | None = None,
        *,
        ctx: RequestContext | None = None,
    ) -> ResolvedMetadata:
        """Return the single best match for the query.

        An ISBN hit on any provider wins outright with confidence 1.0.
        Otherwise each provider's search results are scored and the first
        highest-scoring candidate is returned.

        Raises:
            NoMatchError: Nothing found anywhere.
            RateLimitedError: Nothing found and at least one provider throttled.
            ProviderError: Every attempted call failed.
            LookupCancelledError: ctx was cancelled or timed out.
        """
        ctx = ctx or background()
        log = _AttemptLog()

        hit = self._lookup_isbn(ctx, log, isbn)
        if hit is not None:
            return hit

        if title:
            for provider in self._providers:
                results = _call(
                    self._rate_limiter, ctx, log, provider.name, provider.search, title, author
                )
                if results:
                    scored = [
                        r.with_confidence(score_book_candidate(r, title, author)) for r in results
                    ]
                    best = max(scored, key=lambda r: r.confidence)
                    logger.debug(
                        "Best %s match for %r: %r (%.2f)",
                        provider.name, title, best.title, best.confidence,
                    )
                    return best

        raise log.final_error()

    def search(
        self,
        isbn: str | None = None,
        title: str | None = None,
        author: str | None = None,
        *,
        year: int | None = None,
        ctx: RequestContext | None = None,
    ) -> list[ResolvedMetadata]:
        """Return every candidate for the query, ranked by confidence.

        An ISBN hit short-circuits to a single-element list. The fallback
        provider is searched only when the primary yields nothing. When
        `year` is given, candidates whose publish date mentions that year are
        returned if there are any; otherwise the full ranking is returned.
        """
        ctx = ctx or background()
        log = _AttemptLog()

        hit = self._lookup_isbn(ctx, log, isbn)
        if hit is not None:
            return [hit]

        if title:
            for provider in self._providers:
                results = _call(
                    self._rate_limiter, ctx, log, provider.name, provider.search, title, author
                )
                if not results:
                    continue
                unique = _dedupe(results, _book_key)
                scored = [
                    r.with_confidence(score_book_candidate(r, title, author)) for r in unique
                ]
                ranked = sorted(scored, key=lambda r: r.confidence, reverse=True)
                if year:
                    in_year = [r for r in ranked if str(year) in (r.publish_date or "")]
                    if in_year:
                        return in_year
                return ranked

        raise log.final_error()

    def cover_url(self, isbn: str, size: CoverSize = CoverSize.MEDIUM) -> str:
        return self._primary.get_cover_url(isbn, size)

    def _lookup_isbn(
        self, ctx: RequestContext, log: _AttemptLog, isbn: str | None
    ) -> ResolvedMetadata | None:
        if not isbn:
            return None
        for provider in self._providers:
            result = _call(
                self._rate_limiter, ctx, log, provider.name, provider.lookup_by_isbn, isbn
            )
            if result is not None:
                logger.debug("ISBN %s resolved by %s", isbn, provider.name)
                return result.with_confidence(1.0)
        return None


class ComicMetadataService:
    """Resolves comic issue metadata via series+issue and title searches.

    Providers that report is_configured False are skipped.
    """

    def __init__(
        self,
        primary: ComicMetadataProvider,
        fallback: ComicMetadataProvider | None = None,
        *,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self._providers = [primary] if fallback is None else [primary, fallback]
        self._rate_limiter = rate_limiter or RateLimiter(COMIC_RATE_INTERVAL)

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    @property
    def is_configured(self) -> bool:
        return any(p.is_configured for p in self._providers)

    def lookup(
        self,
        series: str | None = None,
        issue: str | None = None,
        title: str | None = None,
        year: int = 0,
        *,
        ctx: RequestContext | None = None,
    ) -> ResolvedComicMetadata:
        """Return the best comic match, trying search strategies in order.

        Strategies: series+issue, then title, then (only when no title was
        given) the series used as a title. Each strategy tries the primary
        provider before the fallback; the first one with candidates wins.
        Confidence is the candidate score plus the release-year adjustment
        and is not clamped.
        """
        ctx = ctx or background()
        log = _AttemptLog()
        providers = self._configured_providers()

        strategies: list[tuple[str, tuple[str, ...], str]] = []
        if series:
            strategies.append(("search_by_series_and_issue", (series, issue or ""), series))
        if title:
            strategies.append(("search_by_title", (title,), title))
        if series and not title:
            strategies.append(("search_by_title", (series,), series))

        for method_name, args, query in strategies:
            for provider in providers:
                results = _call(
                    self._rate_limiter, ctx, log, provider.name,
                    getattr(provider, method_name), *args,
                )
                if results:
                    scored = self._score(results, query, issue, year)
                    best = max(scored, key=lambda r: r.confidence)
                    logger.debug(
                        "Best %s match via %s for %r: %r (%.2f)",
                        provider.name, method_name, query, best.title, best.confidence,
                    )
                    return best

        raise log.final_error()

    def search(
        self,
        series: str | None = None,
        issue: str | None = None,
        title: str | None = None,
        year: int = 0,
        *,
        ctx: RequestContext | None = None,
    ) -> list[ResolvedComicMetadata]:
        """Return every comic candidate, de-duplicated and ranked by confidence.

        Series+issue results and, when a distinct title is given, title
        results are gathered from the primary; the fallback is consulted only
        when the primary yields nothing.
        """
        ctx = ctx or background()
        log = _AttemptLog()

        collected: list[tuple[ResolvedComicMetadata, str]] = []
        for provider in self._configured_providers():
            if series:
                results = _call(
                    self._rate_limiter, ctx, log, provider.name,
                    provider.search_by_series_and_issue, series, issue or "",
                )
                collected.extend((r, series) for r in results or [])
            if title and title != series:
                results = _call(
                    self._rate_limiter, ctx, log, provider.name,
                    provider.search_by_title, title,
                )
                collected.extend((r, title) for r in results or [])
            if collected:
                break

        if not collected:
            raise log.final_error()

        unique = _dedupe(collected, lambda pair: _comic_key(pair[0]))
        scored = [
            self._score_one(candidate, query, issue, year) for candidate, query in unique
        ]
        return sorted(scored, key=lambda r: r.confidence, reverse=True)

    def issue_details(
        self, source_id: str, *, ctx: RequestContext | None = None
    ) -> ResolvedComicMetadata:
        """Fetch an issue by its provider ID; a direct hit carries confidence 1.0."""
        ctx = ctx or background()
        log = _AttemptLog()
        for provider in self._configured_providers():
            result = _call(
                self._rate_limiter, ctx, log, provider.name,
                provider.get_issue_details, source_id,
            )
            if result is not None:
                return result.with_confidence(1.0)

        raise log.final_error()

    def _configured_providers(self) -> list[ComicMetadataProvider]:
        providers = [p for p in self._providers if p.is_configured]
        if not providers:
            raise ProviderError("no comic metadata provider is configured")
        return providers

    def _score(
        self,
        results: list[ResolvedComicMetadata],
        query: str,
        issue: str | None,
        year: int,
    ) -> list[ResolvedComicMetadata]:
        return [self._score_one(r, query, issue, year) for r in results]

    @staticmethod
    def _score_one(
        candidate: ResolvedComicMetadata, query: str | None, issue: str | None, year: int
    ) -> ResolvedComicMetadata:
        score = score_comic_candidate(candidate, query, issue)
        score += year_adjustment(candidate.release_date, year)
        return candidate.with_confidence(score)
