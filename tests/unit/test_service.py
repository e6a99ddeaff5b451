# ABOUTME: Unit tests for BookMetadataService and ComicMetadataService.
# ABOUTME: Exercises the provider chain, scoring, de-duplication, error precedence and cancellation.

import pytest

from folio.metadata.context import RequestContext
from folio.metadata.errors import (
    LookupCancelledError,
    NoMatchError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitedError,
)
from folio.metadata.openlibrary_parser import parse_search_results
from folio.metadata.ratelimit import RateLimiter
from folio.metadata.service import BookMetadataService, ComicMetadataService
from folio.metadata.types import CoverSize, ResolvedComicMetadata, ResolvedMetadata
from tests.fixtures.fakes import FakeBookProvider, FakeComicProvider
from tests.fixtures.openlibrary_responses import SEARCH_RESPONSE_FOUR_DOCS

ROSE = ResolvedMetadata(
    title="The Name of the Rose",
    authors=("Umberto Eco",),
    isbn_13="9780156001311",
    publish_date="1980",
    source="fakebooks",
    source_id="rose",
)
GUIDE = ResolvedMetadata(
    title="Name of the Rose study guide",
    authors=("Someone Else",),
    publish_date="2004",
    source="fakebooks",
    source_id="guide",
)


class CountingLimiter(RateLimiter):
    """RateLimiter that never sleeps and counts wait() calls."""

    def __init__(self) -> None:
        super().__init__(0)
        self.waits = 0

    def wait(self, ctx: RequestContext | None = None) -> None:
        self.waits += 1
        super().wait(ctx)


def _books(
    primary: FakeBookProvider, fallback: FakeBookProvider | None = None
) -> BookMetadataService:
    return BookMetadataService(primary, fallback, rate_limiter=RateLimiter(0))


def _issue(
    source_id: str,
    series: str = "Batman",
    issue: str = "1",
    release_date: str | None = None,
    title: str = "",
) -> ResolvedComicMetadata:
    return ResolvedComicMetadata(
        title=title or f"{series} #{issue}",
        series=series,
        issue_number=issue,
        release_date=release_date,
        source="fakecomics",
        source_id=source_id,
    )


def _comics(
    primary: FakeComicProvider, fallback: FakeComicProvider | None = None
) -> ComicMetadataService:
    return ComicMetadataService(primary, fallback, rate_limiter=RateLimiter(0))


class TestBookLookupIsbn:
    """Tests for the ISBN step of BookMetadataService.lookup()."""

    def test_isbn_hit_is_exact(self) -> None:
        primary = FakeBookProvider(isbn_result=ROSE, search_results=[GUIDE])
        result = _books(primary).lookup(isbn="9780156001311", title="Anything")
        assert result.source_id == "rose"
        assert result.confidence == 1.0
        assert [c[0] for c in primary.calls] == ["lookup_by_isbn"]

    def test_isbn_falls_through_to_fallback(self) -> None:
        primary = FakeBookProvider("primary")
        fallback = FakeBookProvider("fallback", isbn_result=ROSE)
        result = _books(primary, fallback).lookup(isbn="9780156001311")
        assert result.source_id == "rose"
        assert primary.calls == [("lookup_by_isbn", "9780156001311")]

    def test_isbn_miss_then_title_search(self) -> None:
        primary = FakeBookProvider(search_results=[GUIDE, ROSE])
        result = _books(primary).lookup(
            isbn="9780000000000", title="The Name of the Rose", author="Umberto Eco"
        )
        assert result.source_id == "rose"
        assert result.confidence == 1.0
        assert [c[0] for c in primary.calls] == ["lookup_by_isbn", "search"]

    def test_every_call_goes_through_the_limiter(self) -> None:
        limiter = CountingLimiter()
        primary = FakeBookProvider("primary")
        fallback = FakeBookProvider("fallback", search_results=[ROSE])
        service = BookMetadataService(primary, fallback, rate_limiter=limiter)
        service.lookup(isbn="9780156001311", title="The Name of the Rose")
        assert limiter.waits == 4


class TestBookLookupSearch:
    """Tests for the title/author step of BookMetadataService.lookup()."""

    def test_best_scored_candidate_wins(self) -> None:
        primary = FakeBookProvider(search_results=[GUIDE, ROSE])
        result = _books(primary).lookup(title="The Name of the Rose", author="Umberto Eco")
        assert result.source_id == "rose"

    def test_first_best_wins_ties(self) -> None:
        twin = ResolvedMetadata(title="The Name of the Rose", authors=("Umberto Eco",),
                                source="fakebooks", source_id="twin")
        primary = FakeBookProvider(search_results=[twin, ROSE])
        result = _books(primary).lookup(title="The Name of the Rose", author="Umberto Eco")
        assert result.source_id == "twin"

    def test_fallback_used_when_primary_empty(self) -> None:
        primary = FakeBookProvider("primary", search_results=[])
        fallback = FakeBookProvider("fallback", search_results=[ROSE])
        result = _books(primary, fallback).lookup(title="The Name of the Rose")
        assert result.source_id == "rose"

    def test_fallback_not_called_when_primary_hits(self) -> None:
        primary = FakeBookProvider("primary", search_results=[ROSE])
        fallback = FakeBookProvider("fallback", search_results=[GUIDE])
        _books(primary, fallback).lookup(title="The Name of the Rose")
        assert fallback.calls == []

    def test_provider_records_are_not_mutated(self) -> None:
        primary = FakeBookProvider(search_results=[ROSE])
        _books(primary).lookup(title="Rose")
        assert ROSE.confidence == 0.0

    def test_nothing_to_search(self) -> None:
        primary = FakeBookProvider()
        with pytest.raises(NoMatchError):
            _books(primary).lookup()
        assert primary.calls == []


class TestBookErrorPrecedence:
    """Tests for the error raised when the whole chain comes up empty."""

    def test_no_match_everywhere(self) -> None:
        with pytest.raises(NoMatchError):
            _books(FakeBookProvider(), FakeBookProvider()).lookup(title="Nothing")

    def test_rate_limit_wins_over_no_match(self) -> None:
        primary = FakeBookProvider(search_results=RateLimitedError())
        fallback = FakeBookProvider(search_results=[])
        with pytest.raises(RateLimitedError):
            _books(primary, fallback).lookup(title="Nothing")

    def test_rate_limit_wins_over_failures(self) -> None:
        primary = FakeBookProvider(search_results=ProviderError("HTTP 500"))
        fallback = FakeBookProvider(search_results=RateLimitedError())
        with pytest.raises(RateLimitedError):
            _books(primary, fallback).lookup(title="Nothing")

    def test_all_failed_raises_last_failure(self) -> None:
        primary = FakeBookProvider(search_results=ProviderError("HTTP 500"))
        fallback = FakeBookProvider(search_results=ProviderUnavailableError("Request timed out"))
        with pytest.raises(ProviderUnavailableError, match="timed out"):
            _books(primary, fallback).lookup(title="Nothing")

    def test_partial_failure_is_no_match(self) -> None:
        primary = FakeBookProvider(search_results=ProviderError("HTTP 500"))
        fallback = FakeBookProvider(search_results=[])
        with pytest.raises(NoMatchError):
            _books(primary, fallback).lookup(title="Nothing")


class TestBookSearch:
    """Tests for BookMetadataService.search()."""

    def _four_docs(self) -> list[ResolvedMetadata]:
        return parse_search_results(SEARCH_RESPONSE_FOUR_DOCS)

    def test_ranked_and_deduplicated(self) -> None:
        primary = FakeBookProvider(search_results=self._four_docs())
        results = _books(primary).search(title="The Name of the Rose", author="Umberto Eco")
        ids = [r.source_id for r in results]
        assert ids[0] == "/works/OL456W"
        assert sorted(ids) == ["/works/OL101W", "/works/OL202W", "/works/OL456W"]
        confidences = [r.confidence for r in results]
        assert confidences == sorted(confidences, reverse=True)

    def test_dedupe_without_source_id(self) -> None:
        a = ResolvedMetadata(title="The Hobbit", authors=("J.R.R. Tolkien",))
        b = ResolvedMetadata(title="Hobbit", authors=("J.R.R. Tolkien",))
        primary = FakeBookProvider(search_results=[a, b])
        assert len(_books(primary).search(title="The Hobbit")) == 1

    def test_year_filter(self) -> None:
        primary = FakeBookProvider(search_results=self._four_docs())
        results = _books(primary).search(title="The Name of the Rose", year=2014)
        assert [r.source_id for r in results] == ["/works/OL101W"]

    def test_year_filter_falls_back_to_full_ranking(self) -> None:
        primary = FakeBookProvider(search_results=self._four_docs())
        results = _books(primary).search(title="The Name of the Rose", year=1999)
        assert len(results) == 3

    def test_isbn_hit_short_circuits(self) -> None:
        primary = FakeBookProvider(isbn_result=ROSE, search_results=[GUIDE])
        results = _books(primary).search(isbn="9780156001311", title="Rose")
        assert [r.source_id for r in results] == ["rose"]
        assert results[0].confidence == 1.0

    def test_fallback_only_when_primary_empty(self) -> None:
        primary = FakeBookProvider("primary", search_results=[GUIDE])
        fallback = FakeBookProvider("fallback", search_results=[ROSE])
        results = _books(primary, fallback).search(title="The Name of the Rose")
        assert [r.source_id for r in results] == ["guide"]
        assert fallback.calls == []

    @pytest.mark.parametrize("order", [["x", "y"], ["y", "x"]])
    def test_equal_scores_keep_provider_order(self, order: list[str]) -> None:
        twins = {
            sid: ResolvedMetadata(
                title="The Name of the Rose",
                authors=("Umberto Eco",),
                source="fakebooks",
                source_id=sid,
            )
            for sid in order
        }
        candidates = [GUIDE, twins[order[0]], twins[order[1]]]
        primary = FakeBookProvider(search_results=candidates)
        results = _books(primary).search(title="The Name of the Rose", author="Umberto Eco")
        assert [r.source_id for r in results] == [*order, "guide"]
        assert results[0].confidence == results[1].confidence

    def test_search_errors(self) -> None:
        primary = FakeBookProvider(search_results=RateLimitedError())
        with pytest.raises(RateLimitedError):
            _books(primary).search(title="Rose")


class TestBookCancellation:
    """Tests for LookupCancelledError propagation."""

    def test_cancelled_context_stops_the_chain(self) -> None:
        primary = FakeBookProvider(search_results=[ROSE])
        ctx = RequestContext()
        ctx.cancel()
        with pytest.raises(LookupCancelledError):
            _books(primary).lookup(title="Rose", ctx=ctx)
        assert primary.calls == []

    def test_provider_cancellation_is_not_swallowed(self) -> None:
        primary = FakeBookProvider(isbn_result=LookupCancelledError("request deadline exceeded"))
        fallback = FakeBookProvider(isbn_result=ROSE)
        with pytest.raises(LookupCancelledError):
            _books(primary, fallback).lookup(isbn="9780156001311")
        assert fallback.calls == []

    def test_context_passed_to_providers(self) -> None:
        primary = FakeBookProvider(search_results=[ROSE])
        ctx = RequestContext(timeout=30)
        _books(primary).lookup(title="Rose", ctx=ctx)
        assert primary.contexts == [ctx]


class TestBookCoverUrl:
    def test_delegates_to_primary(self) -> None:
        service = _books(FakeBookProvider("primary"), FakeBookProvider("fallback"))
        assert service.cover_url("9780156001311", CoverSize.LARGE) == (
            "https://covers.example.com/9780156001311-L.jpg"
        )


class TestComicLookup:
    """Tests for ComicMetadataService.lookup()."""

    def test_series_and_issue_first(self) -> None:
        provider = FakeComicProvider(series_results=[_issue("a")], title_results=[_issue("b")])
        result = _comics(provider).lookup(series="Batman", issue="1", title="Court of Owls")
        assert result.source_id == "a"
        assert provider.calls == [("search_by_series_and_issue", "Batman", "1")]

    def test_title_strategy_after_series_miss(self) -> None:
        owls = _issue("owls", title="The Court of Owls, Part One")
        provider = FakeComicProvider(title_results=[owls])
        result = _comics(provider).lookup(series="Batman", issue="1", title="Court of Owls")
        assert result.source_id == "owls"
        assert [c[0] for c in provider.calls] == [
            "search_by_series_and_issue",
            "search_by_title",
        ]
        assert provider.calls[1] == ("search_by_title", "Court of Owls")

    def test_series_used_as_title_without_title(self) -> None:
        provider = FakeComicProvider(title_results=[_issue("a")])
        _comics(provider).lookup(series="Batman", issue="1")
        assert provider.calls[-1] == ("search_by_title", "Batman")

    def test_series_not_reused_when_title_given(self) -> None:
        provider = FakeComicProvider()
        with pytest.raises(NoMatchError):
            _comics(provider).lookup(series="Batman", issue="1", title="Owls")
        assert ("search_by_title", "Batman") not in provider.calls

    def test_year_breaks_ties(self) -> None:
        old = _issue("old", release_date="1940-04-01")
        new = _issue("new", release_date="2011-09-21")
        provider = FakeComicProvider(series_results=[old, new])
        result = _comics(provider).lookup(series="Batman", issue="1", year=2011)
        assert result.source_id == "new"

    def test_confidence_is_not_clamped(self) -> None:
        provider = FakeComicProvider(series_results=[_issue("a", release_date="2011-09-21")])
        result = _comics(provider).lookup(series="Batman", issue="1", year=2011)
        assert result.confidence == pytest.approx(1.15)

    def test_fallback_provider_per_strategy(self) -> None:
        primary = FakeComicProvider("primary")
        fallback = FakeComicProvider("fallback", series_results=[_issue("fb")])
        result = _comics(primary, fallback).lookup(series="Batman", issue="1")
        assert result.source_id == "fb"
        assert primary.calls == [("search_by_series_and_issue", "Batman", "1")]

    def test_unconfigured_provider_skipped(self) -> None:
        primary = FakeComicProvider("primary", configured=False)
        fallback = FakeComicProvider("fallback", series_results=[_issue("fb")])
        service = _comics(primary, fallback)
        assert service.is_configured
        assert service.lookup(series="Batman", issue="1").source_id == "fb"
        assert primary.calls == []

    def test_nothing_configured(self) -> None:
        service = _comics(FakeComicProvider(configured=False))
        assert not service.is_configured
        with pytest.raises(ProviderError):
            service.lookup(series="Batman", issue="1")

    def test_rate_limit_reported(self) -> None:
        provider = FakeComicProvider(
            series_results=RateLimitedError(), title_results=[]
        )
        with pytest.raises(RateLimitedError):
            _comics(provider).lookup(series="Batman", issue="1")


class TestComicSearch:
    """Tests for ComicMetadataService.search()."""

    def test_merges_series_and_title_results(self) -> None:
        provider = FakeComicProvider(
            series_results=[_issue("a"), _issue("b", issue="2")],
            title_results=[_issue("a"), _issue("c", title="Court of Owls")],
        )
        results = _comics(provider).search(series="Batman", issue="1", title="Court of Owls")
        ids = [r.source_id for r in results]
        assert sorted(ids) == ["a", "b", "c"]
        confidences = [r.confidence for r in results]
        assert confidences == sorted(confidences, reverse=True)

    def test_title_equal_to_series_not_searched_twice(self) -> None:
        provider = FakeComicProvider(series_results=[_issue("a")])
        _comics(provider).search(series="Batman", issue="1", title="Batman")
        assert [c[0] for c in provider.calls] == ["search_by_series_and_issue"]

    def test_dedupe_without_source_id(self) -> None:
        a = ResolvedComicMetadata(title="Batman #1", series="Batman", issue_number="1")
        b = ResolvedComicMetadata(title="The Batman #1", series="The Batman", issue_number="1")
        provider = FakeComicProvider(series_results=[a, b])
        assert len(_comics(provider).search(series="Batman", issue="1")) == 1

    @pytest.mark.parametrize("order", [["x", "y"], ["y", "x"]])
    def test_equal_scores_keep_provider_order(self, order: list[str]) -> None:
        candidates = [_issue(order[0]), _issue("z", issue="2"), _issue(order[1])]
        provider = FakeComicProvider(series_results=candidates)
        results = _comics(provider).search(series="Batman", issue="1")
        assert [r.source_id for r in results] == [*order, "z"]
        assert results[0].confidence == results[1].confidence

    def test_no_results(self) -> None:
        with pytest.raises(NoMatchError):
            _comics(FakeComicProvider()).search(series="Nope", issue="1")


class TestComicIssueDetails:
    """Tests for ComicMetadataService.issue_details()."""

    def test_direct_hit(self) -> None:
        provider = FakeComicProvider(details=_issue("6789"))
        result = _comics(provider).issue_details("6789")
        assert result.confidence == 1.0
        assert provider.calls == [("get_issue_details", "6789")]

    def test_unknown_id(self) -> None:
        with pytest.raises(NoMatchError):
            _comics(FakeComicProvider()).issue_details("0")
