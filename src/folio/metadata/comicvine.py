# ABOUTME: ComicVine metadata provider for comic issues.
# ABOUTME: Searches volumes then issues within them, or issues directly by name; needs an API key.

import html
import logging
import re
from typing import Any

from folio.metadata.context import RequestContext
from folio.metadata.errors import (
    LookupCancelledError,
    NoMatchError,
    ProviderError,
    RateLimitedError,
)
from folio.metadata.http import HttpClient
from folio.metadata.scoring import normalize_issue_number
from folio.metadata.types import ResolvedComicMetadata

logger = logging.getLogger(__name__)

SOURCE_NAME = "comicvine"

_CV_BASE = "https://comicvine.gamespot.com/api"
DEFAULT_TIMEOUT = 15.0
_VOLUME_LIMIT = 5
_ISSUE_LIMIT = 5
_RESULT_LIMIT = 10

_ISSUE_FIELDS = "id,name,issue_number,description,cover_date,store_date,image,volume,person_credits"
_VOLUME_FIELDS = "id,name,description,start_year,publisher,image,count_of_issues"

# ComicVine reports API-level outcomes in the body's status_code.
_STATUS_OK = 1
_STATUS_NOT_FOUND = 101
_STATUS_RATE_LIMITED = 107

_HTML_TAG_RE = re.compile(r"<[^>]*>")


def strip_html(text: str) -> str:
    """Remove HTML tags and decode entities from a ComicVine description."""
    stripped = _HTML_TAG_RE.sub("", text)
    return html.unescape(stripped).replace("\xa0", " ").strip()


def _append_unique(values: list[str], value: str) -> None:
    if value and value not in values:
        values.append(value)


def parse_issue(
    issue: dict[str, Any], volume: dict[str, Any] | None = None
) -> ResolvedComicMetadata:
    """Convert a ComicVine issue record into ResolvedComicMetadata.

    Person credits are bucketed by role substring; one person can land in
    several buckets (e.g. "writer, artist").
    """
    volume_ref = issue.get("volume") or {}
    issue_number = str(issue.get("issue_number") or "")

    series = volume_ref.get("name") or (volume or {}).get("name") or ""
    title = issue.get("name") or ""
    if not title and series:
        title = f"{series} #{issue_number}"

    description = issue.get("description")
    image = issue.get("image") or {}
    publisher = ((volume or {}).get("publisher") or {}).get("name")

    writers: list[str] = []
    artists: list[str] = []
    cover_artists: list[str] = []
    colorists: list[str] = []
    for person in issue.get("person_credits") or []:
        name = person.get("name") or ""
        role = (person.get("role") or "").lower()
        if "writer" in role:
            _append_unique(writers, name)
        if "artist" in role or "penciler" in role or "inker" in role:
            _append_unique(artists, name)
        if "cover" in role:
            _append_unique(cover_artists, name)
        if "colorist" in role:
            _append_unique(colorists, name)

    issue_id = issue.get("id")
    return ResolvedComicMetadata(
        title=title,
        series=series,
        issue_number=issue_number,
        publisher=publisher or None,
        release_date=issue.get("store_date") or issue.get("cover_date") or None,
        description=strip_html(description) if description else None,
        writers=tuple(writers),
        artists=tuple(artists),
        cover_artists=tuple(cover_artists),
        colorists=tuple(colorists),
        cover_url=image.get("medium_url") or image.get("small_url") or None,
        source=SOURCE_NAME,
        source_id=str(issue_id) if issue_id is not None else None,
    )


class ComicVineProvider:
    """Comic metadata provider backed by the ComicVine API.

    Every call requires an API key; without one the provider reports
    is_configured False and raises ProviderError on use.
    """

    def __init__(
        self,
        http_client: HttpClient,
        *,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._http = http_client
        self._api_key = api_key or ""
        self._timeout = timeout

    @property
    def name(self) -> str:
        return SOURCE_NAME

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def search_by_series_and_issue(
        self, ctx: RequestContext, series: str, issue_number: str
    ) -> list[ResolvedComicMetadata]:
        """Find the series' volumes, then the matching issue within each one.

        Failures inside a single volume are logged and that volume skipped.
        """
        volumes = self._get(
            ctx,
            "/search/",
            {
                "resources": "volume",
                "query": series,
                "limit": str(_VOLUME_LIMIT),
                "field_list": _VOLUME_FIELDS,
            },
        ).get("results") or []
        if not volumes:
            raise NoMatchError(f"no ComicVine volumes for {series!r}")

        results: list[ResolvedComicMetadata] = []
        for volume in volumes:
            try:
                issues = self._issues_in_volume(ctx, volume.get("id"), issue_number)
            except (LookupCancelledError, RateLimitedError):
                raise
            except (NoMatchError, ProviderError) as exc:
                logger.debug("Skipping volume %s: %s", volume.get("id"), exc)
                continue
            results.extend(parse_issue(issue, volume) for issue in issues)
            if len(results) >= _RESULT_LIMIT:
                break

        if not results:
            raise NoMatchError(f"no ComicVine issues for {series!r} #{issue_number}")
        return results

    def search_by_title(self, ctx: RequestContext, title: str) -> list[ResolvedComicMetadata]:
        issues = self._get(
            ctx,
            "/search/",
            {
                "resources": "issue",
                "query": title,
                "limit": str(_RESULT_LIMIT),
                "field_list": "id,name,issue_number,description,cover_date,image,volume",
            },
        ).get("results") or []
        if not issues:
            raise NoMatchError(f"no ComicVine issues for {title!r}")
        return [parse_issue(issue) for issue in issues]

    def get_issue_details(self, ctx: RequestContext, source_id: str) -> ResolvedComicMetadata:
        """Fetch one issue by its ComicVine ID; confidence is 1.0 for a direct hit."""
        data = self._get(ctx, f"/issue/4000-{source_id}/", {"field_list": _ISSUE_FIELDS})
        issue = data.get("results")
        if not isinstance(issue, dict) or not issue:
            raise NoMatchError(f"no ComicVine issue {source_id}")
        return parse_issue(issue).with_confidence(1.0)

    def _issues_in_volume(
        self, ctx: RequestContext, volume_id: Any, issue_number: str
    ) -> list[dict[str, Any]]:
        issue_filter = f"volume:{volume_id}"
        normalized = normalize_issue_number(issue_number)
        if normalized:
            issue_filter += f",issue_number:{normalized}"
        return self._get(
            ctx,
            "/issues/",
            {"filter": issue_filter, "limit": str(_ISSUE_LIMIT), "field_list": _ISSUE_FIELDS},
        ).get("results") or []

    def _get(self, ctx: RequestContext, endpoint: str, params: dict[str, str]) -> dict[str, Any]:
        if not self.is_configured:
            raise ProviderError("ComicVine API key not configured")

        query = {"api_key": self._api_key, "format": "json", **params}
        data = self._http.get(
            f"{_CV_BASE}{endpoint}",
            params=query,
            timeout=ctx.timeout_for(self._timeout),
            ctx=ctx,
        )

        status = data.get("status_code", _STATUS_OK)
        if status == _STATUS_RATE_LIMITED:
            raise RateLimitedError(f"ComicVine: {data.get('error', 'rate limited')}")
        if status == _STATUS_NOT_FOUND:
            raise NoMatchError(f"ComicVine: {data.get('error', 'object not found')}")
        if status != _STATUS_OK:
            raise ProviderError(f"ComicVine API error: {data.get('error', status)}")
        return data
