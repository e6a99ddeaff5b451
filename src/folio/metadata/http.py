# ABOUTME: HTTP client abstraction for metadata provider API calls.
# ABOUTME: Maps status codes and transport failures onto the lookup error taxonomy.

import logging
import threading
from typing import Any, Protocol, runtime_checkable

import httpx

from folio.metadata.context import RequestContext
from folio.metadata.errors import (
    NoMatchError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitedError,
)

logger = logging.getLogger(__name__)

USER_AGENT = "folio/0.1.0"

# ComicVine answers 420 when throttling; everyone else uses 429.
_RATE_LIMIT_STATUS_CODES = {420, 429}


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP GET operations against metadata APIs."""

    def get(
        self,
        url: str,
        params: dict[str, str] | None = None,
        *,
        timeout: float | None = None,
        ctx: RequestContext | None = None,
    ) -> dict[str, Any]: ...


class FolioHttpClient:
    """JSON-over-HTTP client used by the concrete providers.

    Wraps httpx.Client. Requests are sent once; pacing is handled by the
    service-level rate limiter. When a request context is supplied the call
    runs on a worker thread so cancelling the context returns control to the
    caller at once; the abandoned request ends within its own timeout.
    """

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        client_kwargs: dict[str, Any] = {
            "headers": {"User-Agent": USER_AGENT},
            "timeout": timeout,
            "follow_redirects": True,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.Client(**client_kwargs)
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        return self._timeout

    def get(
        self,
        url: str,
        params: dict[str, str] | None = None,
        *,
        timeout: float | None = None,
        ctx: RequestContext | None = None,
    ) -> dict[str, Any]:
        """Send a GET request and decode the JSON body.

        Args:
            url: The URL to request.
            params: Optional query parameters.
            timeout: Per-request timeout overriding the client default.
            ctx: Request context; cancelling it aborts the wait for a response.

        Returns:
            Parsed JSON response body.

        Raises:
            NoMatchError: On HTTP 404.
            RateLimitedError: On HTTP 420/429.
            ProviderUnavailableError: On network failures and timeouts.
            ProviderError: On any other non-200 status or an undecodable body.
            LookupCancelledError: ctx was cancelled or expired during the call.
        """
        if timeout is None:
            timeout = self._timeout
        if ctx is None:
            response = self._send(url, params, timeout)
        else:
            response = self._send_cancellable(ctx, url, params, timeout)

        status = response.status_code
        if status == 404:
            raise NoMatchError(f"Not found: {url}")
        if status in _RATE_LIMIT_STATUS_CODES:
            logger.warning("HTTP %d from %s, provider is throttling", status, url)
            raise RateLimitedError(f"HTTP {status} from {url}")
        if status != 200:
            raise ProviderError(f"HTTP {status} from {url}")

        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"Invalid JSON from {url}") from exc

    def _send(self, url: str, params: dict[str, str] | None, timeout: float) -> httpx.Response:
        try:
            return self._client.get(url, params=params, timeout=timeout)
        except httpx.TimeoutException as exc:
            raise ProviderUnavailableError(f"Request timed out: {url}") from exc
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(f"Request failed: {url}: {exc}") from exc

    def _send_cancellable(
        self,
        ctx: RequestContext,
        url: str,
        params: dict[str, str] | None,
        timeout: float,
    ) -> httpx.Response:
        ctx.raise_if_done()
        finished = threading.Event()
        outcome: dict[str, Any] = {}

        def run() -> None:
            try:
                outcome["response"] = self._send(url, params, timeout)
            except Exception as exc:
                outcome["error"] = exc
            finally:
                finished.set()

        unregister = ctx.on_cancel(finished.set)
        try:
            threading.Thread(target=run, name="folio-http", daemon=True).start()
            finished.wait()
        finally:
            unregister()

        if ctx.cancelled:
            logger.debug("Abandoning request to %s, context is done", url)
            response = outcome.get("response")
            if response is not None:
                response.close()
            ctx.raise_if_done()
        if "error" in outcome:
            raise outcome["error"]
        return outcome["response"]

    def close(self) -> None:
        self._client.close()
