# ABOUTME: Error taxonomy for metadata lookups against external providers.
# ABOUTME: Callers distinguish no-match and throttling from generic provider failures.


class MetadataError(Exception):
    """Base class for every metadata lookup failure."""


class NoMatchError(MetadataError):
    """No candidate met the search criteria on any configured provider."""

    def __init__(self, message: str = "no matching metadata found") -> None:
        super().__init__(message)


class RateLimitedError(MetadataError):
    """An upstream provider signaled throttling (HTTP 429 or equivalent)."""

    def __init__(self, message: str = "rate limited by provider") -> None:
        super().__init__(message)


class ProviderError(MetadataError):
    """A provider returned an unexpected status or an API-level error."""


class ProviderUnavailableError(ProviderError):
    """A provider could not be reached (network failure or timeout)."""


class LookupCancelledError(MetadataError):
    """The request context was cancelled or its deadline passed."""
