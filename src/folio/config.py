# ABOUTME: Runtime configuration for the metadata engine: rate intervals, timeouts, deadlines, API keys.
# ABOUTME: Defaults are overridable from the environment via FolioConfig.from_env().

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace

logger = logging.getLogger(__name__)

COMICVINE_API_KEY_ENV = "COMICVINE_API_KEY"
GOOGLE_BOOKS_API_KEY_ENV = "GOOGLE_BOOKS_API_KEY"

# FOLIO_* variable -> FolioConfig field
_FLOAT_OVERRIDES = {
    "FOLIO_BOOK_RATE_INTERVAL": "book_rate_interval",
    "FOLIO_COMIC_RATE_INTERVAL": "comic_rate_interval",
    "FOLIO_BOOK_PROVIDER_TIMEOUT": "book_provider_timeout",
    "FOLIO_COMIC_PROVIDER_TIMEOUT": "comic_provider_timeout",
    "FOLIO_BOOK_LOOKUP_DEADLINE": "book_lookup_deadline",
    "FOLIO_COMIC_LOOKUP_DEADLINE": "comic_lookup_deadline",
    "FOLIO_COMIC_APPLY_THRESHOLD": "comic_apply_threshold",
}


@dataclass(frozen=True)
class FolioConfig:
    """Tunable knobs for metadata resolution.

    Intervals, timeouts and deadlines are in seconds. comic_apply_threshold
    is the minimum confidence a comic match needs before it is written.
    """

    book_rate_interval: float = 0.5
    comic_rate_interval: float = 1.0
    book_provider_timeout: float = 10.0
    comic_provider_timeout: float = 15.0
    book_lookup_deadline: float = 10.0
    comic_lookup_deadline: float = 15.0
    comic_apply_threshold: float = 0.5
    comicvine_api_key: str | None = None
    google_books_api_key: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "FolioConfig":
        """Build a config from environment variables, ignoring malformed numbers."""
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}

        for var, field_name in _FLOAT_OVERRIDES.items():
            raw = env.get(var)
            if not raw:
                continue
            try:
                value = float(raw)
            except ValueError:
                logger.warning("Ignoring %s=%r: not a number", var, raw)
                continue
            if value < 0:
                logger.warning("Ignoring %s=%r: must be non-negative", var, raw)
                continue
            overrides[field_name] = value

        overrides["comicvine_api_key"] = env.get(COMICVINE_API_KEY_ENV) or None
        overrides["google_books_api_key"] = env.get(GOOGLE_BOOKS_API_KEY_ENV) or None
        return replace(cls(), **overrides)
