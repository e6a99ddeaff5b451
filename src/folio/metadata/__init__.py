# ABOUTME: Metadata package for resolving book and comic metadata from external providers.
# ABOUTME: Exports the resolved-metadata types, lookup services and error taxonomy.

from folio.metadata.context import RequestContext
from folio.metadata.errors import (
    LookupCancelledError,
    MetadataError,
    NoMatchError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitedError,
)
from folio.metadata.provider import BookMetadataProvider, ComicMetadataProvider
from folio.metadata.service import BookMetadataService, ComicMetadataService
from folio.metadata.types import CoverSize, ResolvedComicMetadata, ResolvedMetadata

__all__ = [
    "BookMetadataProvider",
    "BookMetadataService",
    "ComicMetadataProvider",
    "ComicMetadataService",
    "CoverSize",
    "LookupCancelledError",
    "MetadataError",
    "NoMatchError",
    "ProviderError",
    "ProviderUnavailableError",
    "RateLimitedError",
    "RequestContext",
    "ResolvedComicMetadata",
    "ResolvedMetadata",
]
