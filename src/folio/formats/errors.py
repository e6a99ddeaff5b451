# ABOUTME: Error types for archive reading and metadata rewriting.
# ABOUTME: A failed rewrite always leaves the original file in its pre-call state.


class ArchiveError(Exception):
    """Base class for archive rewrite failures."""


class MalformedArchiveError(ArchiveError):
    """The file is not a readable container or lacks its metadata descriptor."""


class ArchiveWriteError(ArchiveError):
    """Writing, verifying or installing the rewritten file failed."""
