# ABOUTME: Heuristic parser for comic archive filenames.
# ABOUTME: Extracts series, issue number, volume and year from scene-style names like "Saga 054 (2018).cbz".

import re
from dataclasses import dataclass

_EXTENSION_RE = re.compile(r"\.(?:cbz|cbr|cb7|cbt)$", re.IGNORECASE)

# (2020), [2020], (Jan 2020), (January 2020)
_YEAR_RE = re.compile(
    r"[(\[](?:(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+)?(\d{4})[)\]]"
)
_MIN_YEAR = 1900
_MAX_YEAR = 2100

# Vol. 1, Vol 1, Volume 1, v1, v01
_VOLUME_RE = re.compile(r"\b(?:Vol(?:ume)?\.?\s*|v)(\d+)", re.IGNORECASE)

# Most specific first; the first pattern that matches wins.
ISSUE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("hash", re.compile(r"#\s*(\d+(?:\.\d+)?)")),
    ("keyword", re.compile(r"\b(?:No\.?|Issue)\s*(\d+(?:\.\d+)?)", re.IGNORECASE)),
    ("padded", re.compile(r"\s(\d{3})(?=\s|$|[(\[])")),
    ("trailing", re.compile(r"\s(\d{1,2})(?=\s+[(\[]|\s*$)")),
    ("annual", re.compile(r"Annual\s*#?\s*(\d+)", re.IGNORECASE)),
)

# Release-group and digital-edition tags removed before the generic bracket sweep.
RELEASE_TAGS: tuple[str, ...] = (
    "(Digital)",
    "(digital)",
    "(Digital-Empire)",
    "(Digital-Empire-HD)",
    "(Minutemen-DTs)",
    "(Minutemen)",
    "(DTs)",
    "(Zone-Empire)",
    "(Glorith-HD)",
    "(Glorith)",
    "(DCP)",
    "(DR & Quinch-Empire)",
    "(Empire)",
    "(Oroboros-DCP)",
    "(KG-Empire)",
    "(Renegades-DCP)",
    "(GreenGiant-DCP)",
    "[Digital]",
    "[digital]",
)

_BRACKETED_RE = re.compile(r"[(\[][^)\]]*[)\]]")
_TRAILING_DASH_RE = re.compile(r"\s*[-–—]\s*$")


@dataclass(frozen=True)
class FilenameInfo:
    """Structured fields recovered from a comic filename.

    issue_number keeps the original formatting ("001", "1.5"); volume and
    year are 0 when absent.
    """

    series: str
    title: str
    issue_number: str
    issue_float: float
    volume: int
    year: int
    raw_filename: str


def _extract_year(name: str) -> int:
    match = _YEAR_RE.search(name)
    if not match:
        return 0
    year = int(match.group(1))
    return year if _MIN_YEAR <= year <= _MAX_YEAR else 0


def _extract_issue(name: str) -> str:
    for _label, pattern in ISSUE_PATTERNS:
        match = pattern.search(name)
        if match:
            return match.group(1)
    return ""


def _compose_title(series: str, volume: int, issue: str, year: int) -> str:
    title = series
    if volume:
        title += f" Vol. {volume}"
    if issue:
        title += f" #{issue}"
    if year:
        title += f" ({year})"
    return title


def parse_comic_filename(filename: str) -> FilenameInfo:
    """Parse a comic filename into series, issue, volume and year.

    Never raises; fields that cannot be found keep their empty value.

    >>> parse_comic_filename("Batman 001 (2020) (Digital).cbz").title
    'Batman #001 (2020)'
    """
    name = _EXTENSION_RE.sub("", filename)

    year = _extract_year(name)

    volume = 0
    volume_match = _VOLUME_RE.search(name)
    if volume_match:
        volume = int(volume_match.group(1))

    issue = _extract_issue(name)
    try:
        issue_float = float(issue) if issue else 0.0
    except ValueError:
        issue_float = 0.0

    cleaned = name
    for tag in RELEASE_TAGS:
        cleaned = cleaned.replace(tag, "")
    cleaned = _BRACKETED_RE.sub("", cleaned)

    series = _VOLUME_RE.sub("", cleaned)
    for _label, pattern in ISSUE_PATTERNS:
        series = pattern.sub(" ", series)
    series = " ".join(series.split())
    series = _TRAILING_DASH_RE.sub("", series).strip()

    return FilenameInfo(
        series=series,
        title=_compose_title(series, volume, issue, year),
        issue_number=issue,
        issue_float=issue_float,
        volume=volume,
        year=year,
        raw_filename=filename,
    )
