# ABOUTME: Confidence scoring for book and comic metadata candidates.
# ABOUTME: Weighted token similarity, issue-number matching and release-year adjustments.

import re

from folio.metadata.similarity import normalize, similarity
from folio.metadata.types import ResolvedComicMetadata, ResolvedMetadata

# Book weights: title vs. author.
_WEIGHT_TITLE = 0.6
_WEIGHT_AUTHOR = 0.4

# Comic weights: series/title text vs. issue number.
_WEIGHT_COMIC_TEXT = 0.6
_COMIC_TEXT_NO_QUERY = 0.3
_ISSUE_EXACT = 0.4
_ISSUE_MISMATCH = 0.1
_ISSUE_NO_QUERY = 0.2

_YEAR_EXACT_BOOST = 0.15
_YEAR_NEAR_BOOST = 0.05
_YEAR_FAR_PENALTY = -0.10
_YEAR_NEAR_WINDOW = 1
_YEAR_FAR_WINDOW = 5

_MIN_YEAR = 1900
_MAX_YEAR = 2100

_LEADING_YEAR_RE = re.compile(r"^\s*(\d{4})(?!\d)")
_ISSUE_PREFIXES = ("#", "no.", "no")


def score_book_candidate(
    candidate: ResolvedMetadata, title: str, author: str | None = None
) -> float:
    """Score how well a book candidate matches a title/author query.

    0.6 * title similarity + 0.4 * best author similarity. With no query
    author the author component is full credit; with a query author but an
    authorless candidate it is zero. Result is in [0.0, 1.0].
    """
    title_score = similarity(normalize(candidate.title), normalize(title))

    if not author:
        author_score = 1.0
    elif not candidate.authors:
        author_score = 0.0
    else:
        query_author = normalize(author)
        author_score = max(similarity(normalize(a), query_author) for a in candidate.authors)

    return _WEIGHT_TITLE * title_score + _WEIGHT_AUTHOR * author_score


def normalize_issue_number(issue: str) -> str:
    """Canonical form of an issue number for equality checks.

    Drops a leading "#", "No." or "No" and then leading zeros, so "#001",
    "No. 1" and "1" all compare equal. An all-zero issue stays "0".
    """
    value = issue.strip().lower()
    for prefix in _ISSUE_PREFIXES:
        if value.startswith(prefix):
            value = value[len(prefix):].strip()
            break
    stripped = value.lstrip("0")
    if value and not stripped:
        return "0"
    if stripped.startswith("."):
        # "0.5" keeps its zero.
        return "0" + stripped
    return stripped


def score_comic_candidate(
    candidate: ResolvedComicMetadata, query: str | None, issue: str | None = None
) -> float:
    """Score a comic candidate against a series/title query and issue number.

    The text component takes the better of the candidate's series and title
    similarity. Year adjustments are applied separately by year_adjustment().
    """
    if query:
        normalized_query = normalize(query)
        text_score = max(
            similarity(normalize(candidate.series), normalized_query),
            similarity(normalize(candidate.title), normalized_query),
        )
        score = _WEIGHT_COMIC_TEXT * text_score
    else:
        score = _COMIC_TEXT_NO_QUERY

    if issue:
        if normalize_issue_number(candidate.issue_number) == normalize_issue_number(issue):
            score += _ISSUE_EXACT
        else:
            score += _ISSUE_MISMATCH
    else:
        score += _ISSUE_NO_QUERY

    return score


def extract_year(date: str | None) -> int:
    """Leading four-digit year of a date string, or 0 if absent or out of range."""
    if not date:
        return 0
    match = _LEADING_YEAR_RE.match(date)
    if not match:
        return 0
    year = int(match.group(1))
    if _MIN_YEAR <= year <= _MAX_YEAR:
        return year
    return 0


def year_adjustment(release_date: str | None, year: int) -> float:
    """Confidence delta for a candidate's release year against the query year."""
    if not year:
        return 0.0
    candidate_year = extract_year(release_date)
    if not candidate_year:
        return 0.0

    diff = abs(candidate_year - year)
    if diff == 0:
        return _YEAR_EXACT_BOOST
    if diff <= _YEAR_NEAR_WINDOW:
        return _YEAR_NEAR_BOOST
    if diff > _YEAR_FAR_WINDOW:
        return _YEAR_FAR_PENALTY
    return 0.0
