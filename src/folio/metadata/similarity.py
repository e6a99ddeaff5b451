# ABOUTME: Token-based string normalization and similarity used for candidate scoring.
# ABOUTME: normalize() is idempotent; similarity() is a Jaccard-style token overlap in [0, 1].

from collections import Counter

_LEADING_ARTICLES = ("the ", "a ", "an ")


def normalize(text: str) -> str:
    """Prepare a string for token comparison.

    Lower-cases, drops everything that is not a letter, digit or whitespace,
    collapses whitespace, and strips leading English articles. Articles are
    stripped after punctuation removal and until none remain, so running the
    function on its own output changes nothing.
    """
    lowered = text.lower()
    kept = "".join(ch for ch in lowered if ch.isalnum() or ch.isspace())
    result = " ".join(kept.split())

    stripped = True
    while stripped:
        stripped = False
        for article in _LEADING_ARTICLES:
            if result.startswith(article):
                result = result[len(article):]
                stripped = True
    return result


def similarity(a: str, b: str) -> float:
    """Token-overlap similarity between two (already normalized) strings.

    Counts tokens shared by both sides, each token on either side matched at
    most once, and divides by the size of the token union.
    """
    tokens_a = a.split()
    tokens_b = b.split()
    if not tokens_a or not tokens_b:
        return 0.0
    if a == b:
        return 1.0

    matches = sum((Counter(tokens_a) & Counter(tokens_b)).values())
    total = len(tokens_a) + len(tokens_b) - matches
    if total == 0:
        return 0.0
    return matches / total
