"""Trigram similarity, computed the way PostgreSQL's pg_trgm extension does.

The string is lower-cased and split into words on every non-alphanumeric
character. Each word is padded with two spaces in front and one behind, and
every 3-character window of the padded word is a trigram. Similarity of two
strings is the size of the shared trigram set over the size of the union.

Keeping the convention identical to pg_trgm means the in-process ranking and
the SQL push-down rank the same rows the same way.
"""

import re

# Letters and digits of any script; underscore counts as a separator in pg_trgm.
_WORD_RE = re.compile(r"[^\W_]+")


def trigrams(value: str | None) -> frozenset[str]:
    """Return the padded trigram set of ``value`` (empty for None or no words)."""
    if not value:
        return frozenset()
    grams: set[str] = set()
    for word in _WORD_RE.findall(value.lower()):
        padded = f"  {word} "
        grams.update(padded[i : i + 3] for i in range(len(padded) - 2))
    return frozenset(grams)


def jaccard(a: frozenset[str], b: frozenset[str]) -> float:
    """Intersection over union of two trigram sets; 0.0 when either is empty."""
    if not a or not b:
        return 0.0
    shared = len(a & b)
    return shared / (len(a) + len(b) - shared)


def similarity(a: str | None, b: str | None) -> float:
    """Trigram similarity of two strings in [0, 1]."""
    return jaccard(trigrams(a), trigrams(b))
