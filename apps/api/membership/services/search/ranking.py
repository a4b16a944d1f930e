"""Ranked fuzzy member search.

Every searchable field of a member (name, email, phone) is compared with the
query case-insensitively and placed in the best tier it reaches:

1. exact match
2. prefix match
3. substring match
4. fuzzy match (trigram similarity above the threshold)

A member is a hit when any field reaches any tier. Hits are ordered by their
best tier, then by the highest trigram similarity over all their fields, then
by name. The tier and the similarity score may come from different fields;
e.g. the email can win on tier while the phone number carries the score.

The functions here are pure: they read a snapshot of records, never modify
them, and give identical output for identical input.
"""

import math
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Iterable, Optional, Protocol

from membership.services.errors import InvalidArgumentError
from membership.services.search.trigram import jaccard, trigrams

SIMILARITY_THRESHOLD = 0.3


class ActiveStatus(str, Enum):
    """Soft-delete filter applied before ranking."""
    ACTIVE = "active"
    DELETED = "deleted"
    ALL = "all"

    def admits(self, is_deleted: bool) -> bool:
        if self is ActiveStatus.ACTIVE:
            return not is_deleted
        if self is ActiveStatus.DELETED:
            return bool(is_deleted)
        return True


class MatchTier(IntEnum):
    EXACT_MATCH = 1
    PREFIX_MATCH = 2
    SUBSTRING_MATCH = 3
    FUZZY_MATCH = 4


class MemberRecord(Protocol):
    id: Any
    name: str
    email: str
    phone: Optional[str]
    is_deleted: bool


@dataclass(frozen=True)
class SearchResult:
    record: Any
    tier: MatchTier
    score: float


@dataclass(frozen=True)
class SearchPage:
    content: list[SearchResult]
    page_number: int
    page_size: int
    total_elements: int
    total_pages: int


def parse_status(value: "ActiveStatus | str | None") -> ActiveStatus:
    """Coerce a status value; None and blank mean active."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return ActiveStatus.ACTIVE
    try:
        return ActiveStatus(value.strip().lower() if isinstance(value, str) else value)
    except ValueError:
        raise InvalidArgumentError(
            f"Status must be one of: {', '.join(s.value for s in ActiveStatus)}"
        ) from None


def validate_page(page_number: int, page_size: int) -> None:
    if page_size is None or page_size <= 0:
        raise InvalidArgumentError(f"Page size must be > 0, received: {page_size}")
    if page_number is None or page_number < 0:
        raise InvalidArgumentError(f"Page number must be >= 0, received: {page_number}")


def total_pages(total_elements: int, page_size: int) -> int:
    return math.ceil(total_elements / page_size) if page_size > 0 else 0


def classify_field(
    value: str | None,
    query_lower: str,
    query_grams: frozenset[str],
    threshold: float = SIMILARITY_THRESHOLD,
) -> tuple[MatchTier | None, float]:
    """Best tier reached by one field and its trigram similarity to the query.

    A missing field reaches no tier and scores 0.0. An empty query reaches no
    tier either, since every rule needs something to compare.
    """
    if value is None:
        return None, 0.0
    score = jaccard(trigrams(value), query_grams)
    if not query_lower:
        return None, score
    field = value.lower()
    if field == query_lower:
        return MatchTier.EXACT_MATCH, score
    if field.startswith(query_lower):
        return MatchTier.PREFIX_MATCH, score
    if query_lower in field:
        return MatchTier.SUBSTRING_MATCH, score
    if score > threshold:
        return MatchTier.FUZZY_MATCH, score
    return None, score


def _rank_record(
    record: MemberRecord,
    query_lower: str,
    query_grams: frozenset[str],
    threshold: float,
) -> SearchResult | None:
    best: MatchTier | None = None
    score = 0.0
    for value in (record.name, record.email, record.phone):
        tier, field_score = classify_field(value, query_lower, query_grams, threshold)
        score = max(score, field_score)
        if tier is not None and (best is None or tier < best):
            best = tier
    if best is None:
        return None
    return SearchResult(record=record, tier=best, score=score)


def _sort_key(result: SearchResult) -> tuple:
    record = result.record
    return (result.tier, -result.score, record.name or "", str(record.id))


def rank_members(
    query: str,
    records: Iterable[MemberRecord],
    status: ActiveStatus = ActiveStatus.ACTIVE,
    threshold: float = SIMILARITY_THRESHOLD,
) -> list[SearchResult]:
    """Classify, filter and fully order ``records`` against ``query``."""
    if query is None:
        raise InvalidArgumentError("Search query must not be null")
    status = parse_status(status)
    if not query:
        return []

    query_lower = query.lower()
    query_grams = trigrams(query)
    hits = []
    for record in records:
        if not status.admits(record.is_deleted):
            continue
        result = _rank_record(record, query_lower, query_grams, threshold)
        if result is not None:
            hits.append(result)
    hits.sort(key=_sort_key)
    return hits


def search(
    query: str,
    status: ActiveStatus,
    page_number: int,
    page_size: int,
    records: Iterable[MemberRecord],
    threshold: float = SIMILARITY_THRESHOLD,
) -> SearchPage:
    """Rank ``records`` against ``query`` and return one page of hits.

    Raises InvalidArgumentError for a None query, a page size below 1 or a
    negative page number. A page past the end is empty but still reports the
    full totals.
    """
    if query is None:
        raise InvalidArgumentError("Search query must not be null")
    validate_page(page_number, page_size)

    ranked = rank_members(query, records, status, threshold)
    total = len(ranked)
    start = page_number * page_size
    return SearchPage(
        content=ranked[start : start + page_size],
        page_number=page_number,
        page_size=page_size,
        total_elements=total,
        total_pages=total_pages(total, page_size),
    )
