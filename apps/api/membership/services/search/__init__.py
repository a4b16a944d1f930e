"""Ranked fuzzy member search (in-process ranking and its pg_trgm push-down)."""

from .ranking import (
    SIMILARITY_THRESHOLD,
    ActiveStatus,
    MatchTier,
    MemberRecord,
    SearchPage,
    SearchResult,
    parse_status,
    rank_members,
    search,
    total_pages,
    validate_page,
)
from .sql import ranked_member_ids
from .trigram import similarity, trigrams

__all__ = [
    "SIMILARITY_THRESHOLD",
    "ActiveStatus",
    "MatchTier",
    "MemberRecord",
    "SearchPage",
    "SearchResult",
    "parse_status",
    "rank_members",
    "search",
    "total_pages",
    "validate_page",
    "ranked_member_ids",
    "similarity",
    "trigrams",
]
