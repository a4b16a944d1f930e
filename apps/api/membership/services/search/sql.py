"""Ranked member search pushed down to PostgreSQL (requires the pg_trgm extension).

Mirrors membership.services.search.ranking: same tiers, same score, same
ordering. strpos() decides the substring tiers so that % and _ in the query are
matched literally.

The match filter pairs each exact check with an index-friendly one: ILIKE and
the % operator are served by the gin_trgm_ops indexes from migration 002, and
pg_trgm.similarity_threshold is set for the transaction so that % agrees with
the configured threshold. % is inclusive, hence the strict similarity() check,
compared as real like similarity() itself.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from membership.services.search.ranking import ActiveStatus, MatchTier

_STATUS_FILTER = """
    CASE
        WHEN :status = 'active' THEN m.deleted_at IS NULL
        WHEN :status = 'deleted' THEN m.deleted_at IS NOT NULL
        ELSE true
    END
"""

_MATCH_FILTER = """
    LOWER(m.name) = LOWER(:q)
    OR LOWER(m.email) = LOWER(:q)
    OR (m.name ILIKE :contains AND strpos(LOWER(m.name), LOWER(:q)) > 0)
    OR (m.email ILIKE :contains AND strpos(LOWER(m.email), LOWER(:q)) > 0)
    OR (m.phone ILIKE :contains AND strpos(LOWER(m.phone), LOWER(:q)) > 0)
    OR (m.name % :q AND similarity(m.name, :q) > CAST(:threshold AS real))
    OR (m.email % :q AND similarity(m.email, :q) > CAST(:threshold AS real))
    OR (m.phone % :q AND similarity(m.phone, :q) > CAST(:threshold AS real))
"""

SET_SIMILARITY_THRESHOLD_SQL = text(
    "SELECT set_config('pg_trgm.similarity_threshold', :threshold, true)"
)

_TIER = """
    CASE
        WHEN LOWER(m.name) = LOWER(:q)
          OR LOWER(m.email) = LOWER(:q)
          OR LOWER(COALESCE(m.phone, '')) = LOWER(:q) THEN 1
        WHEN strpos(LOWER(m.name), LOWER(:q)) = 1
          OR strpos(LOWER(m.email), LOWER(:q)) = 1
          OR strpos(LOWER(COALESCE(m.phone, '')), LOWER(:q)) = 1 THEN 2
        WHEN strpos(LOWER(m.name), LOWER(:q)) > 0
          OR strpos(LOWER(m.email), LOWER(:q)) > 0
          OR strpos(LOWER(COALESCE(m.phone, '')), LOWER(:q)) > 0 THEN 3
        ELSE 4
    END
"""

_SCORE = """
    GREATEST(
        similarity(m.name, :q),
        similarity(m.email, :q),
        COALESCE(similarity(m.phone, :q), 0)
    )
"""

RANKED_SEARCH_SQL = text(f"""
    SELECT m.id AS id, {_TIER} AS tier, {_SCORE} AS score
    FROM members m
    WHERE ({_STATUS_FILTER}) AND ({_MATCH_FILTER})
    ORDER BY tier ASC, score DESC, m.name COLLATE "C" ASC, CAST(m.id AS text) ASC
    LIMIT :limit OFFSET :offset
""")

RANKED_SEARCH_COUNT_SQL = text(f"""
    SELECT COUNT(*) FROM members m
    WHERE ({_STATUS_FILTER}) AND ({_MATCH_FILTER})
""")


def like_contains(query: str) -> str:
    """ILIKE pattern matching query anywhere, with LIKE wildcards escaped."""
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def ranked_member_ids(
    db: AsyncSession,
    query: str,
    status: ActiveStatus,
    page_number: int,
    page_size: int,
    threshold: float,
) -> tuple[list[tuple[str, MatchTier, float]], int]:
    """Return ([(member_id, tier, score), ...] for one page, total match count)."""
    await db.execute(SET_SIMILARITY_THRESHOLD_SQL, {"threshold": str(threshold)})
    params = {
        "q": query,
        "contains": like_contains(query),
        "status": status.value,
        "threshold": threshold,
    }
    count_result = await db.execute(RANKED_SEARCH_COUNT_SQL, params)
    total = int(count_result.scalar_one() or 0)
    if total == 0:
        return [], 0
    result = await db.execute(
        RANKED_SEARCH_SQL,
        {**params, "limit": page_size, "offset": page_number * page_size},
    )
    rows = [
        (str(r.id), MatchTier(int(r.tier)), float(r.score) if r.score is not None else 0.0)
        for r in result.fetchall()
    ]
    return rows, total
