"""
autocomplete.py: autocomplete orchestrator.

Read path: normalize → cache lookup → (trending | resolve → fetch → rank)
→ cache populate. Store failures propagate to the caller unchanged; there is
no partial-result recovery and no retry.
"""

import logging
import time
from typing import Any

import redis.asyncio as aioredis

from catalog.helpers import normalize_title
from db.candidates import (
    CANDIDATE_LIMIT,
    CandidateMovie,
    fetch_candidates,
    fetch_trending,
    resolve_candidates,
    resolve_trending,
)
from db.ranking import DEFAULT_LIMIT, rank_candidates, trending_results
from db.result_cache import cache_key, get_cached_results, put_cached_results

logger = logging.getLogger(__name__)

# Hard cap on results per call: the size of the prefix candidate pool. Also the
# number of trending results cached, since the cache key does not include the limit.
MAX_RESULTS: int = CANDIDATE_LIMIT

# Upper bound on popularity-index pages read while filling the trending list.
TRENDING_MAX_PAGES: int = 5


async def autocomplete(
    client: aioredis.Redis,
    query: str | None,
    limit: int = DEFAULT_LIMIT,
) -> list[dict[str, Any]]:
    """
    Return up to `limit` ranked suggestions for a title prefix.

    An empty query returns trending movies ordered by popularity alone.
    Every result carries a numeric "score"; scores never increase along the list.
    `limit` is clamped to [0, MAX_RESULTS].
    """
    limit = max(0, min(int(limit), MAX_RESULTS))
    if limit == 0:
        return []

    normalized_query = normalize_title(query)
    key = cache_key(normalized_query)

    cached = await get_cached_results(client, key)
    if cached is not None:
        return cached[:limit]

    start = time.perf_counter()
    if not normalized_query:
        results = trending_results(await _load_trending(client, MAX_RESULTS))
    else:
        movie_ids = await resolve_candidates(client, normalized_query)
        candidates = await fetch_candidates(client, movie_ids)
        # Rank the whole pool; the cached list serves any limit.
        results = rank_candidates(candidates, normalized_query, limit=None)

    await put_cached_results(client, key, results)
    logger.debug(
        "Computed %d result(s) for '%s' in %.1fms",
        len(results), normalized_query, (time.perf_counter() - start) * 1000,
    )
    return results[:limit]


async def _load_trending(client: aioredis.Redis, count: int) -> list[CandidateMovie]:
    """
    Collect up to `count` trending movies that have a record.

    Pages down the popularity index so ids viewed but never indexed do not
    crowd out indexed movies.
    """
    candidates: list[CandidateMovie] = []
    offset = 0
    for _ in range(TRENDING_MAX_PAGES):
        scored_ids = await resolve_trending(client, count, offset=offset)
        candidates.extend(await fetch_trending(client, scored_ids))
        if len(candidates) >= count or len(scored_ids) < count:
            break
        offset += count
    return candidates[:count]
