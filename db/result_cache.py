"""
Short-TTL cache of autocomplete results.

Key:   cache:autocomplete:<normalized query>  (or the "trending" sentinel)
Value: JSON list of ranked result objects
TTL:   AUTOCOMPLETE_CACHE_TTL seconds (default 10)

There is no explicit invalidation. Indexing does not purge the cache, so a
result can be stale for up to one TTL after a write.
"""

import json
import logging
import os
from typing import Any

import redis.asyncio as aioredis

from db.redis import redis_key

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS: int = int(os.getenv("AUTOCOMPLETE_CACHE_TTL", "10"))
TRENDING_CACHE_SENTINEL = "trending"


def cache_key(normalized_query: str) -> str:
    """Cache key for a normalized query; the empty query maps to the trending sentinel."""
    return redis_key("cache", "autocomplete", normalized_query or TRENDING_CACHE_SENTINEL)


async def get_cached_results(client: aioredis.Redis, key: str) -> list[dict[str, Any]] | None:
    """
    Return the cached result list, or None on a miss.

    A payload that is not a JSON list of objects is logged and treated as a
    miss so the caller recomputes and overwrites it.
    """
    raw = await client.get(key)
    if raw is None:
        logger.debug("Cache miss for '%s'", key)
        return None

    try:
        results = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Malformed cache payload at '%s', recomputing", key)
        return None

    if not isinstance(results, list) or not all(isinstance(r, dict) for r in results):
        logger.warning("Unexpected cache payload shape at '%s', recomputing", key)
        return None

    logger.debug("Cache hit for '%s' (%d results)", key, len(results))
    return results


async def put_cached_results(
    client: aioredis.Redis,
    key: str,
    results: list[dict[str, Any]],
    ttl_seconds: int = CACHE_TTL_SECONDS,
) -> None:
    """Store results under key with a TTL."""
    await client.set(key, json.dumps(results), ex=ttl_seconds)
