"""
Redis async connection pool and key layout for the autocomplete service.

Uses redis.asyncio with an explicit ConnectionPool. decode_responses is True
because every value the service stores (index members, record hashes, cached
JSON) is text.

The pool is process-wide state owned by the API lifespan. Core functions never
reach for it themselves: they take the client as an argument, so they can run
against any object implementing the same commands.
"""

import logging
import os
import redis.asyncio as aioredis
from redis.asyncio.connection import ConnectionPool

logger = logging.getLogger(__name__)

_redis_pool: ConnectionPool | None = None
_redis_client: aioredis.Redis | None = None

KEY_PREFIX: str = os.getenv("REDIS_KEY_PREFIX", "")


def get_redis_client() -> aioredis.Redis:
    """Return the shared async Redis client backed by a connection pool."""
    if _redis_client is None:
        raise RuntimeError("Redis not initialized. Call init_redis() at startup.")
    return _redis_client


def redis_key(*parts: str) -> str:
    """Build a Redis key from one or more parts, namespaced by REDIS_KEY_PREFIX when set."""
    key = ":".join(parts)
    return f"{KEY_PREFIX}:{key}" if KEY_PREFIX else key


# ---------------------------------------------------------------------------
# Key layout
# ---------------------------------------------------------------------------

def title_index_key() -> str:
    """Sorted set of '<normalized title>|<id>' members, all scored 0."""
    return redis_key("movies", "titles")


def popularity_index_key() -> str:
    """Sorted set of movie ids scored by view count."""
    return redis_key("movies", "popularity")


def release_index_key() -> str:
    """Sorted set of movie ids scored by release time (epoch seconds)."""
    return redis_key("movies", "release")


def movie_key(movie_id: str) -> str:
    """Hash holding the flat record for one movie."""
    return redis_key("movie", str(movie_id))


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

async def init_redis(
    host: str = os.getenv("REDIS_HOST", "redis"),
    port: int = int(os.getenv("REDIS_PORT", "6379")),
    max_connections: int = int(os.getenv("REDIS_MAX_CONNECTIONS", "10")),
    socket_timeout: float = float(os.getenv("REDIS_SOCKET_TIMEOUT", "5")),
) -> None:
    """Call once at application startup (e.g. FastAPI lifespan)."""
    global _redis_pool, _redis_client
    _redis_pool = ConnectionPool(
        host=host,
        port=port,
        max_connections=max_connections,
        socket_timeout=socket_timeout,
        decode_responses=True,
    )
    _redis_client = aioredis.Redis(connection_pool=_redis_pool)
    await _redis_client.ping()  # Fail fast if Redis is unreachable at startup
    logger.info("Connected to Redis at %s:%d", host, port)


async def close_redis() -> None:
    """Call at application shutdown."""
    global _redis_pool, _redis_client
    if _redis_client:
        await _redis_client.aclose()
    if _redis_pool:
        await _redis_pool.aclose()
    _redis_client = None
    _redis_pool = None


async def check_redis() -> str:
    """Ping Redis and return 'ok' or an error message string."""
    try:
        client = get_redis_client()
        await client.ping()
        return "ok"
    except Exception as e:
        return str(e)
