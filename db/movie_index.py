"""
Movie indexing: the write path of the autocomplete service.

Each movie becomes four writes: a title-index member, a popularity entry, a
release-time entry and the record hash. All writes of one call are sent as a
single MULTI/EXEC pipeline, so a batch reaches Redis as one unit. This is
store-level pipelining, not a cross-key transaction with read isolation.

Re-indexing an id is a full overwrite of its record. Two things are kept
stable across re-index:
    - the popularity counter (initialized with ZADD NX, never reset);
    - the title index (the member for the previous title is removed).
"""

import logging
import time
from collections.abc import Sequence
from typing import Any

import redis.asyncio as aioredis

from catalog.helpers import normalize_title, title_member
from catalog.movie import MovieRecord, NORMALIZED_TITLE_FIELD, coerce_movie
from db.redis import movie_key, popularity_index_key, release_index_key, title_index_key

logger = logging.getLogger(__name__)


async def index_movie(client: aioredis.Redis, movie: Any) -> bool:
    """
    Index a single movie.

    Silently skips input without an id or title.

    Returns:
        True if the movie was written, False if it was skipped.
    """
    return await index_movies_batch(client, [movie]) == 1


async def index_movies_batch(client: aioredis.Redis, movies: Any) -> int:
    """
    Index many movies in one atomic pipeline.

    Invalid entries (missing id/title, not a mapping) are skipped one by one;
    they never abort the batch. Empty or non-sequence input is a no-op.

    Args:
        client: Redis client.
        movies: Sequence of movie mappings or MovieRecord objects.

    Returns:
        Number of distinct movies written.
    """
    if not isinstance(movies, Sequence) or isinstance(movies, (str, bytes)) or not movies:
        return 0

    # Last occurrence of an id wins; titles of earlier occurrences are stale.
    latest: dict[str, MovieRecord] = {}
    batch_titles: dict[str, set[str]] = {}
    skipped = 0
    for raw in movies:
        movie = coerce_movie(raw)
        if movie is None:
            skipped += 1
            continue
        latest[movie.id] = movie
        batch_titles.setdefault(movie.id, set()).add(movie.normalized_title)

    if skipped:
        logger.debug("Skipped %d movie(s) without id or title", skipped)
    if not latest:
        return 0

    movie_ids = list(latest)
    previous_titles = await _fetch_indexed_titles(client, movie_ids)

    now = int(time.time())
    titles_key = title_index_key()
    pipe = client.pipeline(transaction=True)
    for movie_id in movie_ids:
        movie = latest[movie_id]
        new_title = movie.normalized_title

        stale_titles = set(batch_titles[movie_id])
        if previous_titles.get(movie_id) is not None:
            stale_titles.add(previous_titles[movie_id])
        stale_titles.discard(new_title)
        for stale in stale_titles:
            pipe.zrem(titles_key, title_member(stale, movie_id))

        pipe.zadd(titles_key, {title_member(new_title, movie_id): 0})
        pipe.zadd(popularity_index_key(), {movie_id: 0}, nx=True)
        release = movie.release_unix if movie.release_unix is not None else now
        pipe.zadd(release_index_key(), {movie_id: release})
        pipe.delete(movie_key(movie_id))
        pipe.hset(movie_key(movie_id), mapping=movie.to_redis_hash())
    await pipe.execute()

    logger.info("Indexed %d movie(s)", len(movie_ids))
    return len(movie_ids)


async def _fetch_indexed_titles(client: aioredis.Redis, movie_ids: list[str]) -> dict[str, str | None]:
    """
    Read the normalized title each id is currently indexed under (one round trip).

    Records written without the bookkeeping field fall back to normalizing
    their stored title.
    """
    pipe = client.pipeline(transaction=False)
    for movie_id in movie_ids:
        pipe.hmget(movie_key(movie_id), [NORMALIZED_TITLE_FIELD, "title"])
    rows = await pipe.execute()

    titles: dict[str, str | None] = {}
    for movie_id, (indexed_title, stored_title) in zip(movie_ids, rows):
        if indexed_title is not None:
            titles[movie_id] = indexed_title
        elif stored_title is not None:
            titles[movie_id] = normalize_title(stored_title)
        else:
            titles[movie_id] = None
    return titles


async def increment_popularity(client: aioredis.Redis, movie_id: Any) -> float:
    """Record one view for movie_id and return its new popularity score."""
    return await client.zincrby(popularity_index_key(), 1, str(movie_id))
