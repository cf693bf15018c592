"""
Candidate resolution and bulk fetch for autocomplete.

Prefix queries resolve ids with a ZRANGEBYLEX scan over the title index.
The empty query takes a separate path: the top ids of the popularity index.
Either way the records and their signals are then loaded in one pipelined
round trip.
"""

import logging
import os
from dataclasses import dataclass

import redis.asyncio as aioredis

from catalog.helpers import dedupe_preserve_order, lex_range, member_movie_id, normalize_title
from catalog.movie import MovieRecord, parse_float
from db.redis import movie_key, popularity_index_key, release_index_key, title_index_key

logger = logging.getLogger(__name__)

# Maximum title-index members read per prefix scan; caps cost on broad prefixes.
CANDIDATE_LIMIT: int = int(os.getenv("AUTOCOMPLETE_CANDIDATE_LIMIT", "100"))


@dataclass(slots=True)
class CandidateMovie:
    movie: MovieRecord
    popularity: float          # view counter from the popularity index
    release_unix: float | None  # release index score, falling back to the record field


# ================================
#       RESOLUTION
# ================================

async def resolve_candidates(
    client: aioredis.Redis,
    query: str,
    limit: int = CANDIDATE_LIMIT,
) -> list[str]:
    """
    Resolve movie ids whose normalized title starts with the query.

    Returns [] for an empty query (use resolve_trending instead) and when
    nothing matches.
    """
    prefix = normalize_title(query)
    if not prefix or limit <= 0:
        return []

    lex_min, lex_max = lex_range(prefix)
    members: list[str] = await client.zrangebylex(
        title_index_key(), lex_min, lex_max, start=0, num=limit,
    )

    # Several members can map to one id if a stale title was never removed.
    ids = [movie_id for movie_id in (member_movie_id(m) for m in members) if movie_id]
    return dedupe_preserve_order(ids)


async def resolve_trending(
    client: aioredis.Redis,
    count: int,
    offset: int = 0,
) -> list[tuple[str, float]]:
    """
    Return `count` (id, popularity) pairs in descending popularity order,
    starting at rank `offset`.

    Views of never-indexed ids also land in the popularity index, so callers
    may need to page past ids that have no record.
    """
    if count <= 0:
        return []
    pairs = await client.zrevrange(popularity_index_key(), offset, offset + count - 1, withscores=True)
    return [(movie_id, float(score)) for movie_id, score in pairs]


# ================================
#       BULK FETCH
# ================================

async def fetch_candidates(client: aioredis.Redis, movie_ids: list[str]) -> list[CandidateMovie]:
    """
    Load records, popularity and release time for every id in one round trip.

    Records without a title are stale or incomplete and are dropped. Output
    order follows movie_ids.
    """
    if not movie_ids:
        return []

    pipe = client.pipeline(transaction=False)
    for movie_id in movie_ids:
        pipe.hgetall(movie_key(movie_id))
        pipe.zscore(popularity_index_key(), movie_id)
        pipe.zscore(release_index_key(), movie_id)
    raw = await pipe.execute()

    candidates: list[CandidateMovie] = []
    for i, movie_id in enumerate(movie_ids):
        record, popularity, release = raw[i * 3: i * 3 + 3]
        movie = MovieRecord.from_redis_hash(movie_id, record)
        if movie is None:
            continue
        release_unix = parse_float(release)
        if release_unix is None and movie.release_unix is not None:
            release_unix = float(movie.release_unix)
        candidates.append(CandidateMovie(
            movie=movie,
            popularity=parse_float(popularity) or 0.0,
            release_unix=release_unix,
        ))

    dropped = len(movie_ids) - len(candidates)
    if dropped:
        logger.debug("Dropped %d candidate(s) with missing records", dropped)
    return candidates


async def fetch_trending(
    client: aioredis.Redis,
    scored_ids: list[tuple[str, float]],
) -> list[CandidateMovie]:
    """Load records for trending ids, keeping the popularity index order."""
    if not scored_ids:
        return []

    pipe = client.pipeline(transaction=False)
    for movie_id, _ in scored_ids:
        pipe.hgetall(movie_key(movie_id))
    records = await pipe.execute()

    candidates: list[CandidateMovie] = []
    for (movie_id, popularity), record in zip(scored_ids, records):
        movie = MovieRecord.from_redis_hash(movie_id, record)
        if movie is None:
            continue
        candidates.append(CandidateMovie(
            movie=movie,
            popularity=float(popularity),
            release_unix=float(movie.release_unix) if movie.release_unix is not None else None,
        ))
    return candidates
