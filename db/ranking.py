"""
Autocomplete Ranking Module
===========================

Blends three signals into one composite score per candidate:
    1. Prefix match   - 1.0 when the normalized title starts with the query, else 0.5
    2. Popularity     - view count divided by the pool's max view count
    3. Recency        - 1 - age / oldest age in the pool

Signals are normalized against the candidate pool itself, so scores are only
comparable within one result list.
"""

from __future__ import annotations

import time
from typing import Any, Optional

from catalog.helpers import normalize_title
from db.candidates import CandidateMovie


# ===========================================================================
# Tunable constants
# ===========================================================================
# Policy weights, not derived. They sum to 1.0 so a perfect candidate scores
# 1.0; prefix match dominates so a prefix hit always outranks a non-hit with
# equal popularity and recency.
PREFIX_WEIGHT: float = 0.65
POPULARITY_WEIGHT: float = 0.25
RECENCY_WEIGHT: float = 0.10

PREFIX_MATCH_SCORE: float = 1.0
PREFIX_MISS_SCORE: float = 0.5

# Lower bound for both normalizers; avoids division by zero on a pool where
# nobody has views or everything was released "now".
NORMALIZER_FLOOR: float = 1.0

DEFAULT_LIMIT: int = 5


def _id_sort_key(movie_id: str) -> tuple[int, int | str]:
    """Secondary sort key: numeric ids ascending by value, then other ids lexically."""
    if movie_id.isdigit():
        return (0, int(movie_id))
    return (1, movie_id)


def compute_score(
    candidate: CandidateMovie,
    normalized_query: str,
    now: float,
    max_pop: float,
    max_delta: float,
) -> float:
    """Composite score for one candidate given the pool normalizers."""
    prefix_score = (
        PREFIX_MATCH_SCORE
        if candidate.movie.normalized_title.startswith(normalized_query)
        else PREFIX_MISS_SCORE
    )
    release = candidate.release_unix if candidate.release_unix is not None else now
    # Goes negative for releases newer than `now`; accepted drift.
    recency_score = 1.0 - (now - release) / max_delta
    pop_score = candidate.popularity / max_pop
    return (
        PREFIX_WEIGHT * prefix_score
        + POPULARITY_WEIGHT * pop_score
        + RECENCY_WEIGHT * recency_score
    )


def rank_candidates(
    candidates: list[CandidateMovie],
    query: str,
    limit: Optional[int] = DEFAULT_LIMIT,
    now: Optional[float] = None,
) -> list[dict[str, Any]]:
    """
    Score, order and cap autocomplete candidates.

    Args:
        candidates: Fetched candidates with their popularity/release signals.
        query: Raw or normalized query; normalized here.
        limit: Maximum results to return. None returns every candidate.
        now: Reference time in epoch seconds (defaults to the current time).

    Returns:
        Result dicts (record fields + "id" + "score"), ordered by descending
        score with ties broken by ascending id.
    """
    if not candidates or (limit is not None and limit <= 0):
        return []

    now = time.time() if now is None else now
    normalized_query = normalize_title(query)

    max_pop = max([c.popularity for c in candidates] + [NORMALIZER_FLOOR])
    max_delta = max(
        [now - (c.release_unix if c.release_unix is not None else now) for c in candidates]
        + [NORMALIZER_FLOOR]
    )

    scored = [
        (compute_score(c, normalized_query, now, max_pop, max_delta), c)
        for c in candidates
    ]
    scored.sort(key=lambda pair: (-pair[0], _id_sort_key(pair[1].movie.id)))
    if limit is not None:
        scored = scored[:limit]

    return [{**c.movie.to_result(), "score": score} for score, c in scored]


def trending_results(candidates: list[CandidateMovie], limit: Optional[int] = None) -> list[dict[str, Any]]:
    """
    Trending path: no blending, order is the popularity index order and the
    score is the raw popularity.
    """
    if limit is not None:
        candidates = candidates[:max(limit, 0)]
    return [{**c.movie.to_result(), "score": c.popularity} for c in candidates]
