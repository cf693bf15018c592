import logging
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv

# Module-level config in db.* reads the environment at import time.
load_dotenv()

import redis.asyncio as aioredis
from fastapi import Body, Depends, FastAPI, Query
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from db.autocomplete import MAX_RESULTS, autocomplete
from db.movie_index import increment_popularity, index_movie, index_movies_batch
from db.ranking import DEFAULT_LIMIT
from db.redis import check_redis, close_redis, get_redis_client, init_redis

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan handler for the Redis pool lifecycle.

    Opens the pool on startup (failing fast if Redis is unreachable) and
    closes it on shutdown.
    """
    await init_redis()
    yield
    await close_redis()


app = FastAPI(lifespan=lifespan)


def redis_client() -> aioredis.Redis:
    """Dependency returning the shared Redis client."""
    return get_redis_client()


def _store_error(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": message})


@app.post("/movie")
async def post_movie(
    movie: dict[str, Any] = Body(...),
    client: aioredis.Redis = Depends(redis_client),
):
    """Index one movie. Movies without id or title are accepted and ignored."""
    try:
        await index_movie(client, movie)
    except RedisError:
        logger.exception("Failed to index movie")
        return _store_error("Failed to index movie")
    return {"ok": True}


@app.post("/movies/batch")
async def post_movies_batch(
    payload: dict[str, Any] = Body(...),
    client: aioredis.Redis = Depends(redis_client),
):
    """Index a non-empty list of movies in one pipeline."""
    movies = payload.get("movies")
    if not isinstance(movies, list) or not movies:
        return JSONResponse(status_code=400, content={"error": "Movies must be a non-empty array"})
    try:
        await index_movies_batch(client, movies)
    except RedisError:
        logger.exception("Batch insert error")
        return _store_error("Failed to index movies batch")
    return {"message": f"{len(movies)} movies indexed successfully"}


@app.post("/movie/{movie_id}/view")
async def post_movie_view(
    movie_id: str,
    client: aioredis.Redis = Depends(redis_client),
):
    """Record one view of a movie."""
    try:
        await increment_popularity(client, movie_id)
    except RedisError:
        logger.exception("Failed to increment popularity for %s", movie_id)
        return _store_error("Failed to increment popularity")
    return {"ok": True}


@app.get("/autocomplete")
async def get_autocomplete(
    q: str = "",
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_RESULTS),
    client: aioredis.Redis = Depends(redis_client),
):
    """Ranked title suggestions for a prefix; trending movies when q is empty."""
    try:
        suggestions = await autocomplete(client, q, limit)
    except RedisError:
        logger.exception("Failed to autocomplete '%s'", q)
        return _store_error("Failed to autocomplete")
    return {"suggestions": suggestions}


@app.get("/health")
async def health_check():
    """
    Health check endpoint that validates Redis connectivity.

    Returns {"redis": "ok"} or the error message; never raises.
    """
    return {"redis": await check_redis()}
