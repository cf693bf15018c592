"""Unit tests for the api.main HTTP adapter."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from api.main import app, health_check, redis_client
from db.autocomplete import MAX_RESULTS


@pytest.fixture
def client():
    """TestClient with the Redis dependency replaced; lifespan is not run."""
    store = MagicMock()
    app.dependency_overrides[redis_client] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_post_movie_indexes_payload(client, mocker) -> None:
    index = mocker.patch("api.main.index_movie", new=AsyncMock(return_value=True))

    response = client.post("/movie", json={"id": 1, "title": "Inception"})

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert index.await_args.args[1] == {"id": 1, "title": "Inception"}


def test_post_movie_store_failure_returns_500(client, mocker) -> None:
    mocker.patch("api.main.index_movie", new=AsyncMock(side_effect=RedisConnectionError("down")))

    response = client.post("/movie", json={"id": 1, "title": "Inception"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to index movie"}


def test_post_batch_reports_count(client, mocker) -> None:
    mocker.patch("api.main.index_movies_batch", new=AsyncMock(return_value=2))

    response = client.post("/movies/batch", json={"movies": [{"id": 1, "title": "A"}, {"id": 2, "title": "B"}]})

    assert response.status_code == 200
    assert response.json() == {"message": "2 movies indexed successfully"}


@pytest.mark.parametrize("payload", [{}, {"movies": []}, {"movies": "nope"}])
def test_post_batch_rejects_non_list_or_empty(client, mocker, payload) -> None:
    index = mocker.patch("api.main.index_movies_batch", new=AsyncMock())

    response = client.post("/movies/batch", json=payload)

    assert response.status_code == 400
    index.assert_not_awaited()


def test_post_view_increments_popularity(client, mocker) -> None:
    increment = mocker.patch("api.main.increment_popularity", new=AsyncMock(return_value=1.0))

    response = client.post("/movie/42/view")

    assert response.json() == {"ok": True}
    assert increment.await_args.args[1] == "42"


def test_get_autocomplete_returns_suggestions(client, mocker) -> None:
    suggestions = [{"id": "2", "title": "Interstellar", "score": 0.9}]
    search = mocker.patch("api.main.autocomplete", new=AsyncMock(return_value=suggestions))

    response = client.get("/autocomplete", params={"q": "int", "limit": 3})

    assert response.json() == {"suggestions": suggestions}
    assert search.await_args.args[1:] == ("int", 3)


def test_get_autocomplete_defaults(client, mocker) -> None:
    search = mocker.patch("api.main.autocomplete", new=AsyncMock(return_value=[]))

    client.get("/autocomplete")

    assert search.await_args.args[1:] == ("", 5)


@pytest.mark.parametrize("limit", [0, MAX_RESULTS + 1, "many"])
def test_get_autocomplete_rejects_bad_limit(client, mocker, limit) -> None:
    mocker.patch("api.main.autocomplete", new=AsyncMock(return_value=[]))
    assert client.get("/autocomplete", params={"limit": limit}).status_code == 422


def test_get_autocomplete_store_failure_returns_500(client, mocker) -> None:
    mocker.patch("api.main.autocomplete", new=AsyncMock(side_effect=RedisConnectionError("down")))

    response = client.get("/autocomplete", params={"q": "int"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to autocomplete"}


@pytest.mark.asyncio
async def test_health_check_reports_redis_status(mocker) -> None:
    """health_check should surface check_redis's result without raising."""
    mocker.patch("api.main.check_redis", new=AsyncMock(return_value="ok"))
    assert await health_check() == {"redis": "ok"}

    mocker.patch("api.main.check_redis", new=AsyncMock(return_value="redis down"))
    assert await health_check() == {"redis": "redis down"}
