"""Shared pytest fixtures for unit tests."""

from typing import Any, Callable
from pathlib import Path
import sys

import fakeredis
import pytest

# Ensure project root is importable when tests run from repository root.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture
def redis_client() -> fakeredis.FakeAsyncRedis:
    """In-memory async Redis with its own server so tests never share state."""
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def movie_factory() -> Callable[..., dict[str, Any]]:
    """Return a factory that builds a valid movie payload with optional overrides."""

    def _factory(**overrides: Any) -> dict[str, Any]:
        """Construct a complete movie mapping while allowing targeted field overrides."""
        base_data: dict[str, Any] = {
            "id": 1,
            "title": "Inception",
            "posterUrl": "https://image.test/inception.jpg",
            "rating": 8.8,
            "genres": ["Action", "Sci-Fi"],
            "description": "A thief who steals corporate secrets through dream-sharing.",
            "durationMinutes": 148,
            "releaseUnix": 1_279_238_400,
        }

        # Apply caller-specific overrides to target scenario-specific behavior.
        base_data.update(overrides)
        return base_data

    return _factory
