"""
Movie record model and its Redis hash encoding.

Redis hashes only hold strings, so every numeric signal (rating, duration,
release time) is parsed here, once, at the decoding boundary. Values that
cannot be parsed decode to None instead of raising.
"""

import json
import logging
import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from catalog.helpers import normalize_title

logger = logging.getLogger(__name__)

# Hash field holding the normalized title the record was indexed under.
# Lets a re-index find and remove the stale title-index member.
NORMALIZED_TITLE_FIELD = "normalizedTitle"

GENRE_DELIMITER = ","

# Epoch values above this are taken to be milliseconds (year ~5138 in seconds).
_MILLIS_THRESHOLD = 100_000_000_000


def parse_float(value: Any) -> Optional[float]:
    """Parse a finite number from a string/number, returning None when it cannot be parsed."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    # inf/nan would break int() conversions downstream.
    return parsed if math.isfinite(parsed) else None


def parse_epoch_seconds(value: Any) -> Optional[int]:
    """Parse an epoch timestamp in seconds or milliseconds into whole seconds."""
    parsed = parse_float(value)
    if parsed is None:
        return None
    if abs(parsed) >= _MILLIS_THRESHOLD:
        parsed = parsed / 1000
    return int(parsed)


class MovieRecord(BaseModel):
    """
    A movie as stored at movie:<id>.

    Field aliases match the camelCase names used on the wire and in the
    Redis hash. Unknown fields are kept so a re-index stores everything the
    caller sent.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    title: str
    poster_url: Optional[str] = Field(default=None, alias="posterUrl")
    rating: Optional[float] = None
    genres: list[str] = []
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, alias="durationMinutes")
    release_unix: Optional[int] = Field(default=None, alias="releaseUnix")

    @field_validator("id", "title", mode="before")
    @classmethod
    def _require_text(cls, value: Any) -> str:
        if value is None or isinstance(value, bool):
            raise ValueError("value is required")
        text = str(value).strip()
        if not text:
            raise ValueError("value must not be blank")
        return text

    @field_validator("poster_url", "description", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    @field_validator("rating", mode="before")
    @classmethod
    def _parse_rating(cls, value: Any) -> Optional[float]:
        return parse_float(value)

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> Optional[int]:
        parsed = parse_float(value)
        return int(parsed) if parsed is not None else None

    @field_validator("release_unix", mode="before")
    @classmethod
    def _parse_release(cls, value: Any) -> Optional[int]:
        return parse_epoch_seconds(value)

    @field_validator("genres", mode="before")
    @classmethod
    def _parse_genres(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [g.strip() for g in value.split(GENRE_DELIMITER) if g.strip()]
        if isinstance(value, (list, tuple)):
            return [str(g).strip() for g in value if g is not None and str(g).strip()]
        return []

    @property
    def normalized_title(self) -> str:
        return normalize_title(self.title)

    def to_redis_hash(self) -> dict[str, str]:
        """Flatten the record into the string mapping written with HSET."""
        mapping: dict[str, str] = {}
        for key, value in self.model_dump(by_alias=True, exclude_none=True).items():
            if key == NORMALIZED_TITLE_FIELD:
                continue
            if key == "genres":
                if value:
                    mapping[key] = GENRE_DELIMITER.join(value)
                continue
            if isinstance(value, (dict, list)):
                mapping[key] = json.dumps(value)
            else:
                mapping[key] = str(value)
        mapping[NORMALIZED_TITLE_FIELD] = self.normalized_title
        return mapping

    @classmethod
    def from_redis_hash(cls, movie_id: str, raw: dict[str, str]) -> Optional["MovieRecord"]:
        """
        Decode a HGETALL result.

        Returns None for absent or incomplete hashes (no title); those are
        treated as stale and excluded from results.
        """
        if not raw or not raw.get("title"):
            return None
        data = {k: v for k, v in raw.items() if k != NORMALIZED_TITLE_FIELD}
        data["id"] = movie_id
        try:
            return cls.model_validate(data)
        except ValidationError:
            logger.debug("Dropping undecodable record for movie %s", movie_id)
            return None

    def to_result(self) -> dict[str, Any]:
        """Public representation returned by autocomplete (without score)."""
        return self.model_dump(by_alias=True, exclude_none=True)


def coerce_movie(raw: Any) -> Optional[MovieRecord]:
    """
    Turn caller input into a MovieRecord, or None if it should be skipped.

    Missing/blank id or title is a validation skip, not an error.
    """
    if isinstance(raw, MovieRecord):
        return raw
    if not isinstance(raw, dict):
        return None
    try:
        return MovieRecord.model_validate(raw)
    except ValidationError:
        return None
