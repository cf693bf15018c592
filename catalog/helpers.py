"""
Helper functions for title normalization and title-index encoding.

The title index is a Redis sorted set where every member has score 0, so
members are ordered purely by their bytes. Each member is the normalized
title followed by the movie id, which lets a lexicographic range scan
enumerate every title starting with a given prefix.
"""

from typing import Optional


TITLE_MEMBER_DELIMITER = "|"

# Highest single byte; appended to a prefix to close the lexicographic range.
# Must be sent as a raw byte: the string "\xff" would be UTF-8 encoded to
# 0xC3 0xBF and cut off titles continuing with higher code points.
LEX_RANGE_SENTINEL = b"\xff"


def normalize_title(text: Optional[str]) -> str:
    """
    Normalize a title or query string into the sort/match key.

    Applies the following transformations in order:
    1. Trim leading/trailing whitespace
    2. Lowercase

    No locale-aware folding is applied, so "Amélie" stays "amélie".

    Args:
        text: The input string. None and empty strings are accepted.

    Returns:
        The normalized string, or "" for empty/absent input.

    Examples:
        >>> normalize_title("  Inception ")
        'inception'
        >>> normalize_title(None)
        ''
    """
    if not text:
        return ""
    return str(text).strip().lower()


def title_member(normalized_title: str, movie_id: str) -> str:
    """Encode one title-index member as '<normalized title>|<id>'."""
    return f"{normalized_title}{TITLE_MEMBER_DELIMITER}{movie_id}"


def member_movie_id(member: str) -> Optional[str]:
    """
    Extract the movie id from a title-index member.

    Splits on the last delimiter so titles containing '|' still decode to the
    right id. Returns None for members without a delimiter or with an empty id.
    """
    _, sep, movie_id = member.rpartition(TITLE_MEMBER_DELIMITER)
    if not sep or not movie_id:
        return None
    return movie_id


def lex_range(prefix: str) -> tuple[bytes, bytes]:
    """Return the inclusive (min, max) ZRANGEBYLEX bounds covering every member starting with prefix."""
    bound = f"[{prefix}".encode("utf-8")
    return bound, bound + LEX_RANGE_SENTINEL


def dedupe_preserve_order(values: list[str]) -> list[str]:
    """Remove duplicates while keeping the first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result
