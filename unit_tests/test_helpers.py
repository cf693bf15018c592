"""Unit tests for title normalization and title-index encoding helpers."""

import pytest

from catalog.helpers import (
    dedupe_preserve_order,
    lex_range,
    member_movie_id,
    normalize_title,
    title_member,
)


@pytest.mark.parametrize(
    ("raw_text", "expected"),
    [
        (None, ""),
        ("", ""),
        ("   ", ""),
        ("Inception", "inception"),
        ("  The Matrix  ", "the matrix"),
        ("Ocean's Eleven", "ocean's eleven"),
        ("Amélie", "amélie"),
        ("SE7EN", "se7en"),
    ],
)
def test_normalize_title_common_and_edge_cases(raw_text, expected: str) -> None:
    """normalize_title should only trim and lowercase."""
    assert normalize_title(raw_text) == expected


def test_normalize_title_is_idempotent() -> None:
    """Normalizing twice should not change the result."""
    once = normalize_title("  Star Wars ")
    assert normalize_title(once) == once


def test_title_member_encodes_title_then_id() -> None:
    assert title_member("inception", "1") == "inception|1"


def test_member_movie_id_splits_on_last_delimiter() -> None:
    """Titles that contain '|' should still decode to the right id."""
    assert member_movie_id("inception|1") == "1"
    assert member_movie_id("this|that|42") == "42"


@pytest.mark.parametrize("member", ["no-delimiter", "dangling|", ""])
def test_member_movie_id_rejects_malformed_members(member: str) -> None:
    assert member_movie_id(member) is None


def test_lex_range_brackets_prefix_with_raw_high_byte() -> None:
    """The upper bound should end in the single byte 0xFF, not its UTF-8 encoding."""
    lex_min, lex_max = lex_range("int")
    assert lex_min == b"[int"
    assert lex_max == b"[int\xff"


def test_lex_range_encodes_non_ascii_prefix_as_utf8() -> None:
    lex_min, _ = lex_range("amé")
    assert lex_min == "[amé".encode("utf-8")


def test_dedupe_preserve_order() -> None:
    """Should keep the first-seen order while removing duplicates."""
    assert dedupe_preserve_order(["a", "b", "a", "c", "b"]) == ["a", "b", "c"]
