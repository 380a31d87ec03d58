"""Unit tests for repository slug and time utilities."""

from __future__ import annotations

import datetime as dt

import pytest

from pacvcs.common.slug import parse_repo_slug, repo_slug
from pacvcs.common.time import isoformat_z, utcnow


def test_repo_slug_combines_owner_and_name() -> None:
    """repo_slug returns owner/name format."""
    assert repo_slug("octo", "reef") == "octo/reef"


@pytest.mark.parametrize(
    ("slug", "expected"),
    [
        ("octo/reef", ("octo", "reef")),
        ("group/sub/project", ("group/sub", "project")),
        ("/octo/reef/", ("octo", "reef")),
    ],
)
def test_parse_repo_slug_keeps_nested_owner(
    slug: str, expected: tuple[str, str]
) -> None:
    """The last segment is the name; everything before it is the owner."""
    assert parse_repo_slug(slug) == expected


@pytest.mark.parametrize("slug", ["", "   ", "/", "reef", "owner//"])
def test_parse_repo_slug_rejects_invalid_slugs(slug: str) -> None:
    """parse_repo_slug raises ValueError for invalid slugs."""
    with pytest.raises(ValueError, match="Invalid repository slug"):
        parse_repo_slug(slug)


def test_isoformat_z_converts_to_utc() -> None:
    """Offsets are normalised to UTC and rendered with a Z suffix."""
    plus_two = dt.timezone(dt.timedelta(hours=2))
    value = dt.datetime(2024, 5, 1, 14, 30, 5, tzinfo=plus_two)
    assert isoformat_z(value) == "2024-05-01T12:30:05Z"


def test_utcnow_is_timezone_aware() -> None:
    """utcnow returns an aware UTC timestamp."""
    assert utcnow().tzinfo == dt.UTC
