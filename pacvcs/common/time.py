"""Common time utilities."""

from __future__ import annotations

import datetime as dt


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp for status start and completion times."""
    return dt.datetime.now(dt.UTC)


def isoformat_z(value: dt.datetime) -> str:
    """Render ``value`` as an ISO 8601 UTC string with a ``Z`` suffix."""
    return value.astimezone(dt.UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
