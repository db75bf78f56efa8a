"""Helpers for working with timezone-aware UTC datetimes."""

from __future__ import annotations

import re
from datetime import datetime, timezone

_EXTRA_FRACTION_DIGITS = re.compile(r"(\.\d{6})\d+")


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(tz=timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Normalize ``value`` so it is expressed in UTC.

    Producers do not always attach an offset to their timestamps. Naive values
    are assumed to already be in UTC, which matches what the git wrapper sends.
    """

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 ``value`` into an aware UTC datetime."""

    if isinstance(value, datetime):
        return ensure_utc(value)

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    # .NET emits seven fractional digits; datetime keeps at most six.
    text = _EXTRA_FRACTION_DIGITS.sub(r"\1", text)
    return ensure_utc(datetime.fromisoformat(text))


def format_timestamp(value: datetime) -> str:
    """Return the ISO-8601 representation used by every storage backend."""

    return ensure_utc(value).isoformat()


__all__ = ["ensure_utc", "format_timestamp", "parse_timestamp", "utc_now"]
