"""Utility helpers for reusable functionality."""

from .datetime import ensure_utc, format_timestamp, parse_timestamp, utc_now
from .locks import KeyLock, KeyedLocks

__all__ = [
    "KeyLock",
    "KeyedLocks",
    "ensure_utc",
    "format_timestamp",
    "parse_timestamp",
    "utc_now",
]
