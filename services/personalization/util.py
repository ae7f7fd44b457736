"""
Small shared helpers: clamping, UTC normalisation, timestamp parsing.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

# Epoch values above this are treated as milliseconds (≈ year 5138 in seconds).
_EPOCH_MS_CUTOFF = 100_000_000_000


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp ``value`` into [low, high]."""
    return max(low, min(high, value))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Ensure datetime is timezone-aware UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(raw: Any, default: datetime | None = None) -> datetime | None:
    """
    Coerce a datetime, ISO-8601 string or epoch number into an aware UTC datetime.

    Epoch numbers are read as milliseconds when they are too large to be seconds.
    Returns ``default`` for None or unparseable input.
    """
    if raw is None:
        return default
    if isinstance(raw, datetime):
        return ensure_utc(raw)
    if isinstance(raw, bool):
        return default
    if isinstance(raw, (int, float)):
        seconds = raw / 1000 if abs(raw) >= _EPOCH_MS_CUTOFF else raw
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return default
    if isinstance(raw, str):
        try:
            return ensure_utc(datetime.fromisoformat(raw.replace("Z", "+00:00")))
        except ValueError:
            return default
    return default


def hours_between(earlier: datetime, later: datetime) -> float:
    """Elapsed hours from ``earlier`` to ``later`` (negative if reversed)."""
    return (ensure_utc(later) - ensure_utc(earlier)).total_seconds() / 3600.0
