"""Timestamp and id helpers for log entries."""

import logging
import secrets
import time
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

# Sorts before any real entry when a stored timestamp cannot be parsed
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _to_base36(n: int) -> str:
    if n == 0:
        return "0"
    digits = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_log_id() -> str:
    """Return a new log id: base36 milliseconds, a dash, and 8 random base36 chars."""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(8))
    return f"{_to_base36(millis)}-{suffix}"


def now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return format_iso(datetime.now(timezone.utc))


def format_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def parse_timestamp(value: str | None) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are interpreted as UTC. Unparseable values map to the epoch
    so they sort first instead of aborting a listing.
    """
    if not value:
        return _EPOCH
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError, AttributeError):
        logger.warning("Unparseable timestamp %r, treating as epoch", value)
        return _EPOCH
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_for_context(value: str | None) -> str:
    """Human-readable, locale-independent rendering used in chat context."""
    return parse_timestamp(value).strftime("%Y-%m-%d %H:%M UTC")
