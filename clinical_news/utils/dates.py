"""Date parsing for the timestamp formats upstream sources emit.

Supported inputs include RFC 822 feed dates ("Tue, 10 Jun 2025 14:00:00 GMT"),
ISO 8601 ("2025-06-10T14:00:00Z"), openFDA compact dates ("20250610") and
PubMed summary dates ("2025/06/10 00:00", "2025 Jun 10", "2025 Jun").
"""

import re
from datetime import UTC, datetime, timedelta

from dateutil import parser as date_parser


# Timestamps further in the future than this are treated as unknown
MAX_FUTURE_SKEW = timedelta(hours=24)

_COMPACT_DATE = re.compile(r"^\d{8}$")

# Missing components ("2025 Jun") fall back to the first of the month
_DEFAULT_COMPONENTS = datetime(1900, 1, 1)


def parse_date(value: str | None) -> datetime | None:
    """Parse an upstream timestamp string into an aware UTC datetime.

    Args:
        value: Raw timestamp string.

    Returns:
        UTC datetime, or None when the value is absent or unparseable.
    """
    if not value:
        return None
    text = value.strip()
    if not text:
        return None

    if _COMPACT_DATE.match(text):
        try:
            return datetime.strptime(text, "%Y%m%d").replace(tzinfo=UTC)
        except ValueError:
            return None

    try:
        dt = date_parser.parse(text, default=_DEFAULT_COMPONENTS)
    except (ValueError, TypeError, OverflowError):
        return None
    return _as_utc(dt)


def normalize_published_at(
    published_at: datetime | None,
    now: datetime,
) -> datetime | None:
    """Apply the clock-skew rule to a publication timestamp.

    A timestamp up to 24 hours in the future is clamped to now. Anything
    further ahead is treated as unknown.

    Args:
        published_at: Parsed timestamp, or None.
        now: Reference time of the aggregation.

    Returns:
        The timestamp, clamped timestamp, or None.
    """
    if published_at is None:
        return None
    published_at = _as_utc(published_at)
    if published_at <= now:
        return published_at
    if published_at - now <= MAX_FUTURE_SKEW:
        return now
    return None


def _as_utc(dt: datetime) -> datetime:
    # Ensure timezone aware
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)
