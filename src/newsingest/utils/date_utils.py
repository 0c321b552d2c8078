"""Date and time utilities."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from dateutil import parser as date_parser


def parse_date(date_string: Optional[str]) -> Optional[datetime]:
    """Parse date string to a timezone-aware datetime.

    Handles the RFC 822 and ISO 8601 variants found in RSS feeds.

    Args:
        date_string: Date string to parse

    Returns:
        Parsed datetime (UTC if the string had no zone) or None if parsing fails
    """
    if not date_string:
        return None

    try:
        dt = date_parser.parse(date_string)
    except (ValueError, TypeError, OverflowError):
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt


def now_utc() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def hours_ago(hours: int) -> datetime:
    """Get the UTC datetime `hours` hours before now."""
    return now_utc() - timedelta(hours=hours)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
