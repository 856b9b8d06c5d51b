"""
UTC timestamp utilities for AI Visibility Checker.

All timestamps are UTC with an explicit 'Z' marker. They appear in model
responses, in visibility reports, and in structured log lines.

Examples:
    >>> from ai_visibility_checker.utils.time import utc_timestamp
    >>> utc_timestamp()
    '2025-11-02T08:30:45Z'
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return current time as a timezone-aware UTC datetime.

    Note:
        NEVER use datetime.now() without tz or datetime.utcnow().
    """
    return datetime.now(UTC)


def utc_timestamp(dt: datetime | None = None) -> str:
    """
    Return ISO 8601 timestamp string with 'Z' suffix.

    Args:
        dt: Optional timezone-aware datetime. Defaults to utc_now().

    Returns:
        str: Timestamp formatted as YYYY-MM-DDTHH:MM:SSZ

    Raises:
        ValueError: If dt is naive (missing timezone)

    Example:
        >>> from datetime import datetime, UTC
        >>> utc_timestamp(datetime(2025, 11, 2, 8, 30, 45, tzinfo=UTC))
        '2025-11-02T08:30:45Z'
    """
    if dt is None:
        dt = utc_now()

    if dt.tzinfo is None:
        raise ValueError("Datetime must be timezone-aware (use UTC)")

    return dt.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
