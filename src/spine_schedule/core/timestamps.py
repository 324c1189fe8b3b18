"""UTC clock readings for tick bookkeeping and outcome messages."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def get_timestamp() -> str:
    """``utc_now()`` as ISO 8601 with millisecond precision."""
    return utc_now().isoformat(timespec="milliseconds")
