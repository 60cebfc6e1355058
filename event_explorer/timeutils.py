"""UTC helpers: every timestamp the service stores or compares is aware UTC."""
from datetime import datetime
from typing import Optional

import pytz

STATS_FORMAT = "%Y-%m-%d %H:%M:%S"


def utcnow() -> datetime:
    return datetime.now(pytz.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive values (SQLite hands them back naive), convert aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)


def format_for_stats(value: datetime) -> str:
    """Render a timestamp the way the stats service parses it."""
    return as_utc(value).strftime(STATS_FORMAT)
