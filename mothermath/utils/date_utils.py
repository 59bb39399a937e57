# utils/date_utils.py
from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Timezone-aware current time, used as the server timestamp for new records."""
    return datetime.now(timezone.utc)


def format_long_date(value: Optional[date] = None) -> str:
    """
    Format a date the way the slide deck prints it, e.g. "October 19, 2026".

    Defaults to today when no date is given. Day is not zero-padded.
    """
    value = value or date.today()
    return f"{value:%B} {value.day}, {value.year}"
