"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, datetime, time, timedelta, tzinfo


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def ensure_aware(value: datetime) -> datetime:
    """
    Attach UTC to naive datetimes.

    Naive values, such as dates typed by an operator without an offset
    or records that never went through the database, are taken as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def day_window(reference: datetime, tz: tzinfo) -> tuple[datetime, datetime]:
    """
    Calendar day containing reference, in tz.

    Args:
        reference: Any instant inside the day
        tz: Timezone whose calendar defines the day

    Returns:
        Tuple of (start_of_day, start_of_next_day), half-open
    """
    local = ensure_aware(reference).astimezone(tz)
    start = datetime.combine(local.date(), time.min, tzinfo=tz)
    return start, start + timedelta(days=1)
