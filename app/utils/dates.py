"""
Date helpers for subscription windows.

All timestamps are stored as naive UTC datetimes.
"""
import calendar
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def add_months(value: datetime, months: int) -> datetime:
    """
    Add calendar months to a datetime.

    When the source day does not exist in the target month the day is clamped
    to the last day of that month, so 2024-01-31 + 1 month is 2024-02-29 and
    2023-01-31 + 1 month is 2023-02-28. Time of day is preserved.

    Args:
        value: Starting datetime
        months: Number of months to add (may be 0)

    Returns:
        Shifted datetime
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(value.day, last_day))
