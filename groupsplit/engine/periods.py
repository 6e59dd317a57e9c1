"""
Period Helpers

Builds the time windows the views filter by: a calendar month for the
split calculator, trailing ranges for statistics, and the relative
filters on a member's profile. All bounds are inclusive and naive UTC.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from groupsplit.models.expense import Period, to_naive_utc


class TimeRange(str, Enum):
    """Statistics view ranges, counted back from the current month."""
    ONE_MONTH = "1month"
    THREE_MONTHS = "3months"
    SIX_MONTHS = "6months"
    ONE_YEAR = "1year"
    ALL = "all"


class ProfileTimeFilter(str, Enum):
    """Time filters on a member's expense history."""
    ALL = "all"
    THIS_MONTH = "thisMonth"
    LAST_MONTH = "lastMonth"
    LAST_3_MONTHS = "last3Months"


_RANGE_MONTHS = {
    TimeRange.ONE_MONTH: 1,
    TimeRange.THREE_MONTHS: 3,
    TimeRange.SIX_MONTHS: 6,
    TimeRange.ONE_YEAR: 12,
}


def start_of_month(moment: datetime) -> datetime:
    return datetime(moment.year, moment.month, 1)


def shift_months(moment: datetime, months: int) -> datetime:
    """First day of the month `months` away from moment's month."""
    index = moment.year * 12 + (moment.month - 1) + months
    return datetime(index // 12, index % 12 + 1, 1)


def month_period(year: int, month: int) -> Period:
    """
    The whole calendar month, from midnight on the 1st to the last
    microsecond of its final day.
    """
    start = datetime(year, month, 1)
    end = shift_months(start, 1) - timedelta(microseconds=1)
    return Period(start=start, end=end, label=start.strftime("%B %Y"))


def parse_month(value: str) -> Period:
    """
    Parse a "YYYY-MM" month key into its period.

    Raises:
        ValueError: If the key is malformed or the month is out of range
    """
    try:
        year_part, month_part = value.strip().split("-")
        year, month = int(year_part), int(month_part)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid month key: {value!r} (expected YYYY-MM)") from None
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month key: {value!r} (month must be 1-12)")
    try:
        return month_period(year, month)
    except ValueError:
        raise ValueError(f"Invalid month key: {value!r} (year out of range)") from None


def trailing_months_period(months: int, now: datetime) -> Period:
    """
    From the start of the month `months - 1` months back up to now.

    months=1 is the current month to date.
    """
    if months < 1:
        raise ValueError("months must be at least 1")
    now = to_naive_utc(now)
    start = shift_months(now, -(months - 1))
    return Period(start=start, end=now)


def period_for_range(time_range: TimeRange, now: datetime) -> Optional[Period]:
    """Window for a statistics range; None for ALL (no filtering)."""
    time_range = TimeRange(time_range)
    if time_range is TimeRange.ALL:
        return None
    period = trailing_months_period(_RANGE_MONTHS[time_range], now)
    return period.model_copy(update={"label": time_range.value})


def period_for_profile_filter(
    time_filter: ProfileTimeFilter,
    now: datetime,
) -> Optional[Period]:
    """
    Window for a profile time filter; None for ALL.

    LAST_3_MONTHS has no upper bound: anything dated on or after the
    first day of the month three months back is included.
    """
    time_filter = ProfileTimeFilter(time_filter)
    now = to_naive_utc(now)

    if time_filter is ProfileTimeFilter.ALL:
        return None
    if time_filter is ProfileTimeFilter.THIS_MONTH:
        return month_period(now.year, now.month)
    if time_filter is ProfileTimeFilter.LAST_MONTH:
        previous = shift_months(now, -1)
        return month_period(previous.year, previous.month)
    return Period(start=shift_months(now, -3), end=datetime.max)


def recent_months(now: datetime, count: int = 12) -> list[tuple[str, str]]:
    """
    Month picker options, newest first.

    Returns:
        (value, label) pairs such as ("2024-05", "May 2024")
    """
    options = []
    for offset in range(count):
        month = shift_months(now, -offset)
        options.append((month.strftime("%Y-%m"), month.strftime("%B %Y")))
    return options
