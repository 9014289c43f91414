"""Calendar arithmetic for billing periods (all times UTC)."""

from __future__ import annotations

import calendar
from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def first_day_of_next_month(moment: datetime) -> datetime:
    """Midnight on the 1st of the month after ``moment``, same tzinfo."""
    year, month = (moment.year + 1, 1) if moment.month == 12 else (moment.year, moment.month + 1)
    return datetime(year, month, 1, tzinfo=moment.tzinfo)


def add_months(moment: datetime, months: int) -> datetime:
    """Shift by whole calendar months, clamping the day (Jan 31 + 1 month = Feb 28/29)."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def add_years(moment: datetime, years: int) -> datetime:
    return add_months(moment, 12 * years)
