"""Calendar arithmetic for reporting windows."""

import calendar
from datetime import datetime, timedelta
from typing import Literal

Period = Literal["week", "month", "quarter"]

PERIODS: tuple[str, ...] = ("week", "month", "quarter")

PERIOD_LABELS = {
    "week": "Last 7 Days",
    "month": "Last Month",
    "quarter": "Last 3 Months",
}


def first_day_of_month(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def shift_months(moment: datetime, months: int) -> datetime:
    """Move ``moment`` by whole calendar months, clamping the day to the target month."""

    index = moment.year * 12 + (moment.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def period_start(period: str, now: datetime) -> datetime:
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return shift_months(now, -1)
    if period == "quarter":
        return shift_months(now, -3)
    raise ValueError(f"unknown period {period!r}, expected one of {PERIODS}")


def month_label(moment: datetime) -> str:
    return moment.strftime("%b %Y")
