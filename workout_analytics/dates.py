"""Calendar arithmetic shared by the analytics calculators.

Day and week boundaries are computed on calendar dates and only converted back
to timestamps at the edges, so DST transitions never shift a boundary. Weeks
are ISO weeks running Monday 00:00 to the following Monday 00:00.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable

DAYS_PER_WEEK = 7


def align(moment: datetime, reference: datetime) -> datetime:
    """Express `moment` in the same timezone convention as `reference`.

    Naive values are read as wall-clock time in the reference zone; aware values
    are converted. A naive reference means local time.
    """
    if reference.tzinfo is None:
        if moment.tzinfo is None:
            return moment
        return moment.astimezone().replace(tzinfo=None)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=reference.tzinfo)
    return moment.astimezone(reference.tzinfo)


def calendar_day(moment: datetime, reference: datetime) -> date:
    return align(moment, reference).date()


def start_of_day(day: date, reference: datetime) -> datetime:
    return datetime.combine(day, time.min, tzinfo=reference.tzinfo)


def week_start_day(day: date) -> date:
    return day - timedelta(days=day.weekday())


def week_bounds(now: datetime, weeks_back: int = 0) -> tuple[datetime, datetime]:
    """Return `[start, end)` of the ISO week containing `now`, shifted back `weeks_back` weeks."""
    monday = week_start_day(now.date()) - timedelta(days=DAYS_PER_WEEK * weeks_back)
    return start_of_day(monday, now), start_of_day(monday + timedelta(days=DAYS_PER_WEEK), now)


def trailing_window(now: datetime, days: int) -> tuple[datetime, datetime]:
    """Return the half-open interval `[now - days, now)`."""
    return now - timedelta(days=days), now


def within(moment: datetime, bounds: tuple[datetime, datetime], reference: datetime) -> bool:
    start, end = bounds
    return start <= align(moment, reference) < end


def distinct_days(moments: Iterable[datetime], reference: datetime) -> set[date]:
    return {calendar_day(moment, reference) for moment in moments}


def iso_week_label(day: date) -> str:
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"
