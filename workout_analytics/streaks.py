from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Sequence

from .dates import DAYS_PER_WEEK, calendar_day, distinct_days, week_start_day
from .models import Workout

ONE_DAY = timedelta(days=1)
ONE_WEEK = timedelta(days=DAYS_PER_WEEK)


@dataclass(frozen=True)
class StreakSummary:
    current_daily: int = 0
    best_daily: int = 0
    weekly_goal: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _workout_days(workouts: Iterable[Workout], now: datetime) -> set[date]:
    return distinct_days((workout.start for workout in workouts), now)


def current_daily_streak(workouts: Iterable[Workout], now: datetime) -> int:
    """
    Count consecutive calendar days with a workout, ending today.

    Yesterday counts as the starting point when nothing is logged yet today, so
    the streak survives until the end of the day.
    """
    days = _workout_days(workouts, now)
    if not days:
        return 0

    cursor = now.date()
    if cursor not in days and cursor - ONE_DAY in days:
        cursor -= ONE_DAY

    streak = 0
    while cursor in days:
        streak += 1
        cursor -= ONE_DAY
    return streak


def best_daily_streak(workouts: Iterable[Workout], now: datetime) -> int:
    """Longest run of consecutive calendar days with at least one workout."""
    ordered = sorted(_workout_days(workouts, now))
    if not ordered:
        return 0

    best = current = 1
    for previous, day in zip(ordered, ordered[1:]):
        current = current + 1 if day - previous == ONE_DAY else 1
        best = max(best, current)
    return best


def weekly_goal_streak(workouts: Iterable[Workout], now: datetime, weekly_goal_workouts: int) -> int:
    """
    Count consecutive ISO weeks, starting with the current one, that met the goal.

    The current week is included, so a week in progress that has not reached the
    goal yet yields 0. Goals below one are read as one.
    """
    goal = max(weekly_goal_workouts, 1)
    per_week = Counter(week_start_day(calendar_day(workout.start, now)) for workout in workouts)

    streak = 0
    cursor = week_start_day(now.date())
    while per_week.get(cursor, 0) >= goal:
        streak += 1
        cursor -= ONE_WEEK
    return streak


def compute_streaks(workouts: Sequence[Workout], now: datetime, weekly_goal_workouts: int) -> StreakSummary:
    return StreakSummary(
        current_daily=current_daily_streak(workouts, now),
        best_daily=best_daily_streak(workouts, now),
        weekly_goal=weekly_goal_streak(workouts, now, weekly_goal_workouts),
    )
