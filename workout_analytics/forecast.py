from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Iterable, Sequence

from .dates import DAYS_PER_WEEK
from .models import Workout

ON_TRACK = "On track: goal reached"


@dataclass(frozen=True)
class TrainingSummary:
    count: int = 0
    duration_seconds: float = 0.0
    distance: float = 0.0

    @property
    def duration_text(self) -> str:
        return format_duration(self.duration_seconds)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["duration"] = self.duration_text
        return payload


@dataclass(frozen=True)
class GoalForecast:
    workouts_this_week: int
    minutes_this_week: int
    weekly_goal_workouts: int
    weekly_goal_minutes: int
    days_remaining: int
    workouts_remaining: int
    minutes_remaining: int
    workout_pace: float
    minute_pace: float
    workout_pace_text: str
    minute_pace_text: str
    workout_progress: float
    minute_progress: float
    headline: str
    weekly_goal_streak: int = 0

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        for key in ("workout_pace", "minute_pace", "workout_progress", "minute_progress"):
            payload[key] = round(payload[key], 4)
        return payload


def format_duration(seconds: float) -> str:
    """Format seconds as '1h 5m' or '45m'."""
    total_minutes = int(max(seconds, 0) // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def summarize(workouts: Iterable[Workout]) -> TrainingSummary:
    count = 0
    duration = 0.0
    distance = 0.0
    for workout in workouts:
        count += 1
        duration += workout.effective_duration
        distance += workout.effective_distance
    return TrainingSummary(count=count, duration_seconds=duration, distance=round(distance, 3))


def days_remaining_in_week(now: datetime) -> int:
    """Days left in the ISO week counting today: Monday is 7, Sunday is 1."""
    return max(DAYS_PER_WEEK - now.weekday(), 1)


def logged_minutes(workouts: Iterable[Workout]) -> int:
    return int(sum(workout.effective_duration for workout in workouts) // 60)


def _progress(value: int, goal: int) -> float:
    if goal <= 0:
        return 1.0
    return min(value / goal, 1.0)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def _headline(count: int, workouts_remaining: int, minutes_remaining: int) -> str:
    if count == 0:
        return "No workouts logged yet this week. Start today and build momentum."
    if workouts_remaining == 0 and minutes_remaining == 0:
        return "You hit both weekly goals. This is a strong consistency week."
    if workouts_remaining == 0:
        return "Workout target reached. Add minutes to push the week further."
    return f"You are {_plural(workouts_remaining, 'workout')} away from goal."


def forecast_weekly_goals(
    week_workouts: Sequence[Workout],
    weekly_goal_workouts: int,
    weekly_goal_minutes: int,
    days_remaining: int,
    weekly_goal_streak: int = 0,
) -> GoalForecast:
    """
    Project the current week against the workout and minute goals.

    `days_remaining` includes today and is floored at one, so the required pace
    is always defined.
    """
    days = max(days_remaining, 1)
    count = len(week_workouts)
    minutes = logged_minutes(week_workouts)
    workouts_remaining = max(weekly_goal_workouts - count, 0)
    minutes_remaining = max(weekly_goal_minutes - minutes, 0)
    workout_pace = workouts_remaining / days
    minute_pace = minutes_remaining / days
    workout_progress = _progress(count, weekly_goal_workouts)
    minute_progress = _progress(minutes, weekly_goal_minutes)

    return GoalForecast(
        workouts_this_week=count,
        minutes_this_week=minutes,
        weekly_goal_workouts=weekly_goal_workouts,
        weekly_goal_minutes=weekly_goal_minutes,
        days_remaining=days,
        workouts_remaining=workouts_remaining,
        minutes_remaining=minutes_remaining,
        workout_pace=workout_pace,
        minute_pace=minute_pace,
        workout_pace_text=(
            ON_TRACK if workouts_remaining == 0 else f"Need {workout_pace:.1f} workouts/day for {days} day(s)"
        ),
        minute_pace_text=(
            ON_TRACK if minutes_remaining == 0 else f"Need {minute_pace:.0f} min/day for {days} day(s)"
        ),
        workout_progress=workout_progress,
        minute_progress=minute_progress,
        headline=_headline(count, workouts_remaining, minutes_remaining),
        weekly_goal_streak=weekly_goal_streak,
    )
