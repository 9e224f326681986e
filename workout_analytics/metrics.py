from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence

import pandas as pd

from .config import DEFAULT_WEEKLY_GOAL_MINUTES, DEFAULT_WEEKLY_GOAL_WORKOUTS
from .dates import calendar_day, iso_week_label, week_start_day
from .models import Workout
from .records import ExercisePR

WORKOUT_COLUMNS = [
    "id",
    "date",
    "week_start",
    "label",
    "type",
    "minutes",
    "distance",
    "exercise_count",
]
WEEKLY_COLUMNS = [
    "label",
    "week_start",
    "sessions",
    "active_days",
    "minutes",
    "distance",
    "goal_met",
]


def workouts_to_dataframe(workouts: Iterable[Workout], reference: datetime) -> pd.DataFrame:
    """Flatten workouts into one row each, keyed by calendar day in the reference zone."""
    records: list[dict[str, object]] = []
    for workout in workouts:
        day = calendar_day(workout.start, reference)
        records.append(
            {
                "id": workout.id,
                "date": pd.Timestamp(day),
                "week_start": pd.Timestamp(week_start_day(day)),
                "label": iso_week_label(day),
                "type": workout.type.value,
                "minutes": workout.effective_duration / 60.0,
                "distance": workout.effective_distance,
                "exercise_count": len(workout.exercises),
            }
        )

    if not records:
        return pd.DataFrame(columns=WORKOUT_COLUMNS)
    df = pd.DataFrame(records, columns=WORKOUT_COLUMNS)
    df.sort_values(["date", "id"], inplace=True)
    df.reset_index(drop=True, inplace=True)
    return df


def compute_weekly_summary(
    df_workouts: pd.DataFrame,
    weekly_goal_workouts: int = DEFAULT_WEEKLY_GOAL_WORKOUTS,
    weekly_goal_minutes: int = DEFAULT_WEEKLY_GOAL_MINUTES,
) -> pd.DataFrame:
    """Aggregate workouts by ISO week and flag weeks meeting both goals."""
    if df_workouts.empty:
        return pd.DataFrame(columns=WEEKLY_COLUMNS)

    weekly = (
        df_workouts.groupby(["week_start", "label"], as_index=False)
        .agg(
            sessions=("id", "count"),
            active_days=("date", "nunique"),
            minutes=("minutes", "sum"),
            distance=("distance", "sum"),
        )
        .sort_values("week_start")
        .reset_index(drop=True)
    )
    weekly["minutes"] = weekly["minutes"].floordiv(1).astype(int)
    weekly["distance"] = weekly["distance"].round(2)
    weekly["goal_met"] = (weekly["sessions"] >= max(weekly_goal_workouts, 1)) & (
        weekly["minutes"] >= weekly_goal_minutes
    )
    return weekly[WEEKLY_COLUMNS]


def records_to_dataframe(records: Sequence[ExercisePR]) -> pd.DataFrame:
    """Prepare personal records for CSV export."""
    columns = ["exercise", "top_set_kg", "estimated_1rm_kg", "date"]
    if not records:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(
        [
            {
                "exercise": record.exercise_name,
                "top_set_kg": record.top_set_weight,
                "estimated_1rm_kg": round(record.estimated_one_rep_max, 1),
                "date": record.date.date().isoformat(),
            }
            for record in records
        ],
        columns=columns,
    )
