from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Optional, Sequence, TypeVar

from .config import AnalyticsConfig
from .dates import trailing_window, week_bounds, within
from .forecast import (
    GoalForecast,
    TrainingSummary,
    days_remaining_in_week,
    forecast_weekly_goals,
    summarize,
)
from .gaps import (
    AdaptiveRecommendation,
    LastTrained,
    adaptive_recommendations,
    subcategory_last_trained,
    untrained_categories,
)
from .guidance import SessionGuidanceItem, compose_guidance
from .models import Category, Subcategory, TypeFilter, Workout
from .records import ExercisePR, SmartPROpportunity, near_pr_opportunities, personal_records
from .streaks import StreakSummary, compute_streaks

LOGGER = logging.getLogger(__name__)
T = TypeVar("T")


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """Everything derived from one history snapshot; plain data only."""

    generated_at: datetime
    type_filter: TypeFilter
    streaks: StreakSummary
    personal_records: tuple[ExercisePR, ...] = ()
    near_pr_opportunities: tuple[SmartPROpportunity, ...] = ()
    adaptive_recommendations: tuple[AdaptiveRecommendation, ...] = ()
    goal_forecast: Optional[GoalForecast] = None
    guidance: tuple[SessionGuidanceItem, ...] = ()
    weekly_summary: TrainingSummary = field(default_factory=TrainingSummary)
    all_time_summary: TrainingSummary = field(default_factory=TrainingSummary)
    untrained_categories: tuple[Category, ...] = ()
    last_trained: tuple[LastTrained, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Make the snapshot JSON serialisable."""
        return {
            "generated_at": self.generated_at.isoformat(),
            "type_filter": self.type_filter.value,
            "streaks": self.streaks.to_dict(),
            "personal_records": [record.to_dict() for record in self.personal_records],
            "near_pr_opportunities": [item.to_dict() for item in self.near_pr_opportunities],
            "adaptive_recommendations": [item.to_dict() for item in self.adaptive_recommendations],
            "goal_forecast": self.goal_forecast.to_dict() if self.goal_forecast else None,
            "guidance": [item.to_dict() for item in self.guidance],
            "weekly_summary": self.weekly_summary.to_dict(),
            "all_time_summary": self.all_time_summary.to_dict(),
            "untrained_categories": [
                {"id": category.id, "name": category.name} for category in self.untrained_categories
            ],
            "last_trained": [row.to_dict() for row in self.last_trained],
        }


def _guarded(signal: str, compute: Callable[[], T], fallback: T) -> T:
    """Run one signal; a calendar or arithmetic failure empties only that signal."""
    try:
        return compute()
    except (ArithmeticError, ValueError) as exc:
        LOGGER.warning("Could not compute %s, leaving it empty: %s", signal, exc)
        return fallback


def compute_snapshot(
    workouts: Iterable[Workout],
    categories: Sequence[Category] = (),
    subcategories: Sequence[Subcategory] = (),
    config: AnalyticsConfig | None = None,
    now: datetime | None = None,
) -> AnalyticsSnapshot:
    """
    Derive every insight from one immutable history snapshot.

    The type filter is applied once and every calculator runs against the same
    filtered view. Nothing is written back and nothing is kept between calls.
    """
    config = config or AnalyticsConfig()
    now = now or datetime.now()
    type_filter = config.type_filter

    history = tuple(workout for workout in workouts if type_filter.matches_workout(workout))
    eligible_subcategories = [sub for sub in subcategories if type_filter.matches_category(sub.category)]
    eligible_categories = [category for category in categories if type_filter.matches_category(category)]

    recent_bounds = trailing_window(now, config.recent_window_days)
    recent = [workout for workout in history if within(workout.start, recent_bounds, now)]
    this_week = week_bounds(now)
    week = [workout for workout in history if within(workout.start, this_week, now)]
    LOGGER.debug(
        "Computing analytics over %d workouts (%d recent, %d this week, filter=%s).",
        len(history),
        len(recent),
        len(week),
        type_filter.value,
    )

    streaks = _guarded(
        "streaks",
        lambda: compute_streaks(history, now, config.weekly_goal_workouts),
        StreakSummary(),
    )
    records = _guarded("personal records", lambda: personal_records(history), [])
    opportunities = _guarded(
        "near-PR opportunities",
        lambda: near_pr_opportunities(records, recent, config.near_pr_threshold),
        [],
    )
    recommendations = _guarded(
        "adaptive recommendations",
        lambda: adaptive_recommendations(
            eligible_subcategories,
            recent,
            limit=config.max_recommendations,
            window_days=config.recent_window_days,
        ),
        [],
    )
    forecast = _guarded(
        "goal forecast",
        lambda: forecast_weekly_goals(
            week,
            config.weekly_goal_workouts,
            config.weekly_goal_minutes,
            days_remaining_in_week(now),
            weekly_goal_streak=streaks.weekly_goal,
        ),
        None,
    )
    guidance = compose_guidance(opportunities, recommendations, forecast, limit=config.max_guidance_items)

    return AnalyticsSnapshot(
        generated_at=now,
        type_filter=type_filter,
        streaks=streaks,
        personal_records=tuple(records),
        near_pr_opportunities=tuple(opportunities),
        adaptive_recommendations=tuple(recommendations),
        goal_forecast=forecast,
        guidance=tuple(guidance),
        weekly_summary=summarize(week),
        all_time_summary=summarize(history),
        untrained_categories=tuple(
            _guarded(
                "untrained categories",
                lambda: untrained_categories(eligible_categories, history, subcategories),
                [],
            )
        ),
        last_trained=tuple(
            _guarded(
                "last trained list",
                lambda: subcategory_last_trained(eligible_subcategories, history),
                [],
            )
        ),
    )


def history_fingerprint(
    workouts: Iterable[Workout],
    categories: Sequence[Category] = (),
    subcategories: Sequence[Subcategory] = (),
    config: AnalyticsConfig | None = None,
    now: datetime | None = None,
) -> str:
    """Content hash of everything `compute_snapshot` depends on."""
    payload = {
        "workouts": sorted((workout.to_dict() for workout in workouts), key=lambda item: item["id"]),
        "categories": sorted(
            (
                [category.id, category.name, category.workout_type.value if category.workout_type else None]
                for category in categories
            ),
            key=lambda row: row[0],
        ),
        "subcategories": sorted(
            (
                [sub.id, sub.name, repr(sub.category) if sub.category else None]
                for sub in subcategories
            ),
            key=lambda row: row[0],
        ),
        "config": (config or AnalyticsConfig()).to_dict(),
        "now": now.isoformat() if now else None,
    }
    encoded = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


class SnapshotCache:
    """
    Keep the latest snapshot and reuse it while the fingerprint is unchanged.

    Owned by the caller; the engine itself never caches. Without an explicit
    `now` the current time is truncated to the minute, and that truncated value
    is both part of the key and the reference time of the computed snapshot.
    """

    def __init__(self) -> None:
        self._fingerprint: str | None = None
        self._snapshot: AnalyticsSnapshot | None = None
        self.hits = 0
        self.misses = 0

    def compute(
        self,
        workouts: Sequence[Workout],
        categories: Sequence[Category] = (),
        subcategories: Sequence[Subcategory] = (),
        config: AnalyticsConfig | None = None,
        now: datetime | None = None,
    ) -> AnalyticsSnapshot:
        now = now or datetime.now().replace(second=0, microsecond=0)
        fingerprint = history_fingerprint(workouts, categories, subcategories, config, now)
        if self._snapshot is not None and fingerprint == self._fingerprint:
            self.hits += 1
            return self._snapshot
        self.misses += 1
        snapshot = compute_snapshot(workouts, categories, subcategories, config=config, now=now)
        self._fingerprint = fingerprint
        self._snapshot = snapshot
        return snapshot
