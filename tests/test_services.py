from __future__ import annotations

import json
from datetime import datetime, timedelta

import pytest

from workout_analytics import services
from workout_analytics.config import AnalyticsConfig
from workout_analytics.guidance import GuidanceSource
from workout_analytics.models import (
    Category,
    ExerciseEntry,
    Subcategory,
    TypeFilter,
    Workout,
    WorkoutType,
)
from workout_analytics.services import SnapshotCache, compute_snapshot, history_fingerprint

# Saturday, two days left in the ISO week (Monday 2024-05-13 to Sunday 2024-05-19).
NOW = datetime(2024, 5, 18, 12, 0)

PUSH = Category(id="cat-push", name="Push", workout_type=WorkoutType.STRENGTH)
LEGS = Category(id="cat-legs", name="Legs", workout_type=WorkoutType.STRENGTH)
ENDURANCE = Category(id="cat-endurance", name="Endurance", workout_type=WorkoutType.RUNNING)
CHEST = Subcategory(id="sub-chest", name="Chest", category=PUSH)
QUADS = Subcategory(id="sub-quads", name="Quads", category=LEGS)
HAMSTRINGS = Subcategory(id="sub-hamstrings", name="Hamstrings", category=LEGS)
TEMPO = Subcategory(id="sub-tempo", name="Tempo", category=ENDURANCE)
CATEGORIES = (PUSH, LEGS, ENDURANCE)
SUBCATEGORIES = (CHEST, QUADS, HAMSTRINGS, TEMPO)


def _bench(ident: str, start: datetime, weight: float, reps: int = 5) -> Workout:
    return Workout(
        id=ident,
        type=WorkoutType.STRENGTH,
        start=start,
        duration_seconds=50 * 60,
        category_ids=("cat-push",),
        subcategory_ids=("sub-chest",),
        exercises=(ExerciseEntry(name="Bench Press", sets=3, reps=reps, weight=weight, subcategory_id="sub-chest"),),
    )


def _run(ident: str, start: datetime, minutes: int = 40) -> Workout:
    return Workout(
        id=ident,
        type=WorkoutType.RUNNING,
        start=start,
        duration_seconds=minutes * 60,
        distance=8.0,
        category_ids=("cat-endurance",),
        subcategory_ids=("sub-tempo",),
    )


def _history() -> list[Workout]:
    return [
        _bench("pr-day", NOW - timedelta(days=30), 100.0),
        _bench("near-pr", NOW - timedelta(days=5), 92.0),
        _run("run-1", NOW - timedelta(days=1)),
        _bench("today", NOW - timedelta(hours=3), 80.0),
        Workout(
            id="squat",
            type=WorkoutType.STRENGTH,
            start=NOW - timedelta(days=2),
            duration_seconds=45 * 60,
            exercises=(ExerciseEntry(name="Back Squat", reps=5, weight=120.0, subcategory_id="sub-quads"),),
        ),
    ]


def test_snapshot_combines_every_signal() -> None:
    config = AnalyticsConfig(weekly_goal_workouts=4, weekly_goal_minutes=180)

    snapshot = compute_snapshot(_history(), CATEGORIES, SUBCATEGORIES, config=config, now=NOW)

    assert snapshot.streaks.current_daily == 3
    assert snapshot.streaks.best_daily == 3
    assert [record.exercise_name for record in snapshot.personal_records] == ["Back Squat", "Bench Press"]
    assert [item.exercise_name for item in snapshot.near_pr_opportunities] == ["Bench Press"]
    assert snapshot.near_pr_opportunities[0].progress_to_pr == pytest.approx(0.92)

    forecast = snapshot.goal_forecast
    assert forecast is not None
    # near-pr (Mon 13th), squat, run and today all fall in the current week.
    assert forecast.workouts_this_week == 4
    assert forecast.days_remaining == 2
    assert forecast.workouts_remaining == 0
    assert forecast.minutes_this_week == 185

    assert [item.name for item in snapshot.adaptive_recommendations] == ["Hamstrings", "Quads", "Tempo"]
    assert [item.source for item in snapshot.guidance] == [GuidanceSource.NEAR_PR, GuidanceSource.ADAPTIVE_GAP]
    assert snapshot.weekly_summary.count == 4
    assert snapshot.all_time_summary.count == 5
    assert snapshot.untrained_categories == ()


def test_strength_filter_narrows_workouts_and_areas() -> None:
    config = AnalyticsConfig(type_filter=TypeFilter.STRENGTH, weekly_goal_workouts=4)

    snapshot = compute_snapshot(_history(), CATEGORIES, SUBCATEGORIES, config=config, now=NOW)

    assert snapshot.type_filter is TypeFilter.STRENGTH
    assert snapshot.all_time_summary.count == 4
    # The run yesterday no longer bridges today and two days ago.
    assert snapshot.streaks.current_daily == 1
    assert "Tempo" not in [item.name for item in snapshot.adaptive_recommendations]
    assert [row.name for row in snapshot.last_trained] == ["Chest", "Quads", "Hamstrings"]
    assert snapshot.goal_forecast is not None
    assert snapshot.goal_forecast.workouts_remaining == 1
    assert snapshot.guidance[-1].source is GuidanceSource.WEEKLY_GOAL


def test_windows_are_half_open() -> None:
    at_window_start = _bench("edge-start", NOW - timedelta(days=14), 93.0)
    at_now = _bench("edge-now", NOW, 95.0)
    history = [_bench("pr", NOW - timedelta(days=60), 100.0), at_window_start, at_now]

    snapshot = compute_snapshot(history, now=NOW)

    (item,) = snapshot.near_pr_opportunities
    assert item.latest_top_set == 93.0


def test_compute_is_idempotent_and_order_independent() -> None:
    history = _history()
    config = AnalyticsConfig()

    first = compute_snapshot(history, CATEGORIES, SUBCATEGORIES, config=config, now=NOW)
    second = compute_snapshot(history, CATEGORIES, SUBCATEGORIES, config=config, now=NOW)
    shuffled = compute_snapshot(list(reversed(history)), CATEGORIES, SUBCATEGORIES, config=config, now=NOW)

    first_json = json.dumps(first.to_dict(), sort_keys=True)
    assert first_json == json.dumps(second.to_dict(), sort_keys=True)
    assert first_json == json.dumps(shuffled.to_dict(), sort_keys=True)
    assert first == second


def test_empty_history_produces_empty_snapshot() -> None:
    snapshot = compute_snapshot([], now=NOW)

    assert snapshot.streaks.current_daily == 0
    assert snapshot.personal_records == ()
    assert snapshot.goal_forecast is not None
    assert "Start today" in snapshot.goal_forecast.headline
    assert [item.source for item in snapshot.guidance] == [GuidanceSource.WEEKLY_GOAL]
    json.dumps(snapshot.to_dict())


def test_failing_signal_only_blanks_itself(monkeypatch, caplog) -> None:
    def broken(_workouts):
        raise ValueError("calendar exploded")

    monkeypatch.setattr(services, "personal_records", broken)

    with caplog.at_level("WARNING", logger="workout_analytics.services"):
        snapshot = compute_snapshot(_history(), CATEGORIES, SUBCATEGORIES, now=NOW)

    assert snapshot.personal_records == ()
    assert snapshot.near_pr_opportunities == ()
    assert snapshot.streaks.current_daily == 3
    assert snapshot.goal_forecast is not None
    assert "personal records" in caplog.text


def test_fingerprint_tracks_content_not_order() -> None:
    history = _history()
    base = history_fingerprint(history, CATEGORIES, SUBCATEGORIES, AnalyticsConfig(), NOW)

    assert base == history_fingerprint(list(reversed(history)), CATEGORIES, SUBCATEGORIES, AnalyticsConfig(), NOW)
    assert base != history_fingerprint(history[:-1], CATEGORIES, SUBCATEGORIES, AnalyticsConfig(), NOW)
    assert base != history_fingerprint(
        history, CATEGORIES, SUBCATEGORIES, AnalyticsConfig(weekly_goal_workouts=5), NOW
    )


def test_snapshot_cache_reuses_until_history_changes() -> None:
    cache = SnapshotCache()
    history = _history()

    first = cache.compute(history, CATEGORIES, SUBCATEGORIES, now=NOW)
    again = cache.compute(history, CATEGORIES, SUBCATEGORIES, now=NOW)
    changed = cache.compute(history + [_run("run-2", NOW - timedelta(hours=1))], CATEGORIES, SUBCATEGORIES, now=NOW)

    assert again is first
    assert changed is not first
    assert (cache.hits, cache.misses) == (1, 2)


class _FrozenClock(datetime):
    current = datetime(2024, 5, 18, 12, 0, 5, 123456)

    @classmethod
    def now(cls, tz=None):
        return cls.current


def test_snapshot_cache_without_now_reuses_within_a_minute(monkeypatch) -> None:
    monkeypatch.setattr(services, "datetime", _FrozenClock)
    monkeypatch.setattr(_FrozenClock, "current", datetime(2024, 5, 18, 12, 0, 5, 123456))
    cache = SnapshotCache()
    history = _history()

    first = cache.compute(history, CATEGORIES, SUBCATEGORIES)
    monkeypatch.setattr(_FrozenClock, "current", datetime(2024, 5, 18, 12, 0, 41, 900))
    again = cache.compute(history, CATEGORIES, SUBCATEGORIES)
    monkeypatch.setattr(_FrozenClock, "current", datetime(2024, 5, 18, 12, 1, 2))
    later = cache.compute(history, CATEGORIES, SUBCATEGORIES)

    assert again is first
    assert first.generated_at == datetime(2024, 5, 18, 12, 0)
    assert later.generated_at == datetime(2024, 5, 18, 12, 1)
    assert (cache.hits, cache.misses) == (1, 2)
