from __future__ import annotations

from datetime import datetime, timedelta

from workout_analytics.gaps import (
    adaptive_recommendations,
    gap_reason,
    subcategory_last_trained,
    untrained_categories,
)
from workout_analytics.models import Category, ExerciseEntry, Subcategory, Workout, WorkoutType

NOW = datetime(2024, 5, 15, 10, 0)

PUSH = Category(id="cat-push", name="Push", workout_type=WorkoutType.STRENGTH)
PULL = Category(id="cat-pull", name="Pull", workout_type=WorkoutType.STRENGTH)
LEGS = Category(id="cat-legs", name="legs", workout_type=WorkoutType.STRENGTH)
CHEST = Subcategory(id="sub-chest", name="Chest", category=PUSH)
SHOULDERS = Subcategory(id="sub-shoulders", name="Shoulders", category=PUSH)
BACK = Subcategory(id="sub-back", name="Back", category=PULL)
BICEPS = Subcategory(id="sub-biceps", name="biceps", category=PULL)
ORPHAN = Subcategory(id="sub-orphan", name="Orphan")


def _workout(
    ident: str,
    days_ago: int,
    subcategory_ids: tuple[str, ...] = (),
    exercises: tuple[ExerciseEntry, ...] = (),
    category_ids: tuple[str, ...] = (),
) -> Workout:
    return Workout(
        id=ident,
        type=WorkoutType.STRENGTH,
        start=NOW - timedelta(days=days_ago),
        duration_seconds=1800,
        category_ids=category_ids,
        subcategory_ids=subcategory_ids,
        exercises=exercises,
    )


def test_hits_count_direct_and_exercise_links_once_per_workout() -> None:
    workouts = [
        _workout("w1", 1, subcategory_ids=("sub-chest",)),
        _workout("w2", 2, exercises=(ExerciseEntry(name="Bench", weight=80, subcategory_id="sub-chest"),)),
        _workout(
            "w3",
            3,
            subcategory_ids=("sub-chest",),
            exercises=(ExerciseEntry(name="Fly", weight=20, subcategory_id="sub-chest"),),
        ),
        _workout("w4", 4, subcategory_ids=("sub-back",)),
    ]

    recommendations = adaptive_recommendations([CHEST, BACK, SHOULDERS, BICEPS], workouts, limit=4)
    hits = {item.name: item.hits for item in recommendations}

    assert hits == {"Chest": 3, "Back": 1, "Shoulders": 0, "biceps": 0}


def test_least_trained_first_with_alphabetical_ties() -> None:
    workouts = [
        _workout("w1", 1, subcategory_ids=("sub-chest",)),
        _workout("w2", 2, subcategory_ids=("sub-chest", "sub-back")),
    ]

    recommendations = adaptive_recommendations([CHEST, SHOULDERS, BACK, BICEPS], workouts)

    assert [item.name for item in recommendations] == ["biceps", "Shoulders", "Back"]
    assert [item.hits for item in recommendations] == [0, 0, 1]


def test_fewer_than_limit_returns_everything() -> None:
    recommendations = adaptive_recommendations([CHEST, BACK], [])
    assert [item.name for item in recommendations] == ["Back", "Chest"]


def test_reason_text_distinguishes_zero_and_some_sessions() -> None:
    assert gap_reason(0) == "No sessions in the last 14 days. Add this to your next workout."
    assert gap_reason(1).startswith("Only 1 session in the last 14 days")
    assert gap_reason(2).startswith("Only 2 sessions in the last 14 days")


def test_untrained_categories_consider_subcategory_owners() -> None:
    workouts = [_workout("w1", 40, subcategory_ids=("sub-back",))]

    remaining = untrained_categories([PUSH, PULL, LEGS], workouts, [CHEST, BACK])

    assert [category.name for category in remaining] == ["legs", "Push"]


def test_untrained_categories_consider_direct_links() -> None:
    workouts = [_workout("w1", 3, category_ids=("cat-legs",))]
    remaining = untrained_categories([PUSH, LEGS], workouts)
    assert remaining == [PUSH]


def test_last_trained_orders_recent_first_and_never_last() -> None:
    workouts = [
        _workout("w1", 10, subcategory_ids=("sub-chest",)),
        _workout("w2", 2, subcategory_ids=("sub-back",)),
        _workout("w3", 1, subcategory_ids=("sub-chest",)),
    ]

    rows = subcategory_last_trained([SHOULDERS, BACK, CHEST, ORPHAN], workouts)

    assert [row.name for row in rows] == ["Chest", "Back", "Orphan", "Shoulders"]
    assert rows[0].last_trained == NOW - timedelta(days=1)
    assert rows[2].category_name == "Uncategorized"
    assert rows[3].last_trained is None
    assert rows[3].to_dict()["last_trained"] is None
