from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from .config import DEFAULT_NEAR_PR_THRESHOLD
from .models import Workout

EPLEY_REP_DIVISOR = 30.0


@dataclass(frozen=True)
class ExercisePR:
    """Best known lift for one exercise, ranked by estimated one-rep max."""

    exercise_name: str
    top_set_weight: float
    estimated_one_rep_max: float
    date: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "exercise_name": self.exercise_name,
            "top_set_weight": self.top_set_weight,
            "estimated_one_rep_max": round(self.estimated_one_rep_max, 2),
            "date": self.date.isoformat(),
        }


@dataclass(frozen=True)
class SmartPROpportunity:
    exercise_name: str
    latest_top_set: float
    pr_top_set: float
    progress_to_pr: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "exercise_name": self.exercise_name,
            "latest_top_set": self.latest_top_set,
            "pr_top_set": self.pr_top_set,
            "progress_to_pr": round(self.progress_to_pr, 4),
        }


def estimated_one_rep_max(weight: Optional[float], reps: Optional[int]) -> float:
    """
    Epley estimate `weight * (1 + reps / 30)`.

    Missing or non-positive reps count as a single rep; a missing or
    non-positive weight estimates to zero.
    """
    if weight is None or weight <= 0:
        return 0.0
    rep_count = max(reps or 1, 1)
    return weight * (1 + rep_count / EPLEY_REP_DIVISOR)


def normalize_exercise_name(name: Optional[str]) -> str:
    return (name or "").strip()


def exercise_key(name: Optional[str]) -> str:
    """Case-insensitive identity used to merge entries of the same exercise."""
    return normalize_exercise_name(name).casefold()


def chronological(workouts: Iterable[Workout]) -> list[Workout]:
    """Order workouts oldest first; identical timestamps fall back to the id."""
    return sorted(workouts, key=lambda workout: (workout.start.timestamp(), workout.id))


def personal_records(workouts: Iterable[Workout]) -> list[ExercisePR]:
    """
    Compute one record per exercise across the whole history.

    Entries are visited oldest workout first. On an exact tie of the estimated
    one-rep max the later entry replaces the earlier one, so the most recent
    workout owns a tied record regardless of how the input was ordered.
    """
    best: dict[str, ExercisePR] = {}
    for workout in chronological(workouts):
        for entry in workout.exercises:
            name = normalize_exercise_name(entry.name)
            weight = entry.effective_weight
            if not name or weight is None:
                continue
            estimate = estimated_one_rep_max(weight, entry.reps)
            key = exercise_key(name)
            current = best.get(key)
            if current is None or estimate >= current.estimated_one_rep_max:
                best[key] = ExercisePR(
                    exercise_name=name,
                    top_set_weight=weight,
                    estimated_one_rep_max=estimate,
                    date=workout.start,
                )
    return sorted(best.values(), key=lambda pr: (-pr.estimated_one_rep_max, exercise_key(pr.exercise_name)))


def near_pr_opportunities(
    records: Sequence[ExercisePR],
    recent_workouts: Iterable[Workout],
    threshold: float = DEFAULT_NEAR_PR_THRESHOLD,
) -> list[SmartPROpportunity]:
    """
    Surface exercises whose best recent top set sits just under the record.

    A lift at or above the record weight is a new record rather than a near miss
    and is left out, as are exercises without a record.
    """
    by_key = {exercise_key(pr.exercise_name): pr for pr in records}
    recent_best: dict[str, float] = {}
    for workout in recent_workouts:
        for entry in workout.exercises:
            weight = entry.effective_weight
            key = exercise_key(entry.name)
            if not key or weight is None:
                continue
            recent_best[key] = max(recent_best.get(key, 0.0), weight)

    opportunities: list[SmartPROpportunity] = []
    for key, latest in recent_best.items():
        pr = by_key.get(key)
        if pr is None or pr.top_set_weight <= 0:
            continue
        progress = latest / pr.top_set_weight
        if not threshold <= progress < 1.0:
            continue
        opportunities.append(
            SmartPROpportunity(
                exercise_name=pr.exercise_name,
                latest_top_set=latest,
                pr_top_set=pr.top_set_weight,
                progress_to_pr=progress,
            )
        )
    opportunities.sort(key=lambda item: (-item.progress_to_pr, exercise_key(item.exercise_name)))
    return opportunities
