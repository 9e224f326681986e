from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from .config import DEFAULT_MAX_RECOMMENDATIONS, DEFAULT_RECENT_WINDOW_DAYS
from .models import Category, Subcategory, Workout

UNCATEGORIZED = "Uncategorized"


@dataclass(frozen=True)
class AdaptiveRecommendation:
    name: str
    reason: str
    hits: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "reason": self.reason, "hits": self.hits}


@dataclass(frozen=True)
class LastTrained:
    name: str
    category_name: str
    last_trained: Optional[datetime]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "category_name": self.category_name,
            "last_trained": self.last_trained.isoformat() if self.last_trained else None,
        }


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def gap_reason(hits: int, window_days: int = DEFAULT_RECENT_WINDOW_DAYS) -> str:
    if hits == 0:
        return f"No sessions in the last {window_days} days. Add this to your next workout."
    return (
        f"Only {_plural(hits, 'session')} in the last {window_days} days. "
        "Consider increasing frequency."
    )


def subcategory_hits(subcategory: Subcategory, workouts: Iterable[Workout]) -> int:
    """Number of workouts touching the subcategory, directly or via an exercise."""
    return sum(1 for workout in workouts if workout.references_subcategory(subcategory.id))


def adaptive_recommendations(
    subcategories: Sequence[Subcategory],
    recent_workouts: Sequence[Workout],
    limit: int = DEFAULT_MAX_RECOMMENDATIONS,
    window_days: int = DEFAULT_RECENT_WINDOW_DAYS,
) -> list[AdaptiveRecommendation]:
    """
    Pick the least trained subcategories in the recent window.

    Ordering is by hit count, then name (case-insensitive), then id, so equal
    counts always produce the same list.
    """
    counted = [(subcategory_hits(sub, recent_workouts), sub) for sub in subcategories]
    counted.sort(key=lambda pair: (pair[0], pair[1].name.casefold(), pair[1].id))
    return [
        AdaptiveRecommendation(name=sub.name, reason=gap_reason(hits, window_days), hits=hits)
        for hits, sub in counted[: max(limit, 0)]
    ]


def untrained_categories(
    categories: Sequence[Category],
    workouts: Iterable[Workout],
    subcategories: Sequence[Subcategory] = (),
) -> list[Category]:
    """Categories never referenced by any workout, directly or through a linked subcategory."""
    owner_by_subcategory = {
        sub.id: sub.category.id for sub in subcategories if sub.category is not None
    }
    trained: set[str] = set()
    for workout in workouts:
        trained.update(workout.category_ids)
        linked = set(workout.subcategory_ids)
        linked.update(entry.subcategory_id for entry in workout.exercises if entry.subcategory_id)
        trained.update(owner_by_subcategory[sub_id] for sub_id in linked if sub_id in owner_by_subcategory)
    remaining = [category for category in categories if category.id not in trained]
    return sorted(remaining, key=lambda category: (category.name.casefold(), category.id))


def subcategory_last_trained(
    subcategories: Sequence[Subcategory],
    workouts: Sequence[Workout],
) -> list[LastTrained]:
    """Most recently trained first; never-trained areas last, alphabetically."""
    rows: list[LastTrained] = []
    for sub in subcategories:
        dates = [workout.start for workout in workouts if workout.references_subcategory(sub.id)]
        rows.append(
            LastTrained(
                name=sub.name,
                category_name=sub.category.name if sub.category and sub.category.name else UNCATEGORIZED,
                last_trained=max(dates, key=lambda moment: moment.timestamp()) if dates else None,
            )
        )
    trained = sorted(
        (row for row in rows if row.last_trained is not None),
        key=lambda row: (-row.last_trained.timestamp(), row.name.casefold()),
    )
    never = sorted((row for row in rows if row.last_trained is None), key=lambda row: row.name.casefold())
    return trained + never
