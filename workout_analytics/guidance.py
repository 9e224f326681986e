from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

from .config import DEFAULT_MAX_GUIDANCE_ITEMS
from .forecast import GoalForecast
from .gaps import AdaptiveRecommendation
from .records import SmartPROpportunity


class GuidanceSource(str, Enum):
    NEAR_PR = "near_pr"
    ADAPTIVE_GAP = "adaptive_gap"
    WEEKLY_GOAL = "weekly_goal"


@dataclass(frozen=True)
class SessionGuidanceItem:
    title: str
    detail: str
    source: GuidanceSource

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "detail": self.detail, "source": self.source.value}


def compose_guidance(
    opportunities: Sequence[SmartPROpportunity],
    recommendations: Sequence[AdaptiveRecommendation],
    forecast: Optional[GoalForecast],
    limit: int = DEFAULT_MAX_GUIDANCE_ITEMS,
) -> list[SessionGuidanceItem]:
    """Merge the top near-PR, the top gap and the weekly gap, in that order."""
    items: list[SessionGuidanceItem] = []

    if opportunities:
        top = opportunities[0]
        items.append(
            SessionGuidanceItem(
                title="Push a near-PR lift",
                detail=f"{top.exercise_name}: latest {top.latest_top_set:.1f} kg, PR {top.pr_top_set:.1f} kg.",
                source=GuidanceSource.NEAR_PR,
            )
        )

    if recommendations:
        gap = recommendations[0]
        items.append(
            SessionGuidanceItem(
                title="Train a missed area",
                detail=f"{gap.name}: {gap.reason}",
                source=GuidanceSource.ADAPTIVE_GAP,
            )
        )

    if forecast is not None and forecast.workouts_remaining > 0:
        remaining = forecast.workouts_remaining
        items.append(
            SessionGuidanceItem(
                title="Close your weekly goal gap",
                detail=f"You need {remaining} more workout{'' if remaining == 1 else 's'} this week.",
                source=GuidanceSource.WEEKLY_GOAL,
            )
        )

    return items[: max(limit, 0)]
