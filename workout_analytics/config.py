from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

from .env import get_env
from .models import TypeFilter

try:  # pragma: no cover - Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - Python <3.11
    import tomli as tomllib  # type: ignore

DEFAULT_WEEKLY_GOAL_WORKOUTS = 4
DEFAULT_WEEKLY_GOAL_MINUTES = 180
DEFAULT_RECENT_WINDOW_DAYS = 14
DEFAULT_NEAR_PR_THRESHOLD = 0.9
DEFAULT_MAX_RECOMMENDATIONS = 3
DEFAULT_MAX_GUIDANCE_ITEMS = 3


@dataclass(frozen=True)
class AnalyticsConfig:
    weekly_goal_workouts: int = DEFAULT_WEEKLY_GOAL_WORKOUTS
    weekly_goal_minutes: int = DEFAULT_WEEKLY_GOAL_MINUTES
    type_filter: TypeFilter = TypeFilter.ALL
    recent_window_days: int = DEFAULT_RECENT_WINDOW_DAYS
    near_pr_threshold: float = DEFAULT_NEAR_PR_THRESHOLD
    max_recommendations: int = DEFAULT_MAX_RECOMMENDATIONS
    max_guidance_items: int = DEFAULT_MAX_GUIDANCE_ITEMS

    def to_dict(self) -> dict[str, Any]:
        return {
            "weekly_goal_workouts": self.weekly_goal_workouts,
            "weekly_goal_minutes": self.weekly_goal_minutes,
            "type_filter": self.type_filter.value,
            "recent_window_days": self.recent_window_days,
            "near_pr_threshold": self.near_pr_threshold,
            "max_recommendations": self.max_recommendations,
            "max_guidance_items": self.max_guidance_items,
        }


def _config_path() -> Path | None:
    """Resolve the TOML configuration file, if present."""
    env_override = get_env("CONFIG")
    if env_override:
        path = Path(env_override).expanduser()
        return path if path.exists() else None

    default_path = Path("config/workout_analytics.toml")
    if default_path.exists():
        return default_path
    return None


def _load_toml(path: Path) -> Mapping[str, Any]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _coerce_int(raw: Any, default: int, *, minimum: int = 0) -> int:
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= minimum else default


def _coerce_threshold(raw: Any) -> float:
    if raw is None or isinstance(raw, bool):
        return DEFAULT_NEAR_PR_THRESHOLD
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_NEAR_PR_THRESHOLD
    if not 0 < value < 1:
        return DEFAULT_NEAR_PR_THRESHOLD
    return value


def coerce_type_filter(raw: Any) -> TypeFilter:
    if isinstance(raw, TypeFilter):
        return raw
    if isinstance(raw, str):
        try:
            return TypeFilter(raw.strip().lower())
        except ValueError:
            return TypeFilter.ALL
    return TypeFilter.ALL


def build_config(raw: Mapping[str, Any]) -> AnalyticsConfig:
    """Build a configuration from a mapping, ignoring unusable values."""
    goals = raw.get("goals")
    goals = goals if isinstance(goals, Mapping) else raw
    return AnalyticsConfig(
        weekly_goal_workouts=_coerce_int(goals.get("weekly_workouts"), DEFAULT_WEEKLY_GOAL_WORKOUTS),
        weekly_goal_minutes=_coerce_int(goals.get("weekly_minutes"), DEFAULT_WEEKLY_GOAL_MINUTES),
        type_filter=coerce_type_filter(raw.get("type_filter")),
        recent_window_days=_coerce_int(
            raw.get("recent_window_days"), DEFAULT_RECENT_WINDOW_DAYS, minimum=1
        ),
        near_pr_threshold=_coerce_threshold(raw.get("near_pr_threshold")),
        max_recommendations=_coerce_int(raw.get("max_recommendations"), DEFAULT_MAX_RECOMMENDATIONS),
        max_guidance_items=_coerce_int(raw.get("max_guidance_items"), DEFAULT_MAX_GUIDANCE_ITEMS),
    )


@lru_cache(maxsize=1)
def get_config() -> AnalyticsConfig:
    """Load configuration once, falling back to built-in defaults."""
    path = _config_path()
    if not path:
        return AnalyticsConfig()
    data = _load_toml(path)
    return build_config(data)


def as_dict() -> dict[str, Any]:
    """Return the effective configuration for debug/CLI display."""
    payload = get_config().to_dict()
    payload["source"] = str(_config_path() or "defaults")
    return payload
