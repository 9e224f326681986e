"""workout_analytics package."""

from importlib import metadata
from typing import Any

from .config import AnalyticsConfig
from .models import Category, ExerciseEntry, Subcategory, TypeFilter, Workout, WorkoutType
from .services import AnalyticsSnapshot, SnapshotCache, compute_snapshot, history_fingerprint

try:
    __version__ = metadata.version("workout-analytics")
except metadata.PackageNotFoundError:  # pragma: no cover - fallback for local edits
    __version__ = "0.0.0"

__all__ = [
    "app",
    "__version__",
    "AnalyticsConfig",
    "AnalyticsSnapshot",
    "Category",
    "ExerciseEntry",
    "SnapshotCache",
    "Subcategory",
    "TypeFilter",
    "Workout",
    "WorkoutType",
    "compute_snapshot",
    "history_fingerprint",
]


def __getattr__(name: str) -> Any:  # pragma: no cover - exercised indirectly
    if name == "app":
        from .cli import app

        return app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
