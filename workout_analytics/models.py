from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

__all__ = [
    "WorkoutType",
    "TypeFilter",
    "Category",
    "Subcategory",
    "ExerciseEntry",
    "Workout",
    "ValidationError",
    "parse_datetime",
    "coerce_number",
    "parse_workout_type",
    "category_from_dict",
    "subcategory_from_dict",
    "exercise_from_dict",
    "workout_from_dict",
]


class ValidationError(ValueError):
    """Raised when user-supplied data cannot be normalised safely."""


class WorkoutType(str, Enum):
    STRENGTH = "strength"
    CARDIO = "cardio"
    YOGA = "yoga"
    RUNNING = "running"
    CYCLING = "cycling"
    SWIMMING = "swimming"
    OTHER = "other"


class TypeFilter(str, Enum):
    """Which slice of the history the analytics are computed over."""

    ALL = "all"
    STRENGTH = "strength"

    @property
    def title(self) -> str:
        if self is TypeFilter.ALL:
            return "All"
        if self is TypeFilter.STRENGTH:
            return "Strength"
        raise AssertionError(f"Unhandled filter {self!r}")

    def matches_type(self, workout_type: Optional[WorkoutType]) -> bool:
        if self is TypeFilter.ALL:
            return True
        if self is TypeFilter.STRENGTH:
            return workout_type is WorkoutType.STRENGTH
        raise AssertionError(f"Unhandled filter {self!r}")

    def matches_workout(self, workout: "Workout") -> bool:
        return self.matches_type(workout.type)

    def matches_category(self, category: Optional["Category"]) -> bool:
        if self is TypeFilter.ALL:
            return True
        return category is not None and self.matches_type(category.workout_type)


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    workout_type: Optional[WorkoutType] = None


@dataclass(frozen=True)
class Subcategory:
    """A trainable area (e.g. "Chest") owned by a category (e.g. "Push")."""

    id: str
    name: str
    category: Optional[Category] = None


@dataclass(frozen=True)
class ExerciseEntry:
    """A single logged exercise inside a workout."""

    name: str
    sets: Optional[int] = None
    reps: Optional[int] = None
    weight: Optional[float] = None  # kilograms
    subcategory_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", (self.name or "").strip())

    @property
    def effective_weight(self) -> Optional[float]:
        """Weight in kilograms, or None when missing or not positive."""
        if self.weight is None:
            return None
        try:
            value = float(self.weight)
        except (TypeError, ValueError):
            return None
        if math.isnan(value) or value <= 0:
            return None
        return value


@dataclass(frozen=True)
class Workout:
    """Immutable record of one logged workout."""

    id: str
    type: WorkoutType
    start: datetime
    duration_seconds: float = 0.0
    distance: Optional[float] = None
    category_ids: tuple[str, ...] = field(default_factory=tuple)
    subcategory_ids: tuple[str, ...] = field(default_factory=tuple)
    exercises: tuple[ExerciseEntry, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "category_ids", tuple(self.category_ids))
        object.__setattr__(self, "subcategory_ids", tuple(self.subcategory_ids))
        object.__setattr__(self, "exercises", tuple(self.exercises))

    @property
    def effective_duration(self) -> float:
        """Duration in seconds with malformed or negative values read as zero."""
        try:
            value = float(self.duration_seconds)
        except (TypeError, ValueError):
            return 0.0
        if math.isnan(value) or value < 0:
            return 0.0
        return value

    @property
    def effective_distance(self) -> float:
        if self.distance is None:
            return 0.0
        try:
            value = float(self.distance)
        except (TypeError, ValueError):
            return 0.0
        if math.isnan(value) or value < 0:
            return 0.0
        return value

    def references_subcategory(self, subcategory_id: str) -> bool:
        """True when linked to the subcategory directly or through an exercise."""
        if subcategory_id in self.subcategory_ids:
            return True
        return any(entry.subcategory_id == subcategory_id for entry in self.exercises)

    def to_dict(self) -> dict[str, Any]:
        """Make the workout JSON serialisable."""
        payload: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "start": self.start.isoformat(),
            "duration_seconds": self.effective_duration,
            "category_ids": list(self.category_ids),
            "subcategory_ids": list(self.subcategory_ids),
            "exercises": [_exercise_to_dict(entry) for entry in self.exercises],
        }
        if self.distance is not None:
            payload["distance"] = self.effective_distance
        return payload


def _exercise_to_dict(entry: ExerciseEntry) -> dict[str, Any]:
    payload: dict[str, Any] = {"name": entry.name}
    if entry.sets is not None:
        payload["sets"] = entry.sets
    if entry.reps is not None:
        payload["reps"] = entry.reps
    if entry.effective_weight is not None:
        payload["weight"] = entry.effective_weight
    if entry.subcategory_id:
        payload["subcategory_id"] = entry.subcategory_id
    return payload


def parse_datetime(value: Any, *, field: str = "start") -> datetime:
    """
    Parse user-supplied ISO-8601 timestamps.

    Accepts `datetime.datetime`, `datetime.date` (read as midnight) or strings.
    Raises `ValidationError` with a friendlier message if the payload cannot be
    parsed.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)

    if not isinstance(value, str):
        raise ValidationError(
            f"{field} must be provided as ISO-8601 text; received {value!r}."
        )

    candidate = value.strip()
    if not candidate:
        raise ValidationError(f"{field} cannot be empty.")
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        return datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValidationError(
            f"{field} must be a valid ISO timestamp; received {candidate!r}."
        ) from exc


def coerce_number(value: Any, *, field: str = "value") -> Optional[float]:
    """Convert a JSON scalar into a float; missing or blank values read as None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValidationError(f"{field} must be a number; received {value!r}.")
    try:
        return float(value)
    except ValueError as exc:
        raise ValidationError(f"{field} must be a number; received {value!r}.") from exc


def parse_workout_type(value: Any) -> WorkoutType:
    """Map a raw type tag onto `WorkoutType`, falling back to `other`."""
    if isinstance(value, WorkoutType):
        return value
    if isinstance(value, str):
        try:
            return WorkoutType(value.strip().lower())
        except ValueError:
            return WorkoutType.OTHER
    return WorkoutType.OTHER


def _optional_type(value: Any) -> Optional[WorkoutType]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_workout_type(value)


def _optional_number(value: Any, *, field: str) -> Optional[float]:
    """Lenient numeric parsing: anything unusable or not positive is absent."""
    try:
        number = coerce_number(value, field=field)
    except ValidationError:
        return None
    if number is None or math.isnan(number) or number <= 0:
        return None
    return number


def _optional_int(value: Any, *, field: str) -> Optional[int]:
    number = _optional_number(value, field=field)
    return int(number) if number is not None else None


def _identifier(raw: Mapping[str, Any], *, field: str = "id") -> str:
    text = str(raw.get(field) or "").strip()
    if not text:
        raise ValidationError(f"{field} is required.")
    return text


def _id_list(values: Any, *, field: str) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        values = values.split(",")
    if not isinstance(values, Iterable):
        raise ValidationError(f"{field} must be a list of identifiers; received {values!r}.")
    cleaned = (str(item).strip() for item in values if item is not None)
    return tuple(item for item in cleaned if item)


def category_from_dict(raw: Mapping[str, Any]) -> Category:
    return Category(
        id=_identifier(raw),
        name=str(raw.get("name") or "").strip(),
        workout_type=_optional_type(raw.get("workout_type")),
    )


def subcategory_from_dict(
    raw: Mapping[str, Any],
    categories: Mapping[str, Category] | None = None,
) -> Subcategory:
    """Build a subcategory, resolving `category_id` against known categories."""
    category_id = str(raw.get("category_id") or "").strip()
    category = (categories or {}).get(category_id) if category_id else None
    return Subcategory(
        id=_identifier(raw),
        name=str(raw.get("name") or "").strip(),
        category=category,
    )


def exercise_from_dict(raw: Mapping[str, Any]) -> Optional[ExerciseEntry]:
    """Return an exercise entry, or None when it carries no usable name."""
    name = str(raw.get("name") or "").strip()
    if not name:
        return None
    subcategory_id = str(raw.get("subcategory_id") or "").strip() or None
    return ExerciseEntry(
        name=name,
        sets=_optional_int(raw.get("sets"), field="sets"),
        reps=_optional_int(raw.get("reps"), field="reps"),
        weight=_optional_number(raw.get("weight"), field="weight"),
        subcategory_id=subcategory_id,
    )


def workout_from_dict(raw: Mapping[str, Any]) -> Workout:
    """
    Normalise a raw workout payload.

    Identity and start time are required; everything else degrades quietly:
    negative durations become zero, bad weights and distances become absent and
    unnamed exercises are dropped.
    """
    if not isinstance(raw, Mapping):
        raise ValidationError(f"workout must be an object; received {raw!r}.")

    try:
        duration = coerce_number(raw.get("duration_seconds"), field="duration_seconds") or 0.0
    except ValidationError:
        duration = 0.0
    distance = _optional_number(raw.get("distance"), field="distance")

    exercises_raw = raw.get("exercises") or []
    if not isinstance(exercises_raw, list):
        raise ValidationError("exercises must be a list of exercise objects.")
    exercises = tuple(
        entry
        for entry in (exercise_from_dict(item) for item in exercises_raw if isinstance(item, Mapping))
        if entry is not None
    )

    return Workout(
        id=_identifier(raw),
        type=parse_workout_type(raw.get("type")),
        start=parse_datetime(raw.get("start"), field="start"),
        duration_seconds=max(duration, 0.0) if not math.isnan(duration) else 0.0,
        distance=distance,
        category_ids=_id_list(raw.get("category_ids"), field="category_ids"),
        subcategory_ids=_id_list(raw.get("subcategory_ids"), field="subcategory_ids"),
        exercises=exercises,
    )
