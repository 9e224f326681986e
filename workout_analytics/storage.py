from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from .env import get_env
from .models import (
    Category,
    Subcategory,
    ValidationError,
    Workout,
    category_from_dict,
    subcategory_from_dict,
    workout_from_dict,
)

DEFAULT_HISTORY_FILE = Path("data") / "history.json"
LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistorySnapshot:
    """A read-only copy of one user's history, ready for `compute_snapshot`."""

    workouts: tuple[Workout, ...] = ()
    categories: tuple[Category, ...] = ()
    subcategories: tuple[Subcategory, ...] = ()


def history_file(path: Path | None = None) -> Path:
    if path is not None:
        return path.expanduser()
    override = get_env("HISTORY_FILE")
    return Path(override).expanduser() if override else DEFAULT_HISTORY_FILE


def _records(payload: Mapping[str, Any], key: str, source: Path) -> list[Mapping[str, Any]]:
    raw = payload.get(key) or []
    if not isinstance(raw, list):
        raise ValueError(f"{source}: '{key}' must be a JSON list")
    return [item for item in raw if isinstance(item, Mapping)]


def parse_history(payload: Any, source: Path | str = "<memory>") -> HistorySnapshot:
    """
    Build a snapshot from a decoded JSON payload.

    A bare list is read as workouts only. Malformed categories, subcategories or
    workouts are skipped with a warning so one bad record cannot hide the rest.
    """
    source = Path(source)
    if isinstance(payload, list):
        payload = {"workouts": payload}
    if not isinstance(payload, Mapping):
        raise ValueError(f"{source} must contain a JSON object or list")

    categories: dict[str, Category] = {}
    for raw in _records(payload, "categories", source):
        try:
            category = category_from_dict(raw)
        except ValidationError as exc:
            LOGGER.warning("Skipping category in %s: %s", source, exc)
            continue
        categories[category.id] = category

    subcategories: list[Subcategory] = []
    for raw in _records(payload, "subcategories", source):
        try:
            subcategories.append(subcategory_from_dict(raw, categories))
        except ValidationError as exc:
            LOGGER.warning("Skipping subcategory in %s: %s", source, exc)

    workouts: list[Workout] = []
    for index, raw in enumerate(_records(payload, "workouts", source)):
        try:
            workouts.append(workout_from_dict(raw))
        except ValidationError as exc:
            LOGGER.warning("Skipping workout #%d in %s: %s", index, source, exc)

    LOGGER.debug(
        "Loaded %d workouts, %d categories, %d subcategories from %s",
        len(workouts),
        len(categories),
        len(subcategories),
        source,
    )
    return HistorySnapshot(
        workouts=tuple(workouts),
        categories=tuple(categories.values()),
        subcategories=tuple(subcategories),
    )


def load_history(path: Path | None = None) -> HistorySnapshot:
    """Read a history JSON file written by the host application."""
    source = history_file(path)
    if not source.exists():
        raise FileNotFoundError(f"History file not found: {source}")

    raw = source.read_text(encoding="utf-8").strip() or "[]"
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Could not parse {source}: {exc}") from exc
    return parse_history(payload, source)
