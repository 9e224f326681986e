from __future__ import annotations

import argparse
import hashlib
import json
import random
from datetime import date, datetime, time, timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
DEFAULT_JSON = ROOT / "demo" / "demo_history.json"

CATEGORIES = [
    {"id": "cat-push", "name": "Push", "workout_type": "strength"},
    {"id": "cat-pull", "name": "Pull", "workout_type": "strength"},
    {"id": "cat-legs", "name": "Legs", "workout_type": "strength"},
    {"id": "cat-endurance", "name": "Endurance", "workout_type": "running"},
]
SUBCATEGORIES = [
    {"id": "sub-chest", "name": "Chest", "category_id": "cat-push"},
    {"id": "sub-shoulders", "name": "Shoulders", "category_id": "cat-push"},
    {"id": "sub-back", "name": "Back", "category_id": "cat-pull"},
    {"id": "sub-biceps", "name": "Biceps", "category_id": "cat-pull"},
    {"id": "sub-quads", "name": "Quads", "category_id": "cat-legs"},
    {"id": "sub-hamstrings", "name": "Hamstrings", "category_id": "cat-legs"},
    {"id": "sub-tempo", "name": "Tempo", "category_id": "cat-endurance"},
]
OWNER = {sub["id"]: sub["category_id"] for sub in SUBCATEGORIES}
LIFTS = [
    ("Bench Press", "sub-chest", 80.0),
    ("Overhead Press", "sub-shoulders", 50.0),
    ("Barbell Row", "sub-back", 70.0),
    ("Curl", "sub-biceps", 30.0),
    ("Back Squat", "sub-quads", 110.0),
    ("Romanian Deadlift", "sub-hamstrings", 100.0),
]


def _workout_id(seed: int, day: date, slot: int) -> str:
    return hashlib.sha256(f"{seed}:{day.isoformat()}:{slot}".encode("utf-8")).hexdigest()[:12]


def _build_workouts(days: int, start: date, seed: int) -> list[dict[str, object]]:
    rng = random.Random(seed)
    workouts: list[dict[str, object]] = []

    for offset in range(days):
        day = start + timedelta(days=offset)
        if rng.random() < 0.35:
            continue
        started = datetime.combine(day, time(hour=rng.choice([6, 7, 12, 18, 19])))
        progression = 1 + 0.004 * offset
        if rng.random() < 0.7:
            picks = rng.sample(LIFTS, k=3)
            exercises = [
                {
                    "name": name,
                    "sets": rng.randint(3, 5),
                    "reps": rng.choice([3, 5, 8, 10]),
                    "weight": round(base * progression * rng.uniform(0.85, 1.02) / 2.5) * 2.5,
                    "subcategory_id": sub_id,
                }
                for name, sub_id, base in picks
            ]
            workouts.append(
                {
                    "id": _workout_id(seed, day, 0),
                    "type": "strength",
                    "start": started.isoformat(),
                    "duration_seconds": rng.randint(40, 80) * 60,
                    "category_ids": sorted({OWNER[sub_id] for _, sub_id, _ in picks}),
                    "subcategory_ids": [sub_id for _, sub_id, _ in picks],
                    "exercises": exercises,
                }
            )
        else:
            workouts.append(
                {
                    "id": _workout_id(seed, day, 0),
                    "type": "running",
                    "start": started.isoformat(),
                    "duration_seconds": rng.randint(25, 60) * 60,
                    "distance": round(rng.uniform(4.0, 12.0), 2),
                    "category_ids": ["cat-endurance"],
                    "subcategory_ids": ["sub-tempo"],
                    "exercises": [],
                }
            )
    return workouts


def _write_json(path: Path, workouts: list[dict[str, object]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"categories": CATEGORIES, "subcategories": SUBCATEGORIES, "workouts": workouts}
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a synthetic workout history.")
    parser.add_argument("--days", type=int, default=56, help="Number of sequential days to generate.")
    parser.add_argument(
        "--start-date",
        type=date.fromisoformat,
        default=(date.today() - timedelta(days=55)).isoformat(),
        help="Start date (YYYY-MM-DD). Defaults to 55 days before today.",
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility.")
    parser.add_argument("--json", type=Path, default=DEFAULT_JSON, help="Destination .json file.")
    args = parser.parse_args()

    if isinstance(args.start_date, str):
        start = date.fromisoformat(args.start_date)
    else:
        start = args.start_date

    workouts = _build_workouts(days=args.days, start=start, seed=args.seed)
    _write_json(args.json, workouts)

    print(f"Wrote {len(workouts)} demo workouts to {args.json}")


if __name__ == "__main__":
    main()
