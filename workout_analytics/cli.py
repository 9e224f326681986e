from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import AnalyticsConfig, as_dict as config_as_dict, coerce_type_filter, get_config
from .metrics import compute_weekly_summary, records_to_dataframe, workouts_to_dataframe
from .models import TypeFilter, ValidationError, parse_datetime
from .services import AnalyticsSnapshot, compute_snapshot
from .storage import HistorySnapshot, load_history

app = typer.Typer(help="Turn a workout history into streaks, records, gaps and weekly guidance.")

HISTORY_ARGUMENT = typer.Argument(
    None,
    help="History JSON file (defaults to WORKOUT_ANALYTICS_HISTORY_FILE or data/history.json).",
)


def _fail(message: str, *, code: int = 1) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=code)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _load(path: Optional[Path]) -> HistorySnapshot:
    try:
        return load_history(path)
    except (FileNotFoundError, ValueError) as exc:
        _fail(str(exc))
        raise  # pragma: no cover - _fail always exits


def _resolve_now(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now()
    try:
        return parse_datetime(value, field="--now")
    except ValidationError as exc:
        _fail(str(exc))
        raise  # pragma: no cover - _fail always exits


def _resolve_config(
    type_filter: Optional[str],
    goal_workouts: Optional[int],
    goal_minutes: Optional[int],
) -> AnalyticsConfig:
    config = get_config()
    if type_filter is not None:
        if type_filter.strip().lower() not in {item.value for item in TypeFilter}:
            _fail(f"Unknown filter '{type_filter}'. Choose from: all, strength.")
        config = replace(config, type_filter=coerce_type_filter(type_filter))
    if goal_workouts is not None:
        config = replace(config, weekly_goal_workouts=goal_workouts)
    if goal_minutes is not None:
        config = replace(config, weekly_goal_minutes=goal_minutes)
    return config


def _render_snapshot(snapshot: AnalyticsSnapshot, console: Console) -> None:
    streaks = snapshot.streaks
    console.print(f"[bold]Filter:[/bold] {snapshot.type_filter.title}")
    console.print(
        f"Streaks: current {streaks.current_daily} day(s), best {streaks.best_daily} day(s), "
        f"weekly goal {streaks.weekly_goal} week(s)"
    )

    forecast = snapshot.goal_forecast
    if forecast is not None:
        console.print(forecast.headline)
        console.print(
            f"This week: {forecast.workouts_this_week}/{forecast.weekly_goal_workouts} workouts, "
            f"{forecast.minutes_this_week}/{forecast.weekly_goal_minutes} min"
        )
        console.print(f"Workouts: {forecast.workout_pace_text}")
        console.print(f"Minutes: {forecast.minute_pace_text}")

    if snapshot.personal_records:
        table = Table(title="Personal records")
        table.add_column("Exercise")
        table.add_column("Top set (kg)", justify="right")
        table.add_column("Est. 1RM (kg)", justify="right")
        table.add_column("Date")
        for record in snapshot.personal_records:
            table.add_row(
                record.exercise_name,
                f"{record.top_set_weight:.1f}",
                f"{record.estimated_one_rep_max:.1f}",
                record.date.date().isoformat(),
            )
        console.print(table)

    for item in snapshot.near_pr_opportunities[:3]:
        console.print(
            f"Near PR: {item.exercise_name} {item.latest_top_set:.1f}/{item.pr_top_set:.1f} kg "
            f"({item.progress_to_pr:.0%})"
        )
    for item in snapshot.adaptive_recommendations:
        console.print(f"Gap: {item.name}: {item.reason}")
    if snapshot.untrained_categories:
        console.print("Untrained: " + ", ".join(category.name for category in snapshot.untrained_categories))

    if snapshot.guidance:
        console.print("[bold]Next session[/bold]")
        for item in snapshot.guidance:
            console.print(f"- {item.title}: {item.detail}")


@app.command()
def analyze(
    history: Optional[Path] = HISTORY_ARGUMENT,
    as_json: bool = typer.Option(False, "--json", help="Print the snapshot as JSON."),
    type_filter: Optional[str] = typer.Option(
        None,
        "--filter",
        "-f",
        help="Workout filter: 'all' or 'strength' (defaults to config).",
    ),
    goal_workouts: Optional[int] = typer.Option(None, "--goal-workouts", min=0, help="Weekly workout goal."),
    goal_minutes: Optional[int] = typer.Option(None, "--goal-minutes", min=0, help="Weekly minute goal."),
    now: Optional[str] = typer.Option(None, "--now", help="Reference time (ISO-8601, defaults to now)."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr."),
) -> None:
    """
    Compute the full analytics snapshot for a history file.
    """
    _configure_logging(verbose)
    config = _resolve_config(type_filter, goal_workouts, goal_minutes)
    reference = _resolve_now(now)
    data = _load(history)
    snapshot = compute_snapshot(
        data.workouts,
        data.categories,
        data.subcategories,
        config=config,
        now=reference,
    )
    if as_json:
        typer.echo(json.dumps(snapshot.to_dict(), indent=2, sort_keys=True))
        return
    _render_snapshot(snapshot, Console())


@app.command()
def weekly(
    history: Optional[Path] = HISTORY_ARGUMENT,
    weeks: int = typer.Option(8, "--weeks", "-w", min=1, help="Number of most recent weeks to show."),
    now: Optional[str] = typer.Option(None, "--now", help="Reference time (ISO-8601, defaults to now)."),
) -> None:
    """
    Show ISO-week totals and whether both weekly goals were met.
    """
    config = get_config()
    reference = _resolve_now(now)
    data = _load(history)
    history_view = [workout for workout in data.workouts if config.type_filter.matches_workout(workout)]
    summary = compute_weekly_summary(
        workouts_to_dataframe(history_view, reference),
        config.weekly_goal_workouts,
        config.weekly_goal_minutes,
    )
    if summary.empty:
        typer.echo("No workouts recorded.")
        return

    table = Table(title="Weekly summary")
    for column in ("Week", "Sessions", "Active days", "Minutes", "Distance", "Goal"):
        table.add_column(column)
    for row in summary.tail(weeks).to_dict("records"):
        table.add_row(
            row["label"],
            str(row["sessions"]),
            str(row["active_days"]),
            str(row["minutes"]),
            f"{row['distance']:.2f}",
            "met" if row["goal_met"] else "-",
        )
    Console().print(table)


@app.command()
def export(
    history: Optional[Path] = HISTORY_ARGUMENT,
    to: Path = typer.Option(..., "--to", help="Directory for snapshot.json, records.csv and weekly.csv."),
    now: Optional[str] = typer.Option(None, "--now", help="Reference time (ISO-8601, defaults to now)."),
) -> None:
    """
    Write the snapshot as JSON and records/weekly tables as CSV.
    """
    config = get_config()
    reference = _resolve_now(now)
    data = _load(history)
    snapshot = compute_snapshot(data.workouts, data.categories, data.subcategories, config=config, now=reference)

    to.mkdir(parents=True, exist_ok=True)
    snapshot_path = to / "snapshot.json"
    snapshot_path.write_text(json.dumps(snapshot.to_dict(), indent=2, sort_keys=True) + "\n", encoding="utf-8")
    records_to_dataframe(snapshot.personal_records).to_csv(to / "records.csv", index=False)
    history_view = [workout for workout in data.workouts if config.type_filter.matches_workout(workout)]
    compute_weekly_summary(
        workouts_to_dataframe(history_view, reference),
        config.weekly_goal_workouts,
        config.weekly_goal_minutes,
    ).to_csv(to / "weekly.csv", index=False)
    typer.echo(f"Exported snapshot to {to}")


@app.command("config")
def config_show() -> None:
    """
    Show the effective configuration (goals, filter, windows).
    """
    config = config_as_dict()
    typer.echo(f"Config source: {config.get('source')}")
    typer.echo(
        f"Weekly goals: {config['weekly_goal_workouts']} workouts, {config['weekly_goal_minutes']} min"
    )
    typer.echo(f"Filter: {config['type_filter']}")
    typer.echo(
        f"Recent window: {config['recent_window_days']} days, "
        f"near-PR threshold {config['near_pr_threshold']}"
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
