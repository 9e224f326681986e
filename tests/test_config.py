from __future__ import annotations

import pytest

from workout_analytics import config as config_module
from workout_analytics.config import AnalyticsConfig, as_dict, build_config, get_config
from workout_analytics.models import TypeFilter


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("WORKOUT_ANALYTICS_CONFIG", raising=False)
    get_config.cache_clear()
    yield
    get_config.cache_clear()


def test_build_config_reads_goals_table() -> None:
    config = build_config(
        {
            "type_filter": " Strength ",
            "recent_window_days": 21,
            "near_pr_threshold": 0.85,
            "goals": {"weekly_workouts": 5, "weekly_minutes": 240},
        }
    )

    assert config.weekly_goal_workouts == 5
    assert config.weekly_goal_minutes == 240
    assert config.type_filter is TypeFilter.STRENGTH
    assert config.recent_window_days == 21
    assert config.near_pr_threshold == pytest.approx(0.85)


def test_build_config_falls_back_on_unusable_values() -> None:
    config = build_config(
        {
            "type_filter": "cardio",
            "recent_window_days": 0,
            "near_pr_threshold": 1.5,
            "max_recommendations": "many",
            "goals": {"weekly_workouts": -2, "weekly_minutes": True},
        }
    )

    assert config == AnalyticsConfig()


def test_get_config_without_file_uses_defaults() -> None:
    assert get_config() == AnalyticsConfig()
    assert as_dict()["source"] == "defaults"


def test_get_config_honours_env_override(monkeypatch, tmp_path) -> None:
    path = tmp_path / "custom.toml"
    path.write_text('type_filter = "strength"\n\n[goals]\nweekly_workouts = 3\n', encoding="utf-8")
    monkeypatch.setenv("WORKOUT_ANALYTICS_CONFIG", str(path))

    config = get_config()

    assert config.type_filter is TypeFilter.STRENGTH
    assert config.weekly_goal_workouts == 3
    assert config.weekly_goal_minutes == config_module.DEFAULT_WEEKLY_GOAL_MINUTES
    assert as_dict()["source"] == str(path)


def test_missing_override_file_means_defaults(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("WORKOUT_ANALYTICS_CONFIG", str(tmp_path / "nope.toml"))
    assert get_config() == AnalyticsConfig()
