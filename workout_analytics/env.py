from __future__ import annotations

import os

PREFIX = "WORKOUT_ANALYTICS_"


def get_env(name: str, default: str | None = None) -> str | None:
    """
    Resolve configuration environment variables.

    Every variable is namespaced with `WORKOUT_ANALYTICS_` so that the engine can
    share a process environment with the host application.
    """
    value = os.getenv(f"{PREFIX}{name}")
    if value is not None:
        return value
    return default
