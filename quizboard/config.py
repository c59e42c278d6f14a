from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Settings:
    winning_score: int = 100
    roll_animation_seconds: float = 1.0
    reveal_frames: int = 10
    feedback_seconds: float = 5.0
    latch_release_seconds: float = 0.3
    max_players: int = 4
    event_space_interval: int = 0


def _env_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def get_settings() -> Settings:
    """Read settings from QUIZBOARD_* environment variables.

    Durations are configured in milliseconds.
    """

    return Settings(
        winning_score=_env_int("QUIZBOARD_WINNING_SCORE", 100, minimum=1),
        roll_animation_seconds=_env_int("QUIZBOARD_ROLL_ANIMATION_MS", 1000) / 1000,
        reveal_frames=_env_int("QUIZBOARD_REVEAL_FRAMES", 10, minimum=1),
        feedback_seconds=_env_int("QUIZBOARD_FEEDBACK_MS", 5000) / 1000,
        latch_release_seconds=_env_int("QUIZBOARD_LATCH_RELEASE_MS", 300) / 1000,
        max_players=_env_int("QUIZBOARD_MAX_PLAYERS", 4, minimum=1),
        event_space_interval=_env_int("QUIZBOARD_EVENT_SPACE_INTERVAL", 0),
    )
