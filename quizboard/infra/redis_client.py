from __future__ import annotations

import os

import redis

DEFAULT_REDIS_URL = "redis://localhost:6379/0"


def get_redis_url() -> str:
    return os.environ.get("QUIZBOARD_REDIS_URL") or os.environ.get("REDIS_URL", DEFAULT_REDIS_URL)


def create_redis() -> redis.Redis:
    # Snapshot saves run inside player requests; a slow Redis must not stall a turn.
    return redis.Redis.from_url(
        get_redis_url(),
        decode_responses=True,
        socket_connect_timeout=2,
        socket_timeout=2,
    )
