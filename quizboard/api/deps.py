from __future__ import annotations

from collections.abc import Generator

import redis

from quizboard.infra.redis_client import create_redis
from quizboard.sessions import SessionRegistry

_REGISTRY: SessionRegistry | None = None


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        client.close()


def get_registry() -> SessionRegistry:
    """Process-wide registry of live games; owns its own long-lived Redis client."""

    global _REGISTRY
    if _REGISTRY is None:
        _REGISTRY = SessionRegistry(r=create_redis())
    return _REGISTRY


def shutdown_registry() -> None:
    global _REGISTRY
    if _REGISTRY is not None:
        _REGISTRY.close_all()
        _REGISTRY = None
