from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import cast

import redis

from quizboard.core.events import GameEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Feed:
    game_id: str

    @property
    def key(self) -> str:
        return f"feed:{self.game_id}"


def publish_event(*, r: redis.Redis, feed: Feed, event: GameEvent) -> str | None:
    """Append an entry to a game's feed stream. Failures are logged and dropped."""

    try:
        stream_id = r.xadd(feed.key, event.to_fields())
    except redis.RedisError as e:
        logger.warning("game %s: dropped feed entry %s: %s", feed.game_id, event.type, e)
        return None
    return cast(str, stream_id)


def read_feed(*, r: redis.Redis, feed: Feed, count: int = 50) -> list[dict[str, object]]:
    entries = r.xrange(feed.key, min="-", max="+", count=count)
    return [{"id": mid, "fields": fields} for mid, fields in entries]
