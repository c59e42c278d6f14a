from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID

import redis
from pydantic import ValidationError

from quizboard.api.models import GameState
from quizboard.transitions import Transition, new_game_state

logger = logging.getLogger(__name__)


GAMES_SET_KEY = "quizboard:games"
GAME_KEY_PREFIX = "quizboard:game:"  # + {uuid}


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _game_key(game_id: UUID) -> str:
    return f"{GAME_KEY_PREFIX}{game_id}"


def serialize_state(state: GameState) -> str:
    # used_question_ids is dumped as a sorted list by the model serializer.
    return state.model_dump_json()


def deserialize_state(raw: str | bytes) -> GameState:
    return GameState.model_validate_json(raw)


def save_game(*, r: redis.Redis, state: GameState) -> GameState:
    stamped = state.model_copy(update={"last_updated_at": _now()})
    r.set(_game_key(stamped.game_id), serialize_state(stamped))
    r.sadd(GAMES_SET_KEY, str(stamped.game_id))
    return stamped


def get_game(*, r: redis.Redis, game_id: UUID) -> GameState | None:
    raw = r.get(_game_key(game_id))
    if not raw:
        return None
    return deserialize_state(raw)


def is_known_game(*, r: redis.Redis, game_id: UUID) -> bool:
    return bool(r.sismember(GAMES_SET_KEY, str(game_id)))


def list_games(*, r: redis.Redis) -> list[GameState]:
    ids = sorted(r.smembers(GAMES_SET_KEY))
    out: list[GameState] = []
    for sid in ids:
        try:
            gid = UUID(sid)
        except ValueError:
            continue
        try:
            state = get_game(r=r, game_id=gid)
        except (ValidationError, ValueError):
            logger.warning("Skipping unreadable snapshot for game %s", sid)
            continue
        if state is not None:
            out.append(state)
    out.sort(key=lambda s: s.created_at, reverse=True)
    return out


class RedisPersistence:
    """Saves every committed GameState snapshot for one game.

    Usable directly as a GameStore observer. Neither `save` nor `load` raises:
    a failed write is logged and dropped, a missing or corrupt snapshot loads
    as None.
    """

    def __init__(self, *, r: redis.Redis, game_id: UUID) -> None:
        self.r = r
        self.game_id = game_id

    def save(self, state: GameState) -> None:
        try:
            save_game(r=self.r, state=state)
        except redis.RedisError as e:
            logger.warning("game %s: dropped snapshot save: %s", self.game_id, e)

    def load(self) -> GameState | None:
        try:
            return get_game(r=self.r, game_id=self.game_id)
        except redis.RedisError as e:
            logger.warning("game %s: snapshot load failed: %s", self.game_id, e)
        except (ValidationError, ValueError) as e:
            logger.warning("game %s: snapshot is unreadable: %s", self.game_id, e)
        return None

    def load_or_initial(self, *, winning_score: int = 100) -> GameState:
        state = self.load()
        if state is not None:
            return state
        return new_game_state(game_id=self.game_id, winning_score=winning_score)

    def __call__(self, state: GameState, transition: Transition) -> None:
        self.save(state)
