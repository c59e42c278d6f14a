from __future__ import annotations

import logging
from uuid import uuid4

import fakeredis
import pytest
import redis

from quizboard.api.models import Player, Question
from quizboard.persistence import (
    GAME_KEY_PREFIX,
    GAMES_SET_KEY,
    RedisPersistence,
    list_games,
    save_game,
)
from quizboard.store import GameStore
from quizboard.transitions import MovePlayer, SetCurrentQuestion, StartGame, apply_transition, new_game_state


def _started():
    roster = (Player(id=1, name="Ada", token="🦉"), Player(id=2, name="Bo", token="🐢"))
    return apply_transition(new_game_state(game_id=uuid4()), StartGame(roster=roster))


class _BrokenRedis:
    def set(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        raise redis.ConnectionError("down")

    def get(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        raise redis.ConnectionError("down")


def test_round_trip() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    state = _started()
    state = apply_transition(
        state,
        SetCurrentQuestion(question=Question(id=7, text="Q?", options=["a", "b", "c", "d"], correct_answer="b")),
    )
    state = apply_transition(state, MovePlayer(delta=4))

    p = RedisPersistence(r=r, game_id=state.game_id)
    p.save(state)
    loaded = p.load()

    assert loaded is not None
    assert loaded.players == state.players
    assert loaded.used_question_ids == {7}
    assert loaded.current_question == state.current_question
    assert loaded.last_updated_at >= state.last_updated_at
    assert r.sismember(GAMES_SET_KEY, str(state.game_id))


def test_missing_snapshot_loads_as_none_and_initial_state() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    game_id = uuid4()
    p = RedisPersistence(r=r, game_id=game_id)

    assert p.load() is None

    initial = p.load_or_initial(winning_score=50)
    assert initial.game_id == game_id
    assert initial.winning_score == 50
    assert not initial.game_started
    assert initial.players == []


def test_corrupt_snapshot_loads_as_none(caplog: pytest.LogCaptureFixture) -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    game_id = uuid4()
    r.set(f"{GAME_KEY_PREFIX}{game_id}", "{not json")

    with caplog.at_level(logging.WARNING, logger="quizboard.persistence"):
        assert RedisPersistence(r=r, game_id=game_id).load() is None
    assert "unreadable" in caplog.text


def test_redis_failures_are_logged_and_dropped(caplog: pytest.LogCaptureFixture) -> None:
    state = _started()
    p = RedisPersistence(r=_BrokenRedis(), game_id=state.game_id)  # type: ignore[arg-type]

    with caplog.at_level(logging.WARNING, logger="quizboard.persistence"):
        p.save(state)
        assert p.load() is None

    assert "dropped snapshot save" in caplog.text


def test_persistence_observes_every_dispatch() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    state = _started()
    p = RedisPersistence(r=r, game_id=state.game_id)
    store = GameStore(state, observers=(p,))

    store.dispatch(MovePlayer(delta=3))

    assert p.load().players[0].position == 3


def test_list_games_newest_first_and_skips_garbage() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    older = _started()
    newer = _started()
    newer = newer.model_copy(update={"created_at": older.created_at.replace(year=older.created_at.year + 1)})
    save_game(r=r, state=older)
    save_game(r=r, state=newer)

    broken_id = uuid4()
    r.sadd(GAMES_SET_KEY, str(broken_id), "not-a-uuid")
    r.set(f"{GAME_KEY_PREFIX}{broken_id}", "garbage")

    games = list_games(r=r)
    assert [g.game_id for g in games] == [newer.game_id, older.game_id]
