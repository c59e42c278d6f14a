from __future__ import annotations

from uuid import uuid4

import pytest

from quizboard.api.models import GameState, Player, TurnPhase
from quizboard.transitions import EndGame, MovePlayer, StartGame, apply_transition, new_game_state
from quizboard.turn_processing.validators import (
    IllegalAction,
    TurnStatus,
    ValidationContext,
    pipeline_for_action,
)


def _state() -> GameState:
    roster = (Player(id=1, name="A", token="🦁"), Player(id=2, name="B", token="🐯"))
    return apply_transition(new_game_state(game_id=uuid4()), StartGame(roster=roster))


def _status(state: GameState, phase: TurnPhase, **flags: object) -> TurnStatus:
    values: dict[str, object] = {
        "has_rolled": False,
        "can_interact_with_space": False,
        "is_processing_turn": False,
        "prompt": None,
    }
    values.update(flags)
    return TurnStatus(state=state, phase=phase, **values)  # type: ignore[arg-type]


def _check(action: str, turn: TurnStatus, *, space_id: int | None = None) -> None:
    ctx = ValidationContext(game_id=str(turn.state.game_id), action=action, space_id=space_id)
    pipeline_for_action(action).validate(ctx=ctx, turn=turn)


def test_roll_allowed_when_awaiting_roll() -> None:
    _check("roll", _status(_state(), TurnPhase.awaiting_roll))


def test_roll_denied_while_rolling_with_friendly_message() -> None:
    with pytest.raises(IllegalAction) as e:
        _check("roll", _status(_state(), TurnPhase.rolling, has_rolled=True))
    assert str(e.value) == "The dice is already rolling"


def test_second_roll_in_same_turn_denied() -> None:
    with pytest.raises(IllegalAction, match="already rolled"):
        _check("roll", _status(_state(), TurnPhase.awaiting_roll, has_rolled=True))


def test_latch_rejects_requests() -> None:
    with pytest.raises(IllegalAction, match="Please wait"):
        _check("roll", _status(_state(), TurnPhase.awaiting_roll, is_processing_turn=True))


def test_everything_denied_once_game_ended() -> None:
    state = apply_transition(_state(), EndGame())
    for action in ("roll", "click", "answer", "event", "end_turn", "end_game"):
        with pytest.raises(IllegalAction) as e:
            _check(action, _status(state, TurnPhase.game_over), space_id=0)
        assert str(e.value) == "Game has ended"


def test_not_started_game_denied() -> None:
    state = new_game_state(game_id=uuid4())
    with pytest.raises(IllegalAction, match="not started"):
        _check("roll", _status(state, TurnPhase.idle))


def test_click_requires_roll_first() -> None:
    with pytest.raises(IllegalAction) as e:
        _check("click", _status(_state(), TurnPhase.awaiting_roll), space_id=0)
    assert str(e.value) == "Roll the dice first"


def test_click_only_current_space() -> None:
    state = apply_transition(_state(), MovePlayer(delta=4))
    turn = _status(state, TurnPhase.space_interaction_allowed, has_rolled=True, can_interact_with_space=True)

    _check("click", turn, space_id=4)

    with pytest.raises(IllegalAction, match=r"current space \(4\)"):
        _check("click", turn, space_id=5)
    with pytest.raises(IllegalAction, match="not on the board"):
        _check("click", turn, space_id=20)


def test_resolve_needs_matching_prompt() -> None:
    turn = _status(_state(), TurnPhase.resolving, prompt="event")
    _check("event", turn)
    with pytest.raises(IllegalAction, match="no question"):
        _check("answer", turn)


def test_generic_message_names_phase() -> None:
    with pytest.raises(IllegalAction) as e:
        _check("answer", _status(_state(), TurnPhase.idle))
    assert "not allowed" in str(e.value)
    assert "idle" in str(e.value)


def test_unknown_action_pipeline_raises() -> None:
    with pytest.raises(ValueError) as e:
        pipeline_for_action("teleport")
    assert "Unknown action" in str(e.value)
