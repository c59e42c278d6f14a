"""Game State Store transitions.

Every change to a GameState goes through `apply_transition`, which works on a
deep copy and returns the new value. The win check runs after every transition.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from quizboard.api.models import Difficulty, EventCard, GameState, Player, Question
from quizboard.board import clamp_position


class TransitionRejected(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class StartGame:
    roster: tuple[Player, ...]
    difficulty: Difficulty | None = None


@dataclass(frozen=True, slots=True)
class MovePlayer:
    delta: int


@dataclass(frozen=True, slots=True)
class UpdateScore:
    player_id: int
    points: int


@dataclass(frozen=True, slots=True)
class SetCurrentQuestion:
    question: Question


@dataclass(frozen=True, slots=True)
class SetCurrentEvent:
    event: EventCard


@dataclass(frozen=True, slots=True)
class SkipTurn:
    player_id: int


@dataclass(frozen=True, slots=True)
class ClearSkip:
    player_id: int


@dataclass(frozen=True, slots=True)
class ResetUsedQuestions:
    pass


@dataclass(frozen=True, slots=True)
class NextPlayer:
    pass


@dataclass(frozen=True, slots=True)
class CheckWin:
    pass


@dataclass(frozen=True, slots=True)
class EndGame:
    pass


Transition = (
    StartGame
    | MovePlayer
    | UpdateScore
    | SetCurrentQuestion
    | SetCurrentEvent
    | SkipTurn
    | ClearSkip
    | ResetUsedQuestions
    | NextPlayer
    | CheckWin
    | EndGame
)

# Accepted even once the game has ended.
_ALLOWED_AFTER_END = (StartGame, ResetUsedQuestions)


def _now() -> datetime:
    return datetime.now(tz=UTC)


def new_game_state(*, game_id: UUID, difficulty: Difficulty = Difficulty.beginner, winning_score: int = 100) -> GameState:
    now = _now()
    return GameState(
        game_id=game_id,
        difficulty=difficulty,
        winning_score=winning_score,
        created_at=now,
        last_updated_at=now,
    )


def fresh_player(player: Player) -> Player:
    return Player(
        id=player.id,
        name=player.name,
        token=player.token,
        position=0,
        previous_position=0,
        starting_position=0,
        score=0,
        is_skipping_turn=False,
        move_history=[0],
    )


def _require_player(state: GameState, player_id: int) -> Player:
    for p in state.players:
        if p.id == player_id:
            return p
    raise TransitionRejected(f"Player not found: {player_id}")


def _validate_roster(roster: tuple[Player, ...]) -> None:
    if not roster:
        raise TransitionRejected("At least one player is required")
    ids = [p.id for p in roster]
    tokens = [p.token for p in roster]
    if len(set(ids)) != len(ids):
        raise TransitionRejected("Player ids must be unique")
    if len(set(tokens)) != len(tokens):
        raise TransitionRejected("Player tokens must be unique")


def check_win(state: GameState) -> GameState:
    """Declare a winner if exactly one player holds the top score at or above the threshold.

    Two or more players sharing the top score never win, even above the threshold.
    """

    if state.game_ended or not state.players:
        return state

    top = max(p.score for p in state.players)
    if top < state.winning_score:
        return state

    leaders = [p for p in state.players if p.score == top]
    if len(leaders) != 1:
        return state

    state.game_ended = True
    state.winner = leaders[0].model_copy(deep=True)
    return state


def _apply(state: GameState, t: Transition) -> GameState:
    if isinstance(t, StartGame):
        _validate_roster(t.roster)
        state.players = [fresh_player(p) for p in t.roster]
        if t.difficulty is not None:
            state.difficulty = Difficulty(t.difficulty)
        state.current_player_index = 0
        state.used_question_ids = set()
        state.game_started = True
        state.game_ended = False
        state.winner = None
        state.current_question = None
        state.current_event = None

    elif isinstance(t, MovePlayer):
        player = state.current_player
        if player is None:
            raise TransitionRejected("No players")
        player.previous_position = player.position
        player.position = clamp_position(player.position + t.delta, track_length=state.track_length)
        player.move_history.append(player.position)

    elif isinstance(t, UpdateScore):
        player = _require_player(state, t.player_id)
        player.score = max(0, player.score + t.points)

    elif isinstance(t, SetCurrentQuestion):
        state.current_question = t.question
        state.used_question_ids.add(t.question.id)

    elif isinstance(t, SetCurrentEvent):
        state.current_event = t.event

    elif isinstance(t, SkipTurn):
        _require_player(state, t.player_id)
        for p in state.players:
            p.is_skipping_turn = p.id == t.player_id

    elif isinstance(t, ClearSkip):
        _require_player(state, t.player_id).is_skipping_turn = False

    elif isinstance(t, ResetUsedQuestions):
        state.used_question_ids = set()

    elif isinstance(t, NextPlayer):
        if not state.players:
            raise TransitionRejected("No players")
        state.current_player_index = (state.current_player_index + 1) % len(state.players)

    elif isinstance(t, EndGame):
        state.game_ended = True
        state.winner = None

    elif isinstance(t, CheckWin):
        pass

    else:
        raise TransitionRejected(f"Unknown transition: {type(t).__name__}")

    return state


def apply_transition(state: GameState, transition: Transition) -> GameState:
    if state.game_ended and not isinstance(transition, _ALLOWED_AFTER_END):
        raise TransitionRejected("Game has ended")

    new_state = _apply(state.model_copy(deep=True), transition)
    return check_win(new_state)
