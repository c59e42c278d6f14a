from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Literal

from quizboard.api.models import GameState, TurnPhase


class IllegalAction(ValueError):
    """A request rejected at the turn boundary. The message is meant for players."""


PromptKind = Literal["question", "event"]


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Inputs available to validators.

    Keep this tight and serializable-ish so we can safely log it.
    """

    game_id: str
    action: str
    space_id: int | None = None


@dataclass(frozen=True, slots=True)
class TurnStatus:
    """Read-only snapshot of the controller at the time of a request."""

    state: GameState
    phase: TurnPhase
    has_rolled: bool
    can_interact_with_space: bool
    is_processing_turn: bool
    prompt: PromptKind | None = None


class TurnValidator(ABC):
    """A small, composable validation unit for an incoming request."""

    @abstractmethod
    def validate(self, *, ctx: ValidationContext, turn: TurnStatus) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class CompletedGameValidator(TurnValidator):
    """Deny every turn action once the game has ended."""

    def validate(self, *, ctx: ValidationContext, turn: TurnStatus) -> None:
        if turn.state.game_ended or turn.phase == TurnPhase.game_over:
            raise IllegalAction("Game has ended")


@dataclass(frozen=True, slots=True)
class StartedGameValidator(TurnValidator):
    def validate(self, *, ctx: ValidationContext, turn: TurnStatus) -> None:
        if not turn.state.game_started or not turn.state.players:
            raise IllegalAction("Game has not started")


@dataclass(frozen=True, slots=True)
class PhaseValidator(TurnValidator):
    """Validates the current turn phase for a given action.

    `messages` maps a disallowed phase to the text shown to the player; anything
    else gets a generic message naming the phase.
    """

    allowed_phases: frozenset[TurnPhase]
    messages: dict[TurnPhase, str] = field(default_factory=dict)

    def validate(self, *, ctx: ValidationContext, turn: TurnStatus) -> None:
        if turn.phase in self.allowed_phases:
            return
        message = self.messages.get(turn.phase)
        if message is None:
            allowed = ",".join(sorted(p.value for p in self.allowed_phases))
            message = f"Action '{ctx.action}' not allowed in phase '{turn.phase.value}' (allowed: {allowed})"
        raise IllegalAction(message)


@dataclass(frozen=True, slots=True)
class LatchValidator(TurnValidator):
    """Reject (never queue) requests that arrive while another action is in flight."""

    def validate(self, *, ctx: ValidationContext, turn: TurnStatus) -> None:
        if turn.is_processing_turn:
            raise IllegalAction("Please wait, the previous action is still being processed")


@dataclass(frozen=True, slots=True)
class SingleRollValidator(TurnValidator):
    def validate(self, *, ctx: ValidationContext, turn: TurnStatus) -> None:
        if turn.has_rolled:
            raise IllegalAction("You already rolled this turn")


@dataclass(frozen=True, slots=True)
class CurrentSpaceValidator(TurnValidator):
    """Only the space under the current player's token can be clicked."""

    def validate(self, *, ctx: ValidationContext, turn: TurnStatus) -> None:
        if not turn.can_interact_with_space:
            raise IllegalAction("Roll the dice first")
        player = turn.state.current_player
        if player is None:
            raise IllegalAction("Game has not started")
        if ctx.space_id is None or not 0 <= ctx.space_id < turn.state.track_length:
            raise IllegalAction("That space is not on the board")
        if ctx.space_id != player.position:
            raise IllegalAction(f"You can only interact with your current space ({player.position})")


@dataclass(frozen=True, slots=True)
class PromptValidator(TurnValidator):
    """Resolve requests must match what was drawn (a question or an event card)."""

    kind: PromptKind

    def validate(self, *, ctx: ValidationContext, turn: TurnStatus) -> None:
        if turn.prompt != self.kind:
            raise IllegalAction(f"There is no {self.kind} to resolve")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[TurnValidator, ...]

    def validate(self, *, ctx: ValidationContext, turn: TurnStatus) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, turn=turn)


_ROLL_MESSAGES = {
    TurnPhase.rolling: "The dice is already rolling",
    TurnPhase.rolled: "The dice is already rolling",
    TurnPhase.space_interaction_allowed: "You already rolled this turn",
    TurnPhase.resolving: "Finish the current question or event first",
    TurnPhase.feedback: "Wait for the turn to finish",
    TurnPhase.turn_complete: "Wait for the turn to finish",
    TurnPhase.idle: "Game has not started",
}

_CLICK_MESSAGES = {
    TurnPhase.awaiting_roll: "Roll the dice first",
    TurnPhase.rolling: "Wait for the dice to stop",
    TurnPhase.rolled: "Wait for the dice to stop",
    TurnPhase.resolving: "Finish the current question or event first",
    TurnPhase.feedback: "Wait for the turn to finish",
    TurnPhase.turn_complete: "Wait for the turn to finish",
}

_RESOLVE_MESSAGES = {
    TurnPhase.awaiting_roll: "Roll the dice first",
    TurnPhase.rolling: "Wait for the dice to stop",
    TurnPhase.space_interaction_allowed: "Click your space first",
    TurnPhase.feedback: "This turn was already resolved",
    TurnPhase.turn_complete: "This turn was already resolved",
}

_COMMON = (CompletedGameValidator(), StartedGameValidator())

DEFAULT_ACTION_PIPELINES: dict[str, ValidatorPipeline] = {
    "roll": ValidatorPipeline(
        validators=(
            *_COMMON,
            PhaseValidator(allowed_phases=frozenset({TurnPhase.awaiting_roll}), messages=_ROLL_MESSAGES),
            LatchValidator(),
            SingleRollValidator(),
        )
    ),
    "click": ValidatorPipeline(
        validators=(
            *_COMMON,
            PhaseValidator(allowed_phases=frozenset({TurnPhase.space_interaction_allowed}), messages=_CLICK_MESSAGES),
            LatchValidator(),
            CurrentSpaceValidator(),
        )
    ),
    "answer": ValidatorPipeline(
        validators=(
            *_COMMON,
            PhaseValidator(allowed_phases=frozenset({TurnPhase.resolving}), messages=_RESOLVE_MESSAGES),
            LatchValidator(),
            PromptValidator(kind="question"),
        )
    ),
    "event": ValidatorPipeline(
        validators=(
            *_COMMON,
            PhaseValidator(allowed_phases=frozenset({TurnPhase.resolving}), messages=_RESOLVE_MESSAGES),
            LatchValidator(),
            PromptValidator(kind="event"),
        )
    ),
    "end_turn": ValidatorPipeline(
        validators=(
            *_COMMON,
            PhaseValidator(allowed_phases=frozenset({TurnPhase.space_interaction_allowed}), messages=_CLICK_MESSAGES),
            LatchValidator(),
        )
    ),
    "end_game": ValidatorPipeline(validators=_COMMON),
}


def pipeline_for_action(action: str) -> ValidatorPipeline:
    pipe = DEFAULT_ACTION_PIPELINES.get(action)
    if pipe is None:
        raise ValueError(f"Unknown action: {action}")
    return pipe
