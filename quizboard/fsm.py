from __future__ import annotations

from statemachine import State, StateMachine

from quizboard.api.models import TurnPhase


class TurnFSM(StateMachine):
    """Phases of the active player's turn.

    The machine only guards ordering; the TurnController issues store
    transitions and decides between branches (six, reroll, hand off).
    """

    idle = State(TurnPhase.idle.value, value=TurnPhase.idle.value, initial=True)
    awaiting_roll = State(TurnPhase.awaiting_roll.value, value=TurnPhase.awaiting_roll.value)
    rolling = State(TurnPhase.rolling.value, value=TurnPhase.rolling.value)
    rolled = State(TurnPhase.rolled.value, value=TurnPhase.rolled.value)
    space_interaction_allowed = State(
        TurnPhase.space_interaction_allowed.value,
        value=TurnPhase.space_interaction_allowed.value,
    )
    resolving = State(TurnPhase.resolving.value, value=TurnPhase.resolving.value)
    feedback = State(TurnPhase.feedback.value, value=TurnPhase.feedback.value)
    turn_complete = State(TurnPhase.turn_complete.value, value=TurnPhase.turn_complete.value)
    game_over = State(TurnPhase.game_over.value, value=TurnPhase.game_over.value, final=True)

    start_turn = idle.to(awaiting_roll)
    roll = awaiting_roll.to(rolling)
    roll_committed = rolling.to(rolled)
    extra_roll = rolled.to(awaiting_roll)
    allow_interaction = rolled.to(space_interaction_allowed)
    interact = space_interaction_allowed.to(resolving)
    end_turn = space_interaction_allowed.to(turn_complete)
    show_feedback = resolving.to(feedback)
    complete = feedback.to(turn_complete)
    roll_again = turn_complete.to(awaiting_roll)
    hand_off = turn_complete.to(idle)
    finish = (
        idle.to(game_over)
        | awaiting_roll.to(game_over)
        | rolling.to(game_over)
        | rolled.to(game_over)
        | space_interaction_allowed.to(game_over)
        | resolving.to(game_over)
        | feedback.to(game_over)
        | turn_complete.to(game_over)
    )

    def __init__(self, phase: TurnPhase = TurnPhase.idle):
        super().__init__(start_value=phase.value)

    @property
    def phase(self) -> TurnPhase:
        return TurnPhase(str(self.current_state.value))
