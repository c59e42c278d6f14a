from __future__ import annotations

from quizboard.api.models import GameState, Player


def current_turn_player(*, state: GameState) -> Player:
    """Return the player whose turn it is."""

    player = state.current_player
    if player is None:
        raise ValueError("No players")
    return player


def retreat_position(player: Player) -> int:
    """Where a wrong answer sends the player.

    Without a prior checkpoint (history of length <= 1) the player goes back to
    the start; otherwise to the position held before the last move.
    """

    if len(player.move_history) <= 1:
        return player.starting_position
    return player.previous_position
