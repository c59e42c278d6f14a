from __future__ import annotations

import logging
from collections.abc import Callable

from quizboard.api.models import GameState
from quizboard.transitions import Transition, apply_transition

logger = logging.getLogger(__name__)

Observer = Callable[[GameState, Transition], None]


class GameStore:
    """Owner of the canonical GameState.

    Contract:
      - `dispatch` is the only way to change the state; transitions apply one at a time.
      - observers see every new snapshot, in subscription order, after it is committed.
    """

    def __init__(self, state: GameState, *, observers: tuple[Observer, ...] = ()) -> None:
        self._state = state
        self._observers: list[Observer] = list(observers)

    @property
    def state(self) -> GameState:
        return self._state

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    def dispatch(self, transition: Transition) -> GameState:
        new_state = apply_transition(self._state, transition)
        self._state = new_state
        logger.debug("game %s: applied %r", new_state.game_id, transition)
        for observer in self._observers:
            observer(new_state, transition)
        return new_state
