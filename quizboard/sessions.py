from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable, Sequence
from uuid import UUID, uuid4

import redis

from quizboard.api.models import Difficulty, GameState, Player, RosterEntry
from quizboard.assets.registry import GameBanks
from quizboard.assets.singleton import get_assets
from quizboard.config import Settings, get_settings
from quizboard.core.events import GameEvent
from quizboard.dice import DiceRandomizer
from quizboard.persistence import RedisPersistence, is_known_game
from quizboard.scheduling import AsyncioScheduler, Scheduler
from quizboard.store import GameStore
from quizboard.streams import Feed, publish_event
from quizboard.transitions import new_game_state
from quizboard.turn_processing.controller import TurnController, build_roster
from quizboard.websocket_hub import GameWebSocketHub, hub as default_hub

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Live games held by this process, keyed by game id.

    Each game gets its own GameStore (with a Redis snapshot observer) and
    TurnController. Games created by an earlier process are rebuilt from their
    last snapshot on first access and resume at the start of the current turn.
    """

    def __init__(
        self,
        *,
        r: redis.Redis,
        scheduler: Scheduler | None = None,
        settings: Settings | None = None,
        banks: Callable[[], GameBanks] = get_assets,
        rng_factory: Callable[[], random.Random] = random.Random,
        dice_factory: Callable[[random.Random], DiceRandomizer] | None = None,
        hub: GameWebSocketHub | None = None,
    ) -> None:
        self.r = r
        self.scheduler = scheduler or AsyncioScheduler()
        self.settings = settings or get_settings()
        self._banks = banks
        self._rng_factory = rng_factory
        self._dice_factory = dice_factory
        self._hub = hub or default_hub
        self._controllers: dict[UUID, TurnController] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def create(self, *, difficulty: Difficulty, entries: Sequence[RosterEntry]) -> TurnController:
        roster = build_roster(entries, max_players=self.settings.max_players)

        game_id = uuid4()
        state = new_game_state(game_id=game_id, difficulty=difficulty, winning_score=self.settings.winning_score)
        controller = self._build(state=state)
        controller.start_game(roster, difficulty=difficulty)
        return controller

    def get(self, game_id: UUID) -> TurnController | None:
        controller = self._controllers.get(game_id)
        if controller is not None:
            return controller

        if not is_known_game(r=self.r, game_id=game_id):
            return None
        # An unreadable snapshot comes back as a fresh, unstarted game that can be restarted.
        state = RedisPersistence(r=self.r, game_id=game_id).load_or_initial(winning_score=self.settings.winning_score)
        logger.info("game %s: restored from snapshot", game_id)
        return self._build(state=state)

    def restart(
        self,
        game_id: UUID,
        *,
        entries: Sequence[RosterEntry] = (),
        difficulty: Difficulty | None = None,
    ) -> TurnController | None:
        controller = self.get(game_id)
        if controller is None:
            return None

        players: Sequence[Player]
        if entries:
            players = build_roster(entries, max_players=self.settings.max_players)
        else:
            players = controller.state.players
        controller.start_game(players, difficulty=difficulty)
        return controller

    def close(self, game_id: UUID) -> None:
        controller = self._controllers.pop(game_id, None)
        if controller is not None:
            controller.close()

    def close_all(self) -> None:
        for game_id in list(self._controllers):
            self.close(game_id)

    def _build(self, *, state: GameState) -> TurnController:
        game_id = state.game_id
        store = GameStore(state, observers=(RedisPersistence(r=self.r, game_id=game_id),))
        rng = self._rng_factory()
        dice = self._dice_factory(rng) if self._dice_factory is not None else None
        feed = Feed(game_id=str(game_id))

        def on_event(event: GameEvent) -> None:
            publish_event(r=self.r, feed=feed, event=event)
            self._notify(event)

        controller = TurnController(
            store=store,
            banks=self._banks(),
            scheduler=self.scheduler,
            settings=self.settings,
            dice=dice,
            rng=rng,
            on_event=on_event,
        )
        self._controllers[game_id] = controller
        return controller

    def _notify(self, event: GameEvent) -> None:
        # Timer-driven steps fire outside any request; push them to sockets too.
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(
            self._hub.broadcast(event.game_id, {"type": "game_event", "game_id": event.game_id, "event": event.type})
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
