from __future__ import annotations

import os
import random
from collections.abc import Callable, Generator, Iterable
from pathlib import Path
from uuid import uuid4

import pytest

from quizboard.api.models import Difficulty, Player
from quizboard.config import Settings
from quizboard.core.events import GameEvent
from quizboard.dice import DiceRandomizer
from quizboard.scheduling import ManualScheduler
from quizboard.store import GameStore
from quizboard.transitions import new_game_state
from quizboard.turn_processing.controller import TurnController

TOKENS = ("🦁", "🐯", "🐘", "🦊")


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Pick up QUIZBOARD_* timing and REDIS_URL overrides from a local `.env`.

    Skipped under CI unless QUIZBOARD_LOAD_DOTENV_FOR_TESTS=1.
    """

    if os.environ.get("CI") and os.environ.get("QUIZBOARD_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


@pytest.fixture(scope="session", autouse=True)
def _init_assets_from_test_fixtures() -> None:
    """Every test draws from the small banks in `tests/assets`, never the shipped ones.

    Strict mode is on, so a broken fixture CSV fails loudly instead of loading the built-in bank.
    """

    os.environ["QUIZBOARD_STRICT_ASSETS"] = "1"

    from quizboard.assets.singleton import init_assets, reset_assets_for_tests

    reset_assets_for_tests()

    # Point the bank loader at a fake project root: tests/ contains an assets/ dir.
    test_root = Path(__file__).resolve().parent
    init_assets(project_root=test_root)


def scripted_source(values: list[int], *, default: int = 2) -> Callable[[], int]:
    """Dice source that returns queued faces in order, then `default` forever."""

    def _next() -> int:
        return values.pop(0) if values else default

    return _next


def make_players(n: int) -> list[Player]:
    return [Player(id=i, name=f"Player {i}", token=TOKENS[i - 1]) for i in range(1, n + 1)]


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def rolls() -> list[int]:
    """Queue of dice faces; tests append the faces they want rolled next."""

    return []


@pytest.fixture()
def settings() -> Settings:
    return Settings()


@pytest.fixture()
def make_controller(
    scheduler: ManualScheduler,
    rolls: list[int],
    settings: Settings,
) -> Callable[..., tuple[TurnController, list[GameEvent]]]:
    """Build a started TurnController on a ManualScheduler with scripted dice.

    Returns the controller and the list its feed events are appended to.
    """

    from quizboard.assets.singleton import get_assets

    def _make(
        *,
        players: int = 2,
        difficulty: Difficulty = Difficulty.beginner,
        winning_score: int = 100,
        settings_override: Settings | None = None,
        seed: int = 0,
        roster: Iterable[Player] | None = None,
    ) -> tuple[TurnController, list[GameEvent]]:
        events: list[GameEvent] = []
        cfg = settings_override or settings
        rng = random.Random(seed)
        state = new_game_state(game_id=uuid4(), difficulty=difficulty, winning_score=winning_score)
        controller = TurnController(
            store=GameStore(state),
            banks=get_assets(),
            scheduler=scheduler,
            settings=cfg,
            dice=DiceRandomizer(rng=rng, source=scripted_source(rolls), reveal_frames=cfg.reveal_frames),
            rng=rng,
            on_event=events.append,
        )
        controller.start_game(list(roster) if roster is not None else make_players(players))
        return controller, events

    return _make


@pytest.fixture()
def client_and_redis(scheduler: ManualScheduler, rolls: list[int], settings: Settings):
    """FastAPI TestClient plus the fakeredis instance behind it.

    The session registry runs on the test's ManualScheduler and scripted dice,
    so tests drive timers with `scheduler.advance(...)` and pick faces via `rolls`.
    """

    import fakeredis
    from fastapi.testclient import TestClient

    from quizboard.api.deps import get_redis, get_registry
    from quizboard.main import app
    from quizboard.sessions import SessionRegistry

    r = fakeredis.FakeRedis(decode_responses=True)
    registry = SessionRegistry(
        r=r,
        scheduler=scheduler,
        settings=settings,
        rng_factory=lambda: random.Random(0),
        dice_factory=lambda rng: DiceRandomizer(rng=rng, source=scripted_source(rolls)),
    )

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    app.dependency_overrides[get_registry] = lambda: registry
    with TestClient(app) as c:
        yield c, r
    registry.close_all()
    app.dependency_overrides.clear()
