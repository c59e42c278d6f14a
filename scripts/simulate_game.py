"""Play a full game headlessly and print the commentary.

Contract
- Inputs: the banks under `<repo>/assets/`, a roster size, a tier and a seed.
- Players answer correctly with probability `--accuracy`; event cards are
  always applied.
- Timers run on a virtual clock, so the game finishes instantly.
- Nothing is persisted.

Usage:
    uv run python scripts/simulate_game.py --players 3 --difficulty intermediate --seed 7

Same seed, same game.
"""

from __future__ import annotations

import argparse
import logging
import random
from pathlib import Path
from uuid import uuid4

from quizboard.api.models import Difficulty, Player, SpaceType, TurnPhase
from quizboard.assets.registry import load_game_banks
from quizboard.config import get_settings
from quizboard.scheduling import ManualScheduler
from quizboard.store import GameStore
from quizboard.transitions import new_game_state
from quizboard.turn_processing.controller import TurnController

TOKENS = ("🦁", "🐯", "🐘", "🦊")


def _pick_answer(controller: TurnController, *, rng: random.Random, accuracy: float) -> str:
    question = controller.state.current_question
    assert question is not None
    if rng.random() < accuracy:
        return question.correct_answer
    wrong = [o for o in question.options if o != question.correct_answer]
    return rng.choice(wrong)


def simulate(*, players: int, difficulty: Difficulty, seed: int, accuracy: float, max_turns: int) -> TurnController:
    rng = random.Random(seed)
    scheduler = ManualScheduler()
    settings = get_settings()
    banks = load_game_banks(root=Path(__file__).resolve().parents[1])

    state = new_game_state(game_id=uuid4(), difficulty=difficulty, winning_score=settings.winning_score)
    controller = TurnController(
        store=GameStore(state),
        banks=banks,
        scheduler=scheduler,
        settings=settings,
        rng=random.Random(seed),
        on_event=lambda e: print(f"[{e.type}] {e.message}") if e.message else None,
    )

    roster = [Player(id=i, name=f"Player {i}", token=TOKENS[i - 1]) for i in range(1, players + 1)]
    controller.start_game(roster)

    for _ in range(max_turns):
        if controller.phase == TurnPhase.game_over:
            break

        # Let the latch release between requests.
        scheduler.advance(settings.latch_release_seconds)
        controller.request_roll()
        controller.close_dialog()
        if controller.phase != TurnPhase.space_interaction_allowed:
            continue

        scheduler.advance(settings.latch_release_seconds)
        player = controller.state.current_player
        assert player is not None
        space = controller.track[player.position]
        if space.type == SpaceType.start:
            controller.end_turn()
            continue

        controller.click_space(player.position)
        if controller.phase != TurnPhase.resolving:
            continue
        scheduler.advance(settings.latch_release_seconds)
        if space.type != SpaceType.event:
            controller.submit_answer(_pick_answer(controller, rng=rng, accuracy=accuracy))
        else:
            controller.apply_event()
        if controller.phase == TurnPhase.feedback:
            controller.close_dialog()

    controller.close()
    return controller


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--players", type=int, default=2, choices=range(1, 5))
    parser.add_argument("--difficulty", type=Difficulty, default=Difficulty.beginner, choices=list(Difficulty))
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--accuracy", type=float, default=0.7)
    parser.add_argument("--max-turns", type=int, default=2_000)
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING)
    controller = simulate(
        players=args.players,
        difficulty=args.difficulty,
        seed=args.seed,
        accuracy=args.accuracy,
        max_turns=args.max_turns,
    )

    print()
    for p in sorted(controller.state.players, key=lambda p: p.score, reverse=True):
        print(f"{p.token} {p.name}: {p.score} points, position {p.position}")
    winner = controller.state.winner
    print(f"Winner: {winner.name}" if winner else "No winner")


if __name__ == "__main__":
    main()
