from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

FACES = 6
MAX_ATTEMPTS = 3
FALLBACK_VALUE = 1
DEFAULT_REVEAL_FRAMES = 10


@dataclass(frozen=True, slots=True)
class RollResult:
    """A committed roll.

    - `value`: the face the player moves by. Fixed before any frame is shown.
    - `frames`: faces to flash during the reveal; the last one is `value`.
    - `warning`: set when the source misbehaved and the fallback face was used.
    """

    value: int
    frames: tuple[int, ...]
    warning: str | None = None


def is_valid_face(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= FACES


class DiceRandomizer:
    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        source: Callable[[], int] | None = None,
        reveal_frames: int = DEFAULT_REVEAL_FRAMES,
    ) -> None:
        self._rng = rng or random.Random()
        self._source = source or (lambda: self._rng.randint(1, FACES))
        self.reveal_frames = reveal_frames

    def _draw(self) -> tuple[int, str | None]:
        bad: list[object] = []
        for _ in range(MAX_ATTEMPTS):
            value = self._source()
            if is_valid_face(value):
                return value, None
            bad.append(value)

        warning = f"Dice misfired ({bad!r}); using {FALLBACK_VALUE}"
        logger.warning("Dice source returned %d invalid values %r, falling back to %d", MAX_ATTEMPTS, bad, FALLBACK_VALUE)
        return FALLBACK_VALUE, warning

    def roll(self) -> int:
        value, _ = self._draw()
        return value

    def roll_with_reveal(self) -> RollResult:
        value, warning = self._draw()
        # Intermediate faces are cosmetic and drawn after the commit.
        shown = [self._rng.randint(1, FACES) for _ in range(max(self.reveal_frames - 1, 0))]
        shown.append(value)
        return RollResult(value=value, frames=tuple(shown), warning=warning)
