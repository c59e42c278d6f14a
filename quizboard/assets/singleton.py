from __future__ import annotations

from pathlib import Path

from quizboard.assets.registry import GameBanks, load_game_banks


_BANKS: GameBanks | None = None


def init_assets(*, project_root: Path) -> GameBanks:
    """Load `<project_root>/assets/{questions,events}.csv` for the whole process.

    The first call wins; later calls hand back the same banks whatever root they pass.
    """

    global _BANKS
    if _BANKS is None:
        _BANKS = load_game_banks(root=project_root)
    return _BANKS


def reset_assets_for_tests() -> None:
    global _BANKS
    _BANKS = None


def get_assets() -> GameBanks:
    if _BANKS is None:
        raise RuntimeError("Question banks are not loaded; the app startup hook calls init_assets()")
    return _BANKS
