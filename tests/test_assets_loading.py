from __future__ import annotations

from pathlib import Path

import pytest

from quizboard.api.models import Difficulty, EventEffect
from quizboard.assets.registry import AssetLoadError, load_game_banks


def test_banks_load_per_tier() -> None:
    root = Path(__file__).resolve().parent
    banks = load_game_banks(root=root)

    assert [q.id for q in banks.questions_for(Difficulty.beginner)] == [1, 2, 3]
    assert [q.id for q in banks.questions_for("intermediate")] == [11, 12]
    assert len(banks.questions_for(Difficulty.expert)) == 1

    q = banks.question(Difficulty.beginner, 3)
    assert q is not None
    assert q.correct_answer == "It rises"
    assert q.correct_answer in q.options
    assert q.category == "Supply and Demand"

    # Blank explanation cells load as None.
    assert banks.question(Difficulty.beginner, 2).explanation is None

    effects = {e.effect for e in banks.events_for(Difficulty.beginner)}
    assert effects == {EventEffect.move, EventEffect.skip, EventEffect.reroll}
    assert [e.value for e in banks.events_for(Difficulty.beginner) if e.effect == EventEffect.move] == [3, -2]


def test_lookups_are_deterministic() -> None:
    root = Path(__file__).resolve().parent
    a = load_game_banks(root=root)
    b = load_game_banks(root=root)
    assert a.questions_for(Difficulty.beginner) == b.questions_for(Difficulty.beginner)


def test_missing_files_fall_back_unless_strict(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("QUIZBOARD_STRICT_ASSETS", "1")
    with pytest.raises(AssetLoadError):
        load_game_banks(root=tmp_path)

    monkeypatch.delenv("QUIZBOARD_STRICT_ASSETS")
    banks = load_game_banks(root=tmp_path)
    for tier in Difficulty:
        assert banks.questions_for(tier)
        assert banks.events_for(tier)


def _write_assets(root: Path, *, questions: str, events: str) -> None:
    (root / "assets").mkdir()
    (root / "assets" / "questions.csv").write_text(questions, encoding="utf-8")
    (root / "assets" / "events.csv").write_text(events, encoding="utf-8")


_EVENTS = "id,tier,description,effect,value\n1,beginner,Go,move,2\n"
_HEADER = "id,tier,text,option_1,option_2,option_3,option_4,correct_answer\n"


def test_correct_answer_must_be_an_option(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("QUIZBOARD_STRICT_ASSETS", raising=False)
    _write_assets(tmp_path, questions=_HEADER + "1,beginner,Q?,a,b,c,d,e\n", events=_EVENTS)

    # Present but malformed files never fall back.
    with pytest.raises(AssetLoadError, match="Bad question row"):
        load_game_banks(root=tmp_path)


def test_duplicate_ids_within_tier_rejected(tmp_path: Path) -> None:
    _write_assets(
        tmp_path,
        questions=_HEADER + "1,beginner,Q?,a,b,c,d,a\n1,beginner,Q2?,a,b,c,d,b\n",
        events=_EVENTS,
    )
    with pytest.raises(AssetLoadError, match="Duplicate question id"):
        load_game_banks(root=tmp_path)


def test_unknown_tier_rejected(tmp_path: Path) -> None:
    _write_assets(tmp_path, questions=_HEADER + "1,legendary,Q?,a,b,c,d,a\n", events=_EVENTS)
    with pytest.raises(AssetLoadError, match="Unknown tier"):
        load_game_banks(root=tmp_path)


def test_unknown_event_effect_rejected(tmp_path: Path) -> None:
    _write_assets(
        tmp_path,
        questions=_HEADER + "1,beginner,Q?,a,b,c,d,a\n",
        events="id,tier,description,effect,value\n1,beginner,Teleport,warp,2\n",
    )
    with pytest.raises(AssetLoadError, match="Bad event row"):
        load_game_banks(root=tmp_path)


def test_quoted_fields_keep_embedded_newlines(tmp_path: Path) -> None:
    questions = (
        "id,tier,text,option_1,option_2,option_3,option_4,correct_answer,explanation\n"
        '1,beginner,Q?,a,b,c,d,a,"First line.\nSecond line."\n'
        "2,beginner,Q2?,a,b,c,d,b,\n"
    )
    _write_assets(tmp_path, questions=questions, events=_EVENTS)

    banks = load_game_banks(root=tmp_path)

    assert [q.id for q in banks.questions_for(Difficulty.beginner)] == [1, 2]
    assert banks.question(Difficulty.beginner, 1).explanation == "First line.\nSecond line."
