from __future__ import annotations

import csv
import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from quizboard.api.models import Difficulty, EventCard, EventEffect, Question


class AssetLoadError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class GameBanks:
    """Question and event banks per tier.

    Read-only and deterministic: rows keep their file order and nothing here
    draws at random. Callers pick from the returned sequences.
    """

    questions: dict[Difficulty, tuple[Question, ...]]
    events: dict[Difficulty, tuple[EventCard, ...]]

    def questions_for(self, tier: Difficulty | str) -> tuple[Question, ...]:
        return self.questions.get(Difficulty(tier), ())

    def events_for(self, tier: Difficulty | str) -> tuple[EventCard, ...]:
        return self.events.get(Difficulty(tier), ())

    def question(self, tier: Difficulty | str, question_id: int) -> Question | None:
        return next((q for q in self.questions_for(tier) if q.id == question_id), None)


def _read_csv_rows(path: Path) -> list[dict[str, str]]:
    try:
        f = path.open(encoding="utf-8-sig", newline="")
    except FileNotFoundError as e:
        raise AssetLoadError(f"Asset file not found: {path}") from e

    with f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            raise AssetLoadError(f"Empty CSV: {path}")
        reader.fieldnames = [name.strip().casefold() for name in reader.fieldnames]

        rows: list[dict[str, str]] = []
        for row in reader:
            cleaned = {k: (v or "").strip() for k, v in row.items() if k is not None}
            if any(cleaned.values()):
                rows.append(cleaned)
    return rows


def _require_columns(path: Path, rows: list[dict[str, str]], columns: list[str]) -> None:
    if not rows:
        return
    missing = [c for c in columns if c not in rows[0]]
    if missing:
        raise AssetLoadError(f"Missing columns in {path}: {missing}")


def _parse_tier(path: Path, raw: str) -> Difficulty:
    try:
        return Difficulty(raw.casefold())
    except ValueError as e:
        raise AssetLoadError(f"Unknown tier {raw!r} in {path}") from e


QUESTION_COLUMNS = ["id", "tier", "text", "option_1", "option_2", "option_3", "option_4", "correct_answer"]
EVENT_COLUMNS = ["id", "tier", "description", "effect", "value"]


def load_question_csv(path: Path) -> dict[Difficulty, tuple[Question, ...]]:
    rows = _read_csv_rows(path)
    _require_columns(path, rows, QUESTION_COLUMNS)

    out: dict[Difficulty, list[Question]] = {}
    for row in rows:
        tier = _parse_tier(path, row["tier"])
        try:
            q = Question(
                id=int(row["id"]),
                text=row["text"],
                options=[row[f"option_{i}"] for i in range(1, 5)],
                correct_answer=row["correct_answer"],
                explanation=row.get("explanation") or None,
                points=int(row.get("points") or 1),
                category=row.get("category") or None,
            )
        except (ValueError, ValidationError) as e:
            raise AssetLoadError(f"Bad question row {row.get('id')!r} in {path}: {e}") from e

        bucket = out.setdefault(tier, [])
        if any(existing.id == q.id for existing in bucket):
            raise AssetLoadError(f"Duplicate question id {q.id} for tier {tier.value} in {path}")
        bucket.append(q)

    return {tier: tuple(qs) for tier, qs in out.items()}


def load_event_csv(path: Path) -> dict[Difficulty, tuple[EventCard, ...]]:
    rows = _read_csv_rows(path)
    _require_columns(path, rows, EVENT_COLUMNS)

    out: dict[Difficulty, list[EventCard]] = {}
    for row in rows:
        tier = _parse_tier(path, row["tier"])
        try:
            ev = EventCard(
                id=int(row["id"]),
                description=row["description"],
                effect=EventEffect(row["effect"].casefold()),
                value=int(row["value"] or 0),
            )
        except (ValueError, ValidationError) as e:
            raise AssetLoadError(f"Bad event row {row.get('id')!r} in {path}: {e}") from e

        bucket = out.setdefault(tier, [])
        if any(existing.id == ev.id for existing in bucket):
            raise AssetLoadError(f"Duplicate event id {ev.id} for tier {tier.value} in {path}")
        bucket.append(ev)

    return {tier: tuple(evs) for tier, evs in out.items()}


def _fallback_banks() -> GameBanks:
    """Tiny built-in bank used when the CSV files are missing."""

    questions = (
        Question(
            id=1,
            text="What is opportunity cost?",
            options=[
                "The actual cost of a product",
                "The next best alternative given up when making a choice",
                "The total cost of all options",
                "The market price of a good",
            ],
            correct_answer="The next best alternative given up when making a choice",
            explanation="Opportunity cost is the value of the next best alternative.",
            category="Opportunity Cost",
        ),
        Question(
            id=2,
            text="What does scarcity mean in economics?",
            options=[
                "Goods are expensive",
                "Unlimited wants meet limited resources",
                "Prices always rise",
                "Shops run out of stock",
            ],
            correct_answer="Unlimited wants meet limited resources",
            category="Scarcity",
        ),
    )
    events = (
        EventCard(id=1, description="Good economic decision! Move forward 3 spaces.", effect=EventEffect.move, value=3),
        EventCard(id=2, description="Market crash! Skip your next turn.", effect=EventEffect.skip, value=1),
        EventCard(id=3, description="Economic boom! Roll the dice again.", effect=EventEffect.reroll, value=1),
    )
    return GameBanks(
        questions={tier: questions for tier in Difficulty},
        events={tier: events for tier in Difficulty},
    )


def load_game_banks(*, root: Path) -> GameBanks:
    assets_dir = root / "assets"

    # Missing files fall back to the built-in bank unless QUIZBOARD_STRICT_ASSETS=1.
    strict = os.getenv("QUIZBOARD_STRICT_ASSETS", "").strip().lower() in {"1", "true", "yes"}

    try:
        return GameBanks(
            questions=load_question_csv(assets_dir / "questions.csv"),
            events=load_event_csv(assets_dir / "events.csv"),
        )
    except AssetLoadError:
        if strict:
            raise
        # Malformed files are always an error; only absence falls back.
        if (assets_dir / "questions.csv").exists() and (assets_dir / "events.csv").exists():
            raise
        return _fallback_banks()
