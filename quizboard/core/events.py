from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

EventType = Literal[
    "GAME_STARTED",
    "TURN_STARTED",
    "TURN_SKIPPED",
    "DICE_ROLLED",
    "QUESTION_DRAWN",
    "ANSWER_CHECKED",
    "EVENT_DRAWN",
    "EVENT_APPLIED",
    "TURN_ENDED",
    "GAME_WON",
    "GAME_ENDED",
]


@dataclass(frozen=True, slots=True)
class GameEvent:
    type: EventType
    game_id: str
    player_id: int | None
    message: str
    payload: dict[str, Any]
    ts: datetime

    @staticmethod
    def now(
        *,
        type: EventType,
        game_id: str,
        player_id: int | None = None,
        message: str = "",
        payload: dict[str, Any] | None = None,
    ) -> "GameEvent":
        return GameEvent(
            type=type,
            game_id=game_id,
            player_id=player_id,
            message=message,
            payload=payload or {},
            ts=datetime.now(timezone.utc),
        )

    def to_fields(self) -> dict[str, str]:
        fields = {
            "type": self.type,
            "game_id": self.game_id,
            "player_id": "" if self.player_id is None else str(self.player_id),
            "message": self.message,
            "ts": self.ts.isoformat(),
        }
        for k, v in self.payload.items():
            fields.setdefault(str(k), str(v))
        return fields
