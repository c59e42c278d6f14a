from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator


class Difficulty(StrEnum):
    beginner = "beginner"
    intermediate = "intermediate"
    expert = "expert"


TRACK_LENGTHS: dict[Difficulty, int] = {
    Difficulty.beginner: 20,
    Difficulty.intermediate: 50,
    Difficulty.expert: 100,
}


class SpaceType(StrEnum):
    start = "start"
    finish = "finish"
    question = "question"
    # Not part of the standard tier tracks; custom tracks may place them.
    event = "event"


class EventEffect(StrEnum):
    move = "move"
    reroll = "reroll"
    skip = "skip"


class TurnPhase(StrEnum):
    idle = "idle"
    awaiting_roll = "awaiting_roll"
    rolling = "rolling"
    rolled = "rolled"
    space_interaction_allowed = "space_interaction_allowed"
    resolving = "resolving"
    feedback = "feedback"
    turn_complete = "turn_complete"
    game_over = "game_over"


class Space(BaseModel):
    id: int = Field(..., ge=0)
    type: SpaceType
    # Only question spaces carry points (1, 3 or 5).
    points: int | None = None


class Question(BaseModel):
    id: int
    text: str
    options: list[str]
    correct_answer: str
    explanation: str | None = None
    points: int = 1
    category: str | None = None

    @model_validator(mode="after")
    def _check_options(self) -> "Question":
        if len(self.options) != 4:
            raise ValueError("a question needs exactly 4 options")
        if len(set(self.options)) != 4:
            raise ValueError("question options must be distinct")
        if self.correct_answer not in self.options:
            raise ValueError("correct_answer must be one of the options")
        return self


class EventCard(BaseModel):
    id: int
    description: str
    effect: EventEffect
    # Magnitude only matters for `move`.
    value: int = 0


class Player(BaseModel):
    id: int = Field(..., ge=1)
    name: str
    token: str
    position: int = Field(0, ge=0)
    previous_position: int = Field(0, ge=0)
    starting_position: int = Field(0, ge=0)
    score: int = Field(0, ge=0)
    is_skipping_turn: bool = False

    # Append-only; first element is the starting position.
    move_history: list[int] = Field(default_factory=lambda: [0])


class GameState(BaseModel):
    game_id: UUID
    difficulty: Difficulty = Difficulty.beginner
    winning_score: int = Field(100, ge=1)
    created_at: datetime
    last_updated_at: datetime

    players: list[Player] = Field(default_factory=list)
    current_player_index: int = Field(0, ge=0)

    # Stored as a sorted list, rebuilt as a set on load.
    used_question_ids: set[int] = Field(default_factory=set)

    game_started: bool = False
    game_ended: bool = False
    winner: Player | None = None

    current_question: Question | None = None
    current_event: EventCard | None = None

    @field_serializer("used_question_ids")
    def _dump_used_question_ids(self, value: set[int]) -> list[int]:
        return sorted(value)

    @model_validator(mode="after")
    def _check_current_player_index(self) -> "GameState":
        if self.players and self.current_player_index >= len(self.players):
            raise ValueError("current_player_index out of range")
        return self

    @property
    def track_length(self) -> int:
        return TRACK_LENGTHS[self.difficulty]

    @property
    def current_player(self) -> Player | None:
        if not self.players:
            return None
        return self.players[self.current_player_index]


class Commentary(BaseModel):
    message: str
    kind: Literal["success", "error", "info", "warning"] = "info"


class TurnView(BaseModel):
    """Everything a UI needs to render one game: canonical state plus turn flags."""

    state: GameState
    phase: TurnPhase
    has_rolled: bool
    can_interact_with_space: bool
    is_processing_turn: bool
    last_roll: int | None = None
    reveal_frames: list[int] = Field(default_factory=list)
    commentary: Commentary | None = None
    current_player_id: int | None = None


class RosterEntry(BaseModel):
    name: str = Field(..., min_length=1, max_length=40)
    token: str = Field(..., min_length=1, max_length=16)

    @field_validator("name", "token")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class GameCreateRequest(BaseModel):
    difficulty: Difficulty = Difficulty.beginner
    players: list[RosterEntry] = Field(default_factory=list)


class RestartRequest(BaseModel):
    players: list[RosterEntry] = Field(default_factory=list)
    difficulty: Difficulty | None = None


class AnswerRequest(BaseModel):
    answer: str


class GameListResponse(BaseModel):
    games: list[GameState]
