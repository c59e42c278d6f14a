from __future__ import annotations

import pytest

from quizboard.api.models import Difficulty, SpaceType
from quizboard.board import build_track, clamp_position, points_for_index


@pytest.mark.parametrize(
    ("difficulty", "length"),
    [(Difficulty.beginner, 20), (Difficulty.intermediate, 50), (Difficulty.expert, 100)],
)
def test_track_shape(difficulty: Difficulty, length: int) -> None:
    track = build_track(difficulty)

    assert len(track) == length
    assert [s.id for s in track] == list(range(length))
    assert track[0].type == SpaceType.start
    assert track[-1].type == SpaceType.finish
    assert all(s.type == SpaceType.question for s in track[1:-1])
    assert track[0].points is None and track[-1].points is None


def test_question_points() -> None:
    assert points_for_index(15) == 5
    assert points_for_index(30) == 5
    assert points_for_index(7) == 3
    assert points_for_index(14) == 3
    assert points_for_index(8) == 1

    track = build_track(Difficulty.intermediate)
    assert track[15].points == 5
    assert track[21].points == 3
    assert track[22].points == 1


def test_event_spaces_only_when_requested() -> None:
    track = build_track(Difficulty.beginner, event_every=3)

    assert {s.id for s in track if s.type == SpaceType.event} == {3, 6, 9, 12, 15, 18}
    assert track[-1].type == SpaceType.finish


def test_clamp_position() -> None:
    assert clamp_position(-4, track_length=20) == 0
    assert clamp_position(25, track_length=20) == 19
    assert clamp_position(7, track_length=20) == 7
