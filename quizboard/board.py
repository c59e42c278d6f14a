from __future__ import annotations

from quizboard.api.models import TRACK_LENGTHS, Difficulty, Space, SpaceType


def points_for_index(index: int) -> int:
    if index % 15 == 0:
        return 5
    if index % 7 == 0:
        return 3
    return 1


def build_track(difficulty: Difficulty | str, *, event_every: int = 0) -> list[Space]:
    """Build the linear track for a tier.

    Index 0 is the start, the last index is the finish and every space in
    between is a question space. `event_every` turns every n-th inner space into
    an event space; the standard tracks use 0 (none).
    """

    length = TRACK_LENGTHS[Difficulty(difficulty)]
    spaces: list[Space] = []
    for index in range(length):
        if index == 0:
            spaces.append(Space(id=index, type=SpaceType.start))
        elif index == length - 1:
            spaces.append(Space(id=index, type=SpaceType.finish))
        elif event_every and index % event_every == 0:
            spaces.append(Space(id=index, type=SpaceType.event))
        else:
            spaces.append(Space(id=index, type=SpaceType.question, points=points_for_index(index)))
    return spaces


def clamp_position(position: int, *, track_length: int) -> int:
    return min(track_length - 1, max(0, position))
