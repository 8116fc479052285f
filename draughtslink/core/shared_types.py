"""
Type definitions used across layers
"""

from __future__ import annotations

from enum import StrEnum


class Status(StrEnum):
    IN_PROGRESS = "in progress"
    FIRST_WINS = "first wins"
    SECOND_WINS = "second wins"
    DRAW = "draw"


# --- Values double as the side letters used in board tokens. "W" moves up the board (towards row 0), "B" moves down.
class Side(StrEnum):
    FIRST = "W"
    SECOND = "B"

    @property
    def opponent(self) -> Side:
        return Side.SECOND if self == Side.FIRST else Side.FIRST


class Rank(StrEnum):
    MAN = "man"
    KING = "king"


# Status reached when the given side wins
WIN_STATUS: dict[Side, Status] = {
    Side.FIRST: Status.FIRST_WINS,
    Side.SECOND: Status.SECOND_WINS,
}
