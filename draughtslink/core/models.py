"""
Boundary layer data model(s).

The session hands these to the (excluded) UI layer and uses them to build the SYNC message.
Decouples what crosses the boundary from the Board/Piece/Move objects of the domain layer.
"""

from dataclasses import dataclass, field
from typing import Optional

# Type aliases to make GameModel easier to read
BoardTokens = list[list[str]]
Coordinates = tuple[int, int]


@dataclass
class GameModel:
    """Transport-safe snapshot of a draughts game."""

    board: BoardTokens
    side_to_move: str
    status: str
    forced_continuation: Optional[Coordinates] = None
    moves: list[str] = field(default_factory=list)
