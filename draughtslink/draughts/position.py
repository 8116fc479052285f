"""
A square on the board, addressed by (row, col).

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

# Draughts board used here is always 8x8.
BOARD_SIZE = 8


@dataclass(frozen=True, order=True)
class Position:
    row: int
    col: int

    @classmethod
    def from_notation(cls, notation: str) -> Position:
        """Two digits: '50' is row 5, column 0."""
        return cls(int(notation[0]), int(notation[1]))

    def to_notation(self) -> str:
        return f"{self.row}{self.col}"

    def is_within_bounds(self) -> bool:
        return (0 <= self.row < BOARD_SIZE) and (0 <= self.col < BOARD_SIZE)

    def is_dark(self) -> bool:
        """Only dark squares are ever played on"""
        return (self.row + self.col) % 2 == 1

    def step(self, direction: tuple[int, int], distance: int = 1) -> Position:
        """The square `distance` steps away along a direction. Might be off the board: check is_within_bounds()."""
        dr, dc = direction
        return Position(self.row + dr * distance, self.col + dc * distance)

    def as_tuple(self) -> tuple[int, int]:
        return (self.row, self.col)
