"""The Game board: an 8x8 grid of squares, each either empty or holding exactly one piece."""

from copy import deepcopy
from dataclasses import dataclass
from typing import Optional, Self

from draughtslink.core.exceptions import InvalidRequestError
from draughtslink.core.shared_types import Side
from draughtslink.draughts.pieces import Piece, to_token
from draughtslink.draughts.position import BOARD_SIZE, Position

Grid = list[list[Optional[Piece]]]

# Standard starting layout: Second ("B") on rows 0-2, First ("W") on rows 5-7, dark squares only.
STARTING_TOKENS: list[list[str]] = [
    [".", "B", ".", "B", ".", "B", ".", "B"],
    ["B", ".", "B", ".", "B", ".", "B", "."],
    [".", "B", ".", "B", ".", "B", ".", "B"],
    [".", ".", ".", ".", ".", ".", ".", "."],
    [".", ".", ".", ".", ".", ".", ".", "."],
    ["W", ".", "W", ".", "W", ".", "W", "."],
    [".", "W", ".", "W", ".", "W", ".", "W"],
    ["W", ".", "W", ".", "W", ".", "W", "."],
]


@dataclass
class Board:
    grid: Grid

    @classmethod
    def empty(cls) -> Self:
        return cls([[None] * BOARD_SIZE for _ in range(BOARD_SIZE)])

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_tokens(STARTING_TOKENS)

    @classmethod
    def from_tokens(cls, tokens: list[list[str]]) -> Self:
        """
        Construct a board from a grid of tokens, read row by row from row 0.

        ex. 'W' / 'B' are men, 'WK' / 'BK' kings and '.' (or '') an empty square.
        """
        if len(tokens) != BOARD_SIZE or any(len(row) != BOARD_SIZE for row in tokens):
            raise InvalidRequestError(
                f"Board must be {BOARD_SIZE}x{BOARD_SIZE}, got {len(tokens)} rows."
            )
        return cls([[Piece.from_token(token) for token in row] for row in tokens])

    def to_tokens(self) -> list[list[str]]:
        return [[to_token(piece) for piece in row] for row in self.grid]

    def piece(self, position: Position) -> Optional[Piece]:
        self._assert_on_board(position)
        return self.grid[position.row][position.col]

    def is_empty(self, position: Position) -> bool:
        return self.piece(position) is None

    def place_piece(self, piece: Piece, position: Position) -> None:
        self._assert_on_board(position)
        self.grid[position.row][position.col] = piece

    def remove_piece(self, position: Position) -> None:
        self._assert_on_board(position)
        self.grid[position.row][position.col] = None

    def move_piece(self, from_position: Position, to_position: Position) -> Piece:
        """Relocate a piece (owner and rank preserved). Returns the piece that moved."""
        piece = self.piece(from_position)
        if piece is None:
            raise InvalidRequestError(
                f"No piece to move on {from_position.to_notation()}"
            )
        self.remove_piece(from_position)
        self.place_piece(piece, to_position)
        return piece

    def locate_side(self, side: Side) -> list[Position]:
        """All squares holding a piece of the given side, in row-major scan order"""
        squares: list[Position] = []
        for row in range(BOARD_SIZE):
            for col in range(BOARD_SIZE):
                piece = self.grid[row][col]
                if piece is not None and piece.owner == side:
                    squares.append(Position(row, col))
        return squares

    def count_pieces(self) -> dict[Side, int]:
        """Tally the pieces each player has left on the board"""
        return {side: len(self.locate_side(side)) for side in Side}

    def copy(self) -> Self:
        return deepcopy(self)

    def _assert_on_board(self, position: Position) -> None:
        if not position.is_within_bounds():
            raise InvalidRequestError(
                f"Position ({position.row}, {position.col}) is not on the board."
            )
