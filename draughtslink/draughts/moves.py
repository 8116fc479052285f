"""
Geometry/Base movement and capturing rules

Key idea: Use strategy pattern to define the move sets for each piece rank (Man / King).

Promotion and forced continuation of a capture chain are applied later by Game.

Move enumeration order is fully deterministic: board scan is row-major, directions follow DIRECTIONS.
Consumers (e.g. the advisor's suggestion filter) rely on this to break ties reproducibly.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Self

from draughtslink.core.shared_types import Rank, Side
from draughtslink.draughts.pieces import FORWARD, Piece
from draughtslink.draughts.position import Position


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece(self, position: Position) -> Optional[Piece]: ...
    def locate_side(self, side: Side) -> list[Position]: ...


Vector = tuple[int, int]

# Fixed order. Changing it changes the order of generated moves on both peers.
DIRECTIONS: list[Vector] = [(1, 1), (1, -1), (-1, 1), (-1, -1)]


@dataclass(frozen=True)
class Move:
    """
    A single step of a turn.

    A move with captured squares is ONE capturing hop. A multi-jump turn is a sequence of these,
    applied one at a time.
    """

    from_position: Position
    to_position: Position
    captured: tuple[Position, ...] = ()

    @property
    def is_capture(self) -> bool:
        return len(self.captured) > 0

    @classmethod
    def from_notation(cls, notation: str) -> Self:
        """
        Compact notation used in the move history:
        ---
        * "50-41": slide from (5,0) to (4,1)
        * "52x30:41": jump from (5,2) to (3,0) capturing the piece on (4,1)
        """
        body, _, captured_part = notation.partition(":")
        from_pos = Position.from_notation(body[:2])
        to_pos = Position.from_notation(body[3:5])
        captured = tuple(
            Position.from_notation(square)
            for square in captured_part.split(",")
            if square
        )
        return cls(from_pos, to_pos, captured)

    def to_notation(self) -> str:
        if not self.is_capture:
            return f"{self.from_position.to_notation()}-{self.to_position.to_notation()}"
        captured = ",".join(square.to_notation() for square in self.captured)
        return f"{self.from_position.to_notation()}x{self.to_position.to_notation()}:{captured}"


def _is_opponent(piece: Optional[Piece], side: Side) -> bool:
    return piece is not None and piece.owner != side


# --- MOVEMENT RULES ---
def candidate_man_moves(
    square: Position, board: Board, side: Side, jump_only: bool
) -> list[Move]:
    """
    A man:
    - jumps over an adjacent opposing piece in any of the four diagonal directions, landing right behind it
    - slides a single square diagonally forward (towards the opponent's back rank)
    """
    moves: list[Move] = []
    for direction in DIRECTIONS:
        middle = square.step(direction)
        landing = square.step(direction, 2)
        # the landing square decides: off the board means there is nothing to jump into.
        if not landing.is_within_bounds():
            continue
        if _is_opponent(board.piece(middle), side) and board.piece(landing) is None:
            moves.append(Move(square, landing, captured=(middle,)))

    if jump_only:
        return moves

    forward = FORWARD[side]
    for dc in (1, -1):
        target = square.step((forward, dc))
        if target.is_within_bounds() and board.piece(target) is None:
            moves.append(Move(square, target))
    return moves


def candidate_king_moves(
    square: Position, board: Board, side: Side, jump_only: bool
) -> list[Move]:
    """
    Raycasting algorithm (flying king)
    -----

    Walk along each diagonal until the edge of the board:
    * empty squares before any piece: plain destinations (unless only jumps are asked for)
    * first piece is our own: this direction is blocked
    * first piece is the opponent's: every empty square behind it is a landing square capturing it,
      until a second piece (of either side) blocks the way.
    """
    moves: list[Move] = []
    for direction in DIRECTIONS:
        jumped: Optional[Position] = None
        distance = 1
        while True:
            target = square.step(direction, distance)
            distance += 1
            if not target.is_within_bounds():
                break

            piece = board.piece(target)
            if jumped is None:
                if piece is None:
                    if not jump_only:
                        moves.append(Move(square, target))
                    continue
                if piece.owner == side:
                    break
                jumped = target
                continue

            # behind an opposing piece
            if piece is not None:
                break
            moves.append(Move(square, target, captured=(jumped,)))
    return moves


# -- STRATEGY PATTERN: MOVEMENT RULES ---
CandidateMovesFn = Callable[[Position, Board, Side, bool], list[Move]]
MOVEMENT_RULES: dict[Rank, CandidateMovesFn] = {
    Rank.MAN: candidate_man_moves,
    Rank.KING: candidate_king_moves,
}


def get_moves_for_piece(
    board: Board, position: Position, side: Side, jump_only: bool = False
) -> list[Move]:
    """Moves of the piece on `position`. No piece, or a piece of the other side: no moves (not an error)."""
    if not position.is_within_bounds():
        return []
    piece = board.piece(position)
    if piece is None or piece.owner != side:
        return []
    movement_rule = MOVEMENT_RULES[piece.rank]
    return movement_rule(position, board, side, jump_only)


def get_all_valid_moves(
    board: Board, side: Side, strict_capture: bool = False
) -> list[Move]:
    """
    Moves of all pieces of `side`, in row-major board scan order.

    ---
    NOTE: With strict_capture off, a side may slide even when a capture is available elsewhere on the board.
    Mandatory capture is then only enforced mid-turn (see Game forced continuation).
    With strict_capture on, only the capturing moves are kept as soon as there is at least one.
    """
    moves: list[Move] = []
    for square in board.locate_side(side):
        moves.extend(get_moves_for_piece(board, square, side, jump_only=False))

    if strict_capture:
        captures = [move for move in moves if move.is_capture]
        if captures:
            return captures
    return moves
