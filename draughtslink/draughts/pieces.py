"""Defines the draughts pieces and their text tokens"""

from dataclasses import dataclass, replace
from typing import Optional, Self

from draughtslink.core.exceptions import InvalidRequestError
from draughtslink.core.shared_types import Rank, Side
from draughtslink.draughts.position import BOARD_SIZE

EMPTY_TOKEN = "."
KING_MARKER = "K"
# Some layouts write empty squares as empty strings. Accepted when reading.
EMPTY_TOKENS = (EMPTY_TOKEN, "")

# Row a man of the given side has to reach to be crowned
PROMOTION_ROW: dict[Side, int] = {
    Side.FIRST: 0,
    Side.SECOND: BOARD_SIZE - 1,
}

# Men only slide forward: towards the opponent's back rank
FORWARD: dict[Side, int] = {
    Side.FIRST: -1,
    Side.SECOND: 1,
}


@dataclass(frozen=True)
class Piece:
    owner: Side
    rank: Rank = Rank.MAN

    @property
    def is_king(self) -> bool:
        return self.rank == Rank.KING

    @classmethod
    def from_token(cls, token: str) -> Optional[Self]:
        """'W', 'WK', 'B', 'BK' -> piece. Empty tokens -> None"""
        if token in EMPTY_TOKENS:
            return None
        if len(token) not in (1, 2) or token[0] not in tuple(Side):
            raise InvalidRequestError(f"Unknown board token: {token!r}")
        if len(token) == 2 and token[1] != KING_MARKER:
            raise InvalidRequestError(f"Unknown board token: {token!r}")
        rank = Rank.KING if token.endswith(KING_MARKER) else Rank.MAN
        return cls(Side(token[0]), rank)

    def to_token(self) -> str:
        return f"{self.owner.value}{KING_MARKER if self.is_king else ''}"

    def promoted(self) -> Self:
        """Pieces are values: promotion hands back a new (King) piece of the same owner."""
        return replace(self, rank=Rank.KING)


def to_token(piece: Optional[Piece]) -> str:
    """Token for a (maybe empty) square"""
    return piece.to_token() if piece is not None else EMPTY_TOKEN
