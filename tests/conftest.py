"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/helpers required for testing multiple layers.
"""

from dataclasses import replace
from typing import Callable

import pytest

from draughtslink.core.config import SETTINGS, Settings
from draughtslink.core.shared_types import Side
from draughtslink.draughts.board import Board
from draughtslink.draughts.game import Game, GameState
from draughtslink.draughts.pieces import Piece
from draughtslink.draughts.position import Position
from draughtslink.protocol.channel import LoopbackChannel
from draughtslink.services.session import Session

# (row, col) -> token, ex. {(5, 0): "W", (4, 1): "BK"}
PieceLayout = dict[tuple[int, int], str]


def _make_board(layout: PieceLayout) -> Board:
    """Empty board with just the pieces in the layout."""
    board = Board.empty()
    for (row, col), token in layout.items():
        piece = Piece.from_token(token)
        assert piece is not None
        board.place_piece(piece, Position(row, col))
    return board


def _make_game(
    layout: PieceLayout, side_to_move: Side = Side.FIRST, strict_capture: bool = False
) -> Game:
    return Game(
        state=GameState(board=_make_board(layout), side_to_move=side_to_move),
        strict_capture=strict_capture,
    )


@pytest.fixture
def quiet_settings() -> Settings:
    """No retries/sleeps towards the advisor, reference rules, validating peer moves."""
    return replace(
        SETTINGS,
        advisor_retries=0,
        strict_capture=False,
        validate_inbound_moves=True,
    )


@pytest.fixture
def session_pair(
    quiet_settings: Settings,
) -> Callable[..., tuple[Session, Session, LoopbackChannel, LoopbackChannel]]:
    """
    Call the inner function to get a connected (host, guest) pair plus both channel ends.
    Extra keyword arguments (ex. advisor=...) only go to the host session.
    """

    def _connect(
        settings: Settings = quiet_settings, **session_kwargs
    ) -> tuple[Session, Session, LoopbackChannel, LoopbackChannel]:
        host_end, guest_end = LoopbackChannel.pair()
        host = Session(host_end, True, "host", settings=settings, **session_kwargs)
        guest = Session(guest_end, False, "guest", settings=settings)
        host_end.open()
        return host, guest, host_end, guest_end

    return _connect


@pytest.fixture
def board_factory() -> Callable[[PieceLayout], Board]:
    """Call the inner function with a piece layout to get a board"""
    return _make_board


@pytest.fixture
def game_factory() -> Callable[..., Game]:
    """Call the inner function with a piece layout (and optionally side to move / strict_capture) to get a game"""
    return _make_game
