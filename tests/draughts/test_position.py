"""Unit tests for /draughtslink/draughts/position.py"""

import pytest

from draughtslink.draughts.position import BOARD_SIZE, Position


def test_square_within_bounds() -> None:
    """happy case: every (row, col) of the 8x8 board"""
    for row in range(BOARD_SIZE):
        for col in range(BOARD_SIZE):
            assert Position(row, col).is_within_bounds()


@pytest.mark.parametrize(
    "row, col",
    [(-1, 0), (0, -1), (BOARD_SIZE, 0), (0, BOARD_SIZE), (4, -1), (8, 8)],
)
def test_square_out_of_bounds(row: int, col: int) -> None:
    assert not Position(row, col).is_within_bounds()


def test_dark_squares() -> None:
    """(row + col) odd is a dark square"""
    assert Position(0, 1).is_dark()
    assert Position(5, 0).is_dark()
    assert not Position(0, 0).is_dark()
    assert not Position(4, 4).is_dark()


def test_step_along_direction() -> None:
    start = Position(5, 0)
    assert start.step((-1, 1)) == Position(4, 1)
    assert start.step((-1, 1), 2) == Position(3, 2)
    # stepping off the board is allowed, checking bounds is up to the caller
    assert start.step((1, -1)) == Position(6, -1)


def test_notation() -> None:
    position = Position.from_notation("52")
    assert position == Position(5, 2)
    assert position.to_notation() == "52"
    assert position.as_tuple() == (5, 2)
