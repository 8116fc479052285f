"""Unit tests for /draughtslink/protocol/sync.py"""

from typing import Callable

import pytest

from draughtslink.core.exceptions import DesyncError
from draughtslink.core.shared_types import Side, Status
from draughtslink.draughts.game import Game
from draughtslink.draughts.moves import Move
from draughtslink.draughts.position import Position
from draughtslink.protocol.messages import MovePayload, decode_message, encode_message
from draughtslink.protocol.sync import (
    apply_remote_move,
    apply_status,
    apply_sync,
    build_sync,
)


def test_sync_establishes_same_position(game_factory: Callable[..., Game]) -> None:
    sender = game_factory(
        {(5, 0): "W", (4, 1): "B", (2, 3): "B"}, strict_capture=True
    )
    sender.apply_move(Move(Position(5, 0), Position(3, 2)))
    receiver = Game.new_game()

    message = build_sync(sender, "alice")
    assert message.payload.username == "alice"

    # over the wire and back
    apply_sync(receiver, decode_message(encode_message(message)).payload)
    assert receiver.state == sender.state
    assert receiver.strict_capture


def test_hop_by_hop_keeps_peers_identical() -> None:
    """After each hop is mirrored on the peer, both games are equal (also mid capture chain)"""
    mover, peer = Game.new_game(), Game.new_game()
    apply_sync(peer, build_sync(mover, "host").payload)

    for notation in ["52-43", "25-34", "43x25:34", "14x36:25"]:
        side = mover.side_to_move
        applied = mover.apply_move(Move.from_notation(notation))
        apply_remote_move(peer, MovePayload.from_move(applied), peer_side=side)
        assert peer.state == mover.state

    assert peer.to_model() == mover.to_model()


def test_remote_move_out_of_turn() -> None:
    game = Game.new_game()
    payload = MovePayload.from_move(Move(Position(2, 1), Position(3, 0)))
    with pytest.raises(DesyncError):
        apply_remote_move(game, payload, peer_side=Side.SECOND)
    assert game.side_to_move == Side.FIRST


def test_remote_illegal_move() -> None:
    game = Game.new_game()
    payload = MovePayload.from_move(Move(Position(5, 0), Position(3, 2)))
    with pytest.raises(DesyncError):
        apply_remote_move(game, payload, peer_side=Side.FIRST)


def test_remote_move_without_validation() -> None:
    """Trusting the peer: the hop is applied as received"""
    game = Game.new_game()
    payload = MovePayload.from_move(Move(Position(5, 0), Position(3, 2)))
    apply_remote_move(game, payload, peer_side=Side.FIRST, validate=False)
    assert game.board.is_empty(Position(5, 0))
    assert not game.board.is_empty(Position(3, 2))
    assert game.side_to_move == Side.SECOND


def test_remote_move_without_validation_from_empty_square() -> None:
    game = Game.new_game()
    payload = MovePayload.from_move(Move(Position(4, 1), Position(3, 2)))
    with pytest.raises(DesyncError):
        apply_remote_move(game, payload, peer_side=Side.FIRST, validate=False)


def test_apply_status() -> None:
    game = Game.new_game()
    apply_status(game, Status.SECOND_WINS)
    assert game.status == Status.SECOND_WINS
    assert game.winner == Side.SECOND

    # the peer's word wins over a different local result
    apply_status(game, Status.DRAW)
    assert game.status == Status.DRAW
