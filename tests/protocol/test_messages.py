"""Unit tests for /draughtslink/protocol/messages.py"""

import json

import pytest

from draughtslink.core.exceptions import MalformedMessageError
from draughtslink.core.shared_types import Side, Status
from draughtslink.draughts.board import STARTING_TOKENS
from draughtslink.draughts.moves import Move
from draughtslink.draughts.position import Position
from draughtslink.protocol.messages import (
    ChatMessage,
    ChatPayload,
    DrawRequestMessage,
    MoveMessage,
    MovePayload,
    StatusMessage,
    SyncMessage,
    SyncPayload,
    decode_message,
    encode_message,
)


def test_move_goes_out_with_from_and_to() -> None:
    move = Move(Position(5, 2), Position(3, 0), captured=(Position(4, 1),))
    frame = json.loads(encode_message(MoveMessage.from_move(move)))
    assert frame == {
        "type": "MOVE",
        "payload": {
            "from": {"row": 5, "col": 2},
            "to": {"row": 3, "col": 0},
            "captured": [{"row": 4, "col": 1}],
        },
    }


def test_decode_move() -> None:
    frame = '{"type": "MOVE", "payload": {"from": {"row": 5, "col": 0}, "to": {"row": 4, "col": 1}}}'
    message = decode_message(frame)
    assert isinstance(message, MoveMessage)
    assert message.payload.to_move() == Move(Position(5, 0), Position(4, 1))


def test_move_payload_by_field_name() -> None:
    payload = MovePayload.model_validate(
        {"from_position": {"row": 5, "col": 0}, "to_position": {"row": 4, "col": 1}}
    )
    assert payload.to_move() == Move(Position(5, 0), Position(4, 1))


def test_decode_sync() -> None:
    frame = json.dumps(
        {
            "type": "SYNC",
            "payload": {"board": STARTING_TOKENS, "side_to_move": "W", "username": "alice"},
        }
    )
    message = decode_message(frame)
    assert isinstance(message, SyncMessage)
    assert message.payload.side_to_move == Side.FIRST
    assert message.payload.username == "alice"
    assert message.payload.forced_continuation is None
    assert not message.payload.strict_capture


def test_decode_status_draw_and_chat() -> None:
    status = decode_message('{"type": "STATUS", "payload": "draw"}')
    assert isinstance(status, StatusMessage)
    assert status.payload == Status.DRAW

    draw = decode_message('{"type": "DRAW_REQUEST"}')
    assert isinstance(draw, DrawRequestMessage)

    chat = decode_message('{"type": "CHAT", "payload": {"text": "hi", "sender": "bob"}}')
    assert isinstance(chat, ChatMessage)
    assert chat.payload == ChatPayload(text="hi", sender="bob")


def test_encode_decode_keeps_message() -> None:
    message = SyncMessage(
        payload=SyncPayload(board=STARTING_TOKENS, side_to_move=Side.SECOND, username="x")
    )
    assert decode_message(encode_message(message)) == message


@pytest.mark.parametrize(
    "frame",
    [
        "not json",
        "{}",
        '{"type": "TELEPORT", "payload": {}}',
        '{"type": "MOVE", "payload": {"from": {"row": 5, "col": 0}}}',
        '{"type": "MOVE", "payload": {"from": {"row": 8, "col": 0}, "to": {"row": 4, "col": 1}}}',
        '{"type": "STATUS", "payload": "checkmate"}',
        '{"type": "SYNC", "payload": {"board": [["W"]], "side_to_move": "W"}}',
        '{"type": "SYNC", "payload": {"board": [], "side_to_move": "red"}}',
    ],
)
def test_decode_malformed(frame: str) -> None:
    with pytest.raises(MalformedMessageError):
        decode_message(frame)


def test_sync_with_unknown_token() -> None:
    board = [row[:] for row in STARTING_TOKENS]
    board[0][1] = "Q"
    frame = json.dumps({"type": "SYNC", "payload": {"board": board, "side_to_move": "W"}})
    with pytest.raises(MalformedMessageError):
        decode_message(frame)
