"""
Message models exchanged between the two peers.

Every frame is a JSON object `{"type": ..., "payload": ...}`; `type` selects the payload shape.
"""

from typing import Annotated, Literal, Optional, Self, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from draughtslink.core.exceptions import InvalidRequestError, MalformedMessageError
from draughtslink.core.shared_types import Side, Status
from draughtslink.draughts.board import Board
from draughtslink.draughts.moves import Move
from draughtslink.draughts.position import BOARD_SIZE, Position


# --- PAYLOAD MODELS ---
class PositionPayload(BaseModel):
    row: int
    col: int

    @field_validator(*["row", "col"])
    @classmethod
    def validate_coordinate(cls, value: int) -> int:
        if not 0 <= value < BOARD_SIZE:
            raise InvalidRequestError(f"Coordinate {value} is not on the board.")
        return value

    @classmethod
    def from_position(cls, position: Position) -> Self:
        return cls(row=position.row, col=position.col)

    def to_position(self) -> Position:
        return Position(self.row, self.col)


class MovePayload(BaseModel):
    """Same shape as the Move objects the UI side works with: {from, to, captured}"""

    model_config = ConfigDict(populate_by_name=True)

    from_position: PositionPayload = Field(alias="from")
    to_position: PositionPayload = Field(alias="to")
    captured: list[PositionPayload] = Field(default_factory=list)

    @classmethod
    def from_move(cls, move: Move) -> Self:
        return cls(
            from_position=PositionPayload.from_position(move.from_position),
            to_position=PositionPayload.from_position(move.to_position),
            captured=[PositionPayload.from_position(square) for square in move.captured],
        )

    def to_move(self) -> Move:
        return Move(
            self.from_position.to_position(),
            self.to_position.to_position(),
            tuple(square.to_position() for square in self.captured),
        )


class SyncPayload(BaseModel):
    board: list[list[str]]
    side_to_move: Side
    username: str = ""
    forced_continuation: Optional[PositionPayload] = None
    strict_capture: bool = False

    @field_validator("board")
    @classmethod
    def validate_board(cls, value: list[list[str]]) -> list[list[str]]:
        # raises InvalidRequestError on wrong dimensions or unknown tokens
        Board.from_tokens(value)
        return value


class ChatPayload(BaseModel):
    text: str
    sender: str = ""


# --- MESSAGES ---
class SyncMessage(BaseModel):
    type: Literal["SYNC"] = "SYNC"
    payload: SyncPayload


class MoveMessage(BaseModel):
    type: Literal["MOVE"] = "MOVE"
    payload: MovePayload

    @classmethod
    def from_move(cls, move: Move) -> Self:
        return cls(payload=MovePayload.from_move(move))


class StatusMessage(BaseModel):
    type: Literal["STATUS"] = "STATUS"
    payload: Status


class DrawRequestMessage(BaseModel):
    type: Literal["DRAW_REQUEST"] = "DRAW_REQUEST"
    payload: None = None


class ChatMessage(BaseModel):
    type: Literal["CHAT"] = "CHAT"
    payload: ChatPayload


Message = Annotated[
    Union[SyncMessage, MoveMessage, StatusMessage, DrawRequestMessage, ChatMessage],
    Field(discriminator="type"),
]
_MESSAGE_ADAPTER: TypeAdapter[Message] = TypeAdapter(Message)


def encode_message(message: Message) -> str:
    """One JSON frame. Aliases are used, so moves go out as {"from": ..., "to": ...}"""
    return message.model_dump_json(by_alias=True)


def decode_message(frame: str | bytes) -> Message:
    """Parse one inbound frame. Anything that does not fit a known message is a MalformedMessageError."""
    try:
        return _MESSAGE_ADAPTER.validate_json(frame)
    except (ValidationError, InvalidRequestError) as exc:
        raise MalformedMessageError(f"Cannot interpret frame: {exc}") from exc
