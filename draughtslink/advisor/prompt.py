"""
Prompts for the advisory service and parsing of its replies.

The board goes out as an 8x8 grid of tokens: side letter plus an optional 'K' for kings, '.' for an empty square.
"""

import json

from pydantic import ValidationError

from draughtslink.core.exceptions import AdvisorError, InvalidRequestError
from draughtslink.core.shared_types import Side
from draughtslink.draughts.board import Board
from draughtslink.protocol.messages import MovePayload

SIDE_NAMES: dict[Side, str] = {Side.FIRST: "White", Side.SECOND: "Black"}

SUGGESTION_SYSTEM = "You are a professional Dama (Checkers) grandmaster. When asked for a move, decide the best move."

SUGGESTION_TEMPLATE = """Analyze this 8x8 checkers board and suggest the absolute best move for player '{side}'.
Board rules: Standard International Checkers (diagonals only, captures mandatory).
Rows are numbered 0-7 from the top, columns 0-7 from the left. '{first}' moves towards row 0, '{second}' towards row 7.
Current Board: {board}
Current Player: {side}

Return the move in JSON format strictly matching this schema:
{{ "from": {{ "row": number, "col": number }}, "to": {{ "row": number, "col": number }} }}
Only return the JSON. No other text."""

CHAT_SYSTEM_TEMPLATE = """You are a "Dama Master", a friendly and professional checkers grandmaster.
The current player is {side_name}.
The board state is: {board}.
Help the user with strategy, explain moves, or just chat about Dama. Keep responses concise and encouraging.
Standard rules: captures are possible in all 4 directions for everyone, but kings move long distances."""


def serialize_board(board: Board) -> str:
    return json.dumps(board.to_tokens())


def suggestion_messages(board: Board, side: Side) -> list[dict[str, str]]:
    prompt = SUGGESTION_TEMPLATE.format(
        side=side.value,
        first=Side.FIRST.value,
        second=Side.SECOND.value,
        board=serialize_board(board),
    )
    return [
        {"role": "system", "content": SUGGESTION_SYSTEM},
        {"role": "user", "content": prompt},
    ]


def chat_system_message(board: Board, side: Side) -> dict[str, str]:
    content = CHAT_SYSTEM_TEMPLATE.format(
        side_name=SIDE_NAMES[side], board=serialize_board(board)
    )
    return {"role": "system", "content": content}


def _strip_code_fence(text: str) -> str:
    """Remove simple ``` fences if present."""
    text = text.strip()
    if text.startswith("```") and text.endswith("```"):
        inner = text.split("\n", 1)
        if len(inner) == 2:
            return inner[1].rsplit("\n", 1)[0].strip()
    return text


def parse_suggestion(text: str) -> MovePayload:
    """
    The reply should be a bare {"from": ..., "to": ...} object.
    Says nothing about legality: the caller still runs the move through the rule engine.
    """
    try:
        return MovePayload.model_validate_json(_strip_code_fence(text))
    except (ValidationError, InvalidRequestError) as exc:
        raise AdvisorError(f"Unusable suggestion: {text!r}") from exc
