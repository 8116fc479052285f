"""Unit tests for /draughtslink/advisor/client.py"""

from dataclasses import replace
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from openai import OpenAIError

from draughtslink.advisor.client import APOLOGY, AdvisorClient
from draughtslink.core.config import Settings
from draughtslink.core.exceptions import AdvisorError
from draughtslink.core.shared_types import Side
from draughtslink.draughts.board import Board
from draughtslink.draughts.moves import Move
from draughtslink.draughts.position import Position


def _response(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def mock_openai() -> MagicMock:
    """Stands in for the OpenAI client: configure chat.completions.create per test"""
    return MagicMock()


def test_complete_returns_text(quiet_settings: Settings, mock_openai: MagicMock) -> None:
    mock_openai.chat.completions.create.return_value = _response("  hello  ")
    advisor = AdvisorClient(quiet_settings, client=mock_openai)

    assert advisor.complete([{"role": "user", "content": "hi"}]) == "hello"
    kwargs = mock_openai.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == quiet_settings.advisor_model
    assert kwargs["timeout"] == quiet_settings.advisor_timeout_s


def test_complete_retries_then_gives_up(
    quiet_settings: Settings, mock_openai: MagicMock
) -> None:
    mock_openai.chat.completions.create.side_effect = OpenAIError("down")
    advisor = AdvisorClient(replace(quiet_settings, advisor_retries=2), client=mock_openai)

    with patch("draughtslink.advisor.client.time.sleep") as mock_sleep:
        with pytest.raises(AdvisorError):
            advisor.complete([{"role": "user", "content": "hi"}])

    assert mock_openai.chat.completions.create.call_count == 3
    assert mock_sleep.call_count == 2


def test_complete_recovers_after_empty_response(
    quiet_settings: Settings, mock_openai: MagicMock
) -> None:
    mock_openai.chat.completions.create.side_effect = [_response(None), _response("ok")]
    advisor = AdvisorClient(replace(quiet_settings, advisor_retries=1), client=mock_openai)

    with patch("draughtslink.advisor.client.time.sleep"):
        assert advisor.complete([]) == "ok"


def test_suggest_move(quiet_settings: Settings, mock_openai: MagicMock) -> None:
    mock_openai.chat.completions.create.return_value = _response(
        '{"from": {"row": 5, "col": 0}, "to": {"row": 4, "col": 1}}'
    )
    advisor = AdvisorClient(quiet_settings, client=mock_openai)
    move = advisor.suggest_move(Board.starting_position(), Side.FIRST)
    assert move == Move(Position(5, 0), Position(4, 1))


@pytest.mark.parametrize(
    "side_effect",
    [OpenAIError("timeout"), [_response("e4, obviously")]],
)
def test_suggest_move_degrades_to_none(
    quiet_settings: Settings, mock_openai: MagicMock, side_effect
) -> None:
    mock_openai.chat.completions.create.side_effect = side_effect
    advisor = AdvisorClient(quiet_settings, client=mock_openai)
    assert advisor.suggest_move(Board.starting_position(), Side.FIRST) is None


def test_chat_keeps_history(quiet_settings: Settings, mock_openai: MagicMock) -> None:
    mock_openai.chat.completions.create.side_effect = [
        _response("Control the center."),
        OpenAIError("down"),
        _response("Keep your back rank."),
    ]
    chat = AdvisorClient(quiet_settings, client=mock_openai).open_chat(
        Board.starting_position(), Side.SECOND
    )

    assert chat.send("Any tips?") == "Control the center."
    assert chat.send("More?") == APOLOGY
    assert chat.send("And defence?") == "Keep your back rank."

    roles = [message["role"] for message in chat.messages]
    assert roles == ["system", "user", "assistant", "user", "assistant"]
    assert chat.messages[3]["content"] == "And defence?"
