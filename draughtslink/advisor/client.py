"""
Advisor client facade over an OpenAI-compatible chat completions endpoint.

Two uses:
* a one-shot move suggestion for the current board
* an open-ended conversation seeded with the current board

The advisor is never trusted and never blocks the game: every failure ends up as "no suggestion" or an
apologetic reply, and suggestions are checked against the rule engine by the session.
"""

import logging
import random
import time
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from draughtslink.advisor.prompt import (
    chat_system_message,
    parse_suggestion,
    suggestion_messages,
)
from draughtslink.core.config import SETTINGS, Settings
from draughtslink.core.exceptions import AdvisorError
from draughtslink.core.shared_types import Side
from draughtslink.draughts.board import Board
from draughtslink.draughts.moves import Move

log = logging.getLogger(__name__)

APOLOGY = "Deep in thought... Ask again in a moment!"


class AdvisorClient:
    """Talks to the model with `model` + `messages` and returns raw text responses."""

    def __init__(self, settings: Settings = SETTINGS, client: Any = None) -> None:
        self.settings = settings
        # created on first use: constructing OpenAI without any API key raises already
        self._client = client

    def suggest_move(self, board: Board, side: Side) -> Optional[Move]:
        """Suggested single hop for `side`, or None when the service fails or answers nonsense."""
        try:
            text = self.complete(suggestion_messages(board, side))
            return parse_suggestion(text).to_move()
        except AdvisorError:
            log.exception("No move suggestion available")
            return None

    def open_chat(self, board: Board, side: Side) -> "AdvisorChat":
        return AdvisorChat(self, board, side)

    def complete(self, messages: list[dict[str, str]]) -> str:
        """One chat completion, retried with exponential backoff. Raises AdvisorError once retries are spent."""
        delay = 0.5
        retries = self.settings.advisor_retries
        for attempt in range(retries + 1):
            try:
                rsp = self._get_client().chat.completions.create(
                    model=self.settings.advisor_model,
                    messages=messages,
                    timeout=self.settings.advisor_timeout_s,
                )
                text = _extract_text(rsp)
                if text:
                    return text.strip()
                log.warning("Empty advisor response (attempt %d)", attempt + 1)
            except OpenAIError as exc:
                log.warning("Advisor request failed (attempt %d): %s", attempt + 1, exc)
            if attempt < retries:
                sleep_s = delay * (2**attempt) * (0.8 + 0.4 * random.random())
                time.sleep(min(sleep_s, 10.0))
        raise AdvisorError(f"Advisor gave no answer after {retries + 1} attempts")

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.settings.advisor_api_key or None,
                base_url=self.settings.advisor_base_url or None,
            )
        return self._client


class AdvisorChat:
    """Conversation with the advisor. The board it was opened with is part of the system message."""

    def __init__(self, advisor: AdvisorClient, board: Board, side: Side) -> None:
        self.advisor = advisor
        self.messages: list[dict[str, str]] = [chat_system_message(board, side)]

    def send(self, text: str) -> str:
        """Reply of the advisor. Failures give an apology and leave the conversation as it was."""
        self.messages.append({"role": "user", "content": text})
        try:
            reply = self.advisor.complete(self.messages)
        except AdvisorError:
            log.exception("Advisor chat failed")
            self.messages.pop()
            return APOLOGY
        self.messages.append({"role": "assistant", "content": reply})
        return reply


def _extract_text(rsp: Any) -> str:
    if not getattr(rsp, "choices", None):
        return ""
    content = getattr(rsp.choices[0].message, "content", None)
    return content if isinstance(content, str) else ""
