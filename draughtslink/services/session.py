"""
Orchestration of one match between the local player and the peer.

The Session owns the channel handle and the local Game for the lifetime of a match and is torn down
when the channel closes or fails. Local actions (from the UI) and inbound messages (from the channel)
are processed one at a time.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Callable, Optional

from draughtslink.advisor.client import APOLOGY, AdvisorChat, AdvisorClient
from draughtslink.core.config import SETTINGS, Settings
from draughtslink.core.exceptions import (
    ChannelError,
    DesyncError,
    GameStateError,
    MalformedMessageError,
    NotYourTurnError,
)
from draughtslink.core.models import GameModel
from draughtslink.core.shared_types import Side
from draughtslink.draughts.game import Game
from draughtslink.draughts.moves import Move
from draughtslink.protocol.channel import Channel
from draughtslink.protocol.messages import (
    ChatMessage,
    ChatPayload,
    DrawRequestMessage,
    Message,
    MoveMessage,
    StatusMessage,
    SyncMessage,
    decode_message,
    encode_message,
)
from draughtslink.protocol.sync import (
    apply_remote_move,
    apply_status,
    apply_sync,
    build_sync,
)

log = logging.getLogger(__name__)

DEFAULT_OPPONENT_NAME = "Opponent"


class SessionPhase(StrEnum):
    PRE_MATCH = "pre-match"
    CONNECTING = "connecting"
    IN_MATCH = "in match"


# --- EVENT DEFINITIONS ---
StateChangedCallback = Callable[[GameModel], None]
DrawOfferedCallback = Callable[[], None]
ChatCallback = Callable[[str, str], None]  # sender, text
EndedCallback = Callable[[str], None]  # reason


@dataclass
class SessionEvents:
    """Observable callbacks. Multiple handlers per event."""

    on_state_changed: list[StateChangedCallback] = field(default_factory=list)
    on_draw_offered: list[DrawOfferedCallback] = field(default_factory=list)
    on_chat: list[ChatCallback] = field(default_factory=list)
    on_ended: list[EndedCallback] = field(default_factory=list)


class Session:
    """
    One participant's side of a match.

    Roles: the side accepting the connection (host) plays First and sends the SYNC once the channel opens;
    the initiating side plays Second.
    """

    def __init__(
        self,
        channel: Channel,
        is_host: bool,
        username: str,
        advisor: Optional[AdvisorClient] = None,
        settings: Settings = SETTINGS,
    ) -> None:
        self.channel = channel
        self.is_host = is_host
        self.role = Side.FIRST if is_host else Side.SECOND
        self.username = username
        self.opponent_name = DEFAULT_OPPONENT_NAME
        self.advisor = advisor
        self.settings = settings
        self.game = Game.new_game(strict_capture=settings.strict_capture)
        self.phase = SessionPhase.CONNECTING
        self.draw_offer_pending = False
        self.events = SessionEvents()
        self._lock = threading.RLock()
        self._advisor_chat: Optional[AdvisorChat] = None
        channel.bind(self)

    # -- Session boundary (called by the UI layer) ---
    def snapshot(self) -> GameModel:
        with self._lock:
            return self.game.to_model()

    def is_my_turn(self) -> bool:
        with self._lock:
            return (
                self.phase == SessionPhase.IN_MATCH
                and not self.game.is_over
                and self.game.side_to_move == self.role
            )

    def legal_moves(self) -> list[Move]:
        """Moves the local player can make right now (empty while waiting for the peer)."""
        with self._lock:
            if not self.is_my_turn():
                return []
            return self.game.legal_moves()

    def submit_move(self, move: Move) -> Move:
        """
        Local player's hop.
        ----

        1. only allowed on your own turn
        2. apply locally (raises IllegalMoveError, state unchanged)
        3. send the hop to the peer
        4. if the game just ended, tell the peer as well
        """
        with self._lock:
            self._assert_in_match()
            if self.game.side_to_move != self.role:
                raise NotYourTurnError(
                    f"It is not your turn. Waiting for {self.opponent_name} to move first."
                )

            accepted_move = self.game.apply_move(move)
            # an open draw offer does not survive a move
            self.draw_offer_pending = False
            self._send(MoveMessage.from_move(accepted_move))
            if self.game.is_over:
                self._send(StatusMessage(payload=self.game.status))
            self._notify_state_changed()
            return accepted_move

    def resign(self) -> None:
        with self._lock:
            self._assert_in_match()
            self.game.resign(self.role)
            self.draw_offer_pending = False
            self._send(StatusMessage(payload=self.game.status))
            self._notify_state_changed()

    def offer_draw(self) -> None:
        """Only a signal to the peer: nothing changes locally until they accept."""
        with self._lock:
            self._assert_in_match()
            if self.game.is_over:
                raise GameStateError(f"Game is not in progress. status: {self.game.status}")
            self._send(DrawRequestMessage())

    def accept_draw(self) -> None:
        with self._lock:
            self._assert_in_match()
            if not self.draw_offer_pending:
                raise GameStateError("There is no draw offer to accept.")
            self.game.accept_draw()
            self.draw_offer_pending = False
            self._send(StatusMessage(payload=self.game.status))
            self._notify_state_changed()

    def decline_draw(self) -> None:
        """The peer is not told: their game simply stays in progress."""
        with self._lock:
            self.draw_offer_pending = False

    def send_chat(self, text: str) -> None:
        with self._lock:
            self._assert_in_match()
            self._send(ChatMessage(payload=ChatPayload(text=text, sender=self.username)))

    def rematch(self) -> None:
        """Fresh game from the starting position. The host decides the position, so only the host can restart."""
        with self._lock:
            self._assert_in_match()
            if not self.is_host:
                raise GameStateError("Only the host can start a rematch.")
            self._reset_game()
            self._send(build_sync(self.game, self.username))
            self._notify_state_changed()

    def leave(self) -> None:
        """Local player leaves the match. The peer gets a close event."""
        self._teardown("You left the match.")

    # -- Advisor (optional, never trusted, never blocking the game) ---
    def suggest_move(self) -> Optional[Move]:
        """
        Ask the advisor for the local player's next hop.
        Anything that is not a legal move right now is discarded (None).
        """
        if self.advisor is None:
            return None
        with self._lock:
            if not self.is_my_turn():
                return None
            board = self.game.board.copy()
            side = self.game.side_to_move

        # no lock held while waiting on the service
        suggestion = self.advisor.suggest_move(board, side)
        if suggestion is None:
            return None

        with self._lock:
            for legal_move in self.legal_moves():
                if (
                    legal_move.from_position == suggestion.from_position
                    and legal_move.to_position == suggestion.to_position
                ):
                    return legal_move
        log.info("Discarding illegal advisor suggestion %s", suggestion.to_notation())
        return None

    def ask_advisor(self, text: str) -> str:
        """Conversation with the advisor, seeded with the board at the time of the first question."""
        if self.advisor is None:
            return APOLOGY
        with self._lock:
            if self._advisor_chat is None:
                self._advisor_chat = self.advisor.open_chat(
                    self.game.board.copy(), self.game.side_to_move
                )
            chat = self._advisor_chat
        return chat.send(text)

    # -- ChannelListener (called by the channel) ---
    def on_open(self) -> None:
        with self._lock:
            self.phase = SessionPhase.IN_MATCH
            log.info("Connected as %s (%s)", self.role.name, self.username)
            if self.is_host:
                self._send(build_sync(self.game, self.username))
            else:
                self._send(
                    ChatMessage(
                        payload=ChatPayload(
                            text=f"System: {self.username} joined!",
                            sender=self.username,
                        )
                    )
                )
            self._notify_state_changed()

    def on_message(self, frame: str) -> None:
        with self._lock:
            # frames may arrive before our own open event when the peer's end opened first
            if self.phase == SessionPhase.PRE_MATCH:
                log.warning("Ignoring frame outside of a match: %s", frame)
                return
            try:
                message = decode_message(frame)
            except MalformedMessageError as exc:
                log.warning("Dropping malformed message: %s", exc)
                return

            log.debug("Received %s", message.type)
            try:
                self._dispatch(message)
            except DesyncError as exc:
                log.error("Dropping peer message, games out of sync: %s", exc)

    def on_close(self) -> None:
        log.info("Peer closed the connection")
        self._teardown("Opponent disconnected.")

    def on_error(self, error: ChannelError) -> None:
        log.error("Channel error: %s", error)
        self._teardown(f"Connection error: {error}")

    # -- Internal helpers --
    def _dispatch(self, message: Message) -> None:
        if isinstance(message, SyncMessage):
            # a SYNC always starts the match (again) from the position it carries
            self._reset_game()
            apply_sync(self.game, message.payload)
            if message.payload.username:
                self.opponent_name = message.payload.username
            self._notify_state_changed()

        elif isinstance(message, MoveMessage):
            apply_remote_move(
                self.game,
                message.payload,
                peer_side=self.role.opponent,
                validate=self.settings.validate_inbound_moves,
            )
            self.draw_offer_pending = False
            self._notify_state_changed()

        elif isinstance(message, StatusMessage):
            apply_status(self.game, message.payload)
            self.draw_offer_pending = False
            self._notify_state_changed()

        elif isinstance(message, DrawRequestMessage):
            if self.game.is_over:
                log.info("Ignoring draw offer, game already over")
                return
            self.draw_offer_pending = True
            self._emit(self.events.on_draw_offered)

        elif isinstance(message, ChatMessage):
            sender = message.payload.sender or self.opponent_name
            if self.opponent_name == DEFAULT_OPPONENT_NAME and message.payload.sender:
                self.opponent_name = message.payload.sender
            self._emit(self.events.on_chat, sender, message.payload.text)

    def _send(self, message: Message) -> None:
        log.debug("Sending %s", message.type)
        self.channel.send(encode_message(message))

    def _notify_state_changed(self) -> None:
        self._emit(self.events.on_state_changed, self.game.to_model())

    def _emit(self, callbacks: list[Callable[..., None]], *args: Any) -> None:
        """Run every subscriber. A failing subscriber is logged, the others still run."""
        for callback in list(callbacks):
            try:
                callback(*args)
            except Exception:
                log.exception("Session subscriber %r failed", callback)

    def _assert_in_match(self) -> None:
        if self.phase != SessionPhase.IN_MATCH:
            raise GameStateError(f"No match in progress. phase: {self.phase}")

    def _reset_game(self) -> None:
        self.game = Game.new_game(strict_capture=self.settings.strict_capture)
        self.draw_offer_pending = False
        self._advisor_chat = None

    def _teardown(self, reason: str) -> None:
        """Channel is gone (or we left): back to a neutral pre-match state. Not retried."""
        with self._lock:
            if self.phase == SessionPhase.PRE_MATCH:
                return
            self.phase = SessionPhase.PRE_MATCH
            self._reset_game()
            self.opponent_name = DEFAULT_OPPONENT_NAME
            self.channel.close()
            log.info("Session ended: %s", reason)
            self._emit(self.events.on_ended, reason)
