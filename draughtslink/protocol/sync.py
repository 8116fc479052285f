"""
Reconciliation rules: what a peer does to its local Game when a message arrives, and how outbound
messages are built from the local Game.

Both peers start from the same SYNC'd position and apply the same ordered sequence of single-hop
MOVE messages with the same deterministic rule engine, so they end up with equal GameStates.
"""

import logging

from draughtslink.core.exceptions import DesyncError, IllegalMoveError, InvalidRequestError
from draughtslink.core.shared_types import Side, Status
from draughtslink.draughts.board import Board
from draughtslink.draughts.game import Game
from draughtslink.draughts.moves import Move
from draughtslink.protocol.messages import (
    MovePayload,
    PositionPayload,
    SyncMessage,
    SyncPayload,
)

log = logging.getLogger(__name__)


# --- OUTBOUND ---
def build_sync(game: Game, username: str) -> SyncMessage:
    """Full position + side to move + who is sending. Sent once by the accepting side when the channel opens."""
    forced = game.forced_continuation
    return SyncMessage(
        payload=SyncPayload(
            board=game.board.to_tokens(),
            side_to_move=game.side_to_move,
            username=username,
            forced_continuation=(
                PositionPayload.from_position(forced) if forced is not None else None
            ),
            strict_capture=game.strict_capture,
        )
    )


# --- INBOUND ---
def apply_sync(game: Game, payload: SyncPayload) -> None:
    """Receiver overwrites its board and side to move (and the rule flags that come with it)."""
    forced = (
        payload.forced_continuation.to_position()
        if payload.forced_continuation is not None
        else None
    )
    game.strict_capture = payload.strict_capture
    game.sync(Board.from_tokens(payload.board), payload.side_to_move, forced)
    log.info(
        "Position synchronised from %r, %s to move",
        payload.username,
        payload.side_to_move.name,
    )


def apply_remote_move(
    game: Game, payload: MovePayload, peer_side: Side, validate: bool = True
) -> Move:
    """
    Apply the peer's hop to the local game, without sending anything back.

    validate=True: the hop is checked against the local rule engine first. A hop that arrives while it is not
    the peer's turn, or that the local engine does not consider legal, means both sides disagree: DesyncError.
    validate=False: the hop is applied as received (trusting the peer).
    """
    move = payload.to_move()
    if validate and game.side_to_move != peer_side:
        raise DesyncError(
            f"Peer ({peer_side.name}) moved {move.to_notation()} while {game.side_to_move.name} is to move."
        )
    try:
        return game.apply_move(move, validate=validate)
    except (IllegalMoveError, InvalidRequestError) as exc:
        raise DesyncError(f"Peer move {move.to_notation()} rejected: {exc}") from exc


def apply_status(game: Game, status: Status) -> None:
    """Peer's status is taken over as is (resignation, accepted draw, terminal state detected remotely)."""
    if game.is_over and game.status != status:
        log.warning(
            "Peer reports %r but local game already ended with %r. Taking the peer's status.",
            status.value,
            game.status.value,
        )
    game.set_status(status)
