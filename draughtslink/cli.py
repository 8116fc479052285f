"""
Terminal front end: host or join a match over TCP and play from the keyboard.

Commands while in a match:
  50-41 (or 50 41)  move from row 5 col 0 to row 4 col 1, one hop at a time
  moves             list your legal moves
  hint              ask the advisor for a move
  ask <text>        talk to the advisor
  say <text>        chat with the opponent
  draw | accept | decline | resign | rematch | quit
"""

from __future__ import annotations

import argparse
import threading
from typing import Callable, Optional

from draughtslink.advisor.client import AdvisorClient
from draughtslink.advisor.prompt import SIDE_NAMES
from draughtslink.core.config import SETTINGS, configure_logging
from draughtslink.core.exceptions import ChannelError, GameError, InvalidRequestError
from draughtslink.core.models import GameModel
from draughtslink.core.shared_types import Side, Status
from draughtslink.draughts.moves import Move
from draughtslink.draughts.position import BOARD_SIZE, Position
from draughtslink.protocol.channel import TcpChannel
from draughtslink.services.session import Session


def render_board(model: GameModel) -> str:
    lines = ["    " + "  ".join(str(col) for col in range(BOARD_SIZE))]
    for row, tokens in enumerate(model.board):
        lines.append(f"{row}  " + " ".join(f"{token:>2}" for token in tokens))
    return "\n".join(lines)


def render_status(model: GameModel, role: Side) -> str:
    if model.status != Status.IN_PROGRESS:
        return f"Game over: {model.status}."
    if model.side_to_move != role:
        return f"Waiting for {SIDE_NAMES[Side(model.side_to_move)]}."
    if model.forced_continuation is not None:
        row, col = model.forced_continuation
        return f"Your move. Keep jumping from {row}{col}."
    return "Your move."


def parse_move(text: str) -> Move:
    """'50-41', '50 41' or '5041'. Captured squares are filled in by the game."""
    digits = [int(char) for char in text if char.isdigit()]
    if len(digits) != 4:
        raise InvalidRequestError(f"Cannot read a move from {text!r}. Try e.g. 50-41.")
    return Move(Position(digits[0], digits[1]), Position(digits[2], digits[3]))


def attach_printer(session: Session, ended: threading.Event) -> None:
    """Print whatever the session reports. `ended` is set once the match is over for good."""

    def _state_changed(model: GameModel) -> None:
        print()
        print(render_board(model))
        print(render_status(model, session.role))

    def _ended(reason: str) -> None:
        print(reason)
        ended.set()

    session.events.on_state_changed.append(_state_changed)
    session.events.on_draw_offered.append(
        lambda: print(f"{session.opponent_name} offers a draw. Type 'accept' or 'decline'.")
    )
    session.events.on_chat.append(lambda sender, text: print(f"[{sender}] {text}"))
    session.events.on_ended.append(_ended)


def handle_command(session: Session, line: str) -> bool:
    """Run one line of input against the session. False once the player quits."""
    command, _, rest = line.strip().partition(" ")
    command = command.lower()
    try:
        if command in ("quit", "exit"):
            session.leave()
            return False
        elif command == "moves":
            moves = session.legal_moves()
            print(", ".join(move.to_notation() for move in moves) or "No moves right now.")
        elif command == "hint":
            move = session.suggest_move()
            print(f"Advisor suggests {move.to_notation()}." if move else "No suggestion available.")
        elif command == "ask":
            print(session.ask_advisor(rest))
        elif command == "say":
            session.send_chat(rest)
        elif command == "draw":
            session.offer_draw()
            print("Draw offered.")
        elif command == "accept":
            session.accept_draw()
        elif command == "decline":
            session.decline_draw()
        elif command == "resign":
            session.resign()
        elif command == "rematch":
            session.rematch()
        else:
            session.submit_move(parse_move(line))
    except GameError as exc:
        print(exc)
    return True


def run_session(
    session: Session, ended: threading.Event, read_line: Callable[[str], str] = input
) -> int:
    while not ended.is_set():
        try:
            line = read_line("> ")
        except (EOFError, KeyboardInterrupt):
            session.leave()
            break
        if not line.strip():
            continue
        if not handle_command(session, line):
            break
    return 0


def _make_advisor(args: argparse.Namespace) -> Optional[AdvisorClient]:
    if args.no_advisor:
        return None
    if not (SETTINGS.advisor_api_key or SETTINGS.advisor_base_url):
        return None
    return AdvisorClient(SETTINGS)


def _play(channel: TcpChannel, is_host: bool, args: argparse.Namespace) -> int:
    session = Session(channel, is_host, args.name, advisor=_make_advisor(args))
    ended = threading.Event()
    attach_printer(session, ended)
    channel.start()
    try:
        return run_session(session, ended)
    finally:
        channel.close()
        channel.join(timeout=2.0)


def cmd_host(args: argparse.Namespace) -> int:
    print(f"Hosting on port {args.port}, you play {SIDE_NAMES[Side.FIRST]}.")
    channel = TcpChannel.host(args.port, args.address, timeout=args.timeout)
    return _play(channel, True, args)


def cmd_join(args: argparse.Namespace, read_line: Callable[[str], str] = input) -> int:
    """A failed join asks for another address. An empty answer gives up."""
    while True:
        try:
            channel = TcpChannel.connect(args.address, args.port)
            break
        except ChannelError as exc:
            print(exc)
        try:
            address = read_line("Address to join (empty to quit): ").strip()
        except (EOFError, KeyboardInterrupt):
            address = ""
        if not address:
            return 1
        args.address = address
    print(f"Joined {args.address}:{args.port}, you play {SIDE_NAMES[Side.SECOND]}.")
    return _play(channel, False, args)


def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="draughtslink")
    ap.add_argument("--name", type=str, default="Player")
    ap.add_argument("--log-level", type=str, default=None)
    ap.add_argument("--no-advisor", action="store_true")
    sub = ap.add_subparsers(dest="cmd", required=True)

    hp = sub.add_parser("host", help="Wait for an opponent to join (you play first)")
    hp.add_argument("--port", type=int, default=SETTINGS.port)
    hp.add_argument("--address", type=str, default="")
    hp.add_argument("--timeout", type=float, default=None, help="seconds")
    hp.set_defaults(fn=cmd_host)

    jp = sub.add_parser("join", help="Join a hosted match (you play second)")
    jp.add_argument("address", type=str)
    jp.add_argument("--port", type=int, default=SETTINGS.port)
    jp.set_defaults(fn=cmd_join)

    args = ap.parse_args(argv)
    configure_logging(args.log_level)
    try:
        return int(args.fn(args))
    except ChannelError as exc:
        print(exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
