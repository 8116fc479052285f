"""
The Game class is the entrypoint into the domain layer for the session/protocol layers.
It owns the authoritative board, the side to move, the capture chain cursor and the match status,
applies validated moves one hop at a time and derives terminal states.
"""

from dataclasses import dataclass, field
from typing import Optional, Self

from draughtslink.core.exceptions import GameStateError, IllegalMoveError
from draughtslink.core.models import GameModel
from draughtslink.core.shared_types import WIN_STATUS, Side, Status
from draughtslink.draughts.board import Board
from draughtslink.draughts.moves import Move, get_all_valid_moves, get_moves_for_piece
from draughtslink.draughts.pieces import PROMOTION_ROW
from draughtslink.draughts.position import Position


@dataclass
class GameState:
    """
    Everything both peers must agree on.

    forced_continuation: while set, the side to move must keep jumping with the piece on that square.
    """

    board: Board
    side_to_move: Side
    status: Status = Status.IN_PROGRESS
    forced_continuation: Optional[Position] = None


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SESSION / PROTOCOL ---

    state: GameState
    moves: list[Move] = field(default_factory=list)
    strict_capture: bool = False

    @classmethod
    def new_game(cls, strict_capture: bool = False) -> Self:
        """Standard starting position, First to move."""
        state = GameState(board=Board.starting_position(), side_to_move=Side.FIRST)
        return cls(state=state, strict_capture=strict_capture)

    @classmethod
    def from_model(cls, model: GameModel, strict_capture: bool = False) -> Self:
        """Define how to construct a Game from the information the boundary layer has"""
        if model.status not in [status.value for status in Status]:
            raise GameStateError(
                f"Invalid status: {model.status!r}. \nPick one from {', '.join(status.value for status in Status)}"
            )
        if model.side_to_move not in [side.value for side in Side]:
            raise GameStateError(f"Invalid side to move: {model.side_to_move!r}")

        forced = (
            Position(*model.forced_continuation)
            if model.forced_continuation is not None
            else None
        )
        state = GameState(
            board=Board.from_tokens(model.board),
            side_to_move=Side(model.side_to_move),
            status=Status(model.status),
            forced_continuation=forced,
        )
        moves = [Move.from_notation(notation) for notation in model.moves]
        return cls(state=state, moves=moves, strict_capture=strict_capture)

    def to_model(self) -> GameModel:
        """Encode back into a format the boundary layer uses"""
        forced = self.state.forced_continuation
        return GameModel(
            board=self.state.board.to_tokens(),
            side_to_move=self.state.side_to_move.value,
            status=self.state.status.value,
            forced_continuation=forced.as_tuple() if forced is not None else None,
            moves=[move.to_notation() for move in self.moves],
        )

    # --- convenience accessors ---
    @property
    def board(self) -> Board:
        return self.state.board

    @property
    def side_to_move(self) -> Side:
        return self.state.side_to_move

    @property
    def status(self) -> Status:
        return self.state.status

    @property
    def forced_continuation(self) -> Optional[Position]:
        return self.state.forced_continuation

    @property
    def is_over(self) -> bool:
        return self.state.status != Status.IN_PROGRESS

    @property
    def winner(self) -> Optional[Side]:
        return next(
            (side for side, status in WIN_STATUS.items() if status == self.status),
            None,
        )

    def legal_moves(self) -> list[Move]:
        """
        Legal moves for the side to move.
        ----

        * Game over: nothing is legal anymore.
        * In the middle of a capture chain: only further jumps with the piece that is capturing.
        * Otherwise: every move of every piece of the side to move.
        """
        if self.is_over:
            return []

        side = self.state.side_to_move
        if self.state.forced_continuation is not None:
            return get_moves_for_piece(
                self.state.board, self.state.forced_continuation, side, jump_only=True
            )
        return get_all_valid_moves(self.state.board, side, self.strict_capture)

    def apply_move(self, move: Move, validate: bool = True) -> Move:
        """
        Attempt to make a move (a single hop)
        -----

        1. relocate the piece
        2. remove the captured piece(s)
        3. promote to King when reaching the opponent's back rank
        4. after a capture: keep the turn if the piece can jump again, otherwise pass the turn
        5. update game status (also in the middle of a capture chain)

        Returns the legal move that was applied (with its captured squares filled in).
        Raises IllegalMoveError and leaves the state untouched if the move is not legal right now.

        ---
        NOTE: validate=False applies the move exactly as given (trusting the peer). Only the game status
        and the presence of a piece on the starting square are checked then.
        """
        if self.is_over:
            raise IllegalMoveError(
                f"Game is over ({self.status}). Move not allowed: {move.to_notation()}"
            )

        accepted_move = self._find_legal_move(move) if validate else move
        if not validate and self.state.board.piece(move.from_position) is None:
            raise IllegalMoveError(
                f"No piece on {move.from_position.to_notation()}. Move not allowed: {move.to_notation()}"
            )
        self._update_board(accepted_move)
        self._update_turn(accepted_move)
        self.moves.append(accepted_move)
        self._update_game_status()
        return accepted_move

    def resign(self, side: Side) -> None:
        """Give up: the other side wins immediately."""
        self._assert_in_progress()
        self._change_status(WIN_STATUS[side.opponent])

    def accept_draw(self) -> None:
        """A draw offer lives in the protocol. Only accepting it changes the game."""
        self._assert_in_progress()
        self._change_status(Status.DRAW)

    def sync(
        self,
        board: Board,
        side_to_move: Side,
        forced_continuation: Optional[Position] = None,
    ) -> None:
        """Overwrite the position with the one the peer established (SYNC message)."""
        self.state.board = board
        self.state.side_to_move = side_to_move
        self.state.forced_continuation = forced_continuation
        self.moves = []

    def set_status(self, status: Status) -> None:
        """Status from the peer (STATUS message) bypasses the normal terminal evaluation."""
        self._change_status(status)

    # -- PRIVATE HELPERS ---
    def _assert_in_progress(self) -> None:
        if self.is_over:
            raise GameStateError(f"Game is not in progress. status: {self.status}")

    def _find_legal_move(self, move: Move) -> Move:
        """
        Match the candidate against the legal move set on from/to squares.
        If the candidate names captured squares, they must match as well.
        """
        for legal_move in self.legal_moves():
            if (
                legal_move.from_position != move.from_position
                or legal_move.to_position != move.to_position
            ):
                continue
            if move.captured and set(move.captured) != set(legal_move.captured):
                continue
            return legal_move

        if self.state.forced_continuation is not None:
            raise IllegalMoveError(
                f"Move not allowed: {move.to_notation()}. Must keep jumping from {self.state.forced_continuation.to_notation()}"
            )
        raise IllegalMoveError(f"Move not allowed: {move.to_notation()}")

    def _update_board(self, move: Move) -> None:
        board = self.state.board
        piece = board.move_piece(move.from_position, move.to_position)

        for square in move.captured:
            board.remove_piece(square)

        # promotion is permanent: a King never turns back into a man
        if not piece.is_king and move.to_position.row == PROMOTION_ROW[piece.owner]:
            board.place_piece(piece.promoted(), move.to_position)

    def _update_turn(self, move: Move) -> None:
        """A capturing piece must continue jumping from its landing square while it can."""
        side = self.state.side_to_move
        if move.is_capture:
            further_jumps = get_moves_for_piece(
                self.state.board, move.to_position, side, jump_only=True
            )
            if further_jumps:
                self.state.forced_continuation = move.to_position
                return

        self.state.forced_continuation = None
        self.state.side_to_move = side.opponent

    def _update_game_status(self) -> None:
        """
        Performs checks to see if game has ended and changes status accordingly.

        Runs after every hop: a side can run out of pieces in the middle of a capture chain.
        1. a side without pieces has lost
        2. the side to move without any legal move has lost
        """
        piece_count = self.state.board.count_pieces()
        for side in Side:
            if piece_count[side] == 0:
                self._change_status(WIN_STATUS[side.opponent])
                return

        if not self.legal_moves():
            self._change_status(WIN_STATUS[self.state.side_to_move.opponent])

    def _change_status(self, new_status: Status) -> None:
        self.state.status = new_status
