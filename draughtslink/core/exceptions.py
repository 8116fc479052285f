"""
Custom errors raised by the domain, protocol and service layers.

Everything derives from GameError, so a caller that only cares about "something went wrong in the game" can catch one type.
"""


class GameError(Exception):
    """Base class for all errors of this application."""


# --- DOMAIN ---
class IllegalMoveError(GameError):
    """The candidate move is not in the current legal move set. State is left unchanged."""


class NotYourTurnError(IllegalMoveError):
    """The local player tried to move while the other side is to move."""


class GameStateError(GameError):
    """The requested action is not allowed in the current game status."""


# --- BOUNDARY / WIRE ---
class InvalidRequestError(GameError):
    """A value inside a request or message is invalid (bad token, position off the board, ...)."""


class ProtocolError(GameError):
    """Something is wrong with a message exchanged with the peer."""


class MalformedMessageError(ProtocolError):
    """Inbound frame does not match any known message type / payload shape."""


class DesyncError(ProtocolError):
    """Inbound message parsed fine, but does not fit the local game state (both peers disagree)."""


# --- CHANNEL ---
class ChannelError(GameError):
    """The connection to the peer failed. Terminal for the session."""


class ChannelClosedError(ChannelError):
    """The connection to the peer was closed."""


# --- ADVISOR ---
class AdvisorError(GameError):
    """The advisory service failed or answered something unusable."""
