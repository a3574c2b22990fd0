"""
Game Errors Module
Error types raised by the tic-tac-toe board, move policy and session service
"""
from models import IllegalMoveReason


class IllegalMove(ValueError):
    """A move the board refuses. The board is left unchanged."""

    def __init__(self, reason: IllegalMoveReason, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


class InvalidConfiguration(ValueError):
    """Unknown game mode or difficulty; no session is created."""


class SessionClosed(ValueError):
    """The session was left via back-to-menu and cannot be used again."""


class PolicyInvariantError(AssertionError):
    """The move policy was asked to move on a board with no empty cell."""
