"""
Game outcomes and terminal adjudication.

A side that gets rid of all its cards wins. The outcome of a position is its
game-theoretic value under optimal play by both sides:

    PLAYER_WINS    — the player can force emptying their hand
    OPPONENT_WINS  — the opponent can force emptying theirs
    DRAW           — neither side can force a win (play cycles forever)
"""

from __future__ import annotations

from enum import Enum

from .cards import is_empty
from .position import Position, Turn


class Outcome(Enum):
    PLAYER_WINS = 0
    OPPONENT_WINS = 1
    DRAW = 2

    @property
    def winner(self) -> Turn | None:
        """The winning side, or None for a draw."""
        if self is Outcome.PLAYER_WINS:
            return Turn.PLAYER
        if self is Outcome.OPPONENT_WINS:
            return Turn.OPPONENT
        return None

    @classmethod
    def win_for(cls, turn: Turn) -> Outcome:
        """Return the outcome in which ``turn`` wins."""
        return cls.PLAYER_WINS if turn is Turn.PLAYER else cls.OPPONENT_WINS

    def label(self) -> str:
        if self is Outcome.PLAYER_WINS:
            return "Player"
        if self is Outcome.OPPONENT_WINS:
            return "Opponent"
        return "Draw"


def terminal_outcome(position: Position) -> Outcome | None:
    """Return the outcome of a finished game, or None if play continues.

    The player's hand is checked first. Only positions outside normal play
    (e.g. random_position) can have both hands empty; those count as a
    player win.
    """
    if is_empty(position.player_hand):
        return Outcome.PLAYER_WINS
    if is_empty(position.opponent_hand):
        return Outcome.OPPONENT_WINS
    return None
