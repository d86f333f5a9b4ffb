"""
Game positions and their constructors.

A Position is the full-information state of a Pan game: both hands, the table
stack and whose turn it is. Positions are frozen (hashable) so they can be
used directly as set members and dictionary keys; the solver itself works on
compact integer keys (see encoding.py).

Hand invariant: for every rank,
    player_hand[r] + opponent_hand[r] + stack[r] == capacity(r)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

import numpy as np

from .cards import (
    RANK_CAPACITIES,
    Hand,
    empty_hand,
    hand_to_str,
    is_empty,
)


class Turn(Enum):
    PLAYER = 0
    OPPONENT = 1

    def next(self) -> Turn:
        """Return the other side."""
        return Turn.OPPONENT if self is Turn.PLAYER else Turn.PLAYER


@dataclass(frozen=True)
class Position:
    """Immutable snapshot of a Pan game.

    Attributes:
        player_hand:   Per-rank counts held by the human player.
        opponent_hand: Per-rank counts held by the computer opponent.
        stack:         Per-rank counts on the table stack.
        turn:          Side to move.
    """
    player_hand: Hand
    opponent_hand: Hand
    stack: Hand
    turn: Turn

    @property
    def num_ranks(self) -> int:
        return len(self.stack)

    def is_terminal(self) -> bool:
        """Return True if either side has run out of cards."""
        return is_empty(self.player_hand) or is_empty(self.opponent_hand)

    def hand_of(self, turn: Turn) -> Hand:
        return self.player_hand if turn is Turn.PLAYER else self.opponent_hand

    @property
    def mover_hand(self) -> Hand:
        return self.hand_of(self.turn)

    def with_hand(self, turn: Turn, hand: Hand, stack: Hand) -> Position:
        """Return a copy with ``turn``'s hand and the stack replaced (turn unchanged)."""
        if turn is Turn.PLAYER:
            return replace(self, player_hand=hand, stack=stack)
        return replace(self, opponent_hand=hand, stack=stack)

    def rank_capacity(self, rank: int) -> int:
        """Total copies of a rank across both hands and the stack."""
        return self.player_hand[rank] + self.opponent_hand[rank] + self.stack[rank]

    def capacities(self) -> tuple[int, ...]:
        return tuple(self.rank_capacity(rank) for rank in range(self.num_ranks))

    def satisfies_invariant(self, capacities: tuple[int, ...] = RANK_CAPACITIES) -> bool:
        """Return True if the three piles account for every card of every rank exactly once."""
        piles = (self.player_hand, self.opponent_hand, self.stack)
        if any(len(pile) != len(capacities) for pile in piles):
            return False
        if any(count < 0 for pile in piles for count in pile):
            return False
        return self.capacities() == tuple(capacities)

    def __str__(self) -> str:
        return (
            f"Opponent: {hand_to_str(self.opponent_hand) or '-'} | "
            f"Stack: {hand_to_str(self.stack) or '-'} | "
            f"Player: {hand_to_str(self.player_hand) or '-'} | "
            f"{self.turn.name.lower()} to move"
        )


# ─── Constructors ─────────────────────────────────────────────────────────────

def initial_position() -> Position:
    """Return the standard opening deal.

    Both sides hold two of each of A, K, Q, J, T. The player also holds two
    nines and the opponent one; the stack is empty and the player moves first.
    """
    return Position(
        player_hand=(2, 2, 2, 2, 2, 2),
        opponent_hand=(2, 2, 2, 2, 2, 1),
        stack=empty_hand(),
        turn=Turn.PLAYER,
    )


def random_position(
    capacities: tuple[int, ...] = RANK_CAPACITIES,
    rng: np.random.Generator | None = None,
) -> Position:
    """Return a uniformly random hand-invariant-consistent position, player to move.

    Each rank's (player, opponent, stack) split is drawn independently from
    all splits of that rank's capacity. The result may be unreachable from
    the opening deal and may already be terminal.

    Args:
        capacities: Copies in play per rank.
        rng:        Generator to draw from; a fresh unseeded one if None.
    """
    from .encoding import triple_table

    if rng is None:
        rng = np.random.default_rng()

    player, opponent, stack = [], [], []
    for capacity in capacities:
        table = triple_table(capacity)
        p, o, s = table[int(rng.integers(len(table)))]
        player.append(p)
        opponent.append(o)
        stack.append(s)

    return Position(
        player_hand=tuple(player),
        opponent_hand=tuple(opponent),
        stack=tuple(stack),
        turn=Turn.PLAYER,
    )
