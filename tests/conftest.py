"""
Shared pytest fixtures for Pan solver tests.

Provides builders for positions from rank strings and reduced decks small
enough to enumerate and solve exhaustively.
"""

from __future__ import annotations

import itertools

import numpy as np
import pytest

from pan_solver.engine.cards import NUM_RANKS, str_to_hand
from pan_solver.engine.encoding import triple_table
from pan_solver.engine.position import Position, Turn

# Two ranks: A (2 copies), K (1 copy).
TINY_DECK: tuple[int, ...] = (2, 1)

# Three ranks: A (2), K (2), Q (1).
SMALL_DECK: tuple[int, ...] = (2, 2, 1)


def pos(
    player: str,
    opponent: str,
    stack: str,
    turn: Turn = Turn.PLAYER,
    num_ranks: int = NUM_RANKS,
) -> Position:
    """Build a position from rank strings.

    Examples:
        >>> pos('A', 'AK', '', num_ranks=2)
        Position(player_hand=(1, 0), opponent_hand=(1, 1), stack=(0, 0), turn=<Turn.PLAYER: 0>)
    """
    return Position(
        player_hand=str_to_hand(player, num_ranks),
        opponent_hand=str_to_hand(opponent, num_ranks),
        stack=str_to_hand(stack, num_ranks),
        turn=turn,
    )


def all_positions(capacities: tuple[int, ...]) -> list[Position]:
    """Every hand-invariant-consistent position of a deck, both turns."""
    result = []
    tables = [triple_table(c) for c in capacities]
    for triples in itertools.product(*tables):
        player = tuple(t[0] for t in triples)
        opponent = tuple(t[1] for t in triples)
        stack = tuple(t[2] for t in triples)
        for turn in Turn:
            result.append(Position(player, opponent, stack, turn))
    return result


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded generator so random positions and tie-breaks are reproducible."""
    return np.random.default_rng(1234)
