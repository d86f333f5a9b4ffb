"""
Move-selection policies for the computer side.

Every policy answers ``next_move(position) -> Move | None`` and returns None
exactly when the position is terminal.

    RandomPolicy   — uniform over legal moves.
    OptimalPolicy  — reads solved outcomes from an OutcomeCache and picks
                     uniformly within the best tier for the side to move:
                     own win > draw > loss.

OptimalPolicy requires the solver to have run to closure over every position
reachable from the game's actual start. Asking it about an unsolved position
is a programming error and raises UnsolvedPositionError.
"""

from __future__ import annotations

from typing import Protocol

import numpy as np

from pan_solver.engine.cards import RANK_CAPACITIES
from pan_solver.engine.encoding import encode
from pan_solver.engine.moves import Move, possible_moves
from pan_solver.engine.position import Position, Turn
from pan_solver.engine.rules import Outcome
from pan_solver.solvers.outcome_cache import OutcomeCache
from pan_solver.solvers.retrograde import solve


class UnsolvedPositionError(RuntimeError):
    """Raised when an outcome is requested for a position the solver never classified."""


class Policy(Protocol):
    def next_move(self, position: Position) -> Move | None:
        ...


def _choose(moves: list[Move], rng: np.random.Generator) -> Move | None:
    if not moves:
        return None
    return moves[int(rng.integers(len(moves)))]


def outcome_of(
    position: Position,
    cache: OutcomeCache,
    capacities: tuple[int, ...] = RANK_CAPACITIES,
) -> Outcome | None:
    """Return the solved outcome of a position, or None if the cache lacks it.

    None means "not solved", not "draw": solved draws come back as
    Outcome.DRAW.
    """
    return cache.classify(encode(position, capacities))


class RandomPolicy:
    """Uniformly random legal move."""

    def __init__(self, rng: np.random.Generator | None = None) -> None:
        self.rng = rng if rng is not None else np.random.default_rng()

    def next_move(self, position: Position) -> Move | None:
        return _choose(possible_moves(position), self.rng)


class OptimalPolicy:
    """Plays the best available outcome according to a solved cache.

    Args:
        cache:      Cache already solved over the positions this policy will see.
        rng:        Generator used to break ties within a tier.
        capacities: Rank layout the cache was built with.
    """

    def __init__(
        self,
        cache: OutcomeCache,
        rng: np.random.Generator | None = None,
        capacities: tuple[int, ...] = RANK_CAPACITIES,
    ) -> None:
        self.cache = cache
        self.rng = rng if rng is not None else np.random.default_rng()
        self.capacities = capacities

    @classmethod
    def from_start(
        cls,
        start: Position,
        cache: OutcomeCache,
        rng: np.random.Generator | None = None,
        capacities: tuple[int, ...] = RANK_CAPACITIES,
    ) -> OptimalPolicy:
        """Solve everything reachable from ``start`` into ``cache`` and wrap it."""
        solve(start, cache, capacities)
        return cls(cache, rng, capacities)

    def outcome(self, position: Position) -> Outcome:
        """Return the solved outcome of ``position``.

        Raises:
            UnsolvedPositionError: If the cache has no entry for the position.
        """
        outcome = outcome_of(position, self.cache, self.capacities)
        if outcome is None:
            raise UnsolvedPositionError(
                f"No solved outcome for position ({position}); "
                "run the solver from the game's start first."
            )
        return outcome

    def winner(self, position: Position) -> Turn | None:
        """Return the side that wins with optimal play, or None for a draw."""
        return self.outcome(position).winner

    def rank_moves(self, position: Position) -> tuple[list[Move], list[Move], list[Move]]:
        """Split the legal moves into (winning, drawing, losing) for the side to move."""
        win: list[Move] = []
        draw: list[Move] = []
        lose: list[Move] = []
        for move in possible_moves(position):
            winner = self.winner(move.position)
            if winner is None:
                draw.append(move)
            elif winner is position.turn:
                win.append(move)
            else:
                lose.append(move)
        return win, draw, lose

    def next_move(self, position: Position) -> Move | None:
        for tier in self.rank_moves(position):
            if tier:
                return _choose(tier, self.rng)
        return None
