"""
Compact keys: a canonical 32-bit integer per position.

Each rank's (player, opponent, stack) split is replaced by its index in the
table of all non-negative triples summing to that rank's capacity:

    capacity 4 -> 15 triples (index fits in 4 bits)
    capacity 3 -> 10 triples

Key layout (little-endian bit numbering):
    bits 4*r .. 4*r+3   triple index of rank r   (r = 0 .. 5)
    bit  24             turn (0 = player, 1 = opponent)

The tables are built once, on first use, and never mutated afterwards.
"""

from __future__ import annotations

import functools

from .cards import MAX_CAPACITY, RANK_CAPACITIES
from .position import Position, Turn

Triple = tuple[int, int, int]

BITS_PER_RANK: int = 4
RANK_MASK: int = (1 << BITS_PER_RANK) - 1
TURN_SHIFT: int = 24
MAX_RANKS: int = TURN_SHIFT // BITS_PER_RANK
KEY_BITS: int = 32


class InvalidPositionError(ValueError):
    """Raised for a position (or key) that violates the hand invariant."""


@functools.cache
def triple_table(capacity: int) -> tuple[Triple, ...]:
    """Return every (player, opponent, stack) split of ``capacity`` cards.

    Order is lexicographic, which fixes the meaning of each index in the
    persisted keys.

    Examples:
        >>> triple_table(1)
        ((0, 0, 1), (0, 1, 0), (1, 0, 0))
        >>> len(triple_table(4)), len(triple_table(3))
        (15, 10)
    """
    if not 0 < capacity <= MAX_CAPACITY:
        raise ValueError(f"Capacity must be in 1..{MAX_CAPACITY}, got {capacity}.")
    return tuple(
        (p, o, s)
        for p in range(capacity + 1)
        for o in range(capacity + 1)
        for s in range(capacity + 1)
        if p + o + s == capacity
    )


@functools.cache
def triple_index(capacity: int) -> dict[Triple, int]:
    """Return the inverse of triple_table(capacity): triple -> index."""
    return {triple: idx for idx, triple in enumerate(triple_table(capacity))}


def _check_capacities(capacities: tuple[int, ...]) -> None:
    if not 0 < len(capacities) <= MAX_RANKS:
        raise ValueError(f"Between 1 and {MAX_RANKS} ranks are supported, got {len(capacities)}.")


def encode(position: Position, capacities: tuple[int, ...] = RANK_CAPACITIES) -> int:
    """Pack a position into its compact key.

    Raises:
        InvalidPositionError: If a pile has the wrong number of ranks or any
                              rank's split does not sum to its capacity.

    Examples:
        >>> from pan_solver.engine.position import initial_position
        >>> encode(initial_position())
        9157563
    """
    _check_capacities(capacities)
    num_ranks = len(capacities)
    piles = (position.player_hand, position.opponent_hand, position.stack)
    if any(len(pile) != num_ranks for pile in piles):
        raise InvalidPositionError(
            f"Expected {num_ranks} ranks per pile, got {[len(p) for p in piles]}."
        )

    key = 0
    for rank, capacity in enumerate(capacities):
        triple = (position.player_hand[rank], position.opponent_hand[rank], position.stack[rank])
        idx = triple_index(capacity).get(triple)
        if idx is None:
            raise InvalidPositionError(
                f"Invalid position: rank {rank} split {triple} does not sum to {capacity}."
            )
        key |= idx << (BITS_PER_RANK * rank)

    if position.turn is Turn.OPPONENT:
        key |= 1 << TURN_SHIFT
    return key


def decode(key: int, capacities: tuple[int, ...] = RANK_CAPACITIES) -> Position:
    """Unpack a compact key into the position it encodes.

    Raises:
        InvalidPositionError: If a rank index is outside its table or bits
                              outside the key layout are set.
    """
    _check_capacities(capacities)
    if key < 0 or key >> (TURN_SHIFT + 1):
        raise InvalidPositionError(f"Key {key:#x} has bits outside the key layout.")
    unused = (key & ((1 << TURN_SHIFT) - 1)) >> (BITS_PER_RANK * len(capacities))
    if unused:
        raise InvalidPositionError(f"Key {key:#x} encodes more than {len(capacities)} ranks.")

    player, opponent, stack = [], [], []
    for rank, capacity in enumerate(capacities):
        idx = (key >> (BITS_PER_RANK * rank)) & RANK_MASK
        table = triple_table(capacity)
        if idx >= len(table):
            raise InvalidPositionError(f"Key {key:#x}: index {idx} invalid for rank {rank}.")
        p, o, s = table[idx]
        player.append(p)
        opponent.append(o)
        stack.append(s)

    turn = Turn.OPPONENT if (key >> TURN_SHIFT) & 1 else Turn.PLAYER
    return Position(tuple(player), tuple(opponent), tuple(stack), turn)
