"""
Forward move generation and its inverse.

Forward moves (possible_moves), for the side to move:
    PLAY_ONE(rank) — put one card of ``rank`` on the stack.
    SWEEP(rank)    — put every copy of ``rank`` on the stack at once
                     (only when the mover holds all of them).
    TAKE           — pick up to TAKE_LIMIT cards off the top of the stack.

A card may only be put on the stack if it is at least as strong as the
current top. Ranks are scanned strongest first and the scan stops at the
stack's top rank.

Inverse moves (preceding_positions) answer: from which positions could the
side that just moved have produced this one? The solver walks these edges
backwards instead of storing forward edges. Both directions are kept as
separate functions so the move/inverse duality can be checked by tests
rather than assumed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from .cards import rank_to_str, top_rank, with_count
from .position import Position

# Maximum number of cards picked up by a single TAKE.
TAKE_LIMIT: int = 3


class MoveKind(Enum):
    PLAY_ONE = auto()
    SWEEP = auto()
    TAKE = auto()


@dataclass(frozen=True)
class Move:
    """A legal action together with the position it produces.

    Attributes:
        position: Resulting position (turn already passed to the other side).
        kind:     What the mover did.
        rank:     Rank played for PLAY_ONE / SWEEP; None for TAKE.
    """
    position: Position
    kind: MoveKind
    rank: int | None = None

    def describe(self) -> str:
        if self.kind is MoveKind.TAKE:
            return "take"
        if self.kind is MoveKind.SWEEP:
            return f"sweep {rank_to_str(self.rank)}"
        return f"play {rank_to_str(self.rank)}"


# ─── Forward generation ───────────────────────────────────────────────────────

def _put(position: Position, rank: int, count: int) -> Position:
    """Move ``count`` cards of ``rank`` from the mover's hand to the stack and pass the turn."""
    turn = position.turn
    moved = position.with_hand(
        turn,
        with_count(position.hand_of(turn), rank, -count),
        with_count(position.stack, rank, count),
    )
    return Position(moved.player_hand, moved.opponent_hand, moved.stack, turn.next())


def _take(position: Position) -> tuple[Position, int]:
    """Move up to TAKE_LIMIT top cards into the mover's hand and pass the turn.

    Returns:
        (resulting position, number of cards actually taken)
    """
    turn = position.turn
    hand = list(position.hand_of(turn))
    stack = list(position.stack)
    remaining = TAKE_LIMIT
    for rank in range(len(stack)):
        taken = min(remaining, stack[rank])
        stack[rank] -= taken
        hand[rank] += taken
        remaining -= taken
        if remaining == 0:
            break
    moved = position.with_hand(turn, tuple(hand), tuple(stack))
    return (
        Position(moved.player_hand, moved.opponent_hand, moved.stack, turn.next()),
        TAKE_LIMIT - remaining,
    )


def possible_moves(position: Position) -> list[Move]:
    """Enumerate every legal move from a position.

    Put moves come first, strongest rank first (PLAY_ONE before SWEEP for
    the same rank); the TAKE move, if any, comes last. Terminal positions
    have no moves.

    Examples:
        >>> from pan_solver.engine.position import initial_position
        >>> len(possible_moves(initial_position()))
        6
    """
    moves: list[Move] = []
    if position.is_terminal():
        return moves

    hand = position.mover_hand
    stack = position.stack

    for rank in range(position.num_ranks):
        if hand[rank] > 0:
            moves.append(Move(_put(position, rank, 1), MoveKind.PLAY_ONE, rank))

        capacity = position.rank_capacity(rank)
        if hand[rank] == capacity:
            moves.append(Move(_put(position, rank, capacity), MoveKind.SWEEP, rank))

        # Weaker ranks may not cover this one.
        if stack[rank] != 0:
            break

    taken_position, taken = _take(position)
    if taken > 0:
        moves.append(Move(taken_position, MoveKind.TAKE))

    return moves


def following_positions(position: Position) -> list[Position]:
    """Return the positions reachable by one legal move."""
    return [move.position for move in possible_moves(position)]


# ─── Inverse generation ───────────────────────────────────────────────────────

def _untake(
    results: list[Position],
    position: Position,
    max_rank: int,
    exact: bool,
    cards_left: int,
) -> None:
    """Put cards back from the taker's hand onto the stack, one per level.

    Each level puts back one card no weaker than ``max_rank`` (and no weaker
    than the card put back at the level above), so every multiset of returned
    cards is produced exactly once. Depth is bounded by TAKE_LIMIT.

    Args:
        results:    Accumulator for predecessor positions.
        position:   Position whose ``turn`` is the side that took.
        max_rank:   Weakest rank index that may be put back at this level.
        exact:      If True only a full TAKE_LIMIT reconstruction counts
                    (the stack was not exhausted by the take).
        cards_left: Cards that may still be put back, including this level.
    """
    cards_left -= 1
    turn = position.turn
    hand = position.hand_of(turn)
    for rank in range(max_rank + 1):
        if hand[rank] == 0:
            continue
        restored = position.with_hand(
            turn,
            with_count(hand, rank, -1),
            with_count(position.stack, rank, 1),
        )
        if not restored.is_terminal() and (cards_left == 0 or not exact):
            results.append(restored)
        if cards_left > 0:
            _untake(results, restored, rank, exact, cards_left)


def preceding_positions(position: Position) -> list[Position]:
    """Return the positions from which one move by the previous mover leads here.

    The previous mover is ``position.turn.next()``. Candidates are built by
    undoing a PLAY_ONE or SWEEP of the stack's top rank, and by undoing a
    TAKE of 1 to TAKE_LIMIT cards. Terminal candidates are dropped: the game
    would already have ended there.

    The result may contain positions that are not reachable from any given
    start; callers restrict it to the states they care about.
    """
    results: list[Position] = []

    # Rewind the turn so the previous mover's hand is the "current" hand.
    previous = Position(
        position.player_hand,
        position.opponent_hand,
        position.stack,
        position.turn.next(),
    )
    turn = previous.turn
    hand = previous.hand_of(turn)
    top = top_rank(previous.stack)

    if top is not None:
        unplayed = previous.with_hand(
            turn,
            with_count(hand, top, 1),
            with_count(previous.stack, top, -1),
        )
        if not unplayed.is_terminal():
            results.append(unplayed)

        capacity = previous.rank_capacity(top)
        if previous.stack[top] == capacity:
            unswept = previous.with_hand(
                turn,
                with_count(hand, top, capacity),
                with_count(previous.stack, top, -capacity),
            )
            if not unswept.is_terminal():
                results.append(unswept)

    if top is None:
        _untake(results, previous, previous.num_ranks - 1, False, TAKE_LIMIT)
    else:
        _untake(results, previous, top, True, TAKE_LIMIT)

    return results
