"""Printed reports for solved Pan positions.

    print_cache_summary(cache)          — classified positions per outcome
    print_position(position)            — the three piles and the side to move
    print_move_table(position, cache)   — every legal move with its solved outcome
"""

from __future__ import annotations

from pan_solver.engine.cards import RANK_CAPACITIES, hand_size, hand_to_str
from pan_solver.engine.moves import possible_moves
from pan_solver.engine.position import Position
from pan_solver.solvers.outcome_cache import CACHE_BUCKET_ORDER, OutcomeCache
from pan_solver.solvers.policies import outcome_of


def print_cache_summary(cache: OutcomeCache) -> None:
    """Print how many positions are filed under each outcome."""
    counts = cache.counts()
    total = len(cache)

    print("=" * 44)
    print("Outcome Cache")
    print("=" * 44)
    print(f"  {'Outcome':<10}  {'Positions':>12}  {'Share':>8}")
    print(f"  {'-------':<10}  {'---------':>12}  {'-----':>8}")
    for outcome in CACHE_BUCKET_ORDER:
        share = counts[outcome] / total * 100 if total else 0.0
        print(f"  {outcome.label():<10}  {counts[outcome]:>12,}  {share:>7.2f}%")
    print(f"  {'Total':<10}  {total:>12,}")
    print()


def print_position(position: Position) -> None:
    """Print the opponent's hand, the stack and the player's hand, top to bottom."""
    print(f"  Opponent  {hand_to_str(position.opponent_hand) or '-'}  ({hand_size(position.opponent_hand)})")
    print(f"  Stack     {hand_to_str(position.stack) or '-'}")
    print(f"  Player    {hand_to_str(position.player_hand) or '-'}  ({hand_size(position.player_hand)})")
    print(f"  To move   {position.turn.name.lower()}")
    print()


def print_move_table(
    position: Position,
    cache: OutcomeCache,
    capacities: tuple[int, ...] = RANK_CAPACITIES,
) -> None:
    """Print each legal move, the position it leads to, and its solved outcome.

    Unsolved results are shown as '?' rather than raising, so the table can
    be printed for a partially solved cache.
    """
    moves = possible_moves(position)
    current = outcome_of(position, cache, capacities)

    print("=" * 56)
    print(f"Moves for {position.turn.name.lower()}  "
          f"(position value: {current.label() if current is not None else '?'})")
    print("=" * 56)
    if not moves:
        print("  (game over, no legal moves)")
        print()
        return

    print(f"  {'#':>2}  {'Move':<8}  {'Stack after':<14}  {'Outcome':<8}")
    print(f"  {'--':>2}  {'----':<8}  {'-----------':<14}  {'-------':<8}")
    for idx, move in enumerate(moves):
        outcome = outcome_of(move.position, cache, capacities)
        label = outcome.label() if outcome is not None else "?"
        stack = hand_to_str(move.position.stack) or "-"
        print(f"  {idx:>2}  {move.describe():<8}  {stack:<14}  {label:<8}")
    print()
