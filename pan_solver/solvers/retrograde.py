"""
Retrograde (backward-induction) solver for Pan.

Classifies every position reachable from a start position as PLAYER_WINS,
OPPONENT_WINS or DRAW and files the result in an OutcomeCache. Positions the
cache already knows are never expanded again, so repeated solves only pay for
genuinely new states.

Phase 1 — reachability & terminal seeding
    Breadth-first over forward moves from the start key. Every key the cache
    does not know joins the "newly reachable" set. Terminal results are
    classified on discovery (the side with the empty hand wins) and seed
    phase 2. A new key with a successor classified by an earlier run is also
    queued, so old results flow into new states.

Phase 2 — backward propagation
    A queued, still-unclassified key with mover t becomes
        Win(t)       if any move reaches a Win(t) position,
        Win(t.next)  if every move reaches a Win(t.next) position.
    Each newly classified key re-queues its predecessors (inverse moves,
    restricted to the newly reachable set). Keys that cannot be decided yet
    are revisited when one of their successors resolves.

Closure
    Whatever is still unclassified when the queue drains can never be forced
    by either side: DRAW.

The search is single-threaded and runs to completion. The full game from the
opening deal has on the order of 10^7 reachable positions.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field

from pan_solver.engine.cards import RANK_CAPACITIES
from pan_solver.engine.encoding import decode, encode
from pan_solver.engine.moves import possible_moves, preceding_positions
from pan_solver.engine.position import Position
from pan_solver.engine.rules import Outcome, terminal_outcome
from pan_solver.solvers.outcome_cache import OutcomeCache

logger = logging.getLogger(__name__)


@dataclass
class SolveStats:
    """Bookkeeping for a single solve() call.

    Attributes:
        new_positions:   Keys discovered that the cache did not know before.
        terminal_seeds:  Terminal keys classified during phase 1.
        classified:      Keys filed per outcome during this call.
        elapsed_seconds: Wall-clock duration of the call.
    """
    new_positions: int = 0
    terminal_seeds: int = 0
    classified: dict[Outcome, int] = field(
        default_factory=lambda: {outcome: 0 for outcome in Outcome}
    )
    elapsed_seconds: float = 0.0

    @property
    def total_classified(self) -> int:
        return sum(self.classified.values())


def solve(
    start: Position,
    cache: OutcomeCache,
    capacities: tuple[int, ...] = RANK_CAPACITIES,
) -> SolveStats:
    """Classify every position reachable from ``start`` and add it to ``cache``.

    Args:
        start:      Position to solve from.
        cache:      Cache to consult and extend in place.
        capacities: Rank layout of the deck ``start`` belongs to.

    Returns:
        SolveStats for this call. After it returns, cache.classify() is
        defined for every position reachable from ``start``.

    Raises:
        InvalidPositionError: If ``start`` violates the hand invariant.
    """
    t0 = time.perf_counter()
    stats = SolveStats()

    def file(key: int, outcome: Outcome) -> None:
        cache.add(key, outcome)
        stats.classified[outcome] += 1

    # ── Phase 1: reachability & terminal seeding ──────────────────────────────
    start_key = encode(start, capacities)
    new_reachable: set[int] = set()
    seeds: list[int] = []
    boundary: list[int] = []
    frontier: deque[int] = deque()

    if cache.classify(start_key) is None:
        new_reachable.add(start_key)
        frontier.append(start_key)
        outcome = terminal_outcome(start)
        if outcome is not None:
            file(start_key, outcome)
            seeds.append(start_key)
    else:
        logger.debug("Start key %#x already classified, nothing to do", start_key)

    while frontier:
        key = frontier.popleft()
        for move in possible_moves(decode(key, capacities)):
            child = encode(move.position, capacities)
            if child in new_reachable:
                continue
            if child in cache:
                boundary.append(key)
                continue
            new_reachable.add(child)
            frontier.append(child)

            outcome = terminal_outcome(move.position)
            if outcome is not None:
                file(child, outcome)
                seeds.append(child)

    stats.new_positions = len(new_reachable)
    stats.terminal_seeds = len(seeds)
    logger.info(
        "Phase 1: %d new positions, %d terminal, %d bordering solved positions",
        len(new_reachable), len(seeds), len(boundary),
    )

    # ── Phase 2: backward propagation ─────────────────────────────────────────
    queue: deque[int] = deque()

    def enqueue_predecessors(key: int) -> None:
        for previous in preceding_positions(decode(key, capacities)):
            previous_key = encode(previous, capacities)
            if previous_key in new_reachable:
                queue.append(previous_key)

    for key in seeds:
        enqueue_predecessors(key)
    queue.extend(boundary)

    examined = 0
    while queue:
        key = queue.popleft()
        if cache.classify(key) is not None:
            continue
        examined += 1

        position = decode(key, capacities)
        moves = possible_moves(position)
        own_win = Outcome.win_for(position.turn)
        own_loss = Outcome.win_for(position.turn.next())

        losing_moves = 0
        can_win = False
        for move in moves:
            outcome = cache.classify(encode(move.position, capacities))
            if outcome is own_win:
                can_win = True
                break
            if outcome is own_loss:
                losing_moves += 1

        if can_win:
            file(key, own_win)
            enqueue_predecessors(key)
        elif losing_moves == len(moves):
            file(key, own_loss)
            enqueue_predecessors(key)

    logger.info("Phase 2: examined %d queued positions", examined)

    # ── Closure: nothing left can be forced ───────────────────────────────────
    for key in new_reachable:
        if cache.classify(key) is None:
            file(key, Outcome.DRAW)
    logger.debug("Closure: %d positions filed as draws", stats.classified[Outcome.DRAW])

    stats.elapsed_seconds = time.perf_counter() - t0
    logger.info(
        "Solved %d positions in %.2fs (player %d, opponent %d, draw %d)",
        stats.new_positions,
        stats.elapsed_seconds,
        stats.classified[Outcome.PLAYER_WINS],
        stats.classified[Outcome.OPPONENT_WINS],
        stats.classified[Outcome.DRAW],
    )
    return stats


# ─── Command line ─────────────────────────────────────────────────────────────

def main(argv: list[str] | None = None) -> int:
    import argparse
    import sys

    import numpy as np

    from pan_solver.analysis.strategy_report import (
        print_cache_summary,
        print_move_table,
        print_position,
    )
    from pan_solver.engine.position import initial_position, random_position
    from pan_solver.solvers.outcome_cache import DEFAULT_CACHE_PATH, load_or_empty

    parser = argparse.ArgumentParser(
        description="Solve Pan positions and persist the outcome cache."
    )
    parser.add_argument("--cache", default=DEFAULT_CACHE_PATH, help="Cache file to load and save.")
    parser.add_argument("--start", choices=("initial", "random"), default="initial")
    parser.add_argument("--seed", type=int, default=None, help="Seed for --start random.")
    parser.add_argument("--no-save", action="store_true", help="Do not write the cache back.")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.start == "initial":
        start = initial_position()
    else:
        start = random_position(rng=np.random.default_rng(args.seed))

    print("Pan retrograde solver")
    print_position(start)
    print("Loading cache; if it is not built up, solving may take a while.")
    cache = load_or_empty(args.cache)

    stats = solve(start, cache)
    print(f"Solved {stats.new_positions} new positions in {stats.elapsed_seconds:.2f}s")
    print_cache_summary(cache)
    print_move_table(start, cache)

    if not args.no_save:
        try:
            cache.save(args.cache)
        except OSError as exc:
            print(f"Error while saving cache: {exc}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
