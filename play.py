"""Pan — play against the computer in the terminal.

Loads the outcome cache, solves every position reachable from the start
(slow the first time, instant once the cache is built), then alternates
between your moves and the computer's until someone empties their hand.

Run:
    python play.py [--cache pan_cache.bin] [--start initial|random] [--seed N]
"""

from __future__ import annotations

import argparse
import logging
import sys

import numpy as np

from pan_solver.analysis.strategy_report import print_position
from pan_solver.engine.game_state import GameSession
from pan_solver.engine.position import Turn, initial_position, random_position
from pan_solver.solvers.outcome_cache import DEFAULT_CACHE_PATH, load_or_empty
from pan_solver.solvers.policies import OptimalPolicy, RandomPolicy


def _read_choice(count: int) -> int | None:
    """Prompt until the user enters a move number; None on 'q' or end of input."""
    while True:
        try:
            raw = input(f"Your move [0-{count - 1}, q to quit]: ").strip().lower()
        except EOFError:
            return None
        if raw == "q":
            return None
        if raw.isdigit() and int(raw) < count:
            return int(raw)
        print("  Not a valid move number.")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Play Pan against the computer.")
    parser.add_argument("--cache", default=DEFAULT_CACHE_PATH)
    parser.add_argument("--start", choices=("initial", "random"), default="initial")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--random-opponent", action="store_true",
                        help="Computer plays random moves instead of optimal ones.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    rng = np.random.default_rng(args.seed)
    start = initial_position() if args.start == "initial" else random_position(rng=rng)

    print("Trying to load cache if present.")
    cache = load_or_empty(args.cache)
    print("If the cache is not built up, calculating the strategy may take a few minutes.")
    optimal = OptimalPolicy.from_start(start, cache, rng=rng)
    policy = RandomPolicy(rng) if args.random_opponent else optimal
    session = GameSession(start, policy)

    while not session.is_over:
        print_position(session.position)
        print(f"  Solved value: {optimal.outcome(session.position).label()}")
        if session.human_to_move:
            moves = session.player_moves()
            for idx, move in enumerate(moves):
                print(f"  {idx:>2}  {move.describe()}")
            choice = _read_choice(len(moves))
            if choice is None:
                break
            session.apply_move_index(choice)
        else:
            move = session.computer_step()
            print(f"Computer: {move.describe()}")

    if session.is_over:
        print_position(session.position)
        print("You win!" if session.winner is Turn.PLAYER else "The computer wins.")

    try:
        cache.save(args.cache)
    except OSError as exc:
        print(f"Error while saving cache: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
