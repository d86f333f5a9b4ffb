"""
Tests for pan_solver/solvers/retrograde.py.

Solver results are compared against hand-solved positions and, on a reduced
deck, against a naive fixed-point iteration over the whole state space.
"""

from __future__ import annotations

import logging

import pytest

from pan_solver.engine.encoding import InvalidPositionError, encode
from pan_solver.engine.moves import following_positions, possible_moves
from pan_solver.engine.position import Position, Turn
from pan_solver.engine.rules import Outcome, terminal_outcome
from pan_solver.solvers.outcome_cache import OutcomeCache
from pan_solver.solvers.retrograde import SolveStats, main, solve
from tests.conftest import SMALL_DECK, TINY_DECK, all_positions, pos


def _tiny(player: str, opponent: str, stack: str, turn: Turn = Turn.PLAYER) -> Position:
    return pos(player, opponent, stack, turn, num_ranks=2)


def _reachable(start: Position) -> set[Position]:
    seen = {start}
    frontier = [start]
    while frontier:
        for child in following_positions(frontier.pop()):
            if child not in seen:
                seen.add(child)
                frontier.append(child)
    return seen


def _naive_outcomes(positions: list[Position]) -> dict[Position, Outcome]:
    """Least fixed point by repeated sweeps; whatever never resolves is a draw."""
    values: dict[Position, Outcome] = {}
    for position in positions:
        outcome = terminal_outcome(position)
        if outcome is not None:
            values[position] = outcome

    changed = True
    while changed:
        changed = False
        for position in positions:
            if position in values:
                continue
            own_win = Outcome.win_for(position.turn)
            own_loss = Outcome.win_for(position.turn.next())
            children = [values.get(child) for child in following_positions(position)]
            if own_win in children:
                values[position] = own_win
                changed = True
            elif all(child is own_loss for child in children):
                values[position] = own_loss
                changed = True

    return {p: values.get(p, Outcome.DRAW) for p in positions}


# Opponent to move holding a single ace: playing it wins.
X = _tiny('K', 'A', 'A', Turn.OPPONENT)
Y = _tiny('A', 'A', 'K', Turn.OPPONENT)
# Player to move; every move hands the opponent a winning ace play.
START = _tiny('AK', 'A', '')


class TestHandSolved:
    def test_opponent_plays_last_card(self):
        cache = OutcomeCache()
        solve(X, cache, TINY_DECK)
        assert cache.classify(encode(X, TINY_DECK)) is Outcome.OPPONENT_WINS

    def test_every_move_loses(self):
        cache = OutcomeCache()
        solve(START, cache, TINY_DECK)
        assert cache.classify(encode(START, TINY_DECK)) is Outcome.OPPONENT_WINS
        assert cache.classify(encode(Y, TINY_DECK)) is Outcome.OPPONENT_WINS

    def test_player_plays_last_card(self):
        cache = OutcomeCache()
        start = _tiny('A', 'AK', '')
        solve(start, cache, TINY_DECK)
        assert cache.classify(encode(start, TINY_DECK)) is Outcome.PLAYER_WINS

    def test_standard_deck_single_card(self):
        cache = OutcomeCache()
        start = pos('9', 'AAAAKKKKQQQQJJJJTTTT99', '')
        stats = solve(start, cache)
        assert cache.classify(encode(start)) is Outcome.PLAYER_WINS
        assert stats.new_positions == 2
        assert stats.terminal_seeds == 1
        assert stats.classified[Outcome.PLAYER_WINS] == 2

    def test_terminal_start(self):
        cache = OutcomeCache()
        start = _tiny('', 'AAK', '')
        stats = solve(start, cache, TINY_DECK)
        assert cache.classify(encode(start, TINY_DECK)) is Outcome.PLAYER_WINS
        assert stats.new_positions == 1
        assert stats.terminal_seeds == 1

    def test_invalid_start(self):
        with pytest.raises(InvalidPositionError):
            solve(_tiny('AA', 'AK', ''), OutcomeCache(), TINY_DECK)


class TestCompleteness:
    def test_every_reachable_position_classified(self):
        start = _tiny('AK', 'A', '')
        cache = OutcomeCache()
        stats = solve(start, cache, TINY_DECK)
        reachable = _reachable(start)
        assert stats.new_positions == len(reachable) == len(cache)
        for position in reachable:
            assert encode(position, TINY_DECK) in cache

    def test_small_deck_from_every_position(self):
        cache = OutcomeCache()
        positions = all_positions(SMALL_DECK)
        for position in positions:
            solve(position, cache, SMALL_DECK)
        assert len(cache) == len(positions)

    def test_stats_account_for_every_filing(self):
        cache = OutcomeCache()
        stats = solve(_tiny('AK', 'A', ''), cache, TINY_DECK)
        assert stats.total_classified == stats.new_positions == len(cache)
        assert stats.elapsed_seconds >= 0.0


class TestAgainstFixedPoint:
    def test_matches_naive_iteration(self):
        positions = all_positions(SMALL_DECK)
        expected = _naive_outcomes(positions)
        cache = OutcomeCache()
        for position in positions:
            solve(position, cache, SMALL_DECK)
        for position in positions:
            assert cache.classify(encode(position, SMALL_DECK)) is expected[position], str(position)

    def test_fresh_solves_match_naive_iteration(self):
        positions = all_positions(SMALL_DECK)
        expected = _naive_outcomes(positions)
        for position in positions[::17]:
            cache = OutcomeCache()
            solve(position, cache, SMALL_DECK)
            assert cache.classify(encode(position, SMALL_DECK)) is expected[position]

    def test_small_deck_has_every_outcome(self):
        values = set(_naive_outcomes(all_positions(SMALL_DECK)).values())
        assert Outcome.PLAYER_WINS in values
        assert Outcome.OPPONENT_WINS in values


class TestConsistency:
    def test_outcomes_agree_with_successors(self):
        cache = OutcomeCache()
        positions = all_positions(SMALL_DECK)
        for position in positions:
            solve(position, cache, SMALL_DECK)

        for position in positions:
            outcome = cache.classify(encode(position, SMALL_DECK))
            moves = possible_moves(position)
            if not moves:
                assert outcome is terminal_outcome(position)
                continue
            children = [cache.classify(encode(m.position, SMALL_DECK)) for m in moves]
            own_win = Outcome.win_for(position.turn)
            own_loss = Outcome.win_for(position.turn.next())
            if outcome is own_win:
                assert own_win in children
            elif outcome is own_loss:
                assert all(child is own_loss for child in children)
            else:
                assert own_win not in children
                assert Outcome.DRAW in children


class TestIncremental:
    def test_second_solve_adds_nothing(self):
        cache = OutcomeCache()
        solve(START, cache, TINY_DECK)
        before = cache.to_bytes()
        stats = solve(START, cache, TINY_DECK)
        assert stats.new_positions == 0
        assert stats.total_classified == 0
        assert cache.to_bytes() == before

    def test_staged_solve_matches_fresh(self):
        staged = OutcomeCache()
        solve(X, staged, TINY_DECK)
        solve(START, staged, TINY_DECK)

        fresh = OutcomeCache()
        solve(START, fresh, TINY_DECK)
        assert staged.to_bytes() == fresh.to_bytes()

    def test_staged_small_deck_matches_fresh(self):
        positions = all_positions(SMALL_DECK)
        start = pos('AKQ', 'AK', '', num_ranks=3)

        fresh = OutcomeCache()
        solve(start, fresh, SMALL_DECK)

        staged = OutcomeCache()
        for position in positions[::5]:
            solve(position, staged, SMALL_DECK)
        solve(start, staged, SMALL_DECK)

        for key in fresh.keys(Outcome.PLAYER_WINS):
            assert staged.classify(key) is Outcome.PLAYER_WINS
        for key in fresh.keys(Outcome.OPPONENT_WINS):
            assert staged.classify(key) is Outcome.OPPONENT_WINS
        for key in fresh.keys(Outcome.DRAW):
            assert staged.classify(key) is Outcome.DRAW

    def test_reload_then_solve(self, tmp_path):
        path = tmp_path / "cache.bin"
        first = OutcomeCache()
        solve(X, first, TINY_DECK)
        first.save(path)

        reloaded = OutcomeCache.load(path)
        solve(START, reloaded, TINY_DECK)

        fresh = OutcomeCache()
        solve(START, fresh, TINY_DECK)
        assert reloaded.to_bytes() == fresh.to_bytes()


class TestSolveStats:
    def test_defaults(self):
        stats = SolveStats()
        assert stats.new_positions == 0
        assert stats.classified == {o: 0 for o in Outcome}
        assert stats.total_classified == 0

    def test_instances_do_not_share_counts(self):
        a, b = SolveStats(), SolveStats()
        a.classified[Outcome.DRAW] += 1
        assert b.classified[Outcome.DRAW] == 0

    def test_logs_phases(self, caplog):
        with caplog.at_level(logging.INFO, logger="pan_solver.solvers.retrograde"):
            solve(START, OutcomeCache(), TINY_DECK)
        assert "Phase 1" in caplog.text
        assert "Phase 2" in caplog.text


class TestMain:
    def test_no_save(self, tmp_path, capsys, monkeypatch):
        monkeypatch.setattr(
            "pan_solver.solvers.retrograde.solve",
            lambda start, cache, capacities=None: SolveStats(),
        )
        path = tmp_path / "cache.bin"
        assert main(["--cache", str(path), "--no-save"]) == 0
        assert not path.exists()
        assert "Pan retrograde solver" in capsys.readouterr().out

    def test_saves_cache(self, tmp_path, monkeypatch):
        def fake_solve(start, cache, capacities=None):
            cache.add(encode(start), Outcome.DRAW)
            return SolveStats(new_positions=1)

        monkeypatch.setattr("pan_solver.solvers.retrograde.solve", fake_solve)
        path = tmp_path / "cache.bin"
        assert main(["--cache", str(path)]) == 0
        assert len(OutcomeCache.load(path)) == 1

    def test_unwritable_cache(self, tmp_path, capsys, monkeypatch):
        monkeypatch.setattr(
            "pan_solver.solvers.retrograde.solve",
            lambda start, cache, capacities=None: SolveStats(),
        )
        target = tmp_path / "missing_dir" / "cache.bin"
        assert main(["--cache", str(target)]) == 1
        assert "Error while saving cache" in capsys.readouterr().err
