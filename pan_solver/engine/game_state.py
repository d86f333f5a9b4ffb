"""
Game flow between a human and the computer.

GameSession holds the current position and drives one game:

    human's turn    → front end lists player_moves(), then apply_move()
    computer's turn → computer_step() asks the policy and applies its move
    terminal        → is_over becomes True and winner is decided

Rendering and input handling belong to the front end; this module only
tracks state. The computer's last move is remembered so the front end can
show what just happened.
"""

from __future__ import annotations

from pan_solver.engine.moves import Move, possible_moves
from pan_solver.engine.position import Position, Turn
from pan_solver.engine.rules import terminal_outcome
from pan_solver.solvers.policies import Policy


class GameSession:
    """One game of Pan.

    Args:
        position:      Starting position.
        policy:        Anything with ``next_move(position) -> Move | None``;
                       plays the computer's side.
        computer_turn: Which side the computer plays (the opponent by default).
    """

    def __init__(self, position: Position, policy: Policy, computer_turn: Turn = Turn.OPPONENT) -> None:
        self.position = position
        self.policy = policy
        self.computer_turn = computer_turn
        self.last_computer_move: Move | None = None
        self.history: list[Move] = []

    @property
    def is_over(self) -> bool:
        return self.position.is_terminal()

    @property
    def winner(self) -> Turn | None:
        """Side that emptied its hand, or None while the game is running."""
        outcome = terminal_outcome(self.position)
        return outcome.winner if outcome is not None else None

    @property
    def human_to_move(self) -> bool:
        return not self.is_over and self.position.turn is not self.computer_turn

    def player_moves(self) -> list[Move]:
        """Legal moves for the human; empty when it is not their turn."""
        if not self.human_to_move:
            return []
        return possible_moves(self.position)

    def apply_move(self, move: Move) -> None:
        """Play a human move chosen from player_moves().

        Raises:
            ValueError: If it is not the human's turn or the move is not legal
                        in the current position.
        """
        if not self.human_to_move:
            raise ValueError("It is not the human's turn.")
        if move not in possible_moves(self.position):
            raise ValueError(f"Illegal move {move.describe()!r} for the current position.")
        self.position = move.position
        self.history.append(move)

    def apply_move_index(self, index: int) -> Move:
        """Play the ``index``-th entry of player_moves() and return it."""
        moves = self.player_moves()
        if not 0 <= index < len(moves):
            raise ValueError(f"Move index {index} out of range (0..{len(moves) - 1}).")
        move = moves[index]
        self.apply_move(move)
        return move

    def computer_step(self) -> Move | None:
        """Let the policy move if it is the computer's turn.

        Returns:
            The move played, or None if the game is over or it is the
            human's turn.
        """
        if self.is_over or self.position.turn is not self.computer_turn:
            return None
        move = self.policy.next_move(self.position)
        if move is None:
            return None
        self.position = move.position
        self.last_computer_move = move
        self.history.append(move)
        return move

    def strategy_label(self) -> str:
        """Solved verdict for the current position, e.g. "[S: Draw]".

        Requires a policy exposing ``winner(position)`` (OptimalPolicy).
        """
        winner = self.policy.winner(self.position)
        if winner is None:
            return "[S: Draw]"
        return f"[S: {'Player' if winner is Turn.PLAYER else 'Opponent'}]"
