"""
bots.py - Bot interface and the lightweight bot tiers

Every bot exposes ``id``, ``name``, ``description`` and
``get_move(snapshot) -> Move | None``. ``runs_in_worker`` tells the
scheduler whether the bot is heavy enough to run in the worker process.
"""

import random
from typing import Optional

from connect3d.ai.evaluation import count_threats, center_distance
from connect3d.debug import debug
from connect3d.game.rules import GameSnapshot
from connect3d.utils import GRID_SIZE, COLUMN_FULL, Move, Player


class Bot:
    """Base class for all bots."""

    id = ''
    name = ''
    description = ''
    runs_in_worker = False

    def get_move(self, snapshot: GameSnapshot) -> Optional[Move]:
        """
        Choose a column for the player to move.

        Args:
            snapshot: Private copy of the position

        Returns:
            The chosen move, or None only when no legal move exists
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


class RandomBot(Bot):
    """Makes uniformly random legal moves."""

    id = 'random'
    name = 'Random Bot'
    description = 'Makes random moves. Good for beginners.'

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def get_move(self, snapshot: GameSnapshot) -> Optional[Move]:
        valid_moves = snapshot.legal_moves()
        if not valid_moves:
            return None
        return self.rng.choice(valid_moves)


class GreedyBot(Bot):
    """
    Looks one move ahead.

    Strategy:
    1. If a move wins, play it
    2. If the opponent could win in a column, block it
    3. Otherwise prefer moves creating playable threats, near the centre and low
    """

    id = 'greedy'
    name = 'Greedy Bot'
    description = 'Looks one move ahead. A reasonable challenge.'

    WIN_SCORE = 10000
    BLOCK_SCORE = 5000
    OWN_THREAT_WEIGHT = 100
    OPPONENT_THREAT_WEIGHT = 50
    CENTER_WEIGHT = 10
    HEIGHT_WEIGHT = 5
    JITTER = 2.0

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def get_move(self, snapshot: GameSnapshot) -> Optional[Move]:
        valid_moves = snapshot.legal_moves()
        if not valid_moves:
            return None

        player = snapshot.current_player
        best_move = None
        best_score = float('-inf')
        for move in valid_moves:
            score = self.evaluate_move(snapshot, move, player)
            if score >= self.WIN_SCORE:
                debug.debug(f"Greedy found winning move {move}", "search")
                return move
            if score > best_score:
                best_score = score
                best_move = move

        return best_move or valid_moves[0]

    def evaluate_move(self, snapshot: GameSnapshot, move: Move, player: Player) -> float:
        """
        Score a single candidate move.

        Args:
            snapshot: Position before the move
            move: Candidate column
            player: The player to move

        Returns:
            WIN_SCORE for a winning move, otherwise the weighted heuristic sum
        """
        board = snapshot.board
        y = snapshot.drop_position(move.x, move.z)
        if y == COLUMN_FULL:
            return float('-inf')

        opponent = player.other()
        played = board.play(move, player)
        if played is None:
            return float('-inf')
        new_board, index = played

        if new_board.is_win_at(index):
            return self.WIN_SCORE

        score = 0.0
        blocked, _ = board.play(move, opponent)
        if blocked.is_win_at(index):
            score += self.BLOCK_SCORE

        score += count_threats(new_board, player) * self.OWN_THREAT_WEIGHT
        score -= count_threats(new_board, opponent) * self.OPPONENT_THREAT_WEIGHT
        score += (3 - center_distance(move)) * self.CENTER_WEIGHT
        score += (GRID_SIZE - y) * self.HEIGHT_WEIGHT
        score += self.rng.random() * self.JITTER
        return score
