"""
minimax.py - Minimax search bots with alpha-beta pruning for 3D Connect Four

This module provides the two search-based bot tiers:
1. HardBot - fixed depth-5 minimax with alpha-beta pruning
2. ExpertBot - iterative-deepening negamax with a transposition table and
   a soft wall-clock budget

Both detect an immediate win before searching and order moves (wins,
blocks, centre, low landings) to cut as many branches as possible.
"""

import math
import time
from dataclasses import dataclass
from typing import List, Optional, Tuple

from connect3d.ai.bots import Bot
from connect3d.ai.evaluation import evaluate_board, order_moves
from connect3d.ai.transposition import TranspositionTable, BoundType
from connect3d.debug import debug
from connect3d.game.board import Board
from connect3d.game.rules import GameSnapshot
from connect3d.utils import (SCORES, HARD_SEARCH_DEPTH, EXPERT_TIME_LIMIT_MS, EXPERT_MAX_DEPTH,
                             TIME_BUDGET_FRACTION, NODE_CHECK_INTERVAL, Move, Player)


def find_winning_move(board: Board, moves: List[Move], player: Player) -> Optional[Move]:
    """Return the first move that completes a line for ``player``, if any."""
    for move in moves:
        played = board.play(move, player)
        if played is not None and played[0].is_win_at(played[1]):
            return move
    return None


@dataclass
class SearchStats:
    """Statistics about the most recent search, kept for logging and benchmarks."""
    depth_reached: int = 0
    nodes: int = 0
    elapsed_ms: float = 0.0
    best_score: float = 0.0
    tt_hits: int = 0
    tt_size: int = 0
    timed_out: bool = False


class HardBot(Bot):
    """
    Fixed-depth minimax with alpha-beta pruning.

    Terminal scores are scaled by the remaining depth so that faster wins
    and slower losses are preferred; draws score 0.
    """

    id = 'hard'
    name = 'Hard'
    description = 'Thinks several moves ahead. A serious challenge.'
    runs_in_worker = True

    def __init__(self, depth: int = HARD_SEARCH_DEPTH):
        """
        Initialize the bot.

        Args:
            depth: Search depth in plies
        """
        self.depth = depth
        self.last_stats = SearchStats()
        self._nodes = 0

    def get_move(self, snapshot: GameSnapshot) -> Optional[Move]:
        board = snapshot.board
        player = snapshot.current_player
        valid_moves = board.valid_moves()

        if not valid_moves:
            return None
        if len(valid_moves) == 1:
            return valid_moves[0]

        ordered_moves = order_moves(board, valid_moves, player)

        winning = find_winning_move(board, ordered_moves, player)
        if winning is not None:
            debug.debug(f"Hard bot plays immediate win {winning}", "search")
            return winning

        start = time.perf_counter()
        self._nodes = 0
        best_move = ordered_moves[0]
        best_score = -math.inf
        alpha = -math.inf
        beta = math.inf

        for move in ordered_moves:
            child, index = board.play(move, player)
            score = self._minimax(child, self.depth - 1, alpha, beta, False, player, index)

            if score > best_score:
                best_score = score
                best_move = move
            alpha = max(alpha, score)

        self.last_stats = SearchStats(
            depth_reached=self.depth,
            nodes=self._nodes,
            elapsed_ms=(time.perf_counter() - start) * 1000,
            best_score=best_score,
        )
        debug.debug(f"Hard bot chose {best_move} (score {best_score:.1f}, "
                    f"{self._nodes} nodes, {self.last_stats.elapsed_ms:.0f} ms)", "search")
        return best_move

    def _terminal_score(self, winner: Player, bot_player: Player, depth: int) -> float:
        base = SCORES['WIN'] if winner == bot_player else -SCORES['WIN']
        return base * (depth + 1) / (self.depth + 1)

    def _minimax(self, board: Board, depth: int, alpha: float, beta: float,
                 is_maximizing: bool, bot_player: Player, last_index: int) -> float:
        """
        Minimax algorithm with alpha-beta pruning.

        Args:
            board: Current board state
            depth: Remaining search depth
            alpha: Best score the maximizer can guarantee
            beta: Best score the minimizer can guarantee
            is_maximizing: True if the bot is to move at this node
            bot_player: The player we're maximizing for
            last_index: Cell filled by the move that led here

        Returns:
            The evaluation score for this position from the bot's perspective
        """
        self._nodes += 1

        if board.is_win_at(last_index):
            winner = Player(int(board.cells[last_index]))
            return self._terminal_score(winner, bot_player, depth)

        if board.is_full():
            return 0

        if depth == 0:
            return evaluate_board(board, bot_player)

        mover = bot_player if is_maximizing else bot_player.other()
        ordered_moves = order_moves(board, board.valid_moves(), mover)

        if is_maximizing:
            max_score = -math.inf
            for move in ordered_moves:
                child, index = board.play(move, mover)
                score = self._minimax(child, depth - 1, alpha, beta, False, bot_player, index)
                max_score = max(max_score, score)
                alpha = max(alpha, score)
                # Beta cutoff
                if beta <= alpha:
                    break
            return max_score

        min_score = math.inf
        for move in ordered_moves:
            child, index = board.play(move, mover)
            score = self._minimax(child, depth - 1, alpha, beta, True, bot_player, index)
            min_score = min(min_score, score)
            beta = min(beta, score)
            # Alpha cutoff
            if beta <= alpha:
                break
        return min_score


@dataclass
class _SearchContext:
    """State threaded through one iterative-deepening search."""
    deadline: float
    table: TranspositionTable
    root_depth: int = 1
    nodes: int = 0
    timed_out: bool = False


class ExpertBot(Bot):
    """
    Iterative-deepening negamax with alpha-beta pruning and a transposition table.

    Depths 1, 2, 3... are searched until the soft time budget runs low. A
    depth interrupted by the deadline is discarded and the move of the last
    completed depth is played. Root moves are re-ordered by the previous
    depth's scores between iterations.
    """

    id = 'expert'
    name = 'Expert Bot'
    description = 'Thinks deeply (up to 5s). Nearly unbeatable.'
    runs_in_worker = True

    def __init__(self, time_limit_ms: int = EXPERT_TIME_LIMIT_MS, max_depth: int = EXPERT_MAX_DEPTH):
        """
        Initialize the bot.

        Args:
            time_limit_ms: Soft wall-clock budget per move
            max_depth: Safety limit on the iterative-deepening depth
        """
        self.time_limit_ms = time_limit_ms
        self.max_depth = max_depth
        self.last_stats = SearchStats()

    def get_move(self, snapshot: GameSnapshot) -> Optional[Move]:
        board = snapshot.board
        player = snapshot.current_player
        valid_moves = board.valid_moves()

        if not valid_moves:
            return None
        if len(valid_moves) == 1:
            return valid_moves[0]

        winning = find_winning_move(board, valid_moves, player)
        if winning is not None:
            debug.debug(f"Expert bot plays immediate win {winning}", "search")
            return winning

        start = time.perf_counter()
        budget = self.time_limit_ms / 1000.0
        ctx = _SearchContext(deadline=start + budget, table=TranspositionTable())
        empty_cells = board.empty_count()

        ordered_moves = order_moves(board, valid_moves, player)
        best_move = ordered_moves[0]
        best_score = 0.0
        completed_depth = 0

        for depth in range(1, self.max_depth + 1):
            if time.perf_counter() - start > budget * TIME_BUDGET_FRACTION:
                break

            ctx.root_depth = depth
            result = self._search_root(board, player, depth, ordered_moves, ctx)
            if result is None:
                debug.debug(f"Depth {depth} interrupted by deadline; keeping depth {completed_depth}",
                            "search")
                break

            best_move, best_score, move_scores = result
            completed_depth = depth

            # Best-first ordering for the next depth
            move_scores.sort(key=lambda item: item[1], reverse=True)
            ordered_moves = [move for move, _ in move_scores]

            if best_score >= SCORES['WIN'] * 0.5:
                debug.debug(f"Forced win found at depth {depth}", "search")
                break
            if depth >= empty_cells:
                break

        self.last_stats = SearchStats(
            depth_reached=completed_depth,
            nodes=ctx.nodes,
            elapsed_ms=(time.perf_counter() - start) * 1000,
            best_score=best_score,
            tt_hits=ctx.table.hits,
            tt_size=len(ctx.table),
            timed_out=ctx.timed_out,
        )
        debug.debug(f"Expert bot searched to depth {completed_depth} in "
                    f"{self.last_stats.elapsed_ms:.0f} ms ({ctx.nodes} nodes, "
                    f"{ctx.table.hits} table hits)", "search")
        return best_move

    def _search_root(self, board: Board, player: Player, depth: int,
                     ordered_moves: List[Move], ctx: _SearchContext
                     ) -> Optional[Tuple[Move, float, List[Tuple[Move, float]]]]:
        """
        Search every root move to a fixed depth.

        Returns:
            (best move, best score, [(move, score), ...]) or None if the
            deadline interrupted the iteration
        """
        best_move = ordered_moves[0]
        best_score = -math.inf
        alpha = -math.inf
        beta = math.inf
        move_scores: List[Tuple[Move, float]] = []

        for move in ordered_moves:
            if time.perf_counter() >= ctx.deadline:
                ctx.timed_out = True
                return None

            child, index = board.play(move, player)
            score = -self._negamax(child, depth - 1, -beta, -alpha, player.other(), index, ctx)
            if ctx.timed_out:
                return None

            move_scores.append((move, score))
            if score > best_score:
                best_score = score
                best_move = move
            alpha = max(alpha, score)

        return best_move, best_score, move_scores

    def _terminal_score(self, depth: int, root_depth: int) -> float:
        return SCORES['WIN'] * (depth + 1) / (root_depth + 1)

    def _negamax(self, board: Board, depth: int, alpha: float, beta: float,
                 player: Player, last_index: int, ctx: _SearchContext) -> float:
        """
        Negamax alpha-beta search with transposition table.

        Args:
            board: Board state
            depth: Remaining depth
            alpha: Alpha bound
            beta: Beta bound
            player: Player to move at this node
            last_index: Cell filled by the move that led here
            ctx: Search context holding the deadline and table

        Returns:
            Score from the perspective of ``player``; 0 once the deadline passed
        """
        ctx.nodes += 1
        if ctx.nodes % NODE_CHECK_INTERVAL == 0 and time.perf_counter() >= ctx.deadline:
            ctx.timed_out = True
        if ctx.timed_out:
            return 0

        # The opponent's last move completed a line
        if board.is_win_at(last_index):
            return -self._terminal_score(depth, ctx.root_depth)

        if board.is_full():
            return 0

        key = board.key()
        cached = ctx.table.probe(key, depth, alpha, beta)
        if cached is not None:
            return cached

        if depth == 0:
            score = evaluate_board(board, player)
            ctx.table.store(key, 0, score, BoundType.EXACT)
            return score

        original_alpha = alpha
        best_score = -math.inf
        for move in order_moves(board, board.valid_moves(), player):
            child, index = board.play(move, player)
            score = -self._negamax(child, depth - 1, -beta, -alpha, player.other(), index, ctx)
            if ctx.timed_out:
                return 0

            best_score = max(best_score, score)
            alpha = max(alpha, score)
            if alpha >= beta:
                break

        if best_score <= original_alpha:
            bound = BoundType.UPPER
        elif best_score >= beta:
            bound = BoundType.LOWER
        else:
            bound = BoundType.EXACT
        ctx.table.store(key, depth, best_score, bound)
        return best_score
