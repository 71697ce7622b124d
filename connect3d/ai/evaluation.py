"""
evaluation.py - Heuristic position evaluation shared by the bots

The evaluation is designed to:
1. Score every uncontested winning line by how close each side is to filling it
2. Only count a three-piece line as an immediate threat when its gap is reachable
3. Reward occupying the four interior columns

Scores are perspective-relative: on any non-terminal board,
evaluate_board(b, p) == -evaluate_board(b, p.other()).
"""

from typing import List

import numpy as np

from connect3d.game.board import Board
from connect3d.utils import (GRID_SIZE, SCORES, LINE_INDICES, CENTER_INDICES, CELL_Y, BELOW_INDICES,
                             Player, Move, cell_index, check_winner, is_board_full)

CENTER = (GRID_SIZE - 1) / 2


def is_reachable(board: Board, x: int, y: int, z: int) -> bool:
    """
    Check if a cell can be filled on the next turn.

    A cell is reachable if it is on the bottom layer or the cell directly
    below it is occupied.
    """
    if y == 0:
        return True
    return board.cells[cell_index(x, y - 1, z)] != Player.EMPTY.value


def reachable_empty_mask(board: Board) -> np.ndarray:
    """Boolean mask over all 64 cells: empty and reachable."""
    cells = board.cells
    supported = (CELL_Y == 0) | (cells[BELOW_INDICES] != Player.EMPTY.value)
    return (cells == Player.EMPTY.value) & supported


def _line_counts(board: Board, player: Player):
    values = board.cells[LINE_INDICES]
    own = np.count_nonzero(values == player.value, axis=1)
    opp = np.count_nonzero(values == player.other().value, axis=1)
    empty = LINE_INDICES.shape[1] - own - opp
    reachable = np.count_nonzero(reachable_empty_mask(board)[LINE_INDICES], axis=1)
    return own, opp, empty, reachable


def _pattern_score(own: np.ndarray, opp: np.ndarray, empty: np.ndarray, reachable: np.ndarray) -> int:
    """Sum of pattern bonuses for the side whose counts are ``own``."""
    mine = opp == 0
    threat_3 = mine & (own == 3) & (reachable >= 1)
    threat_2 = mine & (own == 2) & (empty == 2)
    single = mine & (own == 1) & (empty == 3)
    return (SCORES['THREAT_3'] * int(np.count_nonzero(threat_3))
            + SCORES['THREAT_2'] * int(np.count_nonzero(threat_2))
            + SCORES['REACHABLE_BONUS'] * int(np.count_nonzero(single)))


def evaluate_board(board: Board, player: Player) -> int:
    """
    Heuristic evaluation of a board from one player's perspective.

    Terminal boards score +/-WIN (a draw scores 0). Otherwise every winning
    line that is not contested by both players contributes:
    - 3 own pieces and a reachable empty: THREAT_3
    - 2 own pieces and 2 empties: THREAT_2
    - 1 own piece and 3 empties: REACHABLE_BONUS
    with the same amounts subtracted for the opponent's patterns, plus
    CENTER_BONUS per own piece in the interior columns minus the same for
    opponent pieces.

    Args:
        board: The board to evaluate
        player: The player we're evaluating for

    Returns:
        Score (positive = good for player)
    """
    result = check_winner(board)
    if result is not None:
        return SCORES['WIN'] if result.winner == player else -SCORES['WIN']

    if is_board_full(board):
        return 0

    own, opp, empty, reachable = _line_counts(board, player)
    score = _pattern_score(own, opp, empty, reachable) - _pattern_score(opp, own, empty, reachable)

    center = board.cells[CENTER_INDICES]
    score += SCORES['CENTER_BONUS'] * (int(np.count_nonzero(center == player.value))
                                       - int(np.count_nonzero(center == player.other().value)))
    return score


def count_threats(board: Board, player: Player) -> int:
    """
    Count lines holding 3 of the player's pieces whose single gap is reachable.

    Args:
        board: The board to inspect
        player: The player whose threats are counted

    Returns:
        Number of immediately playable threats
    """
    own, opp, empty, reachable = _line_counts(board, player)
    return int(np.count_nonzero((own == 3) & (empty == 1) & (reachable == 1)))


def center_distance(move: Move) -> float:
    """Manhattan distance of a column from the board's vertical axis."""
    return abs(move.x - CENTER) + abs(move.z - CENTER)


def order_moves(board: Board, moves: List[Move], player: Player) -> List[Move]:
    """
    Order moves for alpha-beta so the most promising are searched first.

    Immediate wins come first, then blocks of the opponent's immediate win,
    then columns close to the centre and low landing heights.

    Args:
        board: Current board
        moves: Candidate moves
        player: The player to move

    Returns:
        The moves sorted best-first (stable for equal scores)
    """
    wins = set(board.winning_cells(player).tolist())
    blocks = set(board.winning_cells(player.other()).tolist())

    scored = []
    for move in moves:
        y = board.drop_y(move.x, move.z)
        if y < 0:
            scored.append((float('-inf'), move))
            continue
        index = cell_index(move.x, y, move.z)
        if index in wins:
            scored.append((100000, move))
            continue
        score = 0.0
        if index in blocks:
            score += 50000
        score += (3 - center_distance(move)) * 100
        score += (GRID_SIZE - y) * 10
        scored.append((score, move))

    scored.sort(key=lambda item: item[0], reverse=True)
    return [move for _, move in scored]
