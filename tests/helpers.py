"""Shared positions for the test suites."""

from typing import Iterable

from connect3d.game.board import Board
from connect3d.game.rules import GameEngine, GameSnapshot
from connect3d.utils import Coord, Player

# A full board in which no line is complete (32 pieces each)
DRAW_CELLS = [
    2, 1, 2, 2, 1, 1, 2, 1, 2, 1, 2, 2, 2, 2, 1, 1,
    1, 2, 1, 1, 1, 2, 1, 1, 1, 2, 2, 2, 2, 1, 2, 1,
    1, 1, 2, 1, 2, 2, 1, 2, 2, 2, 1, 1, 2, 2, 2, 1,
    2, 1, 2, 1, 1, 1, 1, 2, 1, 2, 2, 1, 1, 1, 2, 2,
]

# Top cell of column (0, 0) in DRAW_CELLS; it holds a Player.TWO piece
DRAW_GAP_INDEX = 12

# Player.ONE to move and able to win at (3, 0); Player.TWO threatens (3, 3)
WIN_ONES = [(0, 0, 0), (1, 0, 0), (2, 0, 0)]
WIN_TWOS = [(0, 0, 3), (1, 0, 3), (2, 0, 3)]

# Player.TWO to move and must block Player.ONE at (3, 0)
BLOCK_ONES = [(0, 0, 0), (1, 0, 0), (2, 0, 0)]
BLOCK_TWOS = [(1, 0, 1), (2, 0, 1)]

# Three pieces stacked in column (0, 0); the fourth lands at y=3
STACK_COLUMN = [(0, 0, 0), (0, 1, 0), (0, 2, 0)]


def board_with(ones: Iterable[Coord] = (), twos: Iterable[Coord] = ()) -> Board:
    board = Board()
    for x, y, z in ones:
        board.set_cell(x, y, z, Player.ONE)
    for x, y, z in twos:
        board.set_cell(x, y, z, Player.TWO)
    return board


def draw_board(with_gap: bool = False) -> Board:
    board = Board(DRAW_CELLS)
    if with_gap:
        board.cells[DRAW_GAP_INDEX] = Player.EMPTY.value
    return board


def snapshot_of(board: Board, player: Player) -> GameSnapshot:
    return GameSnapshot(board=board, current_player=player)


def engine_at(board: Board, player: Player) -> GameEngine:
    """An engine whose position was loaded through a remote update."""
    engine = GameEngine()
    engine.apply_remote_update({
        'board': board.to_layers(),
        'current_player': player.index,
        'winner': None,
        'winning_line': None,
        'status': 'playing',
    })
    return engine
