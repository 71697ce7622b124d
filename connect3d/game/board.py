"""
board.py - Board representation for 3D Connect Four

This module implements the Board class, a flat 64-cell value type. Boards
are cheap to copy, hash and compare, which lets the search simulate moves
on fresh copies instead of undoing them.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from connect3d.debug import debug
from connect3d.utils import (GRID_SIZE, NUM_CELLS, CONNECT_N, COLUMN_FULL, CELL_LINES, LINE_INDICES,
                             Player, Move, cell_index, is_valid_position,
                             check_winner, is_board_full, get_valid_moves, render_board_ascii)


class Board:
    """
    Represents a 4x4x4 Connect Four board.

    Cells live in a flat numpy int8 array indexed by ``x*16 + y*4 + z``.
    Boards are compared and hashed by content; ``key()`` gives the
    64-byte encoding used by the transposition table.
    """

    __slots__ = ('cells',)

    def __init__(self, cells: Optional[Sequence[int]] = None):
        """
        Initialize a board.

        Args:
            cells: Optional 64 cell values (0 empty, 1 Player.ONE, 2 Player.TWO)
        """
        if cells is None:
            self.cells = np.zeros(NUM_CELLS, dtype=np.int8)
        else:
            arr = np.array(cells, dtype=np.int8).reshape(-1)
            if arr.shape != (NUM_CELLS,):
                raise ValueError(f"Board needs {NUM_CELLS} cells, got {arr.size}")
            if not np.isin(arr, (0, 1, 2)).all():
                raise ValueError("Cell values must be 0, 1 or 2")
            self.cells = arr

    @classmethod
    def from_list(cls, values: Sequence[int]) -> 'Board':
        """Build a board from the 64-int list produced by to_list."""
        return cls(values)

    @classmethod
    def from_layers(cls, layers) -> 'Board':
        """
        Build a board from a nested ``[x][y][z]`` list.

        Entries may be None (empty), 0/1 player indices as used by the
        update records, or Player members.
        """
        board = cls()
        for x in range(GRID_SIZE):
            for y in range(GRID_SIZE):
                for z in range(GRID_SIZE):
                    value = layers[x][y][z]
                    if value is None:
                        continue
                    player = value if isinstance(value, Player) else Player.from_index(int(value))
                    board.cells[cell_index(x, y, z)] = player.value
        return board

    def to_list(self) -> List[int]:
        """64 plain ints, suitable for messages and JSON."""
        return self.cells.tolist()

    def to_layers(self) -> List[List[List[Optional[int]]]]:
        """Nested ``[x][y][z]`` list with None for empty and 0/1 for players."""
        grid = self.cells.reshape(GRID_SIZE, GRID_SIZE, GRID_SIZE)
        return [[[None if v == 0 else int(v) - 1 for v in row] for row in layer] for layer in grid]

    def copy(self) -> 'Board':
        """Create an independent copy of the board."""
        new_board = Board.__new__(Board)
        new_board.cells = self.cells.copy()
        return new_board

    def key(self) -> bytes:
        """Canonical encoding, one byte per cell."""
        return self.cells.tobytes()

    def __eq__(self, other) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return bool(np.array_equal(self.cells, other.cells))

    def __hash__(self) -> int:
        return hash(self.key())

    def get_cell(self, x: int, y: int, z: int) -> Player:
        return Player(int(self.cells[cell_index(x, y, z)]))

    def set_cell(self, x: int, y: int, z: int, player: Player):
        """Write a cell directly, bypassing gravity (used to set up positions)."""
        if not is_valid_position(x, y, z):
            raise IndexError(f"Position ({x}, {y}, {z}) is outside the board")
        self.cells[cell_index(x, y, z)] = player.value

    def drop_y(self, x: int, z: int) -> int:
        """Lowest empty y in column (x, z), or COLUMN_FULL."""
        if not (0 <= x < GRID_SIZE and 0 <= z < GRID_SIZE):
            return COLUMN_FULL
        base = cell_index(x, 0, z)
        column = self.cells[base:base + GRID_SIZE * GRID_SIZE:GRID_SIZE]
        empty = np.flatnonzero(column == Player.EMPTY.value)
        return int(empty[0]) if empty.size else COLUMN_FULL

    def is_valid_move(self, x: int, z: int) -> bool:
        """
        Check if a piece can be dropped into a column.

        Args:
            x: Column x coordinate
            z: Column z coordinate

        Returns:
            True if the column exists and its top cell is empty
        """
        if not (0 <= x < GRID_SIZE and 0 <= z < GRID_SIZE):
            return False
        return self.cells[cell_index(x, GRID_SIZE - 1, z)] == Player.EMPTY.value

    def valid_moves(self) -> List[Move]:
        return get_valid_moves(self)

    def place(self, x: int, z: int, player: Player) -> int:
        """
        Drop a piece in place.

        Args:
            x: Column x coordinate
            z: Column z coordinate
            player: The player whose piece is dropped

        Returns:
            The landing y, or COLUMN_FULL if nothing was placed
        """
        if not self.is_valid_move(x, z):
            debug.trace(f"Column ({x}, {z}) is full or out of range", "board")
            return COLUMN_FULL
        y = self.drop_y(x, z)
        if y == COLUMN_FULL:
            return COLUMN_FULL
        self.cells[cell_index(x, y, z)] = player.value
        return y

    def play(self, move: Move, player: Player) -> Optional[Tuple['Board', int]]:
        """
        Simulate a move on a copy of the board.

        Args:
            move: Column to drop into
            player: The player making the move

        Returns:
            (new board, flat index of the placed piece), or None if the column is full
        """
        y = self.drop_y(move.x, move.z)
        if y == COLUMN_FULL or not self.is_valid_move(move.x, move.z):
            return None
        child = self.copy()
        index = cell_index(move.x, y, move.z)
        child.cells[index] = player.value
        return child, index

    def is_win_at(self, index: int) -> bool:
        """Check whether the piece at a cell completes any line through it."""
        value = self.cells[index]
        if value == Player.EMPTY.value:
            return False
        return bool(np.any(np.all(self.cells[CELL_LINES[index]] == value, axis=1)))

    def winning_cells(self, player: Player) -> np.ndarray:
        """
        Empty cells that would complete a line for ``player``.

        Gravity is not considered; callers compare these against landing cells.
        """
        values = self.cells[LINE_INDICES]
        own = np.count_nonzero(values == player.value, axis=1)
        empty = np.count_nonzero(values == Player.EMPTY.value, axis=1)
        open_lines = (own == CONNECT_N - 1) & (empty == 1)
        if not open_lines.any():
            return np.empty(0, dtype=np.intp)
        candidates = LINE_INDICES[open_lines]
        return np.unique(candidates[values[open_lines] == Player.EMPTY.value])

    def piece_count(self) -> int:
        return int(np.count_nonzero(self.cells))

    def empty_count(self) -> int:
        return int(self.cells.size - np.count_nonzero(self.cells))

    def is_full(self) -> bool:
        return is_board_full(self)

    def winner(self):
        """First complete line in generation order, or None."""
        return check_winner(self)

    def column_heights(self) -> np.ndarray:
        """Number of occupied cells in each column, indexed by column_index."""
        grid = self.cells.reshape(GRID_SIZE, GRID_SIZE, GRID_SIZE)
        return np.count_nonzero(grid, axis=1).reshape(-1)

    def render(self) -> str:
        return render_board_ascii(self.cells)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"Board(pieces={self.piece_count()})"
