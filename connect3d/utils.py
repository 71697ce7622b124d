"""
utils.py - Constants, enumerations and winning-line geometry for 3D Connect Four

This module provides the constants, enumerations and exception types shared
across the package, the 76 precomputed winning lines of the 4x4x4 cube and
the pure win/draw/drop helpers that operate on a board.

Cells are addressed by a flat index ``x*16 + y*4 + z``; y is the gravity
axis (0 = bottom) and a column is the (x, z) pair.
"""

from enum import Enum, auto
from typing import Dict, List, NamedTuple, Optional, Tuple

import numpy as np

# Board geometry
GRID_SIZE = 4
NUM_CELLS = GRID_SIZE ** 3
NUM_COLUMNS = GRID_SIZE * GRID_SIZE
CONNECT_N = 4
COLUMN_FULL = -1  # Sentinel returned by get_drop_y for a full column

# Update records use -1 as the winner of a drawn game
DRAW_SENTINEL = -1

# Heuristic score weights
SCORES = {
    'WIN': 100000,
    'THREAT_3': 1000,       # 3 in a line with at least 1 reachable empty
    'THREAT_2': 50,         # 2 in a line with 2 empties
    'CENTER_BONUS': 10,
    'REACHABLE_BONUS': 5,   # 1 in a line with 3 empties
}

# Search configuration
HARD_SEARCH_DEPTH = 5
EXPERT_TIME_LIMIT_MS = 5000
EXPERT_MAX_DEPTH = 20           # Safety limit for iterative deepening
TIME_BUDGET_FRACTION = 0.9      # Stop starting new depths after this share of the budget
NODE_CHECK_INTERVAL = 256       # Deadline is polled once per this many nodes

# Pacing delay before a synchronous bot moves, in seconds
BOT_MOVE_DELAY = 0.5


class Player(Enum):
    """Enumeration representing players and cell states."""
    EMPTY = 0
    ONE = 1    # First player ("player 0" in update records)
    TWO = 2    # Second player ("player 1" in update records)

    def other(self) -> 'Player':
        """Get the other player."""
        if self == Player.ONE:
            return Player.TWO
        elif self == Player.TWO:
            return Player.ONE
        return Player.EMPTY

    @property
    def index(self) -> int:
        """Zero-based player number used in messages and records."""
        if self == Player.EMPTY:
            raise ValueError("EMPTY has no player index")
        return self.value - 1

    @classmethod
    def from_index(cls, index: int) -> 'Player':
        """Convert a zero-based player number back to a Player."""
        if index == 0:
            return cls.ONE
        if index == 1:
            return cls.TWO
        raise ValueError(f"Invalid player index: {index}")

    def __str__(self):
        if self == Player.EMPTY:
            return "."
        elif self == Player.ONE:
            return "X"
        else:
            return "O"


class GameResult(Enum):
    """Enumeration representing the game outcome."""
    IN_PROGRESS = auto()
    PLAYER_ONE_WIN = auto()
    PLAYER_TWO_WIN = auto()
    DRAW = auto()

    def is_game_over(self) -> bool:
        """Check if the game is over."""
        return self != GameResult.IN_PROGRESS

    @classmethod
    def for_winner(cls, player: Player) -> 'GameResult':
        return cls.PLAYER_ONE_WIN if player == Player.ONE else cls.PLAYER_TWO_WIN


Coord = Tuple[int, int, int]
WinningLine = Tuple[Coord, Coord, Coord, Coord]


class Move(NamedTuple):
    """A column selector; the landing height is always derived."""
    x: int
    z: int


class LastMove(NamedTuple):
    x: int
    y: int
    z: int
    player: Player


class WinResult(NamedTuple):
    winner: Player
    line: WinningLine


class Connect3DError(Exception):
    """Base class for errors raised by the game engine and bot stack."""


class UnknownBotError(Connect3DError, KeyError):
    """Raised when a bot id is not registered."""

    def __init__(self, bot_id: str):
        super().__init__(bot_id)
        self.bot_id = bot_id

    def __str__(self):
        return f"Bot not found: {self.bot_id}"


class SchedulerBusyError(Connect3DError):
    """Raised when a bot move is requested while another is still pending."""


class InvalidMessageError(Connect3DError):
    """Raised when a worker request or response is malformed."""


def cell_index(x: int, y: int, z: int) -> int:
    """Flat board index of a cell."""
    return x * GRID_SIZE * GRID_SIZE + y * GRID_SIZE + z


def column_index(x: int, z: int) -> int:
    """Index (0-15) of the column at (x, z)."""
    return x * GRID_SIZE + z


def index_to_coords(index: int) -> Coord:
    """Inverse of cell_index."""
    x, rest = divmod(index, GRID_SIZE * GRID_SIZE)
    y, z = divmod(rest, GRID_SIZE)
    return x, y, z


def is_valid_position(x: int, y: int, z: int) -> bool:
    """Check if a position is within the cube."""
    return 0 <= x < GRID_SIZE and 0 <= y < GRID_SIZE and 0 <= z < GRID_SIZE


def generate_winning_lines() -> Tuple[WinningLine, ...]:
    """
    Generate all 76 winning lines of the 4x4x4 cube.

    The order is fixed: rows along x, columns along y, pillars along z,
    XY-plane diagonals, XZ-plane diagonals, YZ-plane diagonals and finally
    the four space diagonals. check_winner reports the first match in
    this order.

    Returns:
        Tuple of lines, each a tuple of four (x, y, z) coordinates
    """
    n = GRID_SIZE
    r = range(n)
    lines: List[WinningLine] = []

    # Rows along X (16)
    for y in r:
        for z in r:
            lines.append(tuple((i, y, z) for i in r))

    # Columns along Y (16)
    for x in r:
        for z in r:
            lines.append(tuple((x, i, z) for i in r))

    # Pillars along Z (16)
    for x in r:
        for y in r:
            lines.append(tuple((x, y, i) for i in r))

    # XY plane diagonals, 2 per z level
    for z in r:
        lines.append(tuple((i, i, z) for i in r))
        lines.append(tuple((n - 1 - i, i, z) for i in r))

    # XZ plane diagonals, 2 per y level
    for y in r:
        lines.append(tuple((i, y, i) for i in r))
        lines.append(tuple((n - 1 - i, y, i) for i in r))

    # YZ plane diagonals, 2 per x level
    for x in r:
        lines.append(tuple((x, i, i) for i in r))
        lines.append(tuple((x, n - 1 - i, i) for i in r))

    # Space diagonals, corner to corner
    lines.append(tuple((i, i, i) for i in r))
    lines.append(tuple((n - 1 - i, i, i) for i in r))
    lines.append(tuple((i, n - 1 - i, i) for i in r))
    lines.append(tuple((i, i, n - 1 - i) for i in r))

    return tuple(lines)


WINNING_LINES = generate_winning_lines()

# (76, 4) flat cell indices, row i corresponds to WINNING_LINES[i]
LINE_INDICES = np.array(
    [[cell_index(*coord) for coord in line] for line in WINNING_LINES], dtype=np.intp
)
LINE_INDICES.setflags(write=False)


def _build_cell_lines() -> Tuple[np.ndarray, ...]:
    """For every cell, the (k, 4) array of lines passing through it."""
    per_cell: Dict[int, List[int]] = {i: [] for i in range(NUM_CELLS)}
    for line_id, indices in enumerate(LINE_INDICES):
        for index in indices:
            per_cell[int(index)].append(line_id)
    result = []
    for i in range(NUM_CELLS):
        arr = LINE_INDICES[per_cell[i]]
        arr.setflags(write=False)
        result.append(arr)
    return tuple(result)


CELL_LINES = _build_cell_lines()

# Cell indices of the top layer (y = 3), one per column in column_index order
TOP_INDICES = np.array(
    [cell_index(x, GRID_SIZE - 1, z) for x in range(GRID_SIZE) for z in range(GRID_SIZE)],
    dtype=np.intp,
)

# Cells of the four interior columns (x, z in {1, 2}) at every height
CENTER_INDICES = np.array(
    [cell_index(x, y, z) for x in (1, 2) for y in range(GRID_SIZE) for z in (1, 2)],
    dtype=np.intp,
)

# y coordinate of every cell, and the index of the cell below (self for y = 0)
CELL_Y = np.array([index_to_coords(i)[1] for i in range(NUM_CELLS)], dtype=np.intp)
BELOW_INDICES = np.where(CELL_Y > 0, np.arange(NUM_CELLS) - GRID_SIZE, np.arange(NUM_CELLS))


def check_winner(board) -> Optional[WinResult]:
    """
    Scan the winning lines in generation order and report the first full one.

    Args:
        board: The board to inspect

    Returns:
        WinResult(winner, line) for the first complete line, or None
    """
    values = board.cells[LINE_INDICES]
    first = values[:, 0]
    complete = (first != Player.EMPTY.value) & np.all(values == first[:, None], axis=1)
    if not complete.any():
        return None
    line_id = int(np.argmax(complete))
    return WinResult(Player(int(first[line_id])), WINNING_LINES[line_id])


def is_board_full(board) -> bool:
    """True iff the top cell of every one of the 16 columns is occupied."""
    return bool(np.all(board.cells[TOP_INDICES] != Player.EMPTY.value))


def get_drop_y(board, x: int, z: int) -> int:
    """
    Get the height at which a piece dropped into column (x, z) would land.

    Args:
        board: The board to inspect
        x: Column x coordinate
        z: Column z coordinate

    Returns:
        The lowest empty y in the column, or COLUMN_FULL
    """
    for y in range(GRID_SIZE):
        if board.cells[cell_index(x, y, z)] == Player.EMPTY.value:
            return y
    return COLUMN_FULL


def get_valid_moves(board) -> List[Move]:
    """All non-full columns, x-major then z."""
    open_tops = board.cells[TOP_INDICES] == Player.EMPTY.value
    return [Move(*divmod(c, GRID_SIZE)) for c in np.flatnonzero(open_tops).tolist()]


def render_board_ascii(cells: np.ndarray) -> str:
    """
    Render the board as four y-layers side by side, top layer first.

    Each layer is a 4x4 grid with x across and z down.

    Args:
        cells: Flat array of 64 cell values

    Returns:
        ASCII representation of the board
    """
    symbols = {Player.EMPTY.value: '.', Player.ONE.value: 'X', Player.TWO.value: 'O'}
    header = "   ".join(f"y={y}".ljust(GRID_SIZE * 2 - 1) for y in reversed(range(GRID_SIZE)))
    result = ["   " + header]
    for z in range(GRID_SIZE):
        layers = []
        for y in reversed(range(GRID_SIZE)):
            layers.append(" ".join(symbols[int(cells[cell_index(x, y, z)])] for x in range(GRID_SIZE)))
        result.append(f"z{z} " + "   ".join(layers))
    return "\n".join(result)
