"""
rules.py - Game state management and Gymnasium environment for 3D Connect Four

This module provides:
1. GameEngine, the owner of the authoritative game state and its turn state machine
2. A gymnasium-compatible environment wrapping the engine for bot-vs-bot play
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from connect3d.debug import debug
from connect3d.game.board import Board
from connect3d.utils import (GRID_SIZE, NUM_CELLS, NUM_COLUMNS, COLUMN_FULL, DRAW_SENTINEL,
                             Player, GameResult, Move, LastMove, WinningLine,
                             check_winner, is_board_full, index_to_coords)

StateListener = Callable[['GameState'], None]
UpdateCallback = Callable[[Dict[str, Any]], None]


@dataclass(frozen=True)
class GameState:
    """
    Immutable view of the game published to subscribers.

    ``generation`` increases on every state change (move, reset or remote
    update) and lets asynchronous bot replies detect that they are stale.
    """
    board: Board
    current_player: Player
    winner: Optional[Player]
    winning_line: Optional[WinningLine]
    is_draw: bool
    last_move: Optional[LastMove]
    generation: int

    @property
    def result(self) -> GameResult:
        if self.winner is not None:
            return GameResult.for_winner(self.winner)
        if self.is_draw:
            return GameResult.DRAW
        return GameResult.IN_PROGRESS

    def is_game_over(self) -> bool:
        return self.result.is_game_over()


@dataclass(frozen=True)
class GameSnapshot:
    """
    What a bot sees: a private copy of the board and the side to move.

    Bots may freely simulate on ``board``; the engine's own board is never
    shared with them.
    """
    board: Board
    current_player: Player

    def legal_moves(self) -> List[Move]:
        return self.board.valid_moves()

    def drop_position(self, x: int, z: int) -> int:
        return self.board.drop_y(x, z)

    def to_message(self) -> Dict[str, Any]:
        return {'board': self.board.to_list(), 'currentPlayer': self.current_player.index}

    @classmethod
    def from_message(cls, board: List[int], current_player: int) -> 'GameSnapshot':
        return cls(board=Board.from_list(board), current_player=Player.from_index(current_player))


class GameEngine:
    """
    Owner of the authoritative board and the turn state machine.

    The engine moves between IN_PROGRESS, PLAYER_ONE_WIN, PLAYER_TWO_WIN and
    DRAW. It is only ever mutated from the thread that owns it, through
    drop_piece, reset_game or apply_remote_update.
    """

    def __init__(self):
        """Initialize a new game."""
        debug.debug("Initializing GameEngine", "engine")
        self._listeners: List[StateListener] = []
        self._update_callback: Optional[UpdateCallback] = None
        self._generation = 0
        self._reset_state()

    def _reset_state(self):
        self.board = Board()
        self.current_player = Player.ONE
        self.winner: Optional[Player] = None
        self.winning_line: Optional[WinningLine] = None
        self.is_draw = False
        self.last_move: Optional[LastMove] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def game_result(self) -> GameResult:
        if self.winner is not None:
            return GameResult.for_winner(self.winner)
        if self.is_draw:
            return GameResult.DRAW
        return GameResult.IN_PROGRESS

    def is_game_over(self) -> bool:
        return self.game_result.is_game_over()

    @property
    def state(self) -> GameState:
        """Current state as an immutable snapshot."""
        return GameState(
            board=self.board.copy(),
            current_player=self.current_player,
            winner=self.winner,
            winning_line=self.winning_line,
            is_draw=self.is_draw,
            last_move=self.last_move,
            generation=self._generation,
        )

    def get_drop_y(self, x: int, z: int) -> int:
        """Where a piece dropped in (x, z) would land, or COLUMN_FULL."""
        return self.board.drop_y(x, z)

    def get_valid_moves(self) -> List[Move]:
        if self.is_game_over():
            return []
        return self.board.valid_moves()

    def drop_piece(self, x: int, z: int) -> bool:
        """
        Drop the current player's piece into column (x, z).

        Args:
            x: Column x coordinate
            z: Column z coordinate

        Returns:
            True if the move was applied, False if the game is over or the
            column is full or out of range (the state is left untouched)
        """
        if self.is_game_over():
            debug.debug(f"Invalid move ({x}, {z}): game is over ({self.game_result.name})", "engine")
            return False

        if not self.board.is_valid_move(x, z):
            debug.debug(f"Invalid move ({x}, {z}): column full or out of range", "engine")
            return False

        mover = self.current_player
        board = self.board.copy()
        y = board.place(x, z, mover)
        if y == COLUMN_FULL:
            return False

        debug.start_timer("win_check")
        result = check_winner(board)
        draw = result is None and is_board_full(board)
        debug.end_timer("win_check", "engine")

        self.board = board
        self.last_move = LastMove(x, y, z, mover)
        if result is not None:
            self.winner = result.winner
            self.winning_line = result.line
            debug.info(f"Player {mover.name} wins with line {result.line}", "engine")
        elif draw:
            self.is_draw = True
            debug.info("Game ends in a draw", "engine")
        else:
            self.current_player = mover.other()

        self._generation += 1
        debug.debug(f"Player {mover.name} dropped at ({x}, {y}, {z}); generation {self._generation}",
                    "engine")

        self._notify()
        if self._update_callback is not None:
            self._update_callback(self.to_update_record())
        return True

    def reset_game(self):
        """
        Reset to an empty board with Player.ONE to move.

        Settings such as the selected bot live outside the engine and are
        not affected.
        """
        debug.debug("Resetting game", "engine")
        self._reset_state()
        self._generation += 1
        self._notify()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener called with the new GameState after every change.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self):
        if not self._listeners:
            return
        state = self.state
        for listener in list(self._listeners):
            listener(state)

    def snapshot(self) -> 'GameSnapshot':
        """Deep-copied view of the position for a bot."""
        return GameSnapshot(board=self.board.copy(), current_player=self.current_player)

    # --- Networked play ---

    def set_update_callback(self, callback: Optional[UpdateCallback]):
        """Set the callback receiving an update record after every local move."""
        self._update_callback = callback

    def to_update_record(self) -> Dict[str, Any]:
        """
        Describe the current state for a networked-play peer.

        Returns:
            Dictionary with board (nested [x][y][z] list), current_player,
            winner (player index, DRAW_SENTINEL or None), winning_line and status
        """
        if self.is_draw:
            winner = DRAW_SENTINEL
        elif self.winner is not None:
            winner = self.winner.index
        else:
            winner = None
        return {
            'board': self.board.to_layers(),
            'current_player': self.current_player.index,
            'winner': winner,
            'winning_line': [list(c) for c in self.winning_line] if self.winning_line else None,
            'status': 'finished' if self.is_game_over() else 'playing',
        }

    def apply_remote_update(self, record: Dict[str, Any]):
        """
        Overwrite local state with a record received from a remote peer.

        The last record applied wins; nothing is merged. last_move is derived
        from the first newly occupied cell in x, y, z scan order, so two
        near-simultaneous moves can leave peers highlighting different pieces.

        Args:
            record: Dictionary in the format produced by to_update_record
        """
        old_board = self.board
        new_board = Board.from_layers(record['board']) if record.get('board') is not None else old_board

        last_move = None
        appeared = np.flatnonzero((old_board.cells == Player.EMPTY.value) &
                                  (new_board.cells != Player.EMPTY.value))
        if appeared.size:
            index = int(appeared[0])
            x, y, z = index_to_coords(index)
            last_move = LastMove(x, y, z, Player(int(new_board.cells[index])))

        winner = record.get('winner')
        self.board = new_board
        if record.get('current_player') is not None:
            self.current_player = Player.from_index(record['current_player'])
        self.is_draw = winner == DRAW_SENTINEL
        self.winner = None if winner is None or self.is_draw else Player.from_index(winner)
        line = record.get('winning_line')
        self.winning_line = tuple(tuple(c) for c in line) if line and self.winner is not None else None
        self.last_move = last_move or self.last_move

        self._generation += 1
        debug.debug(f"Applied remote update; generation {self._generation}", "engine")
        self._notify()

    def render(self) -> str:
        return self.board.render()


class Connect3DEnv(gym.Env):
    """
    3D Connect Four environment following the Gymnasium interface.

    Both players act through the same environment in turn. Actions are
    column indices ``x*4 + z``; observations are the 64 cell values.

    Rewards are kept for learning agents. Bot-vs-bot matches only step
    through the environment and ignore them.
    """

    metadata = {'render_modes': ['ascii', 'human'], 'render_fps': 4}

    def __init__(self, render_mode: Optional[str] = None):
        """
        Initialize the environment.

        Args:
            render_mode: Mode for rendering the environment
        """
        debug.debug("Initializing Connect3DEnv", "env")

        self.action_space = spaces.Discrete(NUM_COLUMNS)
        self.observation_space = spaces.Box(low=0, high=2, shape=(NUM_CELLS,), dtype=np.int8)

        self.engine = GameEngine()
        self.render_mode = render_mode

        self.reward_win = 1.0
        self.reward_invalid_move = -0.5
        self.reward_draw = 0.1
        self.reward_step = -0.01

    def reset(self, seed: Optional[int] = None, options: Optional[Dict] = None) -> Tuple[np.ndarray, Dict]:
        """
        Reset the environment to an empty board.

        Args:
            seed: Random seed for reproducibility
            options: Additional options for reset

        Returns:
            Initial observation and info dictionary
        """
        super().reset(seed=seed)
        self.engine.reset_game()

        if self.render_mode == "human":
            self.render()

        return self._get_observation(), self._get_info()

    def step(self, action: int) -> Tuple[np.ndarray, float, bool, bool, Dict]:
        """
        Drop a piece for the player to move.

        Args:
            action: Column index (x*4 + z)

        Returns:
            Tuple of (observation, reward, terminated, truncated, info);
            the reward is from the mover's point of view
        """
        x, z = divmod(int(action), GRID_SIZE)
        if not self.engine.drop_piece(x, z):
            debug.warning(f"Invalid action: {action}", "env")
            info = self._get_info()
            info['invalid_move'] = True
            return self._get_observation(), self.reward_invalid_move, False, True, info

        reward = self.reward_step
        terminated = False
        if self.engine.winner is not None:
            reward = self.reward_win
            terminated = True
        elif self.engine.is_draw:
            reward = self.reward_draw
            terminated = True

        if self.render_mode == "human":
            self.render()

        return self._get_observation(), reward, terminated, False, self._get_info()

    def render(self) -> Optional[str]:
        if self.render_mode is None:
            return None
        if self.render_mode == "ascii":
            return self.engine.render()
        print(self.engine.render())
        return None

    def _get_observation(self) -> np.ndarray:
        return self.engine.board.cells.copy()

    def _get_info(self) -> Dict:
        valid_moves = self.engine.get_valid_moves()
        return {
            'valid_moves': valid_moves,
            'valid_actions': [m.x * GRID_SIZE + m.z for m in valid_moves],
            'current_player': self.engine.current_player.index,
            'game_result': self.engine.game_result.name,
            'moves_made': self.engine.board.piece_count(),
            'winning_line': self.engine.winning_line,
            'last_move': self.engine.last_move,
        }

    def close(self):
        """Clean up resources."""
        pass
