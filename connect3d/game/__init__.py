"""
connect3d.game - Core game mechanics for 3D Connect Four

This package contains the board representation, the game state machine
and the gymnasium environment.
"""

from connect3d.game.board import Board
from connect3d.game.rules import GameEngine, GameSnapshot, GameState, Connect3DEnv

__all__ = ['Board', 'GameEngine', 'GameSnapshot', 'GameState', 'Connect3DEnv']
