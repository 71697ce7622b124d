"""
connect3d - Connect Four in three dimensions with a selectable-strength AI opponent

This package provides the 4x4x4 gravity board, the game state machine,
win/draw detection, a heuristic position evaluator and four bot tiers
(random, greedy, fixed-depth minimax and iterative-deepening alpha-beta),
plus the scheduler that runs heavy searches in a separate worker process.
"""

# Version number
__version__ = '0.1.0'
