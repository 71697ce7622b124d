"""
connect3d.ai - Bots for 3D Connect Four

This package provides the bot tiers (random, greedy, hard, expert), the
heuristic evaluation they share, the worker message handler and the
scheduler that plays bot turns against a GameEngine.
"""

from connect3d.ai.bots import Bot, RandomBot, GreedyBot
from connect3d.ai.minimax import HardBot, ExpertBot
from connect3d.ai.registry import get_bot, list_bots, DEFAULT_BOT_ID
from connect3d.ai.scheduler import SearchScheduler, RequestStatus

__all__ = ['Bot', 'RandomBot', 'GreedyBot', 'HardBot', 'ExpertBot',
           'get_bot', 'list_bots', 'DEFAULT_BOT_ID', 'SearchScheduler', 'RequestStatus']
