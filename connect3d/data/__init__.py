"""
connect3d.data - Persistent settings for 3D Connect Four
"""

from connect3d.data.settings import GameMode, GameSettings, load_settings, save_settings, is_bot_turn

__all__ = ['GameMode', 'GameSettings', 'load_settings', 'save_settings', 'is_bot_turn']
