"""
settings.py - Persistent game settings

Settings (game mode, selected bot, which side the bot plays, expert time
budget, bot pacing delay) are kept outside the engine so they survive a
game reset. They are stored as JSON in the data directory using file
locking and atomic replacement.
"""

import json
import os
import shutil
from dataclasses import dataclass, asdict, fields
from enum import Enum
from typing import Any, Dict, Optional

import filelock

from connect3d.ai.registry import DEFAULT_BOT_ID, is_registered
from connect3d.debug import debug
from connect3d.game.rules import GameState
from connect3d.utils import BOT_MOVE_DELAY, EXPERT_TIME_LIMIT_MS

# Define paths to data files
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
DATA_DIR = os.path.join(BASE_DIR, 'data')
SETTINGS_FILE = os.path.join(DATA_DIR, 'settings.json')


class GameMode(str, Enum):
    TWO_PLAYER = 'two-player'
    SINGLE_PLAYER = 'single-player'
    ONLINE = 'online'


@dataclass
class GameSettings:
    """User-selectable settings; defaults match a fresh install."""
    game_mode: GameMode = GameMode.SINGLE_PLAYER
    selected_bot_id: str = DEFAULT_BOT_ID
    bot_player: int = 1
    expert_time_limit_ms: int = EXPERT_TIME_LIMIT_MS
    bot_delay: float = BOT_MOVE_DELAY

    def bot_options(self) -> Dict[str, Dict[str, Any]]:
        """Per-bot constructor options for the scheduler."""
        return {'expert': {'time_limit_ms': self.expert_time_limit_ms}}

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['game_mode'] = self.game_mode.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameSettings':
        """
        Build settings from stored data.

        Unknown keys are ignored. A value that does not validate is replaced
        by its default and a warning is logged.
        """
        settings = cls()
        known = {f.name for f in fields(cls)}
        for key, value in data.items():
            if key not in known:
                debug.debug(f"Ignoring unknown setting '{key}'", "settings")
                continue
            try:
                setattr(settings, key, _validate(key, value))
            except (TypeError, ValueError) as e:
                debug.warning(f"Invalid value for '{key}' ({value!r}): {e}; using default", "settings")
        return settings


def _validate(key: str, value: Any) -> Any:
    if key == 'game_mode':
        return GameMode(value)
    if key == 'selected_bot_id':
        if not isinstance(value, str) or not is_registered(value):
            raise ValueError("not a registered bot")
        return value
    if key == 'bot_player':
        if value not in (0, 1) or isinstance(value, bool):
            raise ValueError("must be 0 or 1")
        return int(value)
    if key == 'expert_time_limit_ms':
        value = int(value)
        if value <= 0:
            raise ValueError("must be positive")
        return value
    if key == 'bot_delay':
        value = float(value)
        if value < 0:
            raise ValueError("must not be negative")
        return value
    return value


# File utility functions
def safe_read_json(file_path: str) -> Optional[Any]:
    """
    Safely read a JSON file with file locking.

    Args:
        file_path: Path to JSON file

    Returns:
        Parsed JSON data, or None if the file doesn't exist or is corrupt
    """
    if not os.path.exists(file_path):
        return None

    lock_path = f"{file_path}.lock"
    with filelock.FileLock(lock_path):
        try:
            with open(file_path, 'r') as f:
                return json.load(f)
        except json.JSONDecodeError:
            debug.error(f"Error decoding JSON from {file_path}", "settings")
            return None


def safe_write_json(file_path: str, data: Any) -> bool:
    """
    Safely write data to a JSON file with atomic updates.

    Args:
        file_path: Path to JSON file
        data: Data to write

    Returns:
        True if successful, False otherwise
    """
    os.makedirs(os.path.dirname(os.path.abspath(file_path)), exist_ok=True)
    lock_path = f"{file_path}.lock"
    with filelock.FileLock(lock_path):
        try:
            # Write to a temporary file first
            temp_file = f"{file_path}.tmp"
            with open(temp_file, 'w') as f:
                json.dump(data, f, indent=2)

            # Replace the original file (atomic operation)
            shutil.move(temp_file, file_path)
            return True
        except OSError as e:
            debug.error(f"Error writing to {file_path}: {e}", "settings")
            return False


def load_settings(path: Optional[str] = None) -> GameSettings:
    """
    Load settings, falling back to defaults when nothing valid is stored.

    Args:
        path: Settings file (defaults to data/settings.json)
    """
    path = path or SETTINGS_FILE
    data = safe_read_json(path)
    if data is None:
        return GameSettings()
    if not isinstance(data, dict):
        debug.warning(f"Settings in {path} are not an object; using defaults", "settings")
        return GameSettings()
    return GameSettings.from_dict(data)


def save_settings(settings: GameSettings, path: Optional[str] = None) -> bool:
    path = path or SETTINGS_FILE
    if safe_write_json(path, settings.to_dict()):
        debug.info(f"Saved settings to {path}", "settings")
        return True
    return False


def is_bot_turn(settings: GameSettings, state: GameState) -> bool:
    """True when a single-player game is running and the bot is to move."""
    if settings.game_mode != GameMode.SINGLE_PLAYER or state.is_game_over():
        return False
    return state.current_player.index == settings.bot_player
