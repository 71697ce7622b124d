"""
registry.py - Registry of the available bot tiers

To add a bot, subclass connect3d.ai.bots.Bot, give it a unique ``id`` and
register a factory for it here.
"""

from typing import Callable, Dict, List

from connect3d.ai.bots import Bot, RandomBot, GreedyBot
from connect3d.ai.minimax import HardBot, ExpertBot
from connect3d.debug import debug
from connect3d.utils import UnknownBotError

BOT_FACTORIES: Dict[str, Callable[..., Bot]] = {
    RandomBot.id: RandomBot,
    GreedyBot.id: GreedyBot,
    HardBot.id: HardBot,
    ExpertBot.id: ExpertBot,
}

DEFAULT_BOT_ID = RandomBot.id


def list_bots() -> List[Dict[str, str]]:
    """Id, name and description of every registered bot, weakest first."""
    return [
        {'id': factory.id, 'name': factory.name, 'description': factory.description}
        for factory in BOT_FACTORIES.values()
    ]


def is_registered(bot_id: str) -> bool:
    return bot_id in BOT_FACTORIES


def runs_in_worker(bot_id: str) -> bool:
    """Whether the scheduler should send this bot's searches to the worker process."""
    return get_bot_class(bot_id).runs_in_worker


def get_bot_class(bot_id: str):
    try:
        return BOT_FACTORIES[bot_id]
    except KeyError:
        debug.error(f"Bot not found: {bot_id}", "registry")
        raise UnknownBotError(bot_id) from None


def get_bot(bot_id: str, **options) -> Bot:
    """
    Create a bot by id.

    Args:
        bot_id: Registered bot id ('random', 'greedy', 'hard' or 'expert')
        **options: Keyword arguments for the bot's constructor (e.g. time_limit_ms)

    Returns:
        A new bot instance

    Raises:
        UnknownBotError: If the id is not registered
    """
    return get_bot_class(bot_id)(**options)
