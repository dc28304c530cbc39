"""Services module - Dispatch, client facade and logging"""

from .action_dispatcher import ActionDispatcher
from .game_client import GameClient
from .logger import cleanup_logging, get_logger, setup_logging

__all__ = [
    "ActionDispatcher",
    "GameClient",
    "cleanup_logging",
    "get_logger",
    "setup_logging",
]
