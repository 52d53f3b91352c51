"""
Library and door Slack bot.

Records book loans with due-date reminders and relays door open/lock
requests for members holding an allowed role.
"""

from .models import BorrowRecord, CommandResponse, DoorAction, MessageResult
from .storage import BorrowingStore
from .sweeper import DueDateSweeper, SweepResult, SlackReminderNotifier
from .door import DoorRelay, DoorResult
from .config import BotConfig, ConfigError, load_config
from .dispatcher import Dispatcher
from .context import BotContext

__all__ = [
    'BorrowRecord',
    'CommandResponse',
    'DoorAction',
    'MessageResult',
    'BorrowingStore',
    'DueDateSweeper',
    'SweepResult',
    'SlackReminderNotifier',
    'DoorRelay',
    'DoorResult',
    'BotConfig',
    'ConfigError',
    'load_config',
    'Dispatcher',
    'BotContext',
]
