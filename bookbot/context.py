"""
Process-wide bot context.

Created once at startup and passed to the Slack handlers; owns the store,
the door relay, the sweeper and the daily scheduler.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from apscheduler.schedulers.base import BaseScheduler
from slack_sdk import WebClient

from .config import BotConfig
from .dispatcher import Dispatcher
from .door import DoorRelay
from .permissions import RoleResolver
from .scheduler import start_scheduler
from .storage import BorrowingStore
from .sweeper import DueDateSweeper, SlackReminderNotifier

logger = logging.getLogger(__name__)


@dataclass
class BotContext:
    config: BotConfig
    client: WebClient
    store: BorrowingStore
    relay: DoorRelay
    roles: RoleResolver
    sweeper: DueDateSweeper
    dispatcher: Dispatcher
    scheduler: Optional[BaseScheduler] = field(default=None)

    @classmethod
    def create(cls, config: BotConfig, client: WebClient) -> "BotContext":
        """Wire up all components from `config`."""
        store = BorrowingStore(config.store_path)
        relay = DoorRelay(config.door_service_base_url, timeout=config.door_timeout)
        notifier = SlackReminderNotifier(client, config.reminder_channel)

        return cls(
            config=config,
            client=client,
            store=store,
            relay=relay,
            roles=RoleResolver(client),
            sweeper=DueDateSweeper(store, notifier, policy=config.due_policy),
            dispatcher=Dispatcher(config, store, relay),
        )

    def start(self) -> None:
        """Run the startup sweep and start the daily schedule."""
        try:
            self.sweeper.sweep()
        except Exception:
            logger.exception("Startup check for due books failed")

        self.scheduler = start_scheduler(self.sweeper, self.config.sweep_hour)

    def shutdown(self) -> None:
        if self.scheduler is not None and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler shutdown.")
        self.scheduler = None
