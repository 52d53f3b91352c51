"""
Due-date sweep over stored borrowings.

A sweep sorts every record into one of three buckets:
- due today: a reminder is sent and the record is removed, or kept if the
  reminder could not be delivered
- due in the future: kept unchanged
- already past due: dropped without a reminder

The last bucket means a record whose reminder failed on its due date is not
retried the day after. Setting the policy to "on_or_before" treats past-due
records as due instead.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from slack_sdk import WebClient

from .models import BorrowRecord, utc_today
from .storage import BorrowingStore
from .formatters import reminder_blocks, reminder_text

logger = logging.getLogger(__name__)

EXACT = "exact"
ON_OR_BEFORE = "on_or_before"
DUE_POLICIES = (EXACT, ON_OR_BEFORE)

Notifier = Callable[[BorrowRecord], None]


@dataclass
class SweepResult:
    """Counts for a single sweep."""
    notified: int = 0
    failed: int = 0
    retained: int = 0
    dropped: int = 0

    def __str__(self) -> str:
        return (
            f"notified={self.notified} failed={self.failed} "
            f"retained={self.retained} dropped={self.dropped}"
        )


class DueDateSweeper:
    """Sends due-date reminders and prunes resolved records."""

    def __init__(self, store: BorrowingStore, notifier: Notifier, policy: str = EXACT):
        if policy not in DUE_POLICIES:
            raise ValueError(f"Unknown due policy: {policy}")
        self.store = store
        self.notifier = notifier
        self.policy = policy

    def is_due(self, due: date, today: date) -> bool:
        if self.policy == ON_OR_BEFORE:
            return due <= today
        return due == today

    def sweep(self, today: Optional[date] = None) -> SweepResult:
        """
        Run one sweep over all records.

        Args:
            today: Date to compare due dates against (defaults to today in UTC)

        Returns:
            SweepResult with per-bucket counts
        """
        today = today or utc_today()
        result = SweepResult()
        logger.info(f"Starting check for due books ({today.isoformat()})")

        with self.store.locked():
            survivors = []

            for record in self.store.load():
                due = record.due()

                if due is None:
                    logger.warning(
                        f"Dropping borrowing of '{record.book_title}' with "
                        f"invalid due date {record.due_date!r}"
                    )
                    result.dropped += 1

                elif self.is_due(due, today):
                    if self._deliver(record):
                        result.notified += 1
                    else:
                        result.failed += 1
                        survivors.append(record)

                elif due > today:
                    result.retained += 1
                    survivors.append(record)

                else:
                    result.dropped += 1

            self.store.save(survivors)

        logger.info(f"Due book check finished: {result}")
        return result

    def _deliver(self, record: BorrowRecord) -> bool:
        try:
            self.notifier(record)
        except Exception:
            logger.exception(
                f"Error sending due notification to {record.username} "
                f"for book '{record.book_title}'"
            )
            return False

        logger.info(
            f"Sent due notification to {record.username} for book '{record.book_title}'"
        )
        return True


class SlackReminderNotifier:
    """Posts due-date reminders to Slack. Raises SlackApiError on failure."""

    def __init__(self, client: WebClient, reminder_channel: Optional[str] = None):
        self.client = client
        self.reminder_channel = reminder_channel

    def __call__(self, record: BorrowRecord) -> None:
        self.client.chat_postMessage(
            channel=self.reminder_channel or record.channel_id,
            text=reminder_text(record),
            blocks=reminder_blocks(record),
        )
