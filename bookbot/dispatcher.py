"""
Central command dispatcher for the library and door bot.

Handles:
- Health check (ping)
- Book borrowing from the slash command form and the legacy text syntax
- Title suggestions for the borrow form
- Door open/lock requests gated by channel and role

Handlers are platform-neutral: they take plain values and return a
CommandResponse that the Slack layer sends back.
"""

import logging
from datetime import date
from typing import Optional, Iterable

from .config import BotConfig
from .door import DoorRelay
from .formatters import borrow_confirmation_text, door_action_row, text_with_image
from .models import BorrowRecord, CommandResponse, DoorAction, MessageResult
from .parser import LegacyCommandType, parse_legacy_command
from .permissions import has_allowed_role
from .storage import BorrowingStore
from .suggestions import filter_suggestions

logger = logging.getLogger(__name__)

MIN_DAYS = 1
MAX_DAYS = 30

LEGACY_FORMAT_HELP = (
    'Please use the correct format: !book "name of the book" numberOfDays '
    "and attach an image of the book, or try the /book slash command!"
)


class Dispatcher:
    """Routes bot commands to the record store and the door relay."""

    def __init__(self, config: BotConfig, store: BorrowingStore, relay: DoorRelay):
        self.config = config
        self.store = store
        self.relay = relay

    def handle_ping(self) -> CommandResponse:
        return CommandResponse(result=MessageResult.SUCCESS, text="Pong!")

    def in_borrow_channel(self, channel_name: Optional[str]) -> bool:
        return channel_name == self.config.borrow_channel

    def borrow_channel_error(self, command: str = "book") -> CommandResponse:
        return _error(
            f"The {command} command can only be used in the "
            f"#{self.config.borrow_channel} channel."
        )

    def handle_borrow(
        self,
        user_id: str,
        username: str,
        channel_id: str,
        channel_name: Optional[str],
        team_id: Optional[str],
        title: Optional[str],
        days: Optional[int],
        image_url: Optional[str],
        today: Optional[date] = None,
    ) -> CommandResponse:
        """
        Record a book loan and confirm the due date.

        Args:
            user_id: Slack user ID of the borrower
            username: Display name, used in messages only
            channel_id: Channel the reminder will be posted to
            channel_name: Channel name, checked against the borrow channel
            team_id: Slack workspace ID
            title: Book title
            days: Loan length in days
            image_url: URL of the book photo
            today: Borrow date (defaults to today in UTC)

        Returns:
            CommandResponse; on error nothing is stored
        """
        if not self.in_borrow_channel(channel_name):
            return self.borrow_channel_error()

        title = (title or "").strip()
        if not title or not days:
            return _error("Please provide both a book title and number of days!")

        if not MIN_DAYS <= days <= MAX_DAYS:
            return _error(
                f"The number of days must be between {MIN_DAYS} and {MAX_DAYS}."
            )

        if not image_url:
            return _error("Please provide a book image!")

        record = BorrowRecord.create(
            user_id=user_id,
            username=username,
            book_title=title,
            days=days,
            channel_id=channel_id,
            guild_id=team_id or "",
            image_url=image_url,
            today=today,
        )
        self.store.append(record)

        text = borrow_confirmation_text(title, record.due_date)
        return CommandResponse(
            result=MessageResult.SUCCESS,
            text=text,
            blocks=text_with_image(text, image_url, title),
            metadata={"due_date": record.due_date},
        )

    def handle_autocomplete(
        self,
        channel_name: Optional[str],
        query: str,
    ) -> Optional[list[str]]:
        """Suggested titles for `query`, or None outside the borrow channel."""
        if not self.in_borrow_channel(channel_name):
            return None
        return filter_suggestions(query, self.config.suggestions)

    def handle_door(
        self,
        action: DoorAction,
        user_id: str,
        username: str,
        channel_name: Optional[str],
        roles: Optional[Iterable[str]],
    ) -> CommandResponse:
        """
        Relay a door request after checking channel and role.

        Args:
            action: DoorAction to perform
            user_id: Slack user ID of the caller
            username: Display name, echoed in the confirmation
            channel_name: Channel name, checked against the door channel
            roles: Role names held by the caller, or None if unknown

        Returns:
            CommandResponse with the door buttons on success
        """
        if channel_name != self.config.door_channel:
            return _error(
                f"This action can only be performed in the "
                f"#{self.config.door_channel} channel."
            )

        if roles is None:
            return _error("Could not determine your roles.")

        if not has_allowed_role(roles, self.config.allowed_role_names):
            logger.warning(
                f"Unauthorized door {action.verb} attempt by user {user_id}"
            )
            return CommandResponse(
                result=MessageResult.UNAUTHORIZED,
                text=f"You do not have the required role to {action.verb} the door.",
            )

        logger.info(
            f"Door {action.gerund} initiated by {username} in channel #{channel_name}"
        )
        result = self.relay.send(action)

        if result.ok:
            text = f"Door {action.gerund} request sent successfully by {username}. ✅"
            return CommandResponse(
                result=MessageResult.SUCCESS,
                text=text,
                blocks=[
                    {"type": "section", "text": {"type": "mrkdwn", "text": text}},
                    door_action_row(),
                ],
                metadata={"status": result.status},
            )

        if result.status is not None:
            return _error(
                f"Failed to send door {action.gerund} request (status: {result.status}). "
                "Please try again or contact an admin.",
                status=result.status,
            )

        return CommandResponse(
            result=MessageResult.ERROR,
            text=f"An error occurred while processing the {action.verb} door command.",
            ephemeral=True,
            metadata={"error": result.error},
        )

    def handle_legacy_message(
        self,
        text: str,
        user_id: str,
        username: str,
        channel_id: str,
        channel_name: Optional[str],
        team_id: Optional[str],
        image_url: Optional[str],
        today: Optional[date] = None,
    ) -> Optional[CommandResponse]:
        """
        Handle the plain-text `!ping` and `!book` commands.

        Returns:
            CommandResponse, or None if the message is not a command
        """
        command = parse_legacy_command(text)
        if command is None:
            return None

        if command.type == LegacyCommandType.PING:
            return self.handle_ping()

        if not self.in_borrow_channel(channel_name):
            return self.borrow_channel_error("`!book`")

        if command.type == LegacyCommandType.INVALID_BOOK:
            return _error(LEGACY_FORMAT_HELP)

        if not image_url:
            return _error("Please attach an image of the book!")

        return self.handle_borrow(
            user_id=user_id,
            username=username,
            channel_id=channel_id,
            channel_name=channel_name,
            team_id=team_id,
            title=command.title,
            days=command.days,
            image_url=image_url,
            today=today,
        )


def _error(text: str, **metadata) -> CommandResponse:
    return CommandResponse(result=MessageResult.ERROR, text=text, metadata=metadata)
