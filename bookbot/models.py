"""
Data models for the library and door bot.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Any
from enum import Enum


class MessageResult(Enum):
    """Result of handling a command."""
    SUCCESS = "success"
    ERROR = "error"
    UNAUTHORIZED = "unauthorized"


@dataclass
class CommandResponse:
    """Response from a dispatcher handler, ready to be sent to Slack."""
    result: MessageResult
    text: str
    blocks: Optional[list[dict]] = None
    ephemeral: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.result == MessageResult.SUCCESS


@dataclass
class BorrowRecord:
    """One book loan and the metadata needed to remind the borrower."""
    user_id: str
    username: str
    book_title: str
    borrow_date: str
    due_date: str
    channel_id: str
    guild_id: str = ""
    image_url: str = ""

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "username": self.username,
            "bookTitle": self.book_title,
            "borrowDate": self.borrow_date,
            "dueDate": self.due_date,
            "channelId": self.channel_id,
            "guildId": self.guild_id,
            "imageUrl": self.image_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BorrowRecord":
        """Build a record from its persisted form. Raises KeyError if a required field is missing."""
        return cls(
            user_id=data["userId"],
            username=data.get("username", ""),
            book_title=data["bookTitle"],
            borrow_date=data.get("borrowDate", ""),
            due_date=data["dueDate"],
            channel_id=data["channelId"],
            guild_id=data.get("guildId") or "",
            image_url=data.get("imageUrl") or "",
        )

    @classmethod
    def create(
        cls,
        user_id: str,
        username: str,
        book_title: str,
        days: int,
        channel_id: str,
        guild_id: str = "",
        image_url: str = "",
        today: Optional[date] = None,
    ) -> "BorrowRecord":
        """Create a record borrowed today and due `days` days later."""
        borrowed = today or utc_today()
        return cls(
            user_id=user_id,
            username=username,
            book_title=book_title,
            borrow_date=borrowed.isoformat(),
            due_date=(borrowed + timedelta(days=days)).isoformat(),
            channel_id=channel_id,
            guild_id=guild_id,
            image_url=image_url,
        )

    def due(self) -> Optional[date]:
        """Parsed due date, or None if the stored value is not a valid date.

        Accepts unpadded month and day ("2024-1-5") as well as YYYY-MM-DD.
        """
        try:
            return datetime.strptime(self.due_date, "%Y-%m-%d").date()
        except (TypeError, ValueError):
            return None


class DoorAction(Enum):
    """Door relay capabilities, each bound to an endpoint path and its wording."""
    OPEN = ("door", "/opendoor", "opendoor_button", "Open Door", "open", "opening")
    LOCK = ("lock", "/lockdoor", "lockdoor_button", "Lock Door", "lock", "locking")

    def __init__(self, path, command, action_id, label, verb, gerund):
        self.path = path
        self.command = command
        self.action_id = action_id
        self.label = label
        self.verb = verb
        self.gerund = gerund


def utc_today() -> date:
    """Current calendar date in UTC."""
    return datetime.now(timezone.utc).date()
