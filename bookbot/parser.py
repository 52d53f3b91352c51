"""
Parser for the plain-text commands kept for backward compatibility.

Recognized forms:
- !ping
- !book "name of the book" numberOfDays
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

PING_PATTERN = re.compile(r"^!ping$")
BOOK_PREFIX = "!book "
# Slack clients may send typographic quotes
BOOK_PATTERN = re.compile(r"!book\s+[\"“”]([^\"“”]+)[\"“”]\s+(\d+)")


class LegacyCommandType(Enum):
    PING = "ping"
    BOOK = "book"
    INVALID_BOOK = "invalid_book"


@dataclass
class LegacyCommand:
    type: LegacyCommandType
    title: Optional[str] = None
    days: Optional[int] = None


def parse_legacy_command(text: str) -> Optional[LegacyCommand]:
    """
    Classify a channel message.

    Returns:
        LegacyCommand for !ping and !book messages (INVALID_BOOK when the
        arguments don't match), None for anything else
    """
    if text is None:
        return None

    if PING_PATTERN.match(text):
        return LegacyCommand(LegacyCommandType.PING)

    if not text.startswith(BOOK_PREFIX):
        return None

    match = BOOK_PATTERN.search(text)
    if not match:
        return LegacyCommand(LegacyCommandType.INVALID_BOOK)

    return LegacyCommand(
        LegacyCommandType.BOOK,
        title=match.group(1),
        days=int(match.group(2)),
    )
