"""
Slack message and Block Kit formatting for the library and door bot.
"""

import json
from typing import Optional

from .models import BorrowRecord, DoorAction

BOOK_MODAL_CALLBACK = "book_modal"
TITLE_BLOCK = "book_title"
DAYS_BLOCK = "book_days"
IMAGE_BLOCK = "book_image"

MAX_OPTIONS = 25
SLACK_FILES_HOST = "https://files.slack.com/"


def image_block(url: str, alt_text: str) -> dict:
    """Image block for either a Slack-hosted file or a public URL."""
    if url.startswith(SLACK_FILES_HOST):
        return {"type": "image", "slack_file": {"url": url}, "alt_text": alt_text}
    return {"type": "image", "image_url": url, "alt_text": alt_text}


def text_with_image(text: str, image_url: Optional[str], alt_text: str) -> list[dict]:
    blocks = [{"type": "section", "text": {"type": "mrkdwn", "text": text}}]
    if image_url:
        blocks.append(image_block(image_url, alt_text))
    return blocks


def reminder_text(record: BorrowRecord) -> str:
    return f"<@{record.user_id}>, your book \"{record.book_title}\" is due today!"


def reminder_blocks(record: BorrowRecord) -> list[dict]:
    return text_with_image(reminder_text(record), record.image_url, record.book_title)


def borrow_confirmation_text(title: str, due_date: str) -> str:
    return (
        f"📚 Your borrowing of \"{title}\" has been recorded. "
        f"You will be notified on {due_date} when it is due to be returned."
    )


def door_action_row() -> dict:
    """Actions block with both door buttons."""
    return {
        "type": "actions",
        "block_id": "door_actions",
        "elements": [
            {
                "type": "button",
                "action_id": DoorAction.OPEN.action_id,
                "text": {"type": "plain_text", "text": DoorAction.OPEN.label},
                "style": "primary",
                "value": DoorAction.OPEN.name.lower(),
            },
            {
                "type": "button",
                "action_id": DoorAction.LOCK.action_id,
                "text": {"type": "plain_text", "text": DoorAction.LOCK.label},
                "value": DoorAction.LOCK.name.lower(),
            },
        ],
    }


def borrow_modal(channel_id: str, channel_name: str) -> dict:
    """
    Modal collecting a book title (with suggestions), a loan length and a photo.

    The originating channel travels in private_metadata so the submission and
    suggestion handlers can apply the channel gate.
    """
    return {
        "type": "modal",
        "callback_id": BOOK_MODAL_CALLBACK,
        "private_metadata": json.dumps(
            {"channel_id": channel_id, "channel_name": channel_name}
        ),
        "title": {"type": "plain_text", "text": "Borrow a book"},
        "submit": {"type": "plain_text", "text": "Borrow"},
        "close": {"type": "plain_text", "text": "Cancel"},
        "blocks": [
            {
                "type": "input",
                "block_id": TITLE_BLOCK,
                "label": {"type": "plain_text", "text": "The title of the book"},
                "element": {
                    "type": "external_select",
                    "action_id": TITLE_BLOCK,
                    "min_query_length": 0,
                    "placeholder": {"type": "plain_text", "text": "Start typing a title"},
                },
            },
            {
                "type": "input",
                "block_id": DAYS_BLOCK,
                "label": {"type": "plain_text", "text": "Number of days to borrow the book"},
                "element": {
                    "type": "number_input",
                    "action_id": DAYS_BLOCK,
                    "is_decimal_allowed": False,
                    "min_value": "1",
                    "max_value": "30",
                },
            },
            {
                "type": "input",
                "block_id": IMAGE_BLOCK,
                "label": {"type": "plain_text", "text": "The image of the book"},
                "element": {
                    "type": "file_input",
                    "action_id": IMAGE_BLOCK,
                    "filetypes": ["jpg", "jpeg", "png", "gif", "webp"],
                    "max_files": 1,
                },
            },
        ],
    }


def suggestion_options(matches: list[str], query: str) -> list[dict]:
    """
    Options for the title selector.

    The typed query comes first so titles outside the suggestion list can
    still be picked.
    """
    titles = list(matches)
    typed = query.strip()
    if typed and typed.lower() not in (t.lower() for t in titles):
        titles.insert(0, typed)

    return [
        {"text": {"type": "plain_text", "text": title[:75]}, "value": title[:150]}
        for title in titles[:MAX_OPTIONS]
    ]
