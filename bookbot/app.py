"""
Slack listeners for the library and door bot.

Each listener acks, extracts plain values from the Slack payload, calls the
dispatcher and sends its CommandResponse back.
"""

import json
import logging
from typing import Callable, Optional

from slack_bolt import App
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from .context import BotContext
from .formatters import (
    BOOK_MODAL_CALLBACK,
    DAYS_BLOCK,
    IMAGE_BLOCK,
    TITLE_BLOCK,
    borrow_modal,
    suggestion_options,
)
from .models import CommandResponse, DoorAction

logger = logging.getLogger(__name__)


def send_response(respond: Callable, response: CommandResponse) -> None:
    """Send a response through a slash command or interaction response_url."""
    respond(
        text=response.text,
        blocks=response.blocks,
        response_type="ephemeral" if response.ephemeral else "in_channel",
        replace_original=False,
    )


def resolve_channel_name(client: WebClient, channel_id: str) -> Optional[str]:
    try:
        return client.conversations_info(channel=channel_id)["channel"].get("name")
    except SlackApiError as e:
        logger.error(f"Failed to look up channel {channel_id}: {e.response.get('error', e)}")
        return None


def resolve_username(client: WebClient, user_id: str) -> str:
    try:
        return client.users_info(user=user_id)["user"].get("name") or user_id
    except SlackApiError as e:
        logger.error(f"Failed to look up user {user_id}: {e.response.get('error', e)}")
        return user_id


def first_file_url(files: Optional[list]) -> Optional[str]:
    for f in files or []:
        url = f.get("url_private") or f.get("permalink")
        if url:
            return url
    return None


def parse_borrow_submission(view: dict) -> tuple[Optional[str], Optional[int], Optional[str]]:
    """Extract (title, days, image_url) from the borrow modal state."""
    values = view.get("state", {}).get("values", {})

    selected = values.get(TITLE_BLOCK, {}).get(TITLE_BLOCK, {}).get("selected_option") or {}
    title = selected.get("value")

    raw_days = values.get(DAYS_BLOCK, {}).get(DAYS_BLOCK, {}).get("value")
    try:
        days = int(raw_days) if raw_days is not None else None
    except ValueError:
        days = None

    files = values.get(IMAGE_BLOCK, {}).get(IMAGE_BLOCK, {}).get("files")
    return title, days, first_file_url(files)


def register_handlers(app: App, context: BotContext) -> None:
    """Register all listeners on `app`."""
    dispatcher = context.dispatcher

    # ========================================================================
    # SLASH COMMANDS
    # ========================================================================

    @app.command("/ping")
    def handle_ping_command(ack, respond):
        ack()
        send_response(respond, dispatcher.handle_ping())

    @app.command("/book")
    def handle_book_command(ack, command, respond, client):
        ack()
        channel_name = command.get("channel_name")

        if not dispatcher.in_borrow_channel(channel_name):
            response = dispatcher.borrow_channel_error()
            response.ephemeral = True
            send_response(respond, response)
            return

        try:
            client.views_open(
                trigger_id=command["trigger_id"],
                view=borrow_modal(command["channel_id"], channel_name),
            )
        except SlackApiError:
            logger.exception("Error opening borrow form")
            respond(
                text="An error occurred while processing the book command.",
                response_type="ephemeral",
            )

    def handle_door(action: DoorAction, ack, respond, user_id, username, channel_name):
        ack()
        try:
            roles = context.roles.get_roles(user_id)
            response = dispatcher.handle_door(action, user_id, username, channel_name, roles)
            send_response(respond, response)
        except Exception:
            logger.exception(f"Error handling {action.command} interaction")
            respond(
                text=f"An error occurred while processing the {action.verb} door command.",
                response_type="ephemeral",
                replace_original=False,
            )

    def door_command_handler(action: DoorAction):
        def handler(ack, command, respond):
            handle_door(
                action, ack, respond,
                user_id=command["user_id"],
                username=command.get("user_name", command["user_id"]),
                channel_name=command.get("channel_name"),
            )
        return handler

    def door_button_handler(action: DoorAction):
        def handler(ack, body, respond):
            user = body.get("user", {})
            handle_door(
                action, ack, respond,
                user_id=user["id"],
                username=user.get("username") or user.get("name") or user["id"],
                channel_name=body.get("channel", {}).get("name"),
            )
        return handler

    for action in DoorAction:
        app.command(action.command)(door_command_handler(action))
        app.action(action.action_id)(door_button_handler(action))

    # ========================================================================
    # BORROW FORM
    # ========================================================================

    @app.options(TITLE_BLOCK)
    def handle_title_options(ack, body, payload):
        metadata = json.loads(body.get("view", {}).get("private_metadata") or "{}")
        query = payload.get("value", "")

        matches = dispatcher.handle_autocomplete(metadata.get("channel_name"), query)
        if matches is None:
            ack(options=[])
            return

        ack(options=suggestion_options(matches, query))

    @app.view(BOOK_MODAL_CALLBACK)
    def handle_book_submission(ack, body, view, client):
        ack()
        metadata = json.loads(view.get("private_metadata") or "{}")
        channel_id = metadata.get("channel_id")
        user = body.get("user", {})
        user_id = user.get("id")
        title, days, image_url = parse_borrow_submission(view)

        try:
            response = dispatcher.handle_borrow(
                user_id=user_id,
                username=user.get("username") or user.get("name") or user_id,
                channel_id=channel_id,
                channel_name=metadata.get("channel_name"),
                team_id=body.get("team", {}).get("id"),
                title=title,
                days=days,
                image_url=image_url,
            )
            if response.ok:
                client.chat_postMessage(
                    channel=channel_id, text=response.text, blocks=response.blocks
                )
            else:
                client.chat_postEphemeral(
                    channel=channel_id, user=user_id, text=response.text
                )
        except Exception:
            logger.exception("Error responding to book command")
            if channel_id and user_id:
                try:
                    client.chat_postEphemeral(
                        channel=channel_id,
                        user=user_id,
                        text="An error occurred while processing the book command.",
                    )
                except SlackApiError:
                    logger.exception("Failed to send error followup for book command")

    # ========================================================================
    # EVENT HANDLERS
    # ========================================================================

    @app.event("message")
    def handle_message(event, say, client):
        """Handle the legacy `!ping` and `!book` text commands in channels."""
        if event.get("bot_id"):
            return

        if event.get("channel_type") == "im":
            return

        text = event.get("text", "")
        user_id = event.get("user")
        if not text or not user_id or not text.startswith("!"):
            return

        channel_id = event.get("channel")
        try:
            response = dispatcher.handle_legacy_message(
                text=text,
                user_id=user_id,
                username=resolve_username(client, user_id),
                channel_id=channel_id,
                channel_name=resolve_channel_name(client, channel_id),
                team_id=event.get("team"),
                image_url=first_file_url(event.get("files")),
            )
            if response is None:
                return

            say(text=response.text, blocks=response.blocks)
        except Exception:
            logger.exception("Error handling legacy text command")
            try:
                say(text="An error occurred while processing your command.")
            except SlackApiError:
                logger.exception("Failed to send error followup for legacy command")

    @app.event("app_mention")
    def handle_mention(event, say):
        say(
            f"Use `/book` in #{context.config.borrow_channel} to borrow a book, "
            f"or `/opendoor` and `/lockdoor` in #{context.config.door_channel}."
        )
