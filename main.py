"""
Library & Door Slack Bot - Main Entry Point

- Records book loans and reminds borrowers on the due date
- Relays door open/lock requests for members with an allowed role
- Keeps the legacy `!ping` / `!book` text commands working
"""

import os
import sys
import argparse
import logging
from pathlib import Path
from dotenv import load_dotenv

from slack_bolt import App
from slack_bolt.adapter.socket_mode import SocketModeHandler

from bookbot.app import register_handlers
from bookbot.config import ConfigError, load_config, missing_env_vars
from bookbot.context import BotContext

BOT_DIR = Path(__file__).parent

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def parse_args():
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Library & Door Slack Bot")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to bot config JSON file (e.g., bots/library_bot.json)"
    )
    return parser.parse_args()


def load_environment(env_file: str | None = None):
    """Load and validate environment variables."""
    env_path = BOT_DIR / (env_file or ".env")
    load_dotenv(env_path)

    missing = missing_env_vars()
    if missing:
        logger.error(
            f"Missing required environment variables: {', '.join(missing)}"
        )
        sys.exit(1)


def main():
    """Start the bot."""
    args = parse_args()

    try:
        # Environment is loaded first so it can override config values
        load_dotenv(BOT_DIR / ".env")
        config = load_config(args.config)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    load_environment(config.env_file)

    logger.info(f"Starting {config.name}...")
    app = App(token=os.environ["SLACK_BOT_TOKEN"])
    context = BotContext.create(config, app.client)
    register_handlers(app, context)

    handler = SocketModeHandler(app, os.environ["SLACK_APP_TOKEN"])

    try:
        context.start()
        logger.info("Bot is running! Press Ctrl+C to stop.")
        handler.start()
    except KeyboardInterrupt:
        logger.info("Stopping bot...")
    finally:
        context.shutdown()


if __name__ == "__main__":
    main()
