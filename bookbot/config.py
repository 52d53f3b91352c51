"""
Bot configuration.

Settings come from the bot config JSON (see bots/library_bot.json) and may be
overridden by environment variables. Secrets stay in the environment.
"""

import os
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .suggestions import POPULAR_BOOKS
from .sweeper import DUE_POLICIES, EXACT

logger = logging.getLogger(__name__)

BOT_DIR = Path(__file__).parent.parent

REQUIRED_ENV_VARS = ["SLACK_BOT_TOKEN", "SLACK_APP_TOKEN"]

DEFAULT_ALLOWED_ROLES = ["BL001", "Member", "Mentor", "door"]

# camelCase option names accepted alongside the snake_case keys
_ALIASES = {
    "doorServiceBaseUrl": "door_service_base_url",
    "allowedRoleNames": "allowed_role_names",
    "borrowChannelGate": "borrow_channel",
    "doorChannelGate": "door_channel",
    "reminderChannelGate": "reminder_channel",
}

_ENV_OVERRIDES = {
    "DOOR_SERVICE_BASE_URL": "door_service_base_url",
    "ALLOWED_ROLE_NAMES": "allowed_role_names",
    "BORROW_CHANNEL": "borrow_channel",
    "DOOR_CHANNEL": "door_channel",
    "REMINDER_CHANNEL": "reminder_channel",
    "BORROWINGS_FILE": "store_path",
    "SWEEP_HOUR": "sweep_hour",
    "DUE_POLICY": "due_policy",
}


class ConfigError(ValueError):
    """Raised when the bot configuration is invalid."""


@dataclass
class BotConfig:
    name: str = "library_bot"
    env_file: Optional[str] = None
    door_service_base_url: str = "http://localhost:5458"
    allowed_role_names: list[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ROLES))
    borrow_channel: str = "library"
    door_channel: str = "door"
    reminder_channel: Optional[str] = None
    store_path: Path = field(default_factory=lambda: BOT_DIR / "data" / "borrowings.json")
    sweep_hour: int = 8
    due_policy: str = EXACT
    door_timeout: float = 10
    suggestions: list[str] = field(default_factory=lambda: list(POPULAR_BOOKS))

    def __post_init__(self):
        if isinstance(self.allowed_role_names, str):
            self.allowed_role_names = _split_list(self.allowed_role_names)
        self.store_path = Path(self.store_path)
        if not self.store_path.is_absolute():
            self.store_path = BOT_DIR / self.store_path
        self.borrow_channel = self.borrow_channel.lstrip("#")
        self.door_channel = self.door_channel.lstrip("#")

        try:
            self.sweep_hour = int(self.sweep_hour)
            self.door_timeout = float(self.door_timeout)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        if not 0 <= self.sweep_hour <= 23:
            raise ConfigError(f"sweep_hour must be between 0 and 23, got {self.sweep_hour}")
        if self.due_policy not in DUE_POLICIES:
            raise ConfigError(
                f"due_policy must be one of {', '.join(DUE_POLICIES)}, got {self.due_policy!r}"
            )

    @classmethod
    def from_dict(cls, data: dict, environ: Optional[dict] = None) -> "BotConfig":
        """Build a config from a JSON object, applying environment overrides."""
        environ = os.environ if environ is None else environ
        known = set(cls.__dataclass_fields__)
        values = {}

        for key, value in data.items():
            key = _ALIASES.get(key, key)
            if key in known:
                values[key] = value
            else:
                logger.warning(f"Ignoring unknown config key: {key}")

        for var, key in _ENV_OVERRIDES.items():
            if environ.get(var):
                values[key] = environ[var]

        return cls(**values)


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def load_config(path: Path | str | None = None, environ: Optional[dict] = None) -> BotConfig:
    """
    Load the bot config JSON file.

    Args:
        path: Path to the config file, relative to the bot directory if not
            absolute. With no path, defaults plus environment overrides are used.
        environ: Environment mapping (defaults to os.environ)
    """
    data = {}
    if path:
        config_path = Path(path)
        if not config_path.is_absolute():
            config_path = BOT_DIR / config_path
        try:
            with open(config_path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not read config {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config {config_path} must contain a JSON object")
        logger.info(f"Loaded bot config: {data.get('name', config_path.name)}")

    return BotConfig.from_dict(data, environ)


def missing_env_vars(environ: Optional[dict] = None) -> list[str]:
    environ = os.environ if environ is None else environ
    return [var for var in REQUIRED_ENV_VARS if not environ.get(var)]
