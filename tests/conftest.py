"""Shared pytest fixtures for the library and door bot tests."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from bookbot.config import BotConfig
from bookbot.dispatcher import Dispatcher
from bookbot.door import DoorResult
from bookbot.models import BorrowRecord
from bookbot.storage import BorrowingStore


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "data" / "borrowings.json"


@pytest.fixture
def store(store_path):
    return BorrowingStore(store_path)


@pytest.fixture
def config(store_path):
    return BotConfig(
        door_service_base_url="http://door.test:5458",
        store_path=store_path,
    )


@pytest.fixture
def relay():
    """Door relay double that always succeeds."""
    relay = MagicMock()
    relay.send.side_effect = lambda action: DoorResult(action, ok=True, status=200)
    return relay


@pytest.fixture
def dispatcher(config, store, relay):
    return Dispatcher(config, store, relay)


@pytest.fixture
def make_record():
    """Factory for borrow records with sensible defaults."""

    def _make(title="Dune", due="2024-01-04", borrowed="2024-01-01", **overrides):
        values = {
            "user_id": "U123",
            "username": "alice",
            "book_title": title,
            "borrow_date": borrowed,
            "due_date": due,
            "channel_id": "C_LIBRARY",
            "guild_id": "T001",
            "image_url": "https://files.slack.com/files-pri/T001-F1/dune.jpg",
        }
        values.update(overrides)
        return BorrowRecord(**values)

    return _make


@pytest.fixture
def new_year():
    return date(2024, 1, 1)
