"""Tests for the door service relay."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from bookbot.door import DoorRelay
from bookbot.models import DoorAction


@pytest.fixture
def relay():
    return DoorRelay("http://door.test:5458/", timeout=5)


def test_urls(relay):
    assert relay.url_for(DoorAction.OPEN) == "http://door.test:5458/door"
    assert relay.url_for(DoorAction.LOCK) == "http://door.test:5458/lock"


@patch("bookbot.door.requests.get")
def test_success(mock_get, relay):
    mock_get.return_value = MagicMock(status_code=204)

    result = relay.send(DoorAction.OPEN)

    mock_get.assert_called_once_with("http://door.test:5458/door", timeout=5)
    assert result.ok
    assert result.status == 204


@pytest.mark.parametrize("status", [301, 403, 500])
@patch("bookbot.door.requests.get")
def test_non_2xx_is_failure(mock_get, relay, status):
    mock_get.return_value = MagicMock(status_code=status)

    result = relay.send(DoorAction.LOCK)

    assert not result.ok
    assert result.status == status


@patch("bookbot.door.requests.get")
def test_timeout(mock_get, relay):
    mock_get.side_effect = requests.exceptions.Timeout()

    result = relay.send(DoorAction.OPEN)

    assert not result.ok
    assert result.status is None
    assert result.error == "Door service timeout"


@patch("bookbot.door.requests.get")
def test_connection_error(mock_get, relay):
    mock_get.side_effect = requests.exceptions.ConnectionError("refused")

    result = relay.send(DoorAction.OPEN)

    assert not result.ok
    assert "refused" in result.error
