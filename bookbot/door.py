"""
HTTP relay to the door controller service.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from .models import DoorAction

logger = logging.getLogger(__name__)


@dataclass
class DoorResult:
    """Outcome of a door request. `status` is None when no response was received."""
    action: DoorAction
    ok: bool
    status: Optional[int] = None
    error: Optional[str] = None


class DoorRelay:
    """Sends open/lock requests to the door service."""

    def __init__(self, base_url: str, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def url_for(self, action: DoorAction) -> str:
        return f"{self.base_url}/{action.path}"

    def send(self, action: DoorAction) -> DoorResult:
        """
        Issue a GET to the endpoint for `action`.

        Any 2xx response counts as success. Network errors are returned in
        `error`, never raised.
        """
        url = self.url_for(action)

        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.error(f"Door {action.gerund} request to {url} timed out")
            return DoorResult(action, ok=False, error="Door service timeout")
        except requests.exceptions.RequestException as e:
            logger.error(f"Door {action.gerund} request to {url} failed: {e}")
            return DoorResult(action, ok=False, error=f"Request failed: {e}")

        if 200 <= response.status_code < 300:
            logger.info(f"Door {action.gerund} request sent successfully.")
            return DoorResult(action, ok=True, status=response.status_code)

        logger.error(
            f"Door {action.gerund} request failed with status: {response.status_code}"
        )
        return DoorResult(action, ok=False, status=response.status_code)
