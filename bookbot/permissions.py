"""
Role lookups for door access.

Slack has no guild roles, so a role is a user group: a user holds a role
when they are a member of a user group whose handle or name matches.
"""

import logging
from typing import Iterable, Optional

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

logger = logging.getLogger(__name__)


def has_allowed_role(roles: Iterable[str], allowed: Iterable[str]) -> bool:
    """Check if any of `roles` is on the allow-list."""
    return not set(roles).isdisjoint(allowed)


class RoleResolver:
    """Resolves the role names held by a Slack user."""

    def __init__(self, client: WebClient):
        self.client = client

    def get_roles(self, user_id: str) -> Optional[set[str]]:
        """
        Get the handles and names of the user groups `user_id` belongs to.

        Returns:
            Set of role names, or None if the lookup failed
        """
        try:
            response = self.client.usergroups_list(include_users=True)
        except SlackApiError as e:
            logger.error(f"Failed to list user groups: {e.response.get('error', e)}")
            return None

        roles = set()
        for group in response.get("usergroups", []):
            if user_id in (group.get("users") or []):
                for key in ("handle", "name"):
                    if group.get(key):
                        roles.add(group[key])
        return roles
