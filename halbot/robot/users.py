"""
User Roster

In-memory map of users known to the robot, keyed by platform user ID.
"""

from collections.abc import Iterator

import structlog

from halbot.robot.message import User

logger = structlog.get_logger(__name__)


class UserNotFoundError(Exception):
    """Raised when a user ID is not in the roster."""

    pass


class UserMap:
    """Roster of users, filled in by the adapter."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    def get(self, user_id: str) -> User:
        """
        Get a user by ID.

        Raises:
            UserNotFoundError: If the user is unknown
        """
        try:
            return self._users[user_id]
        except KeyError:
            raise UserNotFoundError(f"User '{user_id}' not found") from None

    def set(self, user_id: str, user: User) -> None:
        self._users[user_id] = user
        logger.debug("Stored user", user_id=user_id, name=user.name)

    def delete(self, user_id: str) -> None:
        self._users.pop(user_id, None)

    def all(self) -> list[User]:
        """All users, ordered by ID."""
        return [self._users[k] for k in sorted(self._users)]

    def find_by_name(self, name: str) -> User | None:
        """Find a user by display name."""
        for user in self._users.values():
            if user.name == name:
                return user
        return None

    def __len__(self) -> int:
        return len(self._users)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._users

    def __iter__(self) -> Iterator[User]:
        return iter(self.all())
