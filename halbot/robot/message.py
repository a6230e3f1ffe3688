"""
Robot Message Model

Users, messages and responses exchanged between adapters and handlers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from halbot.robot.robot import Robot


@dataclass
class User:
    """A chat user known to the robot."""

    id: str
    name: str
    roles: list[str] = field(default_factory=list)
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def mention_name(self) -> str:
        """Platform mention handle, empty if the adapter did not provide one."""
        value = self.options.get("mentionName")
        return value if isinstance(value, str) else ""


@dataclass
class Message:
    """Inbound chat message."""

    user: User | None
    room: str
    text: str


@dataclass
class Envelope:
    """Where a response should go."""

    room: str
    user: User | None = None


@dataclass
class Response:
    """
    Response to an inbound message.

    Every output method forwards to the robot's adapter.
    """

    robot: Robot
    message: Message
    match: list[str] = field(default_factory=list)

    @classmethod
    def from_message(cls, robot: Robot, message: Message) -> Response:
        """Build a response with an empty match."""
        return cls(robot=robot, message=message)

    @property
    def envelope(self) -> Envelope:
        return Envelope(room=self.message.room, user=self.message.user)

    @property
    def text(self) -> str:
        return self.message.text

    async def send(self, *strings: str) -> None:
        await self.robot.require_adapter().send(self, *strings)

    async def reply(self, *strings: str) -> None:
        await self.robot.require_adapter().reply(self, *strings)

    async def emote(self, *strings: str) -> None:
        await self.robot.require_adapter().emote(self, *strings)

    async def topic(self, *strings: str) -> None:
        await self.robot.require_adapter().topic(self, *strings)

    async def play(self, *strings: str) -> None:
        await self.robot.require_adapter().play(self, *strings)
