"""
Adapter Base

Abstract base class for chat platform adapters.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from halbot.robot.message import Message, Response
    from halbot.robot.robot import Robot

logger = structlog.get_logger(__name__)


class Adapter(ABC):
    """
    Abstract base class for chat platform adapters.

    Each platform (HipChat, the local shell) implements this interface.
    """

    name: str = "base"
    description: str = "Base chat adapter"

    @abstractmethod
    async def run(self) -> None:
        """Start the adapter. Must return once the adapter is running."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop the adapter."""
        pass

    @abstractmethod
    async def send(self, response: Response, *strings: str) -> None:
        """Send strings to the response's room."""
        pass

    @abstractmethod
    async def reply(self, response: Response, *strings: str) -> None:
        """Send strings addressed to the user who sent the message."""
        pass

    @abstractmethod
    async def emote(self, response: Response, *strings: str) -> None:
        pass

    @abstractmethod
    async def topic(self, response: Response, *strings: str) -> None:
        pass

    @abstractmethod
    async def play(self, response: Response, *strings: str) -> None:
        pass

    @abstractmethod
    async def receive(self, message: Message) -> None:
        """Forward an inbound message to the robot."""
        pass


class BasicAdapter(Adapter):
    """
    Adapter with a robot reference and a forwarding receive.

    Platform adapters normally subclass this rather than Adapter.
    """

    def __init__(self) -> None:
        self._robot: Robot | None = None

    @property
    def robot(self) -> Robot:
        if self._robot is None:
            raise RuntimeError(f"Adapter '{self.name}' has no robot")
        return self._robot

    def set_robot(self, robot: Robot) -> None:
        self._robot = robot

    async def receive(self, message: Message) -> None:
        await self.robot.receive(message)

    def __str__(self) -> str:
        return f"{self.name} adapter"
