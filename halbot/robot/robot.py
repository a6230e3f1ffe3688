"""
Robot

Owns the handlers and user roster, and dispatches inbound messages.
"""

from __future__ import annotations

import asyncio

import structlog

from halbot.config import RobotSettings
from halbot.robot.adapter import Adapter
from halbot.robot.handler import Handler
from halbot.robot.message import Message, Response
from halbot.robot.registry import get_adapter_factory
from halbot.robot.users import UserMap

logger = structlog.get_logger(__name__)


class Robot:
    """
    The chatbot.

    Adapters feed messages in through receive(); every handler whose pattern
    matches is run with a Response bound to the message.

    Usage:
        robot = Robot(RobotSettings(name="hal", adapter="hipchat"))
        robot.handle(ping_handler, echo_handler)
        await robot.run()
    """

    def __init__(self, settings: RobotSettings | None = None) -> None:
        self.settings = settings or RobotSettings()
        self.name = self.settings.name
        self.alias = self.settings.alias
        self.users = UserMap()
        self.adapter: Adapter | None = None
        self._handlers: list[Handler] = []
        self._stopped = asyncio.Event()

    def handle(self, *handlers: Handler) -> None:
        """Register handlers."""
        for handler in handlers:
            self._handlers.append(handler)
            logger.debug("Registered handler", handler=repr(handler))

    def handlers(self) -> list[Handler]:
        return list(self._handlers)

    def require_adapter(self) -> Adapter:
        if self.adapter is None:
            raise RuntimeError("Robot has no adapter")
        return self.adapter

    async def receive(self, message: Message) -> None:
        """
        Dispatch a message to every matching handler.

        A failing handler is logged and does not prevent the remaining
        handlers from running.
        """
        for handler in self._handlers:
            match = handler.match(self, message.text)
            if match is None:
                continue

            response = Response(robot=self, message=message, match=match)
            try:
                await handler.handle(response)
            except Exception as e:
                logger.error(
                    "Handler failed",
                    handler=repr(handler),
                    room=message.room,
                    error=str(e),
                )

    async def run(self) -> None:
        """
        Start the configured adapter and block until stop() is called.

        Raises:
            AdapterNotFoundError: If the configured adapter is not registered
        """
        if self.adapter is None:
            factory = get_adapter_factory(self.settings.adapter)
            self.adapter = factory(self)

        logger.info(
            "Robot starting",
            name=self.name,
            adapter=self.settings.adapter,
            handlers=len(self._handlers),
        )
        self._stopped.clear()
        await self.adapter.run()
        await self._stopped.wait()

    async def stop(self) -> None:
        """Stop the adapter and release run()."""
        logger.info("Robot stopping", name=self.name)
        if self.adapter is not None:
            await self.adapter.stop()
        self._stopped.set()
