"""
Shell Adapter

Local console adapter for trying handlers without a chat server.
"""

from __future__ import annotations

import asyncio
import sys
from typing import TextIO

import structlog
from rich.console import Console

from halbot.robot.adapter import BasicAdapter
from halbot.robot.message import Message, Response, User
from halbot.robot.registry import register_adapter
from halbot.robot.robot import Robot

logger = structlog.get_logger(__name__)

SHELL_ROOM = "shell"


class ShellAdapter(BasicAdapter):
    """
    Reads lines from stdin and prints responses to the console.

    Every line is a message from the local "shell" user in room "shell".
    End of input stops the robot.
    """

    name = "shell"
    description = "Local console"

    def __init__(
        self,
        input_stream: TextIO | None = None,
        console: Console | None = None,
    ) -> None:
        super().__init__()
        self._input = input_stream or sys.stdin
        self.console = console or Console()
        self.user = User(id="shell", name="shell", options={"mentionName": "shell"})
        self._task: asyncio.Task[None] | None = None

    async def run(self) -> None:
        self._task = asyncio.create_task(self._read_loop())

    async def stop(self) -> None:
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()

    async def _read_loop(self) -> None:
        while True:
            line = await asyncio.to_thread(self._input.readline)
            if not line:
                logger.debug("Shell input closed")
                break
            text = line.rstrip("\n")
            if not text.strip():
                continue
            await self.receive(Message(user=self.user, room=SHELL_ROOM, text=text))

        await self.robot.stop()

    async def send(self, response: Response, *strings: str) -> None:
        for text in strings:
            self.console.print(text, markup=False, highlight=False)

    async def reply(self, response: Response, *strings: str) -> None:
        user = response.envelope.user
        prefix = user.name if user else SHELL_ROOM
        for text in strings:
            self.console.print(f"{prefix}: {text}", markup=False, highlight=False)

    async def emote(self, response: Response, *strings: str) -> None:
        for text in strings:
            self.console.print(f"* {text}", markup=False, highlight=False)

    async def topic(self, response: Response, *strings: str) -> None:
        self.console.print(f"Topic: {' '.join(strings)}", markup=False, highlight=False)

    async def play(self, response: Response, *strings: str) -> None:
        pass


def new(robot: Robot) -> ShellAdapter:
    """Adapter factory registered as "shell"."""
    adapter = ShellAdapter()
    robot.adapter = adapter
    adapter.set_robot(robot)
    return adapter


register_adapter("shell", new)
