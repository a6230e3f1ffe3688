"""
Pytest configuration and shared fixtures.
"""

import asyncio
import os
from collections.abc import AsyncIterator

import pytest

from halbot.adapters.hipchat.adapter import HipChatAdapter
from halbot.adapters.hipchat.client import (
    HipChatConnectionError,
    HipChatJoinError,
    HipChatMessage,
    HipChatRoom,
    HipChatUser,
)
from halbot.config import HipChatSettings, RobotSettings
from halbot.robot.adapter import BasicAdapter
from halbot.robot.message import Response
from halbot.robot.robot import Robot

BOT_JID = "1_1@chat.hipchat.com"
ALICE_JID = "1_2@chat.hipchat.com"
BOB_JID = "1_3@chat.hipchat.com"
DEV_ROOM = "1_dev@conf.hipchat.com"
OPS_ROOM = "1_ops@conf.hipchat.com"


class FakeHipChatClient:
    """Stands in for HipChatClient and records every call."""

    def __init__(
        self,
        users: list[HipChatUser] | None = None,
        rooms: list[HipChatRoom] | None = None,
        inbound: list[HipChatMessage] | None = None,
        fail_connect: bool = False,
        refuse_rooms: set[str] | None = None,
        block: bool = False,
    ) -> None:
        self.id = BOT_JID
        self.users = users or []
        self.rooms = rooms or []
        self.inbound = inbound or []
        self.fail_connect = fail_connect
        self.refuse_rooms = refuse_rooms or set()
        self.block = block

        self.statuses: list[str] = []
        self.joined: list[tuple[str, str]] = []
        self.said: list[tuple[str, str, str]] = []
        self.priv_said: list[tuple[str, str, str]] = []
        self.keepalive_started = False
        self.disconnected = False

    async def connect(self) -> None:
        if self.fail_connect:
            raise HipChatConnectionError("Authentication failed")

    async def disconnect(self) -> None:
        self.disconnected = True

    def status(self, show: str) -> None:
        self.statuses.append(show)

    async def request_users(self) -> list[HipChatUser]:
        return list(self.users)

    async def request_rooms(self) -> list[HipChatRoom]:
        return list(self.rooms)

    async def join(self, room_jid: str, nick: str) -> None:
        if room_jid in self.refuse_rooms:
            raise HipChatJoinError(f"Join refused by {room_jid}")
        self.joined.append((room_jid, nick))

    def say(self, room_jid: str, name: str, body: str) -> None:
        self.said.append((room_jid, name, body))

    def priv_say(self, user_jid: str, name: str, body: str) -> None:
        self.priv_said.append((user_jid, name, body))

    async def keep_alive(self) -> None:
        self.keepalive_started = True
        await asyncio.Event().wait()

    async def messages(self) -> AsyncIterator[HipChatMessage]:
        for message in self.inbound:
            yield message
        if self.block:
            await asyncio.Event().wait()


class RecordingAdapter(BasicAdapter):
    """Adapter that records what handlers send."""

    name = "recording"

    def __init__(self) -> None:
        super().__init__()
        self.sent: list[str] = []
        self.replies: list[str] = []
        self.running = False

    async def run(self) -> None:
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def send(self, response: Response, *strings: str) -> None:
        self.sent.extend(strings)

    async def reply(self, response: Response, *strings: str) -> None:
        self.replies.extend(strings)

    async def emote(self, response: Response, *strings: str) -> None:
        pass

    async def topic(self, response: Response, *strings: str) -> None:
        pass

    async def play(self, response: Response, *strings: str) -> None:
        pass


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's HAL_* variables out of tests."""
    for key in list(os.environ):
        if key.startswith("HAL_"):
            monkeypatch.delenv(key)


@pytest.fixture
def robot() -> Robot:
    """Robot named hal with no alias yet."""
    return Robot(RobotSettings(name="hal", alias="", adapter="recording"))


@pytest.fixture
def recording_adapter(robot: Robot) -> RecordingAdapter:
    adapter = RecordingAdapter()
    adapter.set_robot(robot)
    robot.adapter = adapter
    return adapter


@pytest.fixture
def hipchat_settings() -> HipChatSettings:
    return HipChatSettings(user="1_1", password="secret", rooms="Development")


@pytest.fixture
def roster() -> list[HipChatUser]:
    return [
        HipChatUser(id=BOT_JID, name="Hal Bot", mention_name="hal9000"),
        HipChatUser(id=ALICE_JID, name="Alice Smith", mention_name="alice"),
        HipChatUser(id=BOB_JID, name="Bob Jones", mention_name="bob"),
    ]


@pytest.fixture
def rooms() -> list[HipChatRoom]:
    return [
        HipChatRoom(id=DEV_ROOM, name="Development"),
        HipChatRoom(id=OPS_ROOM, name="Operations"),
    ]


@pytest.fixture
def make_adapter(robot: Robot, hipchat_settings: HipChatSettings):
    """Build a HipChatAdapter wired to the given fake client."""

    def _make(
        client: FakeHipChatClient,
        settings: HipChatSettings | None = None,
    ) -> HipChatAdapter:
        adapter = HipChatAdapter(
            settings or hipchat_settings,
            client_factory=lambda _settings: client,
        )
        adapter.set_robot(robot)
        robot.adapter = adapter
        return adapter

    return _make
