"""
HipChat Adapter

Chat adapter for HipChat rooms and private messages over XMPP.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Callable

import structlog

from halbot.adapters.hipchat.client import (
    HipChatClient,
    HipChatConnectionError,
    HipChatJoinError,
    HipChatMessage,
    split_jid,
)
from halbot.config import HipChatSettings, load_hipchat_settings
from halbot.robot.adapter import BasicAdapter
from halbot.robot.handler import respond_pattern
from halbot.robot.message import Message, Response, User
from halbot.robot.registry import register_adapter
from halbot.robot.robot import Robot
from halbot.robot.users import UserNotFoundError

logger = structlog.get_logger(__name__)

# Builds the XMPP client from settings; replaced in tests
ClientFactory = Callable[[HipChatSettings], HipChatClient]


class RosterError(Exception):
    """Raised when a user written to the roster cannot be read back."""

    pass


def default_client_factory(settings: HipChatSettings) -> HipChatClient:
    return HipChatClient(
        settings.user,
        settings.password,
        settings.resource,
        host=settings.host,
        conf_host=settings.conf_host,
        port=settings.port,
        keepalive_interval=settings.keepalive_interval,
    )


def mention_name(user: User | None) -> str:
    """Mention name of a user, empty when unknown."""
    if user is None:
        return ""
    return user.mention_name


class HipChatAdapter(BasicAdapter):
    """
    HipChat chat adapter.

    Requires:
    - HAL_HIPCHAT_USER: XMPP username (the part before @chat.hipchat.com)
    - HAL_HIPCHAT_PASSWORD: Account password

    Optional:
    - HAL_HIPCHAT_ROOMS: Comma-separated room names to join (default: all)
    - HAL_HIPCHAT_RESOURCE: XMPP resource (default: bot)
    """

    name = "hipchat"
    description = "HipChat rooms and private messages over XMPP"

    def __init__(
        self,
        settings: HipChatSettings,
        client_factory: ClientFactory | None = None,
    ) -> None:
        super().__init__()
        self.settings = settings
        self.user = settings.user
        self.password = settings.password
        self.resource = settings.resource
        self.rooms = list(settings.rooms)

        # Display name and mention name of the bot, filled in from the roster
        self.bot_name = settings.resource
        self.nick = ""

        self.client: HipChatClient | None = None
        self._client_factory = client_factory or default_client_factory
        self._task: asyncio.Task[None] | None = None
        self._keepalive_task: asyncio.Task[None] | None = None

    @classmethod
    def new(
        cls,
        robot: Robot,
        client_factory: ClientFactory | None = None,
    ) -> HipChatAdapter:
        """
        Build the adapter from the environment and attach it to the robot.

        Raises:
            ConfigurationError: If HAL_HIPCHAT_USER or HAL_HIPCHAT_PASSWORD is missing
        """
        adapter = cls(load_hipchat_settings(), client_factory)
        robot.adapter = adapter
        adapter.set_robot(robot)
        return adapter

    async def run(self) -> None:
        """Start the connection in the background and return."""
        self._task = asyncio.create_task(self.start_connection())
        self._task.add_done_callback(self._connection_done)

    def _connection_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("HipChat connection task ended", error=str(error))

    async def stop(self) -> None:
        """Stop listening and disconnect."""
        pending = [
            task
            for task in (self._keepalive_task, self._task)
            if task is not None and not task.done() and task is not asyncio.current_task()
        ]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        if self.client is not None:
            await self.client.disconnect()
        logger.info("Disconnected from HipChat")

    async def send(self, response: Response, *strings: str) -> None:
        """
        Send strings to the message's room.

        When the room is a known user's JID the message came in privately,
        so the answer goes back as a private message.
        """
        client = self._require_client()
        room = response.message.room
        for text in strings:
            logger.debug("Sending message", room=room)
            try:
                user = self.robot.users.get(room)
            except UserNotFoundError:
                client.say(room, self.bot_name, text)
            else:
                client.priv_say(user.id, self.bot_name, text)

    async def reply(self, response: Response, *strings: str) -> None:
        """Send strings prefixed with the sender's @mention."""
        logger.debug("Replying", strings=strings)
        mention = mention_name(response.envelope.user)
        await self.send(response, *(f"@{mention}: {text}" for text in strings))

    # HipChat has no equivalent for these
    async def emote(self, response: Response, *strings: str) -> None:
        pass

    async def topic(self, response: Response, *strings: str) -> None:
        pass

    async def play(self, response: Response, *strings: str) -> None:
        pass

    async def receive(self, message: Message) -> None:
        """Forward a message to the robot."""
        logger.debug("hipchat adapter received message")
        for handler in self.robot.handlers():
            regexp = re.compile(respond_pattern(self.robot, handler.pattern))
            logger.debug(
                "Respond pattern",
                pattern=handler.pattern,
                text=message.text,
                matches=[[m.group(0), *m.groups()] for m in regexp.finditer(message.text)],
            )
        await self.robot.receive(message)
        logger.debug("hipchat adapter sent message to robot")

    def new_message(self, msg: HipChatMessage) -> Message:
        """
        Translate an inbound HipChat message.

        The text is addressed to the bot so RESPOND handlers see it.
        """
        room, nick = split_jid(msg.from_)
        user = self._lookup_user(room, nick)
        alias = self.robot.alias or self.robot.name
        text = f"@{alias}: {msg.body}"
        logger.debug("Translated message", user=user.name, room=room, text=text)
        return Message(user=user, room=room, text=text)

    def _lookup_user(self, room: str, nick: str | None) -> User:
        # Private messages come from the user's own JID, room messages
        # from room@conf/Display Name
        try:
            return self.robot.users.get(room)
        except UserNotFoundError:
            pass
        if nick:
            user = self.robot.users.find_by_name(nick)
            if user is not None:
                return user
        return User(id=nick or room, name=nick or room)

    def _require_client(self) -> HipChatClient:
        if self.client is None:
            raise RuntimeError("Not connected to HipChat")
        return self.client

    async def start_connection(self) -> None:
        """
        Connect, load the roster and rooms, join rooms and listen.

        Raises:
            HipChatConnectionError: If the connection fails
            RosterError: If a user cannot be stored in the roster
        """
        client = self._client_factory(self.settings)
        try:
            await client.connect()
        except HipChatConnectionError as e:
            logger.error("HipChat connection failed", error=str(e))
            raise

        client.status("chat")
        logger.debug("Client id", client_id=client.id)

        await self._load_users(client)

        # Map human room names to room JIDs
        room_jids: dict[str, str] = {}
        for room in await client.request_rooms():
            room_jids[room.name] = room.id
            logger.debug("Found room", name=room.name, jid=room.id)

        client.status("chat")
        await self._join_rooms(client, room_jids)

        self.client = client
        if self.nick:
            self.robot.alias = self.nick

        self._keepalive_task = asyncio.create_task(client.keep_alive())
        await self._listen(client)

    async def _load_users(self, client: HipChatClient) -> None:
        for user in await client.request_users():
            # Our own entry gives the bot's display and mention names
            if user.id == client.id:
                self.bot_name = user.name or self.bot_name
                self.nick = user.mention_name
                continue

            new_user = User(
                id=user.id,
                name=user.name,
                options={"mentionName": user.mention_name},
            )
            logger.debug("Found user", user_id=new_user.id, name=new_user.name)
            self.robot.users.set(user.id, new_user)
            try:
                self.robot.users.get(user.id)
            except UserNotFoundError:
                raise RosterError(f"User add fail: {user}") from None

    async def _join_rooms(
        self, client: HipChatClient, room_jids: dict[str, str]
    ) -> None:
        """Join the configured rooms, or every room when none are configured."""
        if self.rooms:
            targets = []
            for name in self.rooms:
                if name not in room_jids:
                    logger.warning("Unknown room, not joining", room=name)
                    continue
                targets.append((name, room_jids[name]))
        else:
            targets = list(room_jids.items())

        for name, jid in targets:
            try:
                await client.join(jid, self.bot_name)
            except HipChatJoinError as e:
                logger.warning("Cannot join room", room=name, jid=jid, error=str(e))
                continue
            logger.debug("Joined room", adapter=str(self), room=name, jid=jid)

    async def _listen(self, client: HipChatClient) -> None:
        async for message in client.messages():
            logger.debug("Inbound message", sender=message.from_, type=message.type)
            _, resource = split_jid(message.from_)
            # Messages from the room itself carry no resource
            if not resource:
                continue
            # Our own room messages echo back under the bot's display name
            if resource == self.bot_name:
                continue

            await self.receive(self.new_message(message))


def new(robot: Robot) -> HipChatAdapter:
    """Adapter factory registered as "hipchat"."""
    return HipChatAdapter.new(robot)


register_adapter("hipchat", new)
