"""
HipChat XMPP Client

Thin wrapper around slixmpp exposing the HipChat operations the adapter
needs: presence, roster, room discovery, joins, room and private messages,
keep-alive and a stream of inbound messages.
"""

from __future__ import annotations

import asyncio
import inspect
import xml.etree.ElementTree as ET
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

import slixmpp
import structlog
from slixmpp.exceptions import PresenceError

logger = structlog.get_logger(__name__)

DEFAULT_HOST = "chat.hipchat.com"
DEFAULT_CONF_HOST = "conf.hipchat.com"
DEFAULT_PORT = 5222
CONNECT_TIMEOUT_SECONDS = 30
JOIN_TIMEOUT_SECONDS = 30

ROSTER_NAMESPACE = "jabber:iq:roster"


class HipChatConnectionError(Exception):
    """Raised when the client cannot connect or authenticate."""

    pass


class HipChatJoinError(Exception):
    """Raised when a room refuses or does not answer a join."""

    pass


@dataclass(frozen=True)
class HipChatUser:
    """A roster entry."""

    id: str
    name: str
    mention_name: str


@dataclass(frozen=True)
class HipChatRoom:
    """A room advertised by the conference service."""

    id: str
    name: str


@dataclass(frozen=True)
class HipChatMessage:
    """An inbound message; from_ is the full sender JID."""

    from_: str
    to: str
    body: str
    type: str = "chat"


def split_jid(jid: str) -> tuple[str, str | None]:
    """Split a JID into its bare part and resource, if any."""
    bare, sep, resource = jid.partition("/")
    return bare, resource if sep else None


def parse_roster(iq_xml: ET.Element) -> list[HipChatUser]:
    """
    Parse a roster result.

    HipChat adds ``mention_name`` to each roster item next to the
    standard ``jid`` and ``name`` attributes.
    """
    query = iq_xml.find(f"{{{ROSTER_NAMESPACE}}}query")
    if query is None:
        return []

    users = []
    for item in query.findall(f"{{{ROSTER_NAMESPACE}}}item"):
        jid = item.get("jid", "")
        if not jid:
            continue
        users.append(
            HipChatUser(
                id=jid,
                name=item.get("name", ""),
                mention_name=item.get("mention_name", ""),
            )
        )
    return users


def parse_rooms(items: Any) -> list[HipChatRoom]:
    """Convert disco#items tuples (jid, node, name) into rooms, sorted by name."""
    rooms = [HipChatRoom(id=str(jid), name=name or str(jid)) for jid, _node, name in items]
    return sorted(rooms, key=lambda r: r.name)


def _connect(xmpp: Any, host: str, port: int) -> Any:
    """Connect with a host override across slixmpp API variants."""
    params = inspect.signature(xmpp.connect).parameters
    if "host" in params and "port" in params:
        return xmpp.connect(host=host, port=port)
    return xmpp.connect((host, port))


class HipChatClient:
    """
    HipChat client over XMPP.

    Usage:
        client = HipChatClient("12345_67890", "secret", "bot")
        await client.connect()
        users = await client.request_users()
        await client.join(room_jid, "Hal Bot")
        client.say(room_jid, "Hal Bot", "hello")
        async for message in client.messages():
            ...
    """

    def __init__(
        self,
        user: str,
        password: str,
        resource: str,
        host: str = DEFAULT_HOST,
        conf_host: str = DEFAULT_CONF_HOST,
        port: int = DEFAULT_PORT,
        keepalive_interval: int = 60,
    ) -> None:
        self.id = f"{user}@{host}"
        self.resource = resource
        self.host = host
        self.conf_host = conf_host
        self.port = port
        self.keepalive_interval = keepalive_interval

        self._xmpp = slixmpp.ClientXMPP(f"{self.id}/{resource}", password)
        self._xmpp.register_plugin("xep_0030")  # Service discovery
        self._xmpp.register_plugin("xep_0045")  # Multi-user chat
        self._xmpp.add_event_handler("session_start", self._on_session_start)
        self._xmpp.add_event_handler("failed_auth", self._on_failed_auth)
        self._xmpp.add_event_handler("connection_failed", self._on_connection_failed)
        self._xmpp.add_event_handler("disconnected", self._on_disconnected)
        self._xmpp.add_event_handler("message", self._on_message)

        self._session: asyncio.Future[None] | None = None
        self._messages: asyncio.Queue[HipChatMessage | None] = asyncio.Queue()

    def _on_session_start(self, _event: Any) -> None:
        if self._session is not None and not self._session.done():
            self._session.set_result(None)

    def _on_failed_auth(self, _event: Any) -> None:
        if self._session is not None and not self._session.done():
            self._session.set_exception(
                HipChatConnectionError(f"Authentication failed for {self.id}")
            )

    def _on_connection_failed(self, error: Any) -> None:
        if self._session is not None and not self._session.done():
            self._session.set_exception(
                HipChatConnectionError(f"Cannot connect to {self.host}: {error}")
            )

    def _on_disconnected(self, _event: Any) -> None:
        logger.info("Disconnected from HipChat", jid=self.id)
        self._messages.put_nowait(None)

    def _on_message(self, msg: Any) -> None:
        if msg["type"] == "error" or not msg["body"]:
            return
        self._messages.put_nowait(
            HipChatMessage(
                from_=str(msg["from"]),
                to=str(msg["to"]),
                body=msg["body"],
                type=msg["type"],
            )
        )

    async def connect(self) -> None:
        """
        Connect and wait for the session to start.

        Raises:
            HipChatConnectionError: If connecting or authenticating fails
        """
        self._session = asyncio.get_running_loop().create_future()
        logger.info("Connecting to HipChat", jid=self.id, host=self.host, port=self.port)

        try:
            if _connect(self._xmpp, self.host, self.port) is False:
                raise HipChatConnectionError(f"Cannot connect to {self.host}")
            await asyncio.wait_for(self._session, timeout=CONNECT_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            self._abandon_connection()
            raise HipChatConnectionError(
                f"Timed out connecting to {self.host}"
            ) from None
        except HipChatConnectionError:
            self._abandon_connection()
            raise

        logger.info("Connected to HipChat", jid=self.id)

    def _abandon_connection(self) -> None:
        # slixmpp keeps rescheduling attempts after connection_failed
        self._xmpp.cancel_connection_attempt()
        self._xmpp.abort()

    async def disconnect(self) -> None:
        result = self._xmpp.disconnect()
        if inspect.isawaitable(result):
            await result

    def status(self, show: str) -> None:
        """Send presence with the given show value ("chat", "away", ...)."""
        self._xmpp.send_presence(pshow=show)

    async def request_users(self) -> list[HipChatUser]:
        """Fetch the roster."""
        iq = await self._xmpp.get_roster()
        return parse_roster(iq.xml)

    async def request_rooms(self) -> list[HipChatRoom]:
        """List rooms on the conference host."""
        iq = await self._xmpp["xep_0030"].get_items(jid=self.conf_host)
        return parse_rooms(iq["disco_items"]["items"])

    async def join(self, room_jid: str, nick: str) -> None:
        """
        Join a room without requesting history and wait for the room to answer.

        Raises:
            HipChatJoinError: If the room returns an error or does not answer
        """
        try:
            await self._xmpp["xep_0045"].join_muc_wait(
                slixmpp.JID(room_jid),
                nick,
                maxstanzas=0,
                timeout=JOIN_TIMEOUT_SECONDS,
            )
        except PresenceError as e:
            raise HipChatJoinError(f"Join refused by {room_jid}: {e}") from e
        except asyncio.TimeoutError:
            raise HipChatJoinError(f"Timed out joining {room_jid}") from None

    def say(self, room_jid: str, name: str, body: str) -> None:
        """Send a message to a room."""
        self._xmpp.send_message(
            mto=room_jid, mbody=body, mtype="groupchat", mnick=name
        )

    def priv_say(self, user_jid: str, name: str, body: str) -> None:
        """Send a private message to a user."""
        self._xmpp.send_message(mto=user_jid, mbody=body, mtype="chat", mnick=name)

    async def keep_alive(self) -> None:
        """Send whitespace every keepalive_interval seconds so the server keeps us."""
        while True:
            await asyncio.sleep(self.keepalive_interval)
            self._xmpp.send_raw(" ")

    async def messages(self) -> AsyncIterator[HipChatMessage]:
        """Yield inbound messages until the connection closes."""
        while True:
            message = await self._messages.get()
            if message is None:
                return
            yield message
