"""HipChat adapter over XMPP."""

from halbot.adapters.hipchat.adapter import HipChatAdapter, RosterError
from halbot.adapters.hipchat.client import (
    HipChatClient,
    HipChatConnectionError,
    HipChatJoinError,
    HipChatMessage,
    HipChatRoom,
    HipChatUser,
)

__all__ = [
    "HipChatAdapter",
    "HipChatClient",
    "HipChatConnectionError",
    "HipChatJoinError",
    "HipChatMessage",
    "HipChatRoom",
    "HipChatUser",
    "RosterError",
]
