"""Robot core - handlers, users, messages and the adapter contract."""

from halbot.robot.adapter import Adapter, BasicAdapter
from halbot.robot.handler import Handler, HandlerMethod, hear, respond
from halbot.robot.message import Envelope, Message, Response, User
from halbot.robot.registry import (
    AdapterNotFoundError,
    get_adapter_factory,
    list_adapter_names,
    register_adapter,
)
from halbot.robot.robot import Robot
from halbot.robot.users import UserMap, UserNotFoundError

__all__ = [
    # Adapter contract
    "Adapter",
    "BasicAdapter",
    "AdapterNotFoundError",
    "get_adapter_factory",
    "list_adapter_names",
    "register_adapter",
    # Handlers
    "Handler",
    "HandlerMethod",
    "hear",
    "respond",
    # Messages
    "Envelope",
    "Message",
    "Response",
    "User",
    # Robot
    "Robot",
    "UserMap",
    "UserNotFoundError",
]
