"""
Message Handlers

A handler pairs a regular expression with an async callback.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from halbot.robot.message import Response
    from halbot.robot.robot import Robot

# Type alias for handler callbacks
HandlerFunc = Callable[["Response"], Awaitable[Any]]

# Addressing template for RESPOND handlers; ${1} is replaced by the handler pattern
RESPOND_TEMPLATE = r"^(?:@?(?:{alias}|{name})[:,]?)\s+(?:${{1}})"


class HandlerMethod(str, Enum):
    """How a handler's pattern is applied to message text."""

    HEAR = "hear"
    RESPOND = "respond"


def respond_pattern(robot: Robot, pattern: str) -> str:
    """
    Build the full regular expression for a RESPOND handler.

    The robot must be addressed by alias or name, optionally prefixed with
    ``@`` and followed by ``:`` or ``,``.
    """
    names = [re.escape(n) for n in (robot.alias, robot.name) if n]
    template = RESPOND_TEMPLATE.format(
        alias=names[0] if names else "",
        name=names[-1] if names else "",
    )
    return template.replace("${1}", pattern, 1)


class Handler:
    """A pattern and the callback to run when it matches."""

    def __init__(
        self,
        method: HandlerMethod,
        pattern: str,
        run: HandlerFunc,
        usage: str = "",
    ) -> None:
        self.method = method
        self.pattern = pattern
        self.run = run
        self.usage = usage

    def regexp(self, robot: Robot) -> re.Pattern[str]:
        """Compile this handler's regular expression for the given robot."""
        if self.method == HandlerMethod.RESPOND:
            return re.compile(respond_pattern(robot, self.pattern), re.IGNORECASE)
        return re.compile(self.pattern, re.IGNORECASE)

    def match(self, robot: Robot, text: str) -> list[str] | None:
        """
        Match text against this handler.

        Returns:
            The whole match followed by its groups, or None
        """
        m = self.regexp(robot).search(text)
        if m is None:
            return None
        return [m.group(0), *(g or "" for g in m.groups())]

    async def handle(self, response: Response) -> None:
        await self.run(response)

    def __repr__(self) -> str:
        return f"Handler(method={self.method.value!r}, pattern={self.pattern!r})"


def hear(pattern: str, usage: str = "") -> Callable[[HandlerFunc], Handler]:
    """Decorator building a HEAR handler."""

    def decorator(func: HandlerFunc) -> Handler:
        return Handler(HandlerMethod.HEAR, pattern, func, usage=usage)

    return decorator


def respond(pattern: str, usage: str = "") -> Callable[[HandlerFunc], Handler]:
    """Decorator building a RESPOND handler."""

    def decorator(func: HandlerFunc) -> Handler:
        return Handler(HandlerMethod.RESPOND, pattern, func, usage=usage)

    return decorator
