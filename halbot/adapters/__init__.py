"""
Chat platform adapters.

Importing this package registers the built-in adapters.
"""

from halbot.adapters.hipchat import HipChatAdapter
from halbot.adapters.shell import ShellAdapter

__all__ = [
    "HipChatAdapter",
    "ShellAdapter",
]
