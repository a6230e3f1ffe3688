"""
Adapter Registry

Maps adapter names to adapter factories.
Adapters register themselves on import, or are discovered via Python
entry_points for pip-installable third-party adapters.
"""

from __future__ import annotations

import importlib.metadata
from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from halbot.robot.adapter import Adapter
    from halbot.robot.robot import Robot

logger = structlog.get_logger(__name__)

# Entry point group for halbot adapters
ADAPTER_ENTRY_POINT = "halbot.adapters"

# Builds an adapter bound to the given robot
AdapterFactory = Callable[["Robot"], "Adapter"]

_adapters: dict[str, AdapterFactory] = {}
_discovered = False


class AdapterNotFoundError(Exception):
    """Raised when a requested adapter is not registered."""

    pass


def register_adapter(name: str, factory: AdapterFactory) -> None:
    """
    Register an adapter factory.

    Args:
        name: Adapter name, as used in HAL_ADAPTER
        factory: Callable taking the robot and returning the adapter
    """
    if name in _adapters and _adapters[name] != factory:
        logger.warning("Overwriting existing adapter", adapter=name)
    _adapters[name] = factory
    logger.debug("Registered adapter", adapter=name)


def discover_adapters() -> int:
    """
    Load adapters advertised through entry_points.

    Returns:
        Number of adapters discovered
    """
    global _discovered
    if _discovered:
        return 0

    discovered_count = 0
    for ep in importlib.metadata.entry_points(group=ADAPTER_ENTRY_POINT):
        try:
            register_adapter(ep.name, ep.load())
            discovered_count += 1
            logger.debug("Discovered adapter via entry_point", adapter=ep.name)
        except Exception as e:
            logger.warning(
                "Failed to load adapter from entry_point",
                adapter=ep.name,
                error=str(e),
            )

    _discovered = True
    logger.debug("Adapter discovery complete", count=discovered_count)
    return discovered_count


def get_adapter_factory(name: str) -> AdapterFactory:
    """
    Get an adapter factory by name.

    Raises:
        AdapterNotFoundError: If no adapter is registered under that name
    """
    discover_adapters()
    try:
        return _adapters[name]
    except KeyError:
        raise AdapterNotFoundError(f"Adapter '{name}' not found") from None


def list_adapter_names() -> list[str]:
    """List all registered adapter names."""
    discover_adapters()
    return sorted(_adapters)


def unregister_adapter(name: str) -> None:
    """Remove an adapter (mainly for testing)."""
    _adapters.pop(name, None)
