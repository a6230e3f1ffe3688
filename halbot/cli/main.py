"""
halbot CLI Main Entry Point

The main Typer application.
"""

import asyncio
import logging
import signal
from typing import Annotated

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from halbot import __version__
from halbot.config import ConfigurationError, load_robot_settings
from halbot.robot.registry import (
    AdapterNotFoundError,
    get_adapter_factory,
    list_adapter_names,
)
from halbot.robot.robot import Robot
from halbot.scripts import BUILTIN_HANDLERS

logger = structlog.get_logger(__name__)
console = Console()

app = typer.Typer(
    name="halbot",
    help="halbot - a chatbot for HipChat and the local shell",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def configure_logging(level: str = "info") -> None:
    """Configure structlog on top of stdlib logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=True),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _load_builtin_adapters() -> None:
    # Registers "hipchat" and "shell"
    import halbot.adapters  # noqa: F401


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(
            Panel(
                Text.from_markup(f"[bold cyan]halbot[/bold cyan] v{__version__}"),
                title="Version",
                border_style="cyan",
            )
        )
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """
    halbot - a HAL-style chatbot.

    Configure it through HAL_* environment variables.
    """


STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


async def _run_robot(robot: Robot) -> None:
    """Run the robot until SIGINT or SIGTERM stops it."""
    loop = asyncio.get_running_loop()
    stopping: list[asyncio.Task[None]] = []

    def request_stop() -> None:
        # The loop only keeps weak references to tasks
        if not stopping:
            stopping.append(loop.create_task(robot.stop()))

    for sig in STOP_SIGNALS:
        loop.add_signal_handler(sig, request_stop)
    try:
        await robot.run()
        await asyncio.gather(*stopping)
    finally:
        for sig in STOP_SIGNALS:
            loop.remove_signal_handler(sig)


@app.command()
def run(
    adapter: Annotated[
        str | None,
        typer.Option(
            "--adapter",
            "-a",
            help="Adapter to use (overrides HAL_ADAPTER).",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
) -> None:
    """
    Run the robot.

    Example:
        HAL_HIPCHAT_USER=12345_67890 HAL_HIPCHAT_PASSWORD=secret halbot run -a hipchat
    """
    try:
        settings = load_robot_settings()
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if adapter:
        settings.adapter = adapter

    configure_logging("debug" if verbose else settings.log_level)
    _load_builtin_adapters()

    robot = Robot(settings)
    robot.handle(*BUILTIN_HANDLERS)

    try:
        asyncio.run(_run_robot(robot))
    except (AdapterNotFoundError, ConfigurationError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def adapters() -> None:
    """List available adapters."""
    _load_builtin_adapters()

    table = Table(title="Adapters", border_style="cyan")
    table.add_column("Name", style="cyan")
    table.add_column("Factory", style="white")

    for name in list_adapter_names():
        factory = get_adapter_factory(name)
        table.add_row(name, f"{factory.__module__}.{factory.__qualname__}")

    console.print(table)


if __name__ == "__main__":
    app()
