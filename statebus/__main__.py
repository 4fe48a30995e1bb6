"""Entry point for statebus."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, List, Optional, Tuple

import uvloop
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from statebus.core.config_loader import ConfigLoader
from statebus.core.exceptions import StatebusError
from statebus.overlay import build_app
from statebus.utils.logging_setup import setup_logging


# Scripted headless session: (surface event, payload)
DEMO_SCRIPT: List[Tuple[str, Any]] = [
    ("item_list:click", {"item_id": "logs"}),
    ("item_list:click", {"item_id": "assets"}),
    ("panel_controls:apply_settings", {"use_live_data": True, "refresh_interval": 60}),
    ("panel_controls:toggle", {"panel_id": "item_list"}),
    ("panel_controls:show_all", None),
]


async def main(config_path: Optional[Path] = None) -> None:
    """
    Run a scripted headless overlay session and print the surface.

    Args:
        config_path: Path to configuration file
    """
    app = build_app(config_path)
    app.start()

    try:
        for event, payload in DEMO_SCRIPT:
            app.surface.trigger(event, payload)
            await app.settle()

        console = Console()
        console.print("\nRendered surface:", style="bold")
        for target, content in sorted(app.surface.snapshot().items()):
            lines = content if isinstance(content, list) else [content]
            console.print(Panel(Text("\n".join(lines)), title=target, expand=False))
    finally:
        app.stop()


def list_services(config_path: Optional[Path] = None) -> None:
    """List services in initialization order."""
    app = build_app(config_path)
    registry = app.kernel.services

    print("\nServices (initialization order):")
    print("-" * 50)
    for name in registry.resolve_order():
        info = registry.require(name).service_info
        print(f"  {name:<20} {info.description}")
        if info.dependencies:
            print(f"    Dependencies: {', '.join(sorted(info.dependencies))}")


def cli_entry() -> None:
    """
    CLI entry point.

    This is called when running: python -m statebus or statebus command.
    """
    parser = argparse.ArgumentParser(
        description="statebus - event bus, store and lifecycle registries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  statebus                      Run the headless overlay demo session
  statebus -c statebus.yaml     Run with a custom config
  statebus --list-services      List services in initialization order
  statebus --version            Show version
"""
    )

    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to configuration file"
    )

    parser.add_argument(
        "--list-services",
        action="store_true",
        help="List services and exit"
    )

    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Log level (default: general.log_level from the config)"
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Path to log file (default: general.log_file from the config)"
    )

    args = parser.parse_args()

    if args.version:
        from statebus import __version__
        print(f"statebus v{__version__}")
        return

    try:
        general = ConfigLoader(args.config).load()["general"]
        setup_logging(
            level=args.log_level or general["log_level"],
            log_file=args.log_file or general.get("log_file")
        )

        if args.list_services:
            list_services(args.config)
            return
        uvloop.run(main(args.config))
    except StatebusError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    cli_entry()
