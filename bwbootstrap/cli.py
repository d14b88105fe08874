"""Command-line interface for bwbootstrap."""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Any

from . import __version__
from .bootstrap import ClientBootstrapper
from .config import BootstrapConfig
from .errors import BootstrapError
from .utils import console, log, setup_logging


def ensure(_args: Any, bootstrapper: ClientBootstrapper) -> None:
    """Install or update the client."""
    cancel_event = threading.Event()
    previous = signal.signal(signal.SIGINT, lambda *_: cancel_event.set())
    try:
        result = bootstrapper.ensure_available(cancel_event)
    finally:
        signal.signal(signal.SIGINT, previous)
    if result.binary_path is not None:
        console.print(str(result.binary_path))


def status(_args: Any, bootstrapper: ClientBootstrapper) -> None:
    """Print what is installed and what is required."""
    for key, value in bootstrapper.status().items():
        console.print(f"[green]{key}[/green]: {value}")


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser."""
    parser = argparse.ArgumentParser(
        description="bwbootstrap - Make sure the Bitwarden CLI is installed and current",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--install-dir",
        type=str,
        help="Directory the client is installed into",
    )
    parser.add_argument(
        "--config-file",
        type=str,
        help="Path to configuration file",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    ensure_parser = subparsers.add_parser("ensure", help="Install or update the client")
    ensure_parser.set_defaults(func=ensure)

    status_parser = subparsers.add_parser("status", help="Show installation status")
    status_parser.set_defaults(func=status)

    version_parser = subparsers.add_parser("version", help="Print version information")
    version_parser.set_defaults(
        func=lambda _, __: console.print(f"[yellow]bwbootstrap[/] [bold]v{__version__}[/]"),
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main function to parse arguments and execute commands."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    config = BootstrapConfig.load_from_file(args.config_file)
    if args.install_dir:
        config.install_dir = Path(args.install_dir).expanduser()

    if not hasattr(args, "func"):
        parser.print_help()
        return

    try:
        args.func(args, ClientBootstrapper(config))
    except BootstrapError as e:
        log(f"Error: {e!s}", "error", "❌", print_exception=args.verbose)
        sys.exit(1)


if __name__ == "__main__":
    main()
