"""Command-line entry point: ``dktop [run|daemon|version|help]``."""

import argparse
import logging
import sys
from typing import Callable, Dict, List, Optional

from . import __version__, setup_logging
from .backend import BackendError, DockerBackend
from .config import ConfigManager, get_config_path
from .panels import LOGO

logger = logging.getLogger(__name__)

USAGE = """dktop - Docker container manager with btop-style interface

Usage:
  dktop              Start the interactive TUI
  dktop daemon       Run as daemon (monitors autostart containers)
  dktop version      Show version information
  dktop help         Show this help message

Keybindings:
  Tab        Switch between panels
  j/k, ↑/↓   Navigate lists
  s          Start container
  x          Stop container
  r          Restart container
  d          Delete container/image
  a          Toggle autostart
  p          Pull image (in images panel)
  Enter      View logs of the selected container
  /          Filter
  G          Scroll to bottom (in logs)
  q          Quit
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dktop",
        description="Docker container manager with btop-style interface",
        add_help=False,
    )
    parser.add_argument("command", nargs="?", default="run",
                        help="run (default), daemon, version or help")
    return parser


def _connect() -> Optional[DockerBackend]:
    backend = DockerBackend()
    try:
        backend.ping()
    except BackendError as e:
        print(f"Error connecting to Docker: {e}", file=sys.stderr)
        print("Make sure Docker is running and accessible.", file=sys.stderr)
        return None
    return backend


def _load_config() -> ConfigManager:
    config_manager = ConfigManager()
    log = config_manager.config.logging
    try:
        setup_logging(config_manager.get_log_level(), config_manager.get_custom_log_path(),
                      log.max_size_mb, log.backup_count)
    except OSError as e:
        print(f"Warning: could not open log file: {e}", file=sys.stderr)
    return config_manager


def cmd_run() -> int:
    config_manager = _load_config()
    backend = _connect()
    if backend is None:
        return 1

    from .app import run
    logger.info("dktop started")
    run(backend, config_manager)
    logger.info("dktop exited")
    return 0


def cmd_daemon() -> int:
    from .daemon import AutostartDaemon, attach_console_handler

    print("\n".join(LOGO))
    print("Starting dktop daemon...")
    config_manager = _load_config()
    backend = _connect()
    if backend is None:
        return 1

    attach_console_handler()
    daemon = AutostartDaemon(backend, config_manager)
    try:
        daemon.run()
    except KeyboardInterrupt:
        daemon.stop()
        logger.info("Daemon stopping (signal received)")
    return 0


def cmd_version() -> int:
    print(f"dktop version {__version__}")
    return 0


def cmd_help() -> int:
    print("\n".join(LOGO))
    print(USAGE)
    print(f"Config: {get_config_path()}")
    return 0


COMMANDS: Dict[str, Callable[[], int]] = {
    "run": cmd_run,
    "daemon": cmd_daemon,
    "version": cmd_version,
    "help": cmd_help,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args, extra = parser.parse_known_args(argv)

    command = COMMANDS.get(args.command)
    if command is None or extra:
        unknown = args.command if command is None else " ".join(extra)
        print(f"Unknown command: {unknown}")
        print(USAGE)
        return 1
    return command()


if __name__ == "__main__":
    sys.exit(main())
