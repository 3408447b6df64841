"""
dktop - a btop-style terminal dashboard for Docker.

This package renders live container, image and host usage panels in the
terminal and lets you start, stop, restart and remove containers from the
keyboard. A headless daemon keeps "autostart" containers running.

Features:
  - Containers, images, Docker stats and logs on one screen
  - CPU / memory history graphs drawn with block and box-drawing characters
  - Instant filtering of containers and images
  - Image pull from inside the dashboard
  - Autostart list persisted in ~/.config/dktop/config.yaml

Main Components:
  - controller.py: Dashboard state machine (events in, tasks and frames out)
  - scheduler.py: asyncio event loop running background tasks
  - panels.py: Containers / Images / Logs / Stats panels and help bar
  - layout.py: Panel sizing
  - stats.py: Aggregation and text graph rendering
  - backend.py: Docker API wrapper
  - app.py: Textual host application
  - daemon.py: Autostart daemon

Usage:
  python -m dktop [run|daemon|version|help]

Dependencies:
  - docker>=7.0.0
  - textual, rich
  - PyYAML
  - Python 3.10+
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

__version__ = "0.3.0"

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def get_log_path() -> str:
    """
    Get the log file path following XDG Base Directory spec.

    Returns XDG_DATA_HOME/dktop/logs/dktop.log with fallback to /tmp.
    Creates directory if it doesn't exist.
    """
    xdg_data_home = os.environ.get('XDG_DATA_HOME')
    if not xdg_data_home:
        xdg_data_home = Path.home() / '.local' / 'share'
    else:
        xdg_data_home = Path(xdg_data_home)

    log_dir = xdg_data_home / 'dktop' / 'logs'

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        return str(log_dir / 'dktop.log')
    except (PermissionError, OSError):
        return '/tmp/dktop.log'


def setup_logging(level: str = "INFO", file_path: Optional[str] = None,
                  max_size_mb: int = 10, backup_count: int = 5) -> logging.Logger:
    """
    Attach a rotating file handler to the ``dktop`` logger.

    The dashboard owns the terminal, so nothing is logged to stderr while it
    runs. Calling this twice replaces the previous file handler.
    """
    logger = logging.getLogger("dktop")
    for handler in list(logger.handlers):
        if isinstance(handler, RotatingFileHandler):
            logger.removeHandler(handler)
            handler.close()

    handler = RotatingFileHandler(
        file_path or get_log_path(),
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger
