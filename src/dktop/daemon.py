"""
Headless autostart daemon.

Every ``interval`` seconds the daemon reloads the configuration, lists all
containers and starts each autostart entry (matched by id or name) that is
not running. Problems with single containers are logged and skipped; the
loop itself only ends on ``stop()``.
"""

import logging
import sys
import threading
from typing import Dict, List

from .backend import BackendError, DockerBackend
from .config import ConfigManager
from .model import ContainerInfo

logger = logging.getLogger(__name__)

CHECK_INTERVAL = 30.0
CONSOLE_FORMAT = '[dktop-daemon] %(asctime)s %(message)s'


def attach_console_handler(stream=None) -> logging.Handler:
    """Mirror daemon log records to stdout with the daemon prefix."""
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%Y/%m/%d %H:%M:%S'))
    logger.addHandler(handler)
    if logger.getEffectiveLevel() > logging.INFO:
        logger.setLevel(logging.INFO)
    return handler


class AutostartDaemon:
    def __init__(self, backend: DockerBackend, config_manager: ConfigManager,
                 interval: float = CHECK_INTERVAL):
        self.backend = backend
        self.config_manager = config_manager
        self.interval = interval
        self.running = False
        self._stop_event = threading.Event()

    def run(self) -> None:
        """Check now, then every ``interval`` seconds until ``stop()``."""
        self.running = True
        self._stop_event.clear()
        logger.info("Starting dktop daemon...")
        logger.info(self.status())

        self.run_once()
        while self.running:
            if self._stop_event.wait(self.interval):
                break
            self.run_once()
        self.running = False
        logger.info("Daemon stopped")

    def stop(self) -> None:
        self.running = False
        self._stop_event.set()

    def run_once(self) -> List[str]:
        """One reconciliation pass. Returns the autostart entries that were started."""
        config = self.config_manager.load_config()
        if not config.autostart_list:
            return []

        try:
            containers = self.backend.list_containers()
        except BackendError as e:
            logger.error(f"Error listing containers: {e}")
            return []

        index: Dict[str, ContainerInfo] = {}
        for c in containers:
            index[c.id] = c
            index[c.name] = c

        started = []
        started_ids = set()
        for entry in config.autostart_list:
            container = index.get(entry)
            if container is None:
                logger.warning(f"Autostart container not found: {entry}")
                continue
            if container.is_running or container.id in started_ids:
                continue
            logger.info(f"Starting container: {entry} (was {container.state})")
            try:
                self.backend.start(container.id)
            except BackendError as e:
                logger.error(f"Error starting container {entry}: {e}")
                continue
            logger.info(f"Successfully started container: {entry}")
            started.append(entry)
            started_ids.add(container.id)
        return started

    def status(self) -> str:
        return (f"Monitoring {len(self.config_manager.config.autostart_list)} containers, "
                f"check interval: {self.interval:.0f}s")
