"""
Docker API wrapper and backend operations.

This module provides a high-level interface to Docker operations via the
docker-py library. It abstracts Docker API calls and provides methods for:
  - Fetching resources (containers, images, engine info)
  - Per-container usage sampling (CPU, memory, network)
  - Executing container actions (start, stop, restart, remove, restart policy)
  - Managing images (pull, remove)
  - Reading container logs

Every method is blocking and is meant to be run in a worker thread. Failures
are logged and re-raised as ``BackendError`` so the caller decides how to
surface them; nothing here returns a silent default.

Key Classes:
  - DockerBackend: API wrapper around a lazily created docker client
  - BackendError / RuntimeUnavailable: failure types raised to callers

Error Handling:
  - Docker connection errors -> RuntimeUnavailable
  - API errors (not found, conflict, ...) -> BackendError
  - Error entries inside a pull stream -> BackendError

Dependencies:
  - docker>=7.0.0 (docker-py client)
"""

import docker
import logging
import functools
import struct
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

import requests

from .model import ContainerInfo, ContainerStats, ImageInfo, SystemStats

logger = logging.getLogger(__name__)

STOP_TIMEOUT = 10  # seconds before the engine kills the container
LOG_HEADER_SIZE = 8
MAX_PORTS_LEN = 30
RESTART_POLICIES = ("no", "always")


class BackendError(Exception):
    """A Docker operation failed."""


class RuntimeUnavailable(BackendError):
    """The Docker engine could not be reached."""


def docker_call(func: Callable) -> Callable:
    """
    Decorator for Docker API methods that ensures uniform error handling.

    Logs the failure with the method name and re-raises it as ``BackendError``
    (``RuntimeUnavailable`` for connection problems), keeping the original
    exception as ``__cause__``.

    Usage:
        @docker_call
        def list_containers(self) -> List[ContainerInfo]:
            ...
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        try:
            return func(*args, **kwargs)
        except BackendError:
            raise
        except (requests.exceptions.ConnectionError, ConnectionError) as e:
            logger.error(f"Docker engine unreachable in {func.__name__}: {e}")
            raise RuntimeUnavailable(f"cannot connect to Docker: {e}") from e
        except Exception as e:
            logger.error(f"Docker operation failed in {func.__name__}: {e}", exc_info=True)
            raise BackendError(str(e)) from e
    return wrapper


def format_ports(ports: Optional[Iterable[Dict[str, Any]]]) -> str:
    """Render the ``Ports`` list of a container summary, e.g. ``8080->80/tcp``."""
    ports = list(ports or [])
    if not ports:
        return "-"
    parts = []
    for p in ports:
        private = p.get("PrivatePort", 0)
        proto = p.get("Type", "tcp")
        public = p.get("PublicPort") or 0
        if public > 0:
            parts.append(f"{public}->{private}/{proto}")
        else:
            parts.append(f"{private}/{proto}")
    result = ", ".join(parts)
    if len(result) > MAX_PORTS_LEN:
        return result[:MAX_PORTS_LEN - 3] + "..."
    return result


def strip_stream_headers(data: bytes) -> bytes:
    """Remove multiplexed stream frame headers from raw log output.

    Each frame starts with an 8 byte header: stream id (0, 1 or 2), three zero
    bytes and the big-endian payload length. Output that does not start with
    a valid header (TTY containers, already demultiplexed logs) is returned
    unchanged from that point on.
    """
    out = bytearray()
    pos = 0
    while pos + LOG_HEADER_SIZE <= len(data):
        header = data[pos:pos + LOG_HEADER_SIZE]
        if header[0] not in (0, 1, 2) or header[1:4] != b"\x00\x00\x00":
            break
        (length,) = struct.unpack(">I", header[4:8])
        start = pos + LOG_HEADER_SIZE
        if start + length > len(data):
            break
        out += data[start:start + length]
        pos = start + length
    out += data[pos:]
    return bytes(out)


def calculate_cpu_percent(stats: Dict[str, Any]) -> float:
    cpu_stats = stats.get('cpu_stats', {}) or {}
    precpu_stats = stats.get('precpu_stats', {}) or {}
    cpu_usage = cpu_stats.get('cpu_usage', {}).get('total_usage', 0)
    precpu_usage = precpu_stats.get('cpu_usage', {}).get('total_usage', 0)
    system_cpu_usage = cpu_stats.get('system_cpu_usage', 0)
    presystem_cpu_usage = precpu_stats.get('system_cpu_usage', 0)
    online_cpus = cpu_stats.get('online_cpus') or len(
        cpu_stats.get('cpu_usage', {}).get('percpu_usage') or []
    )
    cpu_delta = cpu_usage - precpu_usage
    system_delta = system_cpu_usage - presystem_cpu_usage
    if system_delta > 0 and cpu_delta > 0:
        return (cpu_delta / system_delta) * online_cpus * 100.0
    return 0.0


def _short_image_id(image_id: str) -> str:
    if image_id.startswith("sha256:"):
        image_id = image_id[len("sha256:"):]
    return image_id[:12]


def _timestamp(value: Any) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(int(value))
    except (TypeError, ValueError, OverflowError, OSError):
        return None


class DockerBackend:
    def __init__(self, client: Optional[docker.DockerClient] = None):
        self._client = client

    @property
    def client(self) -> docker.DockerClient:
        """The docker client, created on first use.

        The client is shared by all worker threads; it holds a connection pool
        and no per-call state.
        """
        if self._client is None:
            try:
                self._client = docker.from_env()
            except docker.errors.DockerException as e:
                logger.error(f"Failed to create Docker client: {e}")
                raise RuntimeUnavailable(f"cannot connect to Docker: {e}") from e
        return self._client

    @docker_call
    def ping(self) -> bool:
        return bool(self.client.ping())

    @docker_call
    def list_containers(self) -> List[ContainerInfo]:
        res = []
        for c in self.client.api.containers(all=True):
            names = c.get('Names') or []
            res.append(ContainerInfo(
                id=c.get('Id', '')[:12],
                name=names[0].lstrip('/') if names else "",
                image=c.get('Image', ''),
                status=c.get('Status', ''),
                state=c.get('State', ''),
                ports=format_ports(c.get('Ports')),
                created=_timestamp(c.get('Created')),
            ))
        return res

    @docker_call
    def list_images(self) -> List[ImageInfo]:
        res = []
        for i in self.client.api.images():
            tags = [t for t in (i.get('RepoTags') or []) if t != "<none>:<none>"]
            res.append(ImageInfo(
                id=_short_image_id(i.get('Id', '')),
                tags=tags,
                size=i.get('Size', 0) or 0,
                created=_timestamp(i.get('Created')),
            ))
        return res

    @docker_call
    def system_stats(self) -> SystemStats:
        info = self.client.info()
        return SystemStats(
            containers=info.get('Containers', 0),
            containers_running=info.get('ContainersRunning', 0),
            containers_paused=info.get('ContainersPaused', 0),
            containers_stopped=info.get('ContainersStopped', 0),
            images=info.get('Images', 0),
            memory_limit=info.get('MemTotal', 0),
        )

    @docker_call
    def container_stats(self, container_id: str) -> ContainerStats:
        stats = self.client.containers.get(container_id).stats(stream=False)
        memory = stats.get('memory_stats', {}) or {}
        mem_usage = memory.get('usage', 0)
        mem_limit = memory.get('limit', 0)
        mem_percent = mem_usage / mem_limit * 100.0 if mem_limit > 0 else 0.0

        net_rx = net_tx = 0
        for net in (stats.get('networks') or {}).values():
            net_rx += net.get('rx_bytes', 0)
            net_tx += net.get('tx_bytes', 0)

        return ContainerStats(
            id=container_id,
            cpu_percent=calculate_cpu_percent(stats),
            mem_usage=mem_usage,
            mem_limit=mem_limit,
            mem_percent=mem_percent,
            net_rx=net_rx,
            net_tx=net_tx,
        )

    @docker_call
    def logs(self, container_id: str, tail: int = 100) -> str:
        container = self.client.containers.get(container_id)
        raw = container.logs(stdout=True, stderr=True, timestamps=True, tail=tail)
        return strip_stream_headers(raw).decode('utf-8', errors='replace')

    # Actions
    @docker_call
    def start(self, container_id: str) -> None:
        self.client.containers.get(container_id).start()
        logger.info(f"Started container {container_id}")

    @docker_call
    def stop(self, container_id: str, timeout: int = STOP_TIMEOUT) -> None:
        self.client.containers.get(container_id).stop(timeout=timeout)
        logger.info(f"Stopped container {container_id}")

    @docker_call
    def restart(self, container_id: str, timeout: int = STOP_TIMEOUT) -> None:
        self.client.containers.get(container_id).restart(timeout=timeout)
        logger.info(f"Restarted container {container_id}")

    @docker_call
    def remove(self, container_id: str, force: bool = False) -> None:
        self.client.containers.get(container_id).remove(force=force)
        logger.info(f"Removed container {container_id} (force={force})")

    @docker_call
    def remove_image(self, image_id: str, force: bool = False) -> None:
        self.client.images.remove(image_id, force=force)
        logger.info(f"Removed image {image_id}")

    @docker_call
    def set_restart_policy(self, container_id: str, policy: str) -> None:
        if policy not in RESTART_POLICIES:
            raise BackendError(f"unsupported restart policy: {policy}")
        self.client.containers.get(container_id).update(restart_policy={"Name": policy})
        logger.info(f"Set restart policy of {container_id} to {policy}")

    @docker_call
    def pull_image(self, reference: str) -> str:
        """Pull ``reference`` and wait for the stream to finish.

        Progress is not reported; an ``error`` entry in the stream raises.
        """
        last_status = ""
        for chunk in self.client.api.pull(reference, stream=True, decode=True):
            if chunk.get('error'):
                raise BackendError(f"pull {reference}: {chunk['error']}")
            last_status = chunk.get('status', last_status)
        logger.info(f"Pulled image {reference}: {last_status}")
        return reference
