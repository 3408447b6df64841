"""
Data models for dktop.

Snapshots of Docker resources are frozen dataclasses: a refresh replaces them
wholesale and a per-container stats update produces a patched copy with
``dataclasses.replace``. Nothing here talks to Docker or the terminal.

Data Classes:
  - ContainerInfo: one container (identity, state, ports, usage counters)
  - ContainerStats: the usage fields of a single container stats sample
  - ImageInfo: one image (id, repo tags, size, created)
  - SystemStats: engine-wide counts plus usage derived from running containers

Enums:
  - Panel: dashboard regions that can be active
  - Mode: overlay input mode (normal, filter entry, image pull entry)
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class Panel(Enum):
    STATS = "stats"
    IMAGES = "images"
    CONTAINERS = "containers"
    LOGS = "logs"


class Mode(Enum):
    NORMAL = "normal"
    FILTER = "filter"
    PULL_IMAGE = "pull_image"


@dataclass(frozen=True)
class ContainerInfo:
    id: str
    name: str
    image: str
    status: str
    state: str
    ports: str = "-"
    created: Optional[datetime] = None
    cpu_percent: float = 0.0
    mem_usage: int = 0
    mem_limit: int = 0
    mem_percent: float = 0.0
    net_rx: int = 0
    net_tx: int = 0
    autostart: bool = False

    @property
    def is_running(self) -> bool:
        return self.state == "running"


@dataclass(frozen=True)
class ContainerStats:
    id: str
    cpu_percent: float = 0.0
    mem_usage: int = 0
    mem_limit: int = 0
    mem_percent: float = 0.0
    net_rx: int = 0
    net_tx: int = 0


@dataclass(frozen=True)
class ImageInfo:
    id: str
    tags: List[str] = field(default_factory=list)
    size: int = 0
    created: Optional[datetime] = None

    @property
    def primary_tag(self) -> str:
        return self.tags[0] if self.tags else "<none>"


@dataclass(frozen=True)
class SystemStats:
    containers: int = 0
    containers_running: int = 0
    containers_paused: int = 0
    containers_stopped: int = 0
    images: int = 0
    memory_limit: int = 0
    # Derived by the dashboard from running containers, not reported by Docker.
    cpu_usage: float = 0.0
    memory_usage: int = 0

    @property
    def memory_percent(self) -> float:
        if self.memory_limit <= 0:
            return 0.0
        return self.memory_usage / self.memory_limit * 100
