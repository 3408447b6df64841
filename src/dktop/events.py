"""
Events consumed by the dashboard controller.

Every input the dashboard reacts to is one of the frozen dataclasses below:
terminal input (``Resize``, ``KeyPress``), the refresh timer (``Tick``) and
the single completion message that each background task posts when it
finishes (``*Loaded``, ``ActionCompleted``, ``FetchFailed``).

``EVENT_TYPES`` is the closed set; the controller keeps one handler per entry
and rejects anything else.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .model import ContainerInfo, ContainerStats, ImageInfo, SystemStats


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class KeyPress:
    key: str
    character: Optional[str] = None


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class ContainersLoaded:
    containers: Tuple[ContainerInfo, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ContainerStatsLoaded:
    stats: ContainerStats


@dataclass(frozen=True)
class ImagesLoaded:
    images: Tuple[ImageInfo, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SystemStatsLoaded:
    stats: SystemStats


@dataclass(frozen=True)
class LogsLoaded:
    container_id: str
    text: str


@dataclass(frozen=True)
class ActionCompleted:
    action: str
    target: str


@dataclass(frozen=True)
class FetchFailed:
    """A task failed or ran out of time.

    ``kind`` is the task kind (``containers``, ``images``, ``system``,
    ``stats``, ``logs`` or ``action``).
    """
    kind: str
    error: str
    target: Optional[str] = None


EVENT_TYPES: List[type] = [
    Resize,
    KeyPress,
    Tick,
    ContainersLoaded,
    ContainerStatsLoaded,
    ImagesLoaded,
    SystemStatsLoaded,
    LogsLoaded,
    ActionCompleted,
    FetchFailed,
]
