"""
Dashboard controller.

The single owner of dashboard state: panels, the active panel, the input
mode, the current error and the latest snapshots. It never performs I/O.
Every input arrives as an event (see ``events``) and every piece of work it
wants done leaves as a task descriptor (see ``tasks``) for the scheduler.

Lifecycle:
  - initialize(): first tick timer plus the initial fetches
  - handle(event): merge one event, return follow-up tasks
  - render(): compose the current frame as a list of lines

Merge rules keep late or reordered results harmless: stats patch by id and
are discarded for unknown containers; logs are discarded when they belong to
a container that is no longer shown.
"""

import dataclasses
import logging
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from . import __version__
from .config import ConfigManager
from .events import (
    EVENT_TYPES, ActionCompleted, ContainersLoaded, ContainerStatsLoaded,
    FetchFailed, ImagesLoaded, KeyPress, LogsLoaded, Resize, SystemStatsLoaded, Tick,
)
from .layout import Layout, banner_height, compute_layout
from .model import ContainerInfo, ContainerStats, ImageInfo, Mode, Panel, SystemStats
from .modes import PROMPTS, InputLine
from .panels import (
    Banner, ContainersPanel, HelpBar, ImagesPanel, LogsPanel, StatsPanel,
)
from .stats import aggregate_usage
from .tasks import ACTION_TIMEOUT, PULL_TIMEOUT, Quit, Task, Timer
from .ui import fit

logger = logging.getLogger(__name__)

PANEL_CYCLE = (Panel.CONTAINERS, Panel.IMAGES, Panel.LOGS)
# Failure kinds shown in the status line; per-container stats and logs are not.
SURFACED_FAILURES = ("containers", "images", "system", "action")

USAGE_FIELDS = ("cpu_percent", "mem_usage", "mem_limit", "mem_percent", "net_rx", "net_tx")


def _completed(action: str, target: str) -> Callable[[Any], ActionCompleted]:
    def build(_result: Any) -> ActionCompleted:
        return ActionCompleted(action, target)
    return build


def _containers_loaded(result: Sequence[ContainerInfo]) -> ContainersLoaded:
    return ContainersLoaded(tuple(result))


def _images_loaded(result: Sequence[ImageInfo]) -> ImagesLoaded:
    return ImagesLoaded(tuple(result))


class Dashboard:
    """State machine behind the dktop screen."""

    def __init__(self, backend: Any, config_manager: ConfigManager, version: str = __version__):
        self.backend = backend
        self.config_manager = config_manager
        self.config = config_manager.config

        self.containers_panel = ContainersPanel()
        self.images_panel = ImagesPanel()
        self.logs_panel = LogsPanel()
        self.stats_panel = StatsPanel()
        self.help_bar = HelpBar()
        self.banner = Banner(version)

        self.active_panel = Panel.IMAGES if self.config.default_view == "images" else Panel.CONTAINERS
        self.mode = Mode.NORMAL
        self.input: Optional[InputLine] = None
        self.error: Optional[str] = None

        self.containers: Tuple[ContainerInfo, ...] = ()
        self.images: Tuple[ImageInfo, ...] = ()
        self.system_stats: Optional[SystemStats] = None

        self.width = 0
        self.height = 0
        self.layout: Optional[Layout] = None
        self._running = True

        self._handlers: Dict[type, Callable[[Any], List[Any]]] = {
            Resize: self._on_resize,
            KeyPress: self._on_key,
            Tick: self._on_tick,
            ContainersLoaded: self._on_containers,
            ContainerStatsLoaded: self._on_container_stats,
            ImagesLoaded: self._on_images,
            SystemStatsLoaded: self._on_system_stats,
            LogsLoaded: self._on_logs,
            ActionCompleted: self._on_action_completed,
            FetchFailed: self._on_failure,
        }
        missing = set(EVENT_TYPES) - set(self._handlers)
        if missing:
            raise RuntimeError(f"unhandled event types: {sorted(t.__name__ for t in missing)}")

        self._update_active()

    # --- public API --------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def refresh_interval(self) -> float:
        return self.config_manager.get_refresh_interval()

    def initialize(self) -> List[Any]:
        return [
            Timer(self.refresh_interval, Tick()),
            self._fetch_containers(),
            self._fetch_images(),
            self._fetch_system(),
        ]

    def handle(self, event: Any) -> List[Any]:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"unsupported event: {event!r}")
        return handler(event) or []

    # --- task builders -----------------------------------------------------

    def _fetch_containers(self) -> Task:
        return Task("containers", self.backend.list_containers,
                    on_success=_containers_loaded, name="list containers")

    def _fetch_images(self) -> Task:
        return Task("images", self.backend.list_images,
                    on_success=_images_loaded, name="list images")

    def _fetch_system(self) -> Task:
        return Task("system", self.backend.system_stats,
                    on_success=SystemStatsLoaded, name="system info")

    def _fetch_stats(self, container_id: str) -> Task:
        return Task("stats", self.backend.container_stats, (container_id,),
                    on_success=ContainerStatsLoaded, target=container_id)

    def _fetch_logs(self) -> Optional[Task]:
        selected = self.containers_panel.get_selected()
        if selected is None:
            return None
        self.logs_panel.set_container(selected.id, selected.name)
        return Task("logs", self.backend.logs, (selected.id, self.config.log_lines),
                    on_success=partial(LogsLoaded, selected.id), target=selected.id)

    def _action(self, action: str, func: Callable, target: str, *args: Any,
                timeout: float = ACTION_TIMEOUT) -> Task:
        return Task("action", func, (target,) + args, timeout=timeout,
                    on_success=_completed(action, target), target=target,
                    name=f"{action} {target}")

    # --- event handlers ----------------------------------------------------

    def _on_resize(self, event: Resize) -> List[Any]:
        self.width = max(0, event.width)
        self.height = max(0, event.height)
        self.banner.resize(self.width, banner_height(self.height))
        self._relayout()
        return []

    def _on_tick(self, event: Tick) -> List[Any]:
        tasks: List[Any] = [
            Timer(self.refresh_interval, Tick()),
            self._fetch_containers(),
            self._fetch_system(),
        ]
        tasks.extend(self._fetch_stats(c.id) for c in self.containers if c.is_running)
        if self.active_panel in (Panel.CONTAINERS, Panel.LOGS):
            logs = self._fetch_logs()
            if logs is not None:
                tasks.append(logs)
        return tasks

    def _on_containers(self, event: ContainersLoaded) -> List[Any]:
        merged = []
        for container in event.containers:
            autostart = (self.config_manager.is_autostart(container.id)
                         or self.config_manager.is_autostart(container.name))
            merged.append(dataclasses.replace(container, autostart=autostart))

        self.containers = tuple(merged)
        self.containers_panel.set_items(self.containers)
        self._recompute_usage()
        self._relayout()
        self.error = None
        return []

    def _on_container_stats(self, event: ContainerStatsLoaded) -> List[Any]:
        stats: ContainerStats = event.stats
        if not any(c.id == stats.id for c in self.containers):
            logger.debug(f"Dropping stats for unknown container {stats.id}")
            return []
        patch = {name: getattr(stats, name) for name in USAGE_FIELDS}
        self.containers = tuple(
            dataclasses.replace(c, **patch) if c.id == stats.id else c
            for c in self.containers
        )
        self.containers_panel.set_items(self.containers)
        self._recompute_usage()
        return []

    def _on_images(self, event: ImagesLoaded) -> List[Any]:
        self.images = tuple(event.images)
        self.images_panel.set_items(self.images)
        return []

    def _on_system_stats(self, event: SystemStatsLoaded) -> List[Any]:
        self.system_stats = aggregate_usage(event.stats, self.containers)
        self.stats_panel.update(self.system_stats, record_sample=True)
        return []

    def _on_logs(self, event: LogsLoaded) -> List[Any]:
        if event.container_id != self.logs_panel.container_id:
            logger.debug(f"Dropping logs for {event.container_id}, no longer shown")
            return []
        self.logs_panel.set_text(event.text)
        return []

    def _on_action_completed(self, event: ActionCompleted) -> List[Any]:
        logger.info(f"{event.action} {event.target} completed")
        return []

    def _on_failure(self, event: FetchFailed) -> List[Any]:
        if event.kind in SURFACED_FAILURES:
            logger.warning(f"{event.kind} failed: {event.error}")
            self.error = event.error
        else:
            logger.debug(f"{event.kind} failed for {event.target}: {event.error}")
        return []

    # --- keys --------------------------------------------------------------

    def _on_key(self, event: KeyPress) -> List[Any]:
        if event.key == "ctrl+c" or _command(event) == "q":
            return self._quit()
        if self.mode is not Mode.NORMAL:
            return self._on_entry_key(event)
        return self._on_normal_key(_command(event))

    def _on_entry_key(self, event: KeyPress) -> List[Any]:
        line = self.input
        if event.key == "escape":
            self._leave_entry()
            return []
        if event.key == "enter":
            value = line.value if line else ""
            mode = self.mode
            self._leave_entry()
            if mode is Mode.FILTER:
                self._commit_filter(value)
                return []
            return self._pull(value)
        if event.key == "backspace":
            if line:
                line.backspace()
            return []
        char = event.character if event.character is not None else event.key
        if line and len(char) == 1:
            line.insert(char)
        return []

    def _on_normal_key(self, cmd: str) -> List[Any]:
        if cmd == "tab":
            self._cycle_panel()
            return []
        if cmd in ("j", "down"):
            self._navigate(1)
            return []
        if cmd in ("k", "up"):
            self._navigate(-1)
            return []
        if cmd == "/":
            self._enter_mode(Mode.FILTER, self._active_list_filter())
            return []

        if self.active_panel is Panel.CONTAINERS:
            return self._on_containers_key(cmd)
        if self.active_panel is Panel.IMAGES:
            return self._on_images_key(cmd)
        if self.active_panel is Panel.LOGS:
            if cmd == "escape":
                self._set_active(Panel.CONTAINERS)
            elif cmd == "G":
                self.logs_panel.scroll_to_bottom()
        return []

    def _on_containers_key(self, cmd: str) -> List[Any]:
        if cmd == "enter":
            if self.containers_panel.get_selected() is None:
                return []
            self._set_active(Panel.LOGS)
            logs = self._fetch_logs()
            return [logs] if logs else []

        selected = self.containers_panel.get_selected()
        if selected is None:
            return []
        if cmd == "s":
            if selected.is_running:
                return []
            return [self._action("start", self.backend.start, selected.id)]
        if cmd == "x":
            if not selected.is_running:
                return []
            return [self._action("stop", self.backend.stop, selected.id)]
        if cmd == "r":
            return [self._action("restart", self.backend.restart, selected.id)]
        if cmd == "d":
            return [self._action("remove", self.backend.remove, selected.id, selected.is_running)]
        if cmd == "a":
            return [self._toggle_autostart(selected)]
        return []

    def _on_images_key(self, cmd: str) -> List[Any]:
        if cmd == "p":
            self._enter_mode(Mode.PULL_IMAGE)
            return []
        if cmd == "d":
            selected = self.images_panel.get_selected()
            if selected is None:
                return []
            return [self._action("remove image", self.backend.remove_image, selected.id, False)]
        return []

    # --- helpers -----------------------------------------------------------

    def _quit(self) -> List[Any]:
        self._running = False
        return [Quit()]

    def _toggle_autostart(self, container: ContainerInfo) -> Task:
        cm = self.config_manager
        if cm.is_autostart(container.name) or cm.is_autostart(container.id):
            cm.remove_autostart(container.name)
            cm.remove_autostart(container.id)
            policy = "no"
        else:
            cm.add_autostart(container.name)
            policy = "always"

        try:
            cm.save_config()
        except OSError as e:
            # Best effort: the restart policy below still applies.
            logger.warning(f"Could not save autostart list: {e}")

        self.containers = tuple(
            dataclasses.replace(c, autostart=(policy == "always")) if c.id == container.id else c
            for c in self.containers
        )
        self.containers_panel.set_items(self.containers)
        return self._action("set restart policy", self.backend.set_restart_policy,
                            container.id, policy)

    def _pull(self, reference: str) -> List[Any]:
        reference = reference.strip()
        if not reference:
            return []
        return [self._action("pull", self.backend.pull_image, reference, timeout=PULL_TIMEOUT)]

    def _enter_mode(self, mode: Mode, initial: str = "") -> None:
        self.mode = mode
        self.input = InputLine.for_mode(mode, initial)

    def _leave_entry(self) -> None:
        self.mode = Mode.NORMAL
        self.input = None

    def _active_list_filter(self) -> str:
        if self.active_panel is Panel.CONTAINERS:
            return self.containers_panel.filter_text
        if self.active_panel is Panel.IMAGES:
            return self.images_panel.filter_text
        return ""

    def _commit_filter(self, value: str) -> None:
        if self.active_panel is Panel.CONTAINERS:
            self.containers_panel.set_filter(value)
        elif self.active_panel is Panel.IMAGES:
            self.images_panel.set_filter(value)

    def _navigate(self, delta: int) -> None:
        if self.active_panel is Panel.CONTAINERS:
            self.containers_panel.move_selection(delta)
        elif self.active_panel is Panel.IMAGES:
            self.images_panel.move_selection(delta)
        elif self.active_panel is Panel.LOGS:
            self.logs_panel.move_selection(delta)

    def _cycle_panel(self) -> None:
        if self.active_panel in PANEL_CYCLE:
            index = PANEL_CYCLE.index(self.active_panel)
            self._set_active(PANEL_CYCLE[(index + 1) % len(PANEL_CYCLE)])
        else:
            self._set_active(PANEL_CYCLE[0])

    def _set_active(self, panel: Panel) -> None:
        self.active_panel = panel
        self._update_active()

    def _update_active(self) -> None:
        self.stats_panel.set_active(self.active_panel is Panel.STATS)
        self.images_panel.set_active(self.active_panel is Panel.IMAGES)
        self.containers_panel.set_active(self.active_panel is Panel.CONTAINERS)
        self.logs_panel.set_active(self.active_panel is Panel.LOGS)

    def _recompute_usage(self) -> None:
        if self.system_stats is None:
            return
        self.system_stats = aggregate_usage(self.system_stats, self.containers)
        self.stats_panel.update(self.system_stats, record_sample=False)

    def _relayout(self) -> None:
        if self.width <= 0 or self.height <= 0:
            return
        self.layout = compute_layout(self.width, self.height, len(self.containers))
        self.stats_panel.set_size(self.layout.stats.width, self.layout.stats.height)
        self.images_panel.set_size(self.layout.images.width, self.layout.images.height)
        self.containers_panel.set_size(self.layout.containers.width, self.layout.containers.height)
        self.logs_panel.set_size(self.layout.logs.width, self.layout.logs.height)

    # --- rendering ---------------------------------------------------------

    def status_line(self) -> str:
        if self.mode is not Mode.NORMAL and self.input is not None:
            return fit(self.input.render(PROMPTS[self.mode]), self.width)
        if self.error:
            return fit(f"Error: {self.error}", self.width)
        return self.help_bar.render(self.active_panel, self.width)

    def render(self) -> List[str]:
        """Compose the whole screen, top to bottom."""
        if self.layout is None:
            return []
        layout = self.layout
        frame = list(self.banner.render())

        stats = self.stats_panel.render(layout.stats.width, layout.stats.height)
        images = self.images_panel.render(layout.images.width, layout.images.height)
        frame.extend(left + right for left, right in zip(stats, images))

        frame.extend(self.containers_panel.render(layout.containers.width, layout.containers.height))
        frame.extend(self.logs_panel.render(layout.logs.width, layout.logs.height))
        frame.append(self.status_line())
        return frame


def _command(event: KeyPress) -> str:
    """Key name used for command dispatch.

    Printable keys dispatch on their character so that ``G`` and ``/`` mean
    the same thing whatever name the terminal gives them.
    """
    char = event.character
    if char and len(char) == 1 and char.isprintable() and char != " ":
        return char
    return event.key
