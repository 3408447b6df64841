"""
Dashboard panels.

Each panel owns its own cursor / scroll state and renders itself into exactly
``width`` x ``height`` cells. Panels never look at each other; the dashboard
controller feeds them data and sizes.

Panels:
  - ContainersPanel / ImagesPanel: filterable lists with a selection cursor
  - LogsPanel: bounded log buffer with auto-scroll
  - StatsPanel: engine counts plus CPU and memory history graphs
  - HelpBar: key hints for the active panel
  - Banner: logo with the version tag right-aligned

List cursor rules:
  - ``selected`` indexes the *filtered* list, never the raw one
  - ``set_items`` clamps the selection, ``set_filter`` resets it to the top
  - moving the selection scrolls just enough to keep it visible
"""

import logging
from collections import deque
from typing import Deque, Generic, List, Optional, Sequence, TypeVar

from . import __version__
from .model import ContainerInfo, ImageInfo, Panel, SystemStats
from .stats import ChartRenderer
from .ui import (
    Column, ColumnLayout, box, fit, format_bytes, format_bytes_short,
    pad_lines, space_between, truncate,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

LIST_CHROME_ROWS = 5  # border (2) + title + column header + blank line
LOGS_CHROME_ROWS = 3  # border (2) + title
MAX_LOG_LINES = 1000
GRAPH_HEIGHT = 4
HISTORY_SIZE = 120

LOGO = (
    "    ██████╗ ██╗  ██╗████████╗ ██████╗ ██████╗",
    "    ██╔══██╗██║ ██╔╝╚══██╔══╝██╔═══██╗██╔══██╗",
    "    ██║  ██║█████╔╝    ██║   ██║   ██║██████╔╝",
    "    ██║  ██║██╔═██╗    ██║   ██║   ██║██╔═══╝",
    "    ██████╔╝██║  ██╗   ██║   ╚██████╔╝██║",
    "    ╚═════╝ ╚═╝  ╚═╝   ╚═╝    ╚═════╝ ╚═╝",
)


class ListPanel(Generic[T]):
    """Filterable, scrollable list with a selection cursor."""

    title = ""
    empty_text = "No items"

    def __init__(self) -> None:
        self._items: List[T] = []
        self.filter_text = ""
        self.selected = 0
        self.offset = 0
        self.width = 0
        self.height = 0
        self.active = False

    # --- state -------------------------------------------------------------

    def set_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self._clamp()

    def set_active(self, active: bool) -> None:
        self.active = active

    @property
    def items(self) -> List[T]:
        return list(self._items)

    def set_items(self, items: Sequence[T]) -> None:
        self._items = list(items)
        self._clamp()

    def set_filter(self, text: str) -> None:
        self.filter_text = text
        self.selected = 0
        self.offset = 0

    def matches(self, item: T, needle: str) -> bool:
        raise NotImplementedError

    def get_filtered(self) -> List[T]:
        if not self.filter_text:
            return list(self._items)
        needle = self.filter_text.lower()
        return [item for item in self._items if self.matches(item, needle)]

    def get_selected(self) -> Optional[T]:
        filtered = self.get_filtered()
        if 0 <= self.selected < len(filtered):
            return filtered[self.selected]
        return None

    @property
    def visible_rows(self) -> int:
        return max(1, self.height - LIST_CHROME_ROWS)

    def move_selection(self, delta: int) -> None:
        count = len(self.get_filtered())
        if count == 0:
            self.selected = 0
            self.offset = 0
            return
        self.selected = max(0, min(self.selected + delta, count - 1))
        self._scroll_to_selection()

    def _scroll_to_selection(self) -> None:
        rows = self.visible_rows
        if self.selected < self.offset:
            self.offset = self.selected
        elif self.selected >= self.offset + rows:
            self.offset = self.selected - rows + 1

    def _clamp(self) -> None:
        count = len(self.get_filtered())
        if count == 0:
            self.selected = 0
            self.offset = 0
            return
        self.selected = max(0, min(self.selected, count - 1))
        self.offset = max(0, min(self.offset, self.selected))
        self._scroll_to_selection()

    # --- rendering ---------------------------------------------------------

    def title_line(self) -> str:
        title = f" {self.title} "
        if self.filter_text:
            title += f" [filter: {self.filter_text}]"
        return title

    def column_layout(self, width: int) -> ColumnLayout:
        raise NotImplementedError

    def row_values(self, item: T) -> List[str]:
        raise NotImplementedError

    def row_prefix(self, item: T, selected: bool) -> str:
        return "> " if selected else "  "

    def render(self, width: int, height: int) -> List[str]:
        inner_w = max(0, width - 4)
        filtered = self.get_filtered()
        if not filtered:
            return box([self.title_line(), "", self.empty_text], width, height, self.active)

        rows = max(1, height - LIST_CHROME_ROWS)
        # Local copy: rendering must not move the cursor.
        start = min(self.offset, self.selected)
        if self.selected >= start + rows:
            start = self.selected - rows + 1

        layout = self.column_layout(max(0, inner_w - 2))
        lines = [self.title_line(), "  " + layout.render_header(), ""]
        for index in range(start, min(len(filtered), start + rows)):
            item = filtered[index]
            prefix = self.row_prefix(item, index == self.selected)
            lines.append(prefix + layout.render_row(self.row_values(item)))
        return box(lines, width, height, self.active)


class ContainersPanel(ListPanel[ContainerInfo]):
    title = "Containers"
    empty_text = "No containers found"

    def matches(self, item: ContainerInfo, needle: str) -> bool:
        return (needle in item.name.lower()
                or needle in item.image.lower()
                or needle in item.id.lower())

    def column_layout(self, width: int) -> ColumnLayout:
        cpu_w = 7
        mem_w = 7
        name_w = max(12, width * 18 // 100)
        status_w = max(10, width * 14 // 100)
        ports_w = max(10, width * 22 // 100)
        image_w = max(10, width - name_w - status_w - cpu_w - mem_w - ports_w - 5)
        return ColumnLayout([
            Column("NAME", name_w),
            Column("STATUS", status_w),
            Column("CPU", cpu_w, align="right"),
            Column("MEM", mem_w, align="right"),
            Column("PORTS", ports_w),
            Column("IMAGE", image_w),
        ])

    def row_values(self, item: ContainerInfo) -> List[str]:
        return [
            item.name,
            item.status,
            f"{item.cpu_percent:5.1f}%",
            format_bytes_short(item.mem_usage),
            item.ports,
            item.image,
        ]

    def row_prefix(self, item: ContainerInfo, selected: bool) -> str:
        return (">" if selected else " ") + ("A" if item.autostart else " ")


class ImagesPanel(ListPanel[ImageInfo]):
    title = "Images"
    empty_text = "No images"

    def matches(self, item: ImageInfo, needle: str) -> bool:
        if needle in item.id.lower():
            return True
        return any(needle in tag.lower() for tag in item.tags)

    def column_layout(self, width: int) -> ColumnLayout:
        size_w = 8
        return ColumnLayout([
            Column("REPOSITORY:TAG", max(10, width - size_w - 1)),
            Column("SIZE", size_w, align="right"),
        ])

    def row_values(self, item: ImageInfo) -> List[str]:
        return [item.primary_tag, format_bytes_short(item.size)]


class LogsPanel:
    """Log lines of one container.

    Auto-scroll keeps the last line in view. Scrolling up turns it off;
    reaching the last line again (scrolling down or ``scroll_to_bottom``)
    turns it back on.
    """

    def __init__(self) -> None:
        self.lines: List[str] = []
        self.container_id: Optional[str] = None
        self.container_name = ""
        self.offset = 0
        self.auto_scroll = True
        self.width = 0
        self.height = 0
        self.active = False

    def set_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        if self.auto_scroll:
            self.offset = self.max_offset
        else:
            self.offset = min(self.offset, self.max_offset)

    def set_active(self, active: bool) -> None:
        self.active = active

    @property
    def visible_lines(self) -> int:
        return max(1, self.height - LOGS_CHROME_ROWS)

    @property
    def max_offset(self) -> int:
        return max(0, len(self.lines) - self.visible_lines)

    def set_container(self, container_id: Optional[str], name: str = "") -> None:
        if container_id != self.container_id:
            self.container_id = container_id
            self.container_name = name
            self.lines = []
            self.offset = 0
            self.auto_scroll = True
        else:
            self.container_name = name

    def set_text(self, text: str) -> None:
        lines = text.splitlines()
        self.lines = lines[-MAX_LOG_LINES:]
        if self.auto_scroll:
            self.offset = self.max_offset
        else:
            self.offset = min(self.offset, self.max_offset)

    def scroll_up(self) -> None:
        if self.offset > 0:
            self.offset -= 1
            self.auto_scroll = False

    def scroll_down(self) -> None:
        if self.offset < self.max_offset:
            self.offset += 1
        if self.offset >= self.max_offset:
            self.auto_scroll = True

    def scroll_to_bottom(self) -> None:
        self.offset = self.max_offset
        self.auto_scroll = True

    def move_selection(self, delta: int) -> None:
        step = self.scroll_down if delta > 0 else self.scroll_up
        for _ in range(abs(delta)):
            step()

    def render(self, width: int, height: int) -> List[str]:
        title = " Logs "
        if self.container_name:
            title += f" [{self.container_name}]"
        if not self.auto_scroll:
            title += " (scroll locked - press G to unlock)"

        if not self.container_id:
            return box([title, "", "Select a container to view logs"], width, height, self.active)
        if not self.lines:
            return box([title, "", "No logs available"], width, height, self.active)

        visible = max(1, height - LOGS_CHROME_ROWS)
        max_offset = max(0, len(self.lines) - visible)
        start = max_offset if self.auto_scroll else min(self.offset, max_offset)
        inner_w = max(0, width - 4)
        body = [truncate(line, inner_w) for line in self.lines[start:start + visible]]
        return box([title] + body, width, height, self.active)


class StatsPanel:
    """Engine counts plus CPU (line) and memory (blocks) history graphs."""

    def __init__(self, history_size: int = HISTORY_SIZE) -> None:
        self.stats: Optional[SystemStats] = None
        self.cpu_history: Deque[float] = deque(maxlen=history_size)
        self.mem_history: Deque[float] = deque(maxlen=history_size)
        self.width = 0
        self.height = 0
        self.active = False

    def set_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def set_active(self, active: bool) -> None:
        self.active = active

    def update(self, stats: SystemStats, record_sample: bool = True) -> None:
        """Store the latest snapshot; ``record_sample`` also extends the graphs."""
        self.stats = stats
        if record_sample:
            self.cpu_history.append(_clamp_percent(stats.cpu_usage))
            self.mem_history.append(_clamp_percent(stats.memory_percent))

    def render(self, width: int, height: int) -> List[str]:
        title = " Docker Stats "
        if self.stats is None:
            return box([title, "Loading..."], width, height, self.active)

        s = self.stats
        graph_w = max(1, width - 4)
        mem_used = format_bytes(s.memory_usage)
        mem_total = format_bytes(s.memory_limit)

        lines = [
            title,
            f"Containers: {s.containers} ({s.containers_running} running) "
            f"({s.containers_paused} paused) ({s.containers_stopped} stopped)",
            f"Images: {s.images}",
            "",
            f"CPU: {s.cpu_usage:.1f}%",
        ]
        lines.extend(ChartRenderer.line_graph(list(self.cpu_history), graph_w, GRAPH_HEIGHT))
        lines.append("")
        lines.append(f"MEM: {mem_used}/{mem_total} ({s.memory_percent:.1f}%)")
        lines.extend(ChartRenderer.block_graph(list(self.mem_history), graph_w, GRAPH_HEIGHT))
        return box(lines, width, height, self.active)


HELP_KEYS = {
    Panel.CONTAINERS: [("s", "start"), ("x", "stop"), ("r", "restart"), ("d", "delete"),
                       ("a", "autostart"), ("Enter", "logs")],
    Panel.IMAGES: [("p", "pull"), ("d", "delete")],
    Panel.LOGS: [("j/k", "scroll"), ("G", "bottom"), ("Esc", "back")],
    Panel.STATS: [],
}
COMMON_KEYS = [("Tab", "panel"), ("j/k", "nav"), ("/", "filter"), ("q", "quit")]


class HelpBar:
    def render(self, panel: Panel, width: int) -> str:
        keys = HELP_KEYS.get(panel, []) + COMMON_KEYS
        return space_between([f"{key}:{desc}" for key, desc in keys], width)


class Banner:
    """Logo with the version tag right-aligned on its first line.

    Rebuilt on every resize; one line on compact terminals.
    """

    def __init__(self, version: str = __version__) -> None:
        self.version = f"v{version}"
        self.lines: List[str] = []

    def resize(self, width: int, height: int) -> None:
        if height <= 1:
            self.lines = [fit(f" dktop {self.version}", width)]
            return
        logo = list(LOGO[:height])
        logo_w = max(len(line) for line in LOGO)
        padding = max(1, width - logo_w - len(self.version) - 2)
        first = fit(logo[0], logo_w) + " " * padding + self.version
        self.lines = pad_lines([first] + logo[1:], width, height)

    def render(self) -> List[str]:
        return list(self.lines)


def _clamp_percent(value: float) -> float:
    return max(0.0, min(float(value), 100.0))
