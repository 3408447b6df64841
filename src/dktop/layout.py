"""Panel sizing for the dashboard.

Screen layout::

    ┌──────────────────────────────────────────────────────────┐
    │  Banner (6 lines, 1 line on short terminals)             │
    ├──────────────────────────────┬───────────────────────────┤
    │  Docker stats (CPU/Mem)      │  Images                   │
    ├──────────────────────────────┴───────────────────────────┤
    │  Containers (sized to the number of containers)          │
    ├──────────────────────────────────────────────────────────┤
    │  Logs (whatever is left, never below a minimum)          │
    ├──────────────────────────────────────────────────────────┤
    │  Help / status line                                      │
    └──────────────────────────────────────────────────────────┘
"""

from dataclasses import dataclass

BANNER_HEIGHT = 6
COMPACT_BANNER_HEIGHT = 1
COMPACT_BELOW_ROWS = 40
TOP_HEIGHT = 17  # two 4-row graphs, counts, headers, title and border
HELP_HEIGHT = 1
# border (2) + title (1) + column header (1) + blank line under header (1)
CONTAINER_CHROME_ROWS = 5
MIN_LOGS_HEIGHT = 5
MIN_BODY_HEIGHT = 2


@dataclass(frozen=True)
class PanelSize:
    width: int
    height: int


@dataclass(frozen=True)
class Layout:
    banner: PanelSize
    stats: PanelSize
    images: PanelSize
    containers: PanelSize
    logs: PanelSize
    help: PanelSize


def banner_height(height: int) -> int:
    return COMPACT_BANNER_HEIGHT if height < COMPACT_BELOW_ROWS else BANNER_HEIGHT


def compute_layout(width: int, height: int, container_count: int) -> Layout:
    """Size every panel for a ``width`` x ``height`` terminal.

    The containers panel asks for one row per container plus its chrome so it
    does not scroll in the common case; logs keep at least ``MIN_LOGS_HEIGHT``
    rows when the terminal allows it and take whatever remains.
    """
    width = max(0, width)
    banner = banner_height(height)

    body = height - banner - TOP_HEIGHT - HELP_HEIGHT
    if body < MIN_BODY_HEIGHT:
        body = MIN_BODY_HEIGHT

    containers_height = max(container_count, 1) + CONTAINER_CHROME_ROWS

    min_logs = min(MIN_LOGS_HEIGHT, body - 1)
    containers_height = min(containers_height, body - min_logs)
    containers_height = max(containers_height, 1)

    logs_height = max(body - containers_height, 1)

    stats_width = width // 2
    images_width = width - stats_width

    return Layout(
        banner=PanelSize(width, banner),
        stats=PanelSize(stats_width, TOP_HEIGHT),
        images=PanelSize(images_width, TOP_HEIGHT),
        containers=PanelSize(width, containers_height),
        logs=PanelSize(width, logs_height),
        help=PanelSize(width, HELP_HEIGHT),
    )
