"""
Usage aggregation and text graph rendering for the stats panel.

Features:
- Engine-wide CPU / memory usage derived from running containers
- Nearest-index resampling of a sample history to a column count
- Filled block graphs (eighth-block resolution)
- Auto-scaled line graphs drawn with box-drawing characters

Architecture:
- aggregate_usage(): pure function over container snapshots
- ChartRenderer: static helpers, each returning ``height`` rows of exactly
  ``width`` characters
"""

import dataclasses
from typing import Iterable, List, Optional, Sequence

from .model import ContainerInfo, SystemStats

BLOCKS = " ▁▂▃▄▅▆▇█"

H_LINE = "─"
V_LINE = "│"
CORNER_DOWN = "╮"    # peak, or flat turning down
CORNER_UP_LEFT = "╯"  # falling into flat
CORNER_RISE = "╭"    # rising into flat
CORNER_VALLEY = "╰"  # valley, or flat turning up


def aggregate_usage(system: SystemStats, containers: Iterable[ContainerInfo]) -> SystemStats:
    """Return ``system`` with CPU and memory usage summed over running containers.

    The memory limit stays whatever Docker reported; only usage is derived.
    """
    total_cpu = 0.0
    total_mem = 0
    for container in containers:
        if container.state == "running":
            total_cpu += container.cpu_percent
            total_mem += container.mem_usage
    return dataclasses.replace(system, cpu_usage=total_cpu, memory_usage=total_mem)


class ChartRenderer:
    """Generates character-cell charts for the stats panel."""

    @staticmethod
    def resample(samples: Sequence[float], width: int) -> List[Optional[float]]:
        """Fit ``samples`` to ``width`` columns.

        Longer histories are decimated by nearest index; shorter ones are
        right-aligned with ``None`` in the leading columns.
        """
        width = max(1, width)
        count = len(samples)
        if count >= width:
            return [samples[col * count // width] for col in range(width)]
        padding: List[Optional[float]] = [None] * (width - count)
        return padding + list(samples)

    @staticmethod
    def block_graph(samples: Sequence[float], width: int, height: int) -> List[str]:
        """Filled column graph on a fixed 0-100 scale."""
        width = max(1, width)
        height = max(1, height)
        grid = [[" "] * width for _ in range(height)]

        for x, value in enumerate(ChartRenderer.resample(samples, width)):
            if value is None or value <= 0:
                continue
            fraction = min(value, 100.0) / 100.0
            eighths = int(fraction * height * 8)
            full_rows, partial = divmod(eighths, 8)

            for row in range(full_rows):
                grid[height - 1 - row][x] = BLOCKS[8]
            if full_rows < height and partial > 0:
                grid[height - 1 - full_rows][x] = BLOCKS[partial]

        return ["".join(row) for row in grid]

    @staticmethod
    def line_graph(samples: Sequence[float], width: int, height: int) -> List[str]:
        """Auto-scaled line graph.

        Each column gets one glyph chosen by comparing its row with its left
        and right neighbours; vertical runs are filled with ``│`` so that
        consecutive columns are always connected.
        """
        width = max(1, width)
        height = max(1, height)
        grid = [[" "] * width for _ in range(height)]

        rows = ChartRenderer.scale_rows(ChartRenderer.resample(samples, width), height)

        def put(row: int, x: int, glyph: str) -> None:
            y = height - 1 - row
            if grid[y][x] == " ":
                grid[y][x] = glyph

        def fill(x: int, low: int, high: int) -> None:
            # Rows low..high inclusive; the glyph cell is never overwritten
            for row in range(low, high + 1):
                put(row, x, V_LINE)

        for x in range(width):
            curr = rows[x]
            if curr is None:
                continue
            prev = rows[x - 1] if x > 0 and rows[x - 1] is not None else curr
            nxt = rows[x + 1] if x < width - 1 and rows[x + 1] is not None else curr

            y = height - 1 - curr
            if prev == curr and nxt == curr:
                glyph = H_LINE
            elif prev < curr and nxt < curr:
                glyph = CORNER_DOWN
                fill(x, min(prev, nxt), curr)
            elif prev > curr and nxt > curr:
                glyph = CORNER_VALLEY
            elif prev < curr and nxt == curr:
                glyph = CORNER_RISE
            elif prev > curr and nxt == curr:
                glyph = CORNER_UP_LEFT
            elif prev == curr and nxt < curr:
                glyph = CORNER_DOWN
            elif prev == curr and nxt > curr:
                glyph = CORNER_VALLEY
            else:
                glyph = V_LINE
            grid[y][x] = glyph

            # Reach the neighbour's row so adjacent columns share a cell
            if nxt != curr:
                fill(x, min(curr, nxt), max(curr, nxt))

        return ["".join(row) for row in grid]

    @staticmethod
    def scale_rows(values: Sequence[Optional[float]], height: int) -> List[Optional[int]]:
        """Map values to row indices (0 = bottom) using the min/max of set values."""
        present = [v for v in values if v is not None]
        if not present:
            return [None] * len(values)

        low = min(present)
        span = max(present) - low
        if span < 1:
            span = 1

        rows: List[Optional[int]] = []
        for value in values:
            if value is None:
                rows.append(None)
                continue
            normalized = min(max((value - low) / span, 0.0), 1.0)
            rows.append(int(normalized * (height - 1)))
        return rows

