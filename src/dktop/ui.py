"""
Character-cell drawing helpers shared by the panels.

Everything here works on plain strings measured in terminal cells (via
``rich.cells``), so a panel's output is exactly ``width`` cells wide and
``height`` lines tall no matter what the Docker engine hands us.

Key Functions:
  - fit(): crop or pad a string to an exact cell width
  - truncate(): shorten with a trailing "..."
  - box(): draw a bordered panel around content lines
  - space_between(): spread help items across a line
  - format_bytes() / format_bytes_short(): human readable sizes
  - ColumnLayout: fixed-width table header/row rendering
"""

from dataclasses import dataclass, field
from typing import List, Sequence

from rich.cells import cell_len, set_cell_size

ROUNDED = ("╭", "─", "╮", "│", "╰", "╯")
HEAVY = ("┏", "━", "┓", "┃", "┗", "┛")

KB = 1024
MB = KB * 1024
GB = MB * 1024


def fit(text: str, width: int) -> str:
    """Crop or right-pad ``text`` to exactly ``width`` cells."""
    if width <= 0:
        return ""
    return set_cell_size(text, width)


def truncate(text: str, max_len: int) -> str:
    if cell_len(text) <= max_len:
        return text
    if max_len <= 3:
        return set_cell_size(text, max(max_len, 0))
    return set_cell_size(text, max_len - 3) + "..."


def pad_lines(lines: Sequence[str], width: int, height: int) -> List[str]:
    """Exactly ``height`` lines of exactly ``width`` cells."""
    if height <= 0:
        return []
    out = [fit(line, width) for line in list(lines)[:height]]
    out.extend(fit("", width) for _ in range(height - len(out)))
    return out


def format_bytes(num: int) -> str:
    """1536 -> '1.5KB'."""
    for unit, size in (("GB", GB), ("MB", MB), ("KB", KB)):
        if num >= size:
            return f"{num / size:.1f}{unit}"
    return f"{num}B"


def format_bytes_short(num: int) -> str:
    """Compact form for table cells: '1.2G', '512M', '64K'."""
    if num >= GB:
        return f"{num / GB:.1f}G"
    if num >= MB:
        return f"{num / MB:.0f}M"
    if num >= KB:
        return f"{num / KB:.0f}K"
    return f"{num}B"


def box(lines: Sequence[str], width: int, height: int, active: bool = False) -> List[str]:
    """Surround ``lines`` with a border and one column of horizontal padding.

    Active panels get a heavy border, the rest a rounded one. Panels too small
    for a border are rendered without it.
    """
    if width < 4 or height < 2:
        return pad_lines(lines, width, height)

    tl, h, tr, v, bl, br = HEAVY if active else ROUNDED
    inner_w = width - 4
    body = pad_lines(lines, inner_w, height - 2)

    out = [tl + h * (width - 2) + tr]
    out.extend(f"{v} {line} {v}" for line in body)
    out.append(bl + h * (width - 2) + br)
    return out


def space_between(items: Sequence[str], width: int) -> str:
    """Join ``items`` spreading the spare width evenly between them."""
    if not items:
        return fit("", width)
    total = sum(cell_len(item) for item in items)
    if total >= width:
        return fit(" ".join(items), width)
    spacing = max(1, (width - total) // len(items))
    return fit((" " * spacing).join(items), width)


@dataclass
class Column:
    name: str
    width: int
    align: str = "left"  # left or right


@dataclass
class ColumnLayout:
    """Fixed-width table layout for a list panel."""
    columns: List[Column] = field(default_factory=list)
    separator: str = " "

    def _cell(self, value: str, column: Column) -> str:
        value = truncate(str(value), column.width)
        if column.align == "right":
            return " " * (column.width - cell_len(value)) + value
        return fit(value, column.width)

    def render_header(self) -> str:
        return self.separator.join(self._cell(c.name, c) for c in self.columns)

    def render_row(self, values: Sequence[str]) -> str:
        return self.separator.join(self._cell(v, c) for v, c in zip(values, self.columns))
