"""Colours for dashboard frames.

The controller renders plain text; this module turns a frame into a
``rich.text.Text`` by pattern, so styling never changes cell widths.
"""

import re
from typing import List

from rich.text import Text

LOGO_STYLE = "bold #00aaff"
VERSION_STYLE = "dim"
ACTIVE_BORDER_STYLE = "bold #00aaff"
BORDER_STYLE = "#5f5f5f"
SELECTED_STYLE = "reverse"
ERROR_STYLE = "bold #ef5350"
PROMPT_STYLE = "bold #ffa726"
KEY_STYLE = "bold"
TIMESTAMP_STYLE = "dim"
GRAPH_STYLE = "#66bb6a"

# Usage readings by percent: at or above each threshold
USAGE_STYLES = (
    (80.0, "bold #ef5350"),
    (50.0, "#ffa726"),
    (0.0, "#66bb6a"),
)

# Container status text as reported by the engine ("Up 2 hours", "Exited (0) ...")
STATUS_STYLES = {
    r"\bUp \d[^│┃]*?(?=\s{2}|[│┃])": "#66bb6a",
    r"\bExited \(\d+\)[^│┃]*?(?=\s{2}|[│┃])": "#ef5350",
    r"\bRestarting\b[^│┃]*?(?=\s{2}|[│┃])": "#ffa726",
    r"\(Paused\)": "#ffa726",
    r"\bDead\b": "#ef5350",
    r"\bCreated\b": "#4fc3f7",
}

HEAVY_BORDER = r"[┏┓┗┛━┃]"
ROUNDED_EDGE = r"(?m)^[╭╰]─+[╮╯]|^│|│$"
SELECTED_ROW = r"(?<=[│┃] )>[^│┃]*"
TIMESTAMP = r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?Z"
BLOCKS = r"[▁▂▃▄▅▆▇█]+"
VERSION = r"v\d+\.\d+\.\d+\S*"
# Container CPU cells and the stats header values
USAGE_PATTERNS = (
    r"(?<=MEM: )\S+ \((?P<percent>\d+\.\d)%\)",
    r"(?P<percent>\d+\.\d)%",
)


def usage_style(percent: float) -> str:
    for threshold, style in USAGE_STYLES:
        if percent >= threshold:
            return style
    return USAGE_STYLES[-1][1]


def highlight_usage(text: Text) -> None:
    """Colour each usage reading by how high it is."""
    for pattern in USAGE_PATTERNS:
        for match in re.finditer(pattern, text.plain):
            text.stylize(usage_style(float(match.group("percent"))), match.start(), match.end())


def style_body(lines: List[str], banner_rows: int = 0) -> Text:
    banner = Text("\n".join(lines[:banner_rows]), style=LOGO_STYLE)
    banner.highlight_regex(VERSION, VERSION_STYLE)

    body = Text("\n".join(lines[banner_rows:]))
    body.highlight_regex(ROUNDED_EDGE, BORDER_STYLE)
    body.highlight_regex(HEAVY_BORDER, ACTIVE_BORDER_STYLE)
    body.highlight_regex(BLOCKS, GRAPH_STYLE)
    for pattern, style in STATUS_STYLES.items():
        body.highlight_regex(pattern, style)
    highlight_usage(body)
    body.highlight_regex(TIMESTAMP, TIMESTAMP_STYLE)
    body.highlight_regex(SELECTED_ROW, SELECTED_STYLE)

    if banner_rows and lines[banner_rows:]:
        return Text("\n").join([banner, body])
    return banner if banner_rows else body


def style_status(line: str) -> Text:
    """Prompt, error or key help."""
    text = Text(line)
    if line.startswith("Error:"):
        text.stylize(ERROR_STYLE)
    elif line.startswith(("Filter:", "Pull image:")):
        text.stylize(PROMPT_STYLE, 0, line.index(":") + 1)
    else:
        text.highlight_regex(r"(?:^|(?<=\s))[^\s:]+(?=:)", KEY_STYLE)
    return text


def style_frame(lines: List[str], banner_rows: int = 0) -> Text:
    """Style a rendered frame.

    ``banner_rows`` leading lines are the logo; the last line is the status
    line.
    """
    if not lines:
        return Text()
    body = style_body(lines[:-1], banner_rows)
    status = style_status(lines[-1])
    if not lines[:-1]:
        return status
    text = Text("\n").join([body, status])
    text.no_wrap = True
    text.overflow = "crop"
    return text
