"""Textual host for the dktop dashboard."""

from __future__ import annotations

from typing import Optional

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Static

from .backend import DockerBackend
from .config import ConfigManager
from .controller import Dashboard
from .events import KeyPress, Resize
from .scheduler import Scheduler
from .theme import style_frame


class DktopApp(App[None]):
    TITLE = "dktop"
    SUB_TITLE = "Docker dashboard"
    ENABLE_COMMAND_PALETTE = False

    CSS = """
    Screen {
      layout: vertical;
      overflow: hidden;
    }

    #frame {
      width: 100%;
      height: 100%;
    }
    """

    # Keys Textual would otherwise use for focus handling or quitting.
    BINDINGS = [
        Binding("tab", "forward('tab')", show=False, priority=True),
        Binding("shift+tab", "forward('tab')", show=False, priority=True),
        Binding("ctrl+c", "forward('ctrl+c')", show=False, priority=True),
    ]

    def __init__(self, backend: Optional[DockerBackend] = None,
                 config_manager: Optional[ConfigManager] = None) -> None:
        super().__init__()
        self.backend = backend or DockerBackend()
        self.config_manager = config_manager or ConfigManager()
        self.dashboard = Dashboard(self.backend, self.config_manager)
        self.scheduler: Optional[Scheduler] = None

    def compose(self) -> ComposeResult:
        yield Static("", id="frame", markup=False)

    def on_mount(self) -> None:
        self.scheduler = Scheduler(self.dashboard, display=self._show)
        self.scheduler.post(Resize(self.size.width, self.size.height))
        self.run_worker(self._run_dashboard(), group="dashboard", exclusive=True)

    async def _run_dashboard(self) -> None:
        assert self.scheduler is not None
        await self.scheduler.run()
        self.exit()

    def on_resize(self, event: events.Resize) -> None:
        if self.scheduler is not None:
            self.scheduler.post(Resize(event.size.width, event.size.height))

    async def on_key(self, event: events.Key) -> None:
        if self.scheduler is None:
            return
        self.scheduler.post(KeyPress(event.key, event.character))
        event.stop()
        event.prevent_default()

    def action_forward(self, key: str) -> None:
        if self.scheduler is not None:
            self.scheduler.post(KeyPress(key))

    def _show(self, lines: list[str]) -> None:
        layout = self.dashboard.layout
        banner_rows = layout.banner.height if layout else 0
        self.query_one("#frame", Static).update(style_frame(lines, banner_rows))


def run(backend: Optional[DockerBackend] = None,
        config_manager: Optional[ConfigManager] = None) -> None:
    app = DktopApp(backend, config_manager)
    app.run()
