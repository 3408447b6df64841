"""
Event loop driving the dashboard.

One asyncio queue carries every event. The loop takes events one at a time,
lets the controller merge them, runs the tasks it returns and hands a fresh
frame to the display callback. Blocking client calls run in worker threads
(``asyncio.to_thread``) under ``asyncio.wait_for``; whatever happens, each
task posts exactly one event back onto the queue.
"""

import asyncio
import logging
from typing import Any, Callable, List, Optional, Set

from .events import ActionCompleted, FetchFailed
from .tasks import Quit, Task, Timer

logger = logging.getLogger(__name__)


class Scheduler:
    """Runs a controller: ``initialize()`` once, then ``handle(event)`` per event."""

    def __init__(self, controller: Any, display: Optional[Callable[[List[str]], None]] = None):
        self.controller = controller
        self.display = display
        self.queue: "asyncio.Queue[Any]" = asyncio.Queue()
        self._pending: Set[asyncio.Task] = set()
        self._stopped = False

    def post(self, event: Any) -> None:
        """Queue an event from the loop thread (key presses, resizes)."""
        if not self._stopped:
            self.queue.put_nowait(event)

    async def run(self) -> None:
        self.dispatch(self.controller.initialize())
        self._show()
        try:
            while not self._stopped:
                event = await self.queue.get()
                if event is None or self._stopped:
                    break
                self.dispatch(self.controller.handle(event))
                self._show()
                if not self.controller.running:
                    self._stopped = True
        finally:
            await self.shutdown()

    def dispatch(self, items: List[Any]) -> None:
        for item in items:
            if isinstance(item, Quit):
                self._stopped = True
            elif isinstance(item, Timer):
                self._spawn(self._timer(item))
            elif isinstance(item, Task):
                self._spawn(self._execute(item))
            else:
                raise TypeError(f"unsupported task: {item!r}")

    def stop(self) -> None:
        self._stopped = True
        # Wake the loop if it is waiting on an empty queue.
        self.queue.put_nowait(None)

    async def shutdown(self) -> None:
        self._stopped = True
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        self._pending.clear()

    def _spawn(self, coro: Any) -> None:
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _timer(self, timer: Timer) -> None:
        await asyncio.sleep(timer.delay)
        self.post(timer.event)

    async def _execute(self, task: Task) -> None:
        self.post(await run_task(task))

    def _show(self) -> None:
        if self.display is not None:
            self.display(self.controller.render())


async def run_task(task: Task) -> Any:
    """Run ``task`` in a worker thread and return the single event it produces.

    A result that arrives after the deadline is discarded with the thread.
    """
    try:
        result = await asyncio.wait_for(asyncio.to_thread(task.func, *task.args), task.timeout)
    except asyncio.TimeoutError:
        logger.warning(f"{task.describe()} timed out after {task.timeout:.0f}s")
        return FetchFailed(task.kind, f"{task.describe()}: timed out", task.target)
    except Exception as e:
        logger.debug(f"{task.describe()} failed: {e}")
        return FetchFailed(task.kind, str(e), task.target)

    if task.on_success is None:
        return ActionCompleted(task.kind, task.target or "")
    return task.on_success(result)
