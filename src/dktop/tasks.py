"""
Task descriptors returned by the dashboard controller.

The controller never performs I/O. It returns descriptions of work and the
scheduler carries them out:

  - ``Task``: call a blocking client function in a worker thread under a
    deadline, then turn the result into exactly one event.
  - ``Timer``: post an event after a delay (the refresh tick).
  - ``Quit``: stop the event loop.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple

# Deadlines in seconds
FETCH_TIMEOUT = 5.0
ACTION_TIMEOUT = 30.0
PULL_TIMEOUT = 300.0


@dataclass(frozen=True)
class Task:
    kind: str
    func: Callable[..., Any]
    args: Tuple[Any, ...] = ()
    timeout: float = FETCH_TIMEOUT
    # Builds the completion event from the function's return value.
    on_success: Optional[Callable[[Any], Any]] = None
    target: Optional[str] = None
    name: str = field(default="", compare=False)

    def describe(self) -> str:
        return self.name or f"{self.kind}:{self.target or ''}"


@dataclass(frozen=True)
class Timer:
    delay: float
    event: Any


@dataclass(frozen=True)
class Quit:
    pass
