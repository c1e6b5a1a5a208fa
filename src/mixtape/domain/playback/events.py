"""
Event channel between playback backends and the controller.

Backends publish from whatever thread their notifications arrive on; the
controller drains the channel on its control thread, so all state mutation
happens in one place.
"""

import queue
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from mixtape.domain.library.models import BackendKind, Track


class EventKind(str, Enum):
    """Kinds of events carried by the channel."""

    STARTED = "started"
    PAUSED = "paused"
    ENDED = "ended"
    POSITION = "position"
    RUNTIME_READY = "runtime_ready"
    LOAD_FAILED = "load_failed"
    COMMAND = "command"


@dataclass(frozen=True)
class PlaybackEvent:
    """One notification from a backend, or a command posted for the control thread."""

    kind: EventKind
    source: Optional[BackendKind] = None
    epoch: int = 0
    elapsed: Optional[float] = None
    duration: Optional[float] = None
    track: Optional[Track] = None
    autoplay: bool = False
    error: Optional[str] = None
    command: Optional[Callable[..., Any]] = None
    args: Tuple[Any, ...] = field(default_factory=tuple)


class EventChannel:
    """Thread-safe FIFO of playback events."""

    def __init__(self):
        self._queue: "queue.Queue[PlaybackEvent]" = queue.Queue()

    def publish(self, event: PlaybackEvent) -> None:
        self._queue.put(event)

    def get(self, timeout: Optional[float] = None) -> Optional[PlaybackEvent]:
        """Wait up to timeout seconds for the next event."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def get_nowait(self) -> Optional[PlaybackEvent]:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def drain(self) -> List[PlaybackEvent]:
        """Remove and return every queued event."""
        events = []
        while True:
            event = self.get_nowait()
            if event is None:
                return events
            events.append(event)

    def __len__(self) -> int:
        return self._queue.qsize()
