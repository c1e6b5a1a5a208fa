"""
Media element abstraction used by the direct media backend.

A media element plays one stream at a time and pushes notifications
(play, pause, time update, ended) to a single listener, the way an audio
element does.
"""

from abc import ABC, abstractmethod
from typing import Optional, Protocol


class MediaListener(Protocol):
    def on_play(self) -> None: ...

    def on_pause(self) -> None: ...

    def on_time_update(self, elapsed: float, duration: Optional[float]) -> None: ...

    def on_ended(self) -> None: ...


class MediaElement(ABC):
    """A playable stream with pushed notifications."""

    def __init__(self):
        self._listener: Optional[MediaListener] = None

    def set_listener(self, listener: MediaListener) -> None:
        self._listener = listener

    @abstractmethod
    def set_source(self, source: str) -> None:
        """Load a local data: URL or remote URL, paused."""

    @abstractmethod
    def play(self) -> None: ...

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def stop(self) -> None:
        """Stop output and unload the current source."""

    @abstractmethod
    def seek(self, seconds: float) -> None: ...

    @property
    @abstractmethod
    def current_time(self) -> float: ...

    @property
    @abstractmethod
    def duration(self) -> Optional[float]: ...

    @property
    @abstractmethod
    def paused(self) -> bool: ...

    def close(self) -> None:
        """Release resources held by the element."""

    def _notify_play(self) -> None:
        if self._listener:
            self._listener.on_play()

    def _notify_pause(self) -> None:
        if self._listener:
            self._listener.on_pause()

    def _notify_time_update(self, elapsed: float, duration: Optional[float]) -> None:
        if self._listener:
            self._listener.on_time_update(elapsed, duration)

    def _notify_ended(self) -> None:
        if self._listener:
            self._listener.on_ended()
