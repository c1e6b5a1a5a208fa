"""
Transport state for Mixtape playback.

Holds the immutable snapshot the controller publishes to the UI, plus the
index arithmetic used for navigation and removal.
"""

import math
from enum import Enum
from typing import Any, NamedTuple, Optional

from mixtape.domain.library.models import BackendKind


class PlaybackStatus(str, Enum):
    NO_SELECTION = "no_selection"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"


class TransportState(NamedTuple):
    """Immutable transport state."""

    current_index: int = -1
    status: PlaybackStatus = PlaybackStatus.NO_SELECTION
    is_playing: bool = False
    elapsed_seconds: float = 0.0
    duration_seconds: float = 0.0
    active_backend: Optional[BackendKind] = None

    @property
    def position_ratio(self) -> float:
        """Elapsed time as a fraction of the duration (0.0 when unknown)."""
        if not is_valid_duration(self.duration_seconds):
            return 0.0
        return min(max(self.elapsed_seconds / self.duration_seconds, 0.0), 1.0)


def is_valid_duration(duration: Any) -> bool:
    """True when duration is a finite, positive number of seconds."""
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        return False
    return math.isfinite(duration) and duration > 0


def next_index(current: int, length: int) -> Optional[int]:
    """Index after current, wrapping around. None for an empty playlist."""
    if length <= 0:
        return None
    return (current + 1) % length


def previous_index(current: int, length: int) -> Optional[int]:
    """Index before current, wrapping around. None for an empty playlist."""
    if length <= 0:
        return None
    return (current - 1 + length) % length


def index_after_removal(current: int, removed: int, new_length: int) -> int:
    """Selection index after the track at removed was taken out.

    Args:
        current: Selected index before removal
        removed: Index that was removed
        new_length: Playlist length after removal

    Returns:
        New selected index (-1 once the playlist is empty)
    """
    if new_length <= 0:
        return -1
    if removed == current:
        return min(removed, new_length - 1)
    if removed < current:
        return current - 1
    return current


def format_time(seconds: float) -> str:
    """Format time in seconds to MM:SS format."""
    if not isinstance(seconds, (int, float)) or not math.isfinite(seconds) or seconds < 0:
        return "00:00"

    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes:02d}:{secs:02d}"
