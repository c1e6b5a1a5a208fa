"""Playback domain - backends, transport state and the controller.

This domain handles:
- mpv integration via JSON IPC (direct media backend)
- The bootstrapped embed runtime (embedded video backend)
- The event channel both backends publish to
- Transport state and the playback controller
"""

from .backends import Backend, DirectMediaBackend, EmbeddedVideoBackend
from .controller import PlaybackController
from .embed_runtime import (
    EmbedPlayer,
    EmbedPlayerState,
    EmbedRuntime,
    RuntimeBootstrap,
    load_mpv_video_runtime,
)
from .events import EventChannel, EventKind, PlaybackEvent
from .media import MediaElement
from .mpv import MpvMediaElement, MpvProcess, check_mpv_available
from .state import (
    PlaybackStatus,
    TransportState,
    format_time,
    index_after_removal,
    is_valid_duration,
    next_index,
    previous_index,
)

__all__ = [
    # Backends
    "Backend",
    "DirectMediaBackend",
    "EmbeddedVideoBackend",
    "MediaElement",
    "MpvMediaElement",
    "MpvProcess",
    "check_mpv_available",
    # Embed runtime
    "EmbedPlayer",
    "EmbedPlayerState",
    "EmbedRuntime",
    "RuntimeBootstrap",
    "load_mpv_video_runtime",
    # Events
    "EventChannel",
    "EventKind",
    "PlaybackEvent",
    # State
    "PlaybackStatus",
    "TransportState",
    "format_time",
    "index_after_removal",
    "is_valid_duration",
    "next_index",
    "previous_index",
    # Controller
    "PlaybackController",
]
