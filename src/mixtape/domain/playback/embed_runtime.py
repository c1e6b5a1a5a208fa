"""
Embedded video runtime.

The embedded video backend plays through a third-party player runtime that
has to be bootstrapped once before any player can be created. The runtime
exposes a player constructor and numeric play-state constants; players are
polled for position and duration and report state changes through a
callback.

The bundled runtime drives a dedicated mpv process whose yt-dlp hook
resolves video links to audio streams.
"""

import threading
from abc import ABC, abstractmethod
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from enum import IntEnum
from typing import Any, Callable, Dict, Optional

from loguru import logger

from mixtape.core.exceptions import RuntimeBootstrapError

from .mpv import MpvProcess, check_mpv_available


class EmbedPlayerState(IntEnum):
    """Numeric play states reported by embedded players."""

    UNSTARTED = -1
    ENDED = 0
    PLAYING = 1
    PAUSED = 2
    BUFFERING = 3
    CUED = 5


StateChangeHandler = Callable[[EmbedPlayerState], None]


class EmbedPlayer(ABC):
    """Player instance created by an EmbedRuntime."""

    @abstractmethod
    def load_video_by_id(self, video_id: str) -> None:
        """Load a video and start playing it."""

    @abstractmethod
    def cue_video_by_id(self, video_id: str) -> None:
        """Load a video without playing it."""

    @abstractmethod
    def play_video(self) -> None: ...

    @abstractmethod
    def pause_video(self) -> None: ...

    @abstractmethod
    def stop_video(self) -> None: ...

    @abstractmethod
    def seek_to(self, seconds: float) -> None: ...

    @abstractmethod
    def get_current_time(self) -> float: ...

    @abstractmethod
    def get_duration(self) -> float: ...

    @abstractmethod
    def get_player_state(self) -> EmbedPlayerState: ...


class EmbedRuntime(ABC):
    """A bootstrapped player runtime."""

    PlayerState = EmbedPlayerState

    @abstractmethod
    def create_player(
        self, video_id: str, autoplay: bool, on_state_change: StateChangeHandler
    ) -> EmbedPlayer:
        """Create a player bound to video_id."""

    def close(self) -> None:
        """Release runtime resources."""


RuntimeLoader = Callable[[], EmbedRuntime]


class RuntimeBootstrap:
    """One-time, memoized bootstrap of an EmbedRuntime.

    The first ensure() starts the loader on a worker thread. Every later call
    returns the same future, so concurrent loads share one outcome, and a
    failure stays failed (no automatic retry).
    """

    def __init__(self, loader: RuntimeLoader, executor: Optional[Executor] = None):
        self._loader = loader
        self._executor = executor
        self._owns_executor = executor is None
        self._future: Optional[Future] = None
        self._closed = False
        self._lock = threading.Lock()

    def ensure(self) -> Future:
        with self._lock:
            if self._closed:
                raise RuntimeBootstrapError("Video player has been shut down")
            if self._future is None:
                if self._executor is None:
                    self._executor = ThreadPoolExecutor(
                        max_workers=1, thread_name_prefix="embed-bootstrap"
                    )
                logger.info("Bootstrapping embedded video runtime")
                self._future = self._executor.submit(self._load)
            return self._future

    def _load(self) -> EmbedRuntime:
        try:
            runtime = self._loader()
        except RuntimeBootstrapError:
            logger.exception("Embedded video runtime failed to start")
            raise
        except Exception as e:
            logger.exception("Embedded video runtime failed to start")
            raise RuntimeBootstrapError(str(e) or type(e).__name__) from e
        logger.info("Embedded video runtime ready")
        return runtime

    @property
    def ready(self) -> bool:
        """True once the bootstrap has succeeded."""
        future = self._future
        return (
            future is not None
            and future.done()
            and not future.cancelled()
            and future.exception() is None
        )

    @property
    def runtime(self) -> Optional[EmbedRuntime]:
        if not self.ready:
            return None
        return self._future.result()

    def shutdown(self) -> None:
        """Close the runtime, now or as soon as a running bootstrap finishes."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            future = self._future
        if future is not None:
            future.add_done_callback(self._close_runtime)
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)

    @staticmethod
    def _close_runtime(future: Future) -> None:
        if future.cancelled() or future.exception() is not None:
            return
        logger.debug("Closing embedded video runtime")
        future.result().close()


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


class MpvVideoPlayer(EmbedPlayer):
    """Embedded player on top of an mpv process with its yt-dlp hook enabled.

    Position and duration are read on demand; state changes are derived from
    observed mpv events and reported through on_state_change.
    """

    def __init__(self, process: MpvProcess, on_state_change: StateChangeHandler):
        self.process = process
        self.on_state_change = on_state_change
        self._state = EmbedPlayerState.UNSTARTED
        self._file_loaded = False
        self.process.observe(("pause",), self._handle_event)

    def _set_state(self, state: EmbedPlayerState) -> None:
        if state == self._state:
            return
        self._state = state
        logger.debug(f"Embedded player state: {state.name}")
        self.on_state_change(state)

    def _load(self, video_id: str, paused: bool) -> None:
        self._file_loaded = False
        self.process.set_property("pause", paused)
        if not self.process.send_command("loadfile", watch_url(video_id), "replace"):
            logger.warning(f"mpv refused to load video {video_id}")
            return
        self._set_state(EmbedPlayerState.CUED if paused else EmbedPlayerState.BUFFERING)

    def load_video_by_id(self, video_id: str) -> None:
        self._load(video_id, paused=False)

    def cue_video_by_id(self, video_id: str) -> None:
        self._load(video_id, paused=True)

    def play_video(self) -> None:
        self.process.set_property("pause", False)

    def pause_video(self) -> None:
        self.process.set_property("pause", True)

    def stop_video(self) -> None:
        self.process.send_command("stop")
        self._file_loaded = False
        self._set_state(EmbedPlayerState.UNSTARTED)

    def seek_to(self, seconds: float) -> None:
        self.process.send_command("seek", seconds, "absolute")

    def get_current_time(self) -> float:
        position = self.process.get_property("time-pos")
        return position if isinstance(position, (int, float)) else 0.0

    def get_duration(self) -> float:
        duration = self.process.get_property("duration")
        return duration if isinstance(duration, (int, float)) else 0.0

    def get_player_state(self) -> EmbedPlayerState:
        return self._state

    def _handle_event(self, message: Dict[str, Any]) -> None:
        event = message.get("event")

        if event == "file-loaded":
            self._file_loaded = True
            paused = self.process.get_property("pause")
            self._set_state(EmbedPlayerState.PAUSED if paused else EmbedPlayerState.PLAYING)

        elif event == "property-change" and message.get("name") == "pause":
            if self._file_loaded and isinstance(message.get("data"), bool):
                self._set_state(
                    EmbedPlayerState.PAUSED if message["data"] else EmbedPlayerState.PLAYING
                )

        elif event == "end-file" and message.get("reason") == "eof":
            self._file_loaded = False
            self._set_state(EmbedPlayerState.ENDED)


class MpvVideoRuntime(EmbedRuntime):
    """Runtime owning the mpv process shared by every video track."""

    def __init__(self, process: MpvProcess):
        self.process = process

    def create_player(
        self, video_id: str, autoplay: bool, on_state_change: StateChangeHandler
    ) -> EmbedPlayer:
        player = MpvVideoPlayer(self.process, on_state_change)
        if autoplay:
            player.load_video_by_id(video_id)
        else:
            player.cue_video_by_id(video_id)
        return player

    def close(self) -> None:
        self.process.stop()


def load_mpv_video_runtime(
    socket_path: Optional[str] = None,
    volume: int = 50,
    ytdl_format: str = "bestaudio/best",
) -> MpvVideoRuntime:
    """Start the mpv process used for video tracks.

    Raises:
        RuntimeBootstrapError: If mpv or yt-dlp is unavailable
    """
    if not check_mpv_available():
        raise RuntimeBootstrapError("mpv is not installed")

    try:
        from yt_dlp.version import __version__ as ytdl_version
    except ImportError as e:
        raise RuntimeBootstrapError("yt-dlp is not installed") from e
    logger.debug(f"Using yt-dlp {ytdl_version}")

    process = MpvProcess(
        socket_path=socket_path,
        volume=volume,
        extra_args=["--ytdl=yes", f"--ytdl-format={ytdl_format}"],
        label="embedded",
    )
    if not process.start(timeout=10.0):
        raise RuntimeBootstrapError("Could not start mpv for video playback")
    return MpvVideoRuntime(process)
