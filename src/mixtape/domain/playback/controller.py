"""
Playback controller.

Owns the playlist, the selection/transport state and exactly one active
backend at a time. Backend notifications arrive through the event channel
and are applied on the control thread; events from an inactive backend or
from a superseded selection (older epoch) are discarded.
"""

import threading
import time
from functools import partial
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from mixtape.core.config import Config
from mixtape.core.exceptions import MixtapeError, RuntimeBootstrapError
from mixtape.core.output import log
from mixtape.domain.library.models import BackendKind, Track, TrackType, backend_kind_for
from mixtape.domain.library.store import KeyValueStorage, TrackStore

from .backends import Backend, DirectMediaBackend, EmbeddedVideoBackend
from .embed_runtime import EmbedRuntime, RuntimeBootstrap, load_mpv_video_runtime
from .events import EventChannel, EventKind, PlaybackEvent
from .mpv import MpvMediaElement, MpvProcess
from .state import (
    PlaybackStatus,
    TransportState,
    index_after_removal,
    is_valid_duration,
    next_index,
    previous_index,
)

Notifier = Callable[[str], None]
StateListener = Callable[[TransportState], None]

DEFAULT_POLL_INTERVAL = 0.5


def _log_error(message: str) -> None:
    log(message, level="error")


class PlaybackController:
    """Single owner of playback state.

    Every public method must run on the control thread. Other threads hand
    work over with submit().
    """

    def __init__(
        self,
        store: TrackStore,
        direct: DirectMediaBackend,
        embedded: EmbeddedVideoBackend,
        channel: EventChannel,
        notify: Optional[Notifier] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self.store = store
        self.channel = channel
        self.backends: Dict[BackendKind, Backend] = {
            BackendKind.DIRECT: direct,
            BackendKind.EMBEDDED: embedded,
        }
        self.notify = notify or _log_error
        self.poll_interval = poll_interval
        self.state = TransportState()
        self.epoch = 0
        self._listeners: List[StateListener] = []
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def from_config(
        cls,
        config: Config,
        storage: KeyValueStorage,
        notify: Optional[Notifier] = None,
    ) -> "PlaybackController":
        """Build a controller with the mpv-backed backends."""
        channel = EventChannel()
        store = TrackStore(
            storage,
            storage_key=config.storage.storage_key,
            legacy_keys=config.storage.legacy_keys,
        )

        element = MpvMediaElement(
            MpvProcess(
                socket_path=config.player.mpv_socket_path,
                volume=config.player.volume,
                label="direct",
            )
        )

        if config.embed.enabled:
            loader = partial(
                load_mpv_video_runtime,
                volume=config.player.volume,
                ytdl_format=config.embed.ytdl_format,
            )
        else:
            loader = _disabled_runtime

        return cls(
            store=store,
            direct=DirectMediaBackend(channel, element),
            embedded=EmbeddedVideoBackend(channel, RuntimeBootstrap(loader)),
            channel=channel,
            notify=notify,
            poll_interval=config.player.poll_interval_ms / 1000.0,
        )

    # Lifecycle

    def init(self) -> None:
        """Load the playlist and cue the first track without playing it."""
        self.store.load()
        self._set_state(TransportState())
        if len(self.store):
            self.select_and_load(0, autoplay=False)

    def shutdown(self) -> None:
        """Stop the control loop and release both backends."""
        self.stop_loop()
        for backend in self.backends.values():
            backend.stop()
            backend.close()
        dropped = self.channel.drain()
        if dropped:
            logger.debug(f"Dropped {len(dropped)} pending playback events on shutdown")

    # Observation

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener for transport state changes.

        Returns:
            Function removing the listener again
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _set_state(self, state: Optional[TransportState] = None, **changes: Any) -> None:
        base = state if state is not None else self.state
        self.state = base._replace(**changes) if changes else base
        for listener in list(self._listeners):
            listener(self.state)

    @property
    def tracks(self) -> List[Track]:
        return self.store.tracks

    @property
    def current_track(self) -> Optional[Track]:
        return self.store.get(self.state.current_index)

    @property
    def active_backend(self) -> Optional[Backend]:
        if self.state.active_backend is None:
            return None
        return self.backends[self.state.active_backend]

    # Transport

    def select_and_load(self, index: int, autoplay: bool = False) -> bool:
        """Select the track at index and load it into its backend.

        The other backend is stopped before the target backend loads, so two
        backends never play at once.

        Returns:
            False if index is out of range
        """
        track = self.store.get(index)
        if track is None:
            return False

        self.epoch += 1
        kind = backend_kind_for(track.type)

        for other_kind, backend in self.backends.items():
            if other_kind != kind:
                backend.stop()

        self._set_state(
            current_index=index,
            status=PlaybackStatus.LOADING,
            is_playing=False,
            elapsed_seconds=0.0,
            duration_seconds=0.0,
            active_backend=kind,
        )
        logger.info(f"Loading #{index + 1} {track.name} on {kind.value} backend (autoplay={autoplay})")

        try:
            self.backends[kind].load(track, autoplay, self.epoch)
        except MixtapeError as e:
            self._report_failure(f"Could not load {track.name}: {e}")
            return True

        if kind == BackendKind.DIRECT:
            self._mark_ready(autoplay)
        return True

    def toggle_play_pause(self) -> None:
        if self.current_track is None:
            if len(self.store):
                self.select_and_load(0, autoplay=True)
            return

        backend = self.active_backend
        if backend is None or not backend.is_ready:
            self.select_and_load(self.state.current_index, autoplay=True)
            return

        backend.toggle_play_pause()

    def next(self) -> None:
        index = next_index(self.state.current_index, len(self.store))
        if index is not None:
            self.select_and_load(index, autoplay=True)

    def previous(self) -> None:
        index = previous_index(self.state.current_index, len(self.store))
        if index is not None:
            self.select_and_load(index, autoplay=True)

    def seek(self, ratio: float) -> None:
        """Seek to a fraction of the current track (clamped to 0..1)."""
        backend = self.active_backend
        if self.current_track is None or backend is None:
            return
        backend.seek_to_ratio(min(max(float(ratio), 0.0), 1.0))

    # Playlist edits

    def add_track(self, raw: Any) -> bool:
        return self.store.add(raw)

    def remove_track(self, index: int) -> bool:
        """Remove a track and shift the selection accordingly.

        When the selected track is removed, the track now at its position is
        cued without playing.
        """
        current = self.state.current_index
        if not self.store.remove_at(index):
            return False

        new_length = len(self.store)
        new_index = index_after_removal(current, index, new_length)

        if new_length == 0:
            self._reset()
        elif index == current:
            self.select_and_load(new_index, autoplay=False)
        else:
            self._set_state(current_index=new_index)
        return True

    def remove_current(self) -> bool:
        if self.state.current_index < 0:
            return False
        return self.remove_track(self.state.current_index)

    def clear_all(self) -> None:
        self.store.clear()
        self._reset()

    def _reset(self) -> None:
        self.epoch += 1
        for backend in self.backends.values():
            backend.stop()
        self._set_state(TransportState())

    # Event handling

    def _mark_ready(self, autoplay: bool) -> None:
        self._set_state(
            status=PlaybackStatus.PLAYING if autoplay else PlaybackStatus.PAUSED,
            is_playing=autoplay,
        )

    def _report_failure(self, message: str) -> None:
        logger.error(message)
        self.notify(message)
        self._set_state(status=PlaybackStatus.PAUSED, is_playing=False)

    def submit(self, command: Callable[..., Any], *args: Any) -> None:
        """Run command(*args) on the control thread."""
        self.channel.publish(PlaybackEvent(kind=EventKind.COMMAND, command=command, args=args))

    def process_events(self) -> int:
        """Dispatch every queued event, including ones queued meanwhile.

        Returns:
            Number of events handled
        """
        handled = 0
        while True:
            event = self.channel.get_nowait()
            if event is None:
                return handled
            self._dispatch(event)
            handled += 1

    def _dispatch(self, event: PlaybackEvent) -> None:
        if event.kind == EventKind.COMMAND:
            try:
                event.command(*event.args)
            except MixtapeError as e:
                self._report_failure(str(e))
            return

        if event.epoch != self.epoch:
            logger.debug(f"Discarding stale {event.kind.value} event (epoch {event.epoch} != {self.epoch})")
            return

        if event.kind == EventKind.RUNTIME_READY:
            self._apply_runtime_ready(event)
        elif event.kind == EventKind.LOAD_FAILED:
            self._report_failure(f"Video player could not be loaded: {event.error}")
        elif event.source != self.state.active_backend:
            logger.debug(f"Ignoring {event.kind.value} from inactive {event.source} backend")
        elif event.kind == EventKind.STARTED:
            self._set_state(status=PlaybackStatus.PLAYING, is_playing=True)
        elif event.kind == EventKind.PAUSED:
            self._set_state(status=PlaybackStatus.PAUSED, is_playing=False)
        elif event.kind == EventKind.POSITION:
            if is_valid_duration(event.duration):
                self._set_state(elapsed_seconds=event.elapsed or 0.0, duration_seconds=event.duration)
        elif event.kind == EventKind.ENDED:
            self._set_state(status=PlaybackStatus.ENDED, is_playing=False)
            self.next()

    def _apply_runtime_ready(self, event: PlaybackEvent) -> None:
        backend = self.backends[BackendKind.EMBEDDED]
        try:
            backend.complete_load(event.track, event.autoplay)
        except MixtapeError as e:
            self._report_failure(f"Video player could not be loaded: {e}")
            return
        self._mark_ready(event.autoplay)

    def poll(self) -> None:
        """Refresh position from the embedded backend, which does not push it."""
        track = self.current_track
        if track is None or track.type != TrackType.EMBEDDED_VIDEO:
            return
        if self.state.active_backend != BackendKind.EMBEDDED:
            return

        backend = self.backends[BackendKind.EMBEDDED]
        if not backend.is_ready:
            return

        duration = backend.get_duration_seconds()
        if not is_valid_duration(duration):
            return
        self._set_state(
            elapsed_seconds=backend.get_elapsed_seconds(),
            duration_seconds=duration,
        )

    # Control loop

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """Dispatch events and poll until stop_event is set."""
        stop_event = stop_event or self._stop_event
        next_poll = time.monotonic() + self.poll_interval

        while not stop_event.is_set():
            try:
                event = self.channel.get(timeout=max(0.0, next_poll - time.monotonic()))
                if event is not None:
                    self._dispatch(event)

                now = time.monotonic()
                if now >= next_poll:
                    self.poll()
                    next_poll = now + self.poll_interval
            except Exception:
                logger.exception("Error in playback control loop")

    def start_loop(self) -> None:
        """Run the control loop on its own thread."""
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run, args=(self._stop_event,), name="playback-control", daemon=True
        )
        self._thread.start()

    def stop_loop(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        self._thread = None


def _disabled_runtime() -> EmbedRuntime:
    raise RuntimeBootstrapError("video playback is disabled in the configuration")
