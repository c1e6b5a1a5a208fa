"""
Playback backends.

Exactly two backends exist: DirectMediaBackend plays local and remote audio
through a MediaElement, EmbeddedVideoBackend plays video tracks through the
bootstrapped embed runtime. Both publish started/paused/ended notifications
to the shared event channel, stamped with their kind and the selection epoch
they were loaded for.
"""

from abc import ABC, abstractmethod
from concurrent.futures import CancelledError, Future
from typing import Any, Optional

from loguru import logger

from mixtape.core.exceptions import BackendLoadError
from mixtape.domain.library.models import BackendKind, Track, backend_kind_for

from .embed_runtime import EmbedPlayer, EmbedPlayerState, RuntimeBootstrap
from .events import EventChannel, EventKind, PlaybackEvent
from .media import MediaElement
from .state import is_valid_duration


def _clamp_ratio(ratio: float) -> float:
    return min(max(float(ratio), 0.0), 1.0)


class Backend(ABC):
    """Common transport contract of both backends."""

    kind: BackendKind

    def __init__(self, channel: EventChannel):
        self.channel = channel
        self.epoch = 0

    def _check_track(self, track: Track) -> None:
        if backend_kind_for(track.type) != self.kind:
            raise BackendLoadError(
                f"{self.kind.value} backend cannot play {track.type.value} tracks"
            )

    def _emit(self, kind: EventKind, epoch: Optional[int] = None, **fields: Any) -> None:
        self.channel.publish(
            PlaybackEvent(
                kind=kind,
                source=self.kind,
                epoch=self.epoch if epoch is None else epoch,
                **fields,
            )
        )

    @property
    def is_ready(self) -> bool:
        """True when transport commands reach a loaded player."""
        return True

    @abstractmethod
    def load(self, track: Track, autoplay: bool, epoch: int) -> None:
        """Prepare track for playback, starting it when autoplay is set."""

    @abstractmethod
    def play(self) -> None: ...

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def stop(self) -> None:
        """Stop output completely (not merely pause)."""

    @abstractmethod
    def is_playing(self) -> bool: ...

    @abstractmethod
    def seek_to_ratio(self, ratio: float) -> None: ...

    @abstractmethod
    def get_elapsed_seconds(self) -> float: ...

    @abstractmethod
    def get_duration_seconds(self) -> float:
        """Duration in seconds, 0.0 while unknown."""

    def toggle_play_pause(self) -> None:
        if self.is_playing():
            self.pause()
        else:
            self.play()

    def get_position_ratio(self) -> float:
        duration = self.get_duration_seconds()
        if not is_valid_duration(duration):
            return 0.0
        return _clamp_ratio(self.get_elapsed_seconds() / duration)

    def close(self) -> None:
        """Release backend resources."""


class DirectMediaBackend(Backend):
    """Local data payloads and remote audio URLs.

    Position and duration arrive as pushed time updates from the element and
    are republished as position events; no polling is needed.
    """

    kind = BackendKind.DIRECT

    def __init__(self, channel: EventChannel, element: MediaElement):
        super().__init__(channel)
        self.element = element
        self.element.set_listener(self)
        self._ended_reported = False

    def load(self, track: Track, autoplay: bool, epoch: int) -> None:
        self._check_track(track)
        self.epoch = epoch
        self._ended_reported = False
        self.element.set_source(track.media_source)
        logger.debug(f"Direct backend loaded {track.name} (autoplay={autoplay})")
        if autoplay:
            self.element.play()

    def play(self) -> None:
        self.element.play()

    def pause(self) -> None:
        self.element.pause()

    def stop(self) -> None:
        self.element.stop()

    def is_playing(self) -> bool:
        return not self.element.paused

    def seek_to_ratio(self, ratio: float) -> None:
        duration = self.element.duration
        if not is_valid_duration(duration):
            return
        self.element.seek(_clamp_ratio(ratio) * duration)

    def get_elapsed_seconds(self) -> float:
        return self.element.current_time

    def get_duration_seconds(self) -> float:
        duration = self.element.duration
        return duration if is_valid_duration(duration) else 0.0

    def close(self) -> None:
        self.element.close()

    # MediaListener

    def on_play(self) -> None:
        self._emit(EventKind.STARTED)

    def on_pause(self) -> None:
        self._emit(EventKind.PAUSED)

    def on_time_update(self, elapsed: float, duration: Optional[float]) -> None:
        if not is_valid_duration(duration):
            return
        self._emit(EventKind.POSITION, elapsed=elapsed, duration=duration)

    def on_ended(self) -> None:
        if self._ended_reported:
            return
        self._ended_reported = True
        self._emit(EventKind.ENDED)


class EmbeddedVideoBackend(Backend):
    """Video tracks through the embed runtime.

    load() only requests the shared bootstrap; once it settles a
    runtime_ready or load_failed event is published and the controller calls
    complete_load() on its own thread. A single player instance is reused for
    every video track. Position and duration must be polled.
    """

    kind = BackendKind.EMBEDDED

    def __init__(self, channel: EventChannel, bootstrap: RuntimeBootstrap):
        super().__init__(channel)
        self.bootstrap = bootstrap
        self.player: Optional[EmbedPlayer] = None
        # Epoch of the video the shared player is actually bound to
        self._player_epoch = 0

    @property
    def is_ready(self) -> bool:
        return self.bootstrap.ready and self.player is not None

    def load(self, track: Track, autoplay: bool, epoch: int) -> None:
        self._check_track(track)
        self.epoch = epoch

        def settled(future: Future) -> None:
            try:
                error = future.exception()
            except CancelledError:
                error = BackendLoadError("Video player bootstrap was cancelled")
            if error is not None:
                self._emit(EventKind.LOAD_FAILED, epoch=epoch, track=track, error=str(error))
            else:
                self._emit(EventKind.RUNTIME_READY, epoch=epoch, track=track, autoplay=autoplay)

        self.bootstrap.ensure().add_done_callback(settled)

    def complete_load(self, track: Track, autoplay: bool) -> None:
        """Bind track to the shared player. Called on the control thread."""
        runtime = self.bootstrap.runtime
        if runtime is None:
            raise BackendLoadError("Video player is not available")

        self._player_epoch = self.epoch
        if self.player is None:
            self.player = runtime.create_player(
                track.external_id, autoplay=autoplay, on_state_change=self._on_state_change
            )
        elif autoplay:
            self.player.load_video_by_id(track.external_id)
        else:
            self.player.cue_video_by_id(track.external_id)
        logger.debug(f"Embedded backend loaded {track.name} (autoplay={autoplay})")

    def play(self) -> None:
        if self.player:
            self.player.play_video()

    def pause(self) -> None:
        if self.player:
            self.player.pause_video()

    def stop(self) -> None:
        if self.player:
            self.player.stop_video()

    def is_playing(self) -> bool:
        return bool(self.player) and self.player.get_player_state() == EmbedPlayerState.PLAYING

    def seek_to_ratio(self, ratio: float) -> None:
        if not self.player:
            return
        duration = self.player.get_duration()
        if not is_valid_duration(duration):
            return
        self.player.seek_to(_clamp_ratio(ratio) * duration)

    def get_elapsed_seconds(self) -> float:
        return self.player.get_current_time() if self.player else 0.0

    def get_duration_seconds(self) -> float:
        if not self.player:
            return 0.0
        duration = self.player.get_duration()
        return duration if is_valid_duration(duration) else 0.0

    def close(self) -> None:
        self.bootstrap.shutdown()

    def _on_state_change(self, state: EmbedPlayerState) -> None:
        epoch = self._player_epoch
        if state == EmbedPlayerState.PLAYING:
            self._emit(EventKind.STARTED, epoch=epoch)
        elif state == EmbedPlayerState.PAUSED:
            self._emit(EventKind.PAUSED, epoch=epoch)
        elif state == EmbedPlayerState.ENDED:
            self._emit(EventKind.ENDED, epoch=epoch)
