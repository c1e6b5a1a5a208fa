"""Fakes for the playback domain: media element, embed runtime and executor."""

import json
from concurrent.futures import Executor, Future
from typing import Callable, List, Optional

import pytest

from mixtape.core.exceptions import BackendLoadError
from mixtape.domain.library.store import TrackStore
from mixtape.domain.playback.backends import DirectMediaBackend, EmbeddedVideoBackend
from mixtape.domain.playback.controller import PlaybackController
from mixtape.domain.playback.embed_runtime import (
    EmbedPlayer,
    EmbedPlayerState,
    EmbedRuntime,
    RuntimeBootstrap,
)
from mixtape.domain.playback.events import EventChannel
from mixtape.domain.playback.media import MediaElement


class FakeMediaElement(MediaElement):
    """Media element that notifies synchronously, like a real one pushing events."""

    def __init__(self, call_log: List[str]):
        super().__init__()
        self.call_log = call_log
        self.source: Optional[str] = None
        self.seeks: List[float] = []
        self.fail_next_load = False
        self.closed = False
        self._paused = True
        self._time = 0.0
        self._duration: Optional[float] = None

    def set_source(self, source: str) -> None:
        self.call_log.append("direct.set_source")
        if self.fail_next_load:
            self.fail_next_load = False
            raise BackendLoadError("unsupported stream")
        self.source = source
        self._paused = True
        self._time = 0.0
        self._duration = None

    def play(self) -> None:
        self.call_log.append("direct.play")
        self._paused = False
        self._notify_play()

    def pause(self) -> None:
        self.call_log.append("direct.pause")
        self._paused = True
        self._notify_pause()

    def stop(self) -> None:
        self.call_log.append("direct.stop")
        self._paused = True

    def seek(self, seconds: float) -> None:
        self.seeks.append(seconds)
        self._time = seconds

    @property
    def current_time(self) -> float:
        return self._time

    @property
    def duration(self) -> Optional[float]:
        return self._duration

    @property
    def paused(self) -> bool:
        return self._paused

    def close(self) -> None:
        self.closed = True

    # Test helpers

    def push_time(self, elapsed: float, duration: Optional[float]) -> None:
        self._time = elapsed
        self._duration = duration
        self._notify_time_update(elapsed, duration)

    def finish(self) -> None:
        self._paused = True
        self._notify_ended()


class FakePlayer(EmbedPlayer):
    def __init__(self, call_log: List[str], on_state_change: Callable[[EmbedPlayerState], None]):
        self.call_log = call_log
        self.on_state_change = on_state_change
        self.video_id: Optional[str] = None
        self.state = EmbedPlayerState.UNSTARTED
        self.elapsed = 0.0
        self.duration = 0.0
        self.seeks: List[float] = []

    def load_video_by_id(self, video_id: str) -> None:
        self.call_log.append(f"video.load:{video_id}")
        self.video_id = video_id

    def cue_video_by_id(self, video_id: str) -> None:
        self.call_log.append(f"video.cue:{video_id}")
        self.video_id = video_id

    def play_video(self) -> None:
        self.call_log.append("video.play")
        self.emit(EmbedPlayerState.PLAYING)

    def pause_video(self) -> None:
        self.call_log.append("video.pause")
        self.emit(EmbedPlayerState.PAUSED)

    def stop_video(self) -> None:
        self.call_log.append("video.stop")
        self.state = EmbedPlayerState.UNSTARTED

    def seek_to(self, seconds: float) -> None:
        self.seeks.append(seconds)

    def get_current_time(self) -> float:
        return self.elapsed

    def get_duration(self) -> float:
        return self.duration

    def get_player_state(self) -> EmbedPlayerState:
        return self.state

    def emit(self, state: EmbedPlayerState) -> None:
        self.state = state
        self.on_state_change(state)


class FakeRuntime(EmbedRuntime):
    def __init__(self, call_log: List[str]):
        self.call_log = call_log
        self.players: List[FakePlayer] = []
        self.closed = False

    def create_player(self, video_id, autoplay, on_state_change) -> FakePlayer:
        player = FakePlayer(self.call_log, on_state_change)
        if autoplay:
            player.load_video_by_id(video_id)
        else:
            player.cue_video_by_id(video_id)
        self.players.append(player)
        return player

    def close(self) -> None:
        self.closed = True


class ManualExecutor(Executor):
    """Executor that only runs submitted work when told to."""

    def __init__(self):
        self.pending = []

    def submit(self, fn, *args, **kwargs) -> Future:
        future: Future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run_pending(self) -> None:
        while self.pending:
            future, fn, args, kwargs = self.pending.pop(0)
            if not future.set_running_or_notify_cancel():
                continue
            try:
                future.set_result(fn(*args, **kwargs))
            except Exception as e:
                future.set_exception(e)


@pytest.fixture
def call_log() -> List[str]:
    return []


@pytest.fixture
def channel() -> EventChannel:
    return EventChannel()


@pytest.fixture
def element(call_log: List[str]) -> FakeMediaElement:
    return FakeMediaElement(call_log)


@pytest.fixture
def runtime(call_log: List[str]) -> FakeRuntime:
    return FakeRuntime(call_log)


@pytest.fixture
def executor() -> ManualExecutor:
    return ManualExecutor()


@pytest.fixture
def bootstrap(runtime: FakeRuntime, executor: ManualExecutor) -> RuntimeBootstrap:
    return RuntimeBootstrap(lambda: runtime, executor=executor)


@pytest.fixture
def notices() -> List[str]:
    return []


@pytest.fixture
def build_controller(memory_storage, element, channel, bootstrap, notices):
    """Factory building a controller over the fakes, with records pre-stored."""

    def build(records=(), custom_bootstrap: Optional[RuntimeBootstrap] = None) -> PlaybackController:
        if records:
            memory_storage.items["playlist_v4"] = json.dumps(list(records))
        return PlaybackController(
            store=TrackStore(memory_storage),
            direct=DirectMediaBackend(channel, element),
            embedded=EmbeddedVideoBackend(channel, custom_bootstrap or bootstrap),
            channel=channel,
            notify=notices.append,
        )

    return build
