"""Tests for transport state helpers and the event channel."""

import math

import pytest

from mixtape.domain.library.models import BackendKind
from mixtape.domain.playback.events import EventChannel, EventKind, PlaybackEvent
from mixtape.domain.playback.state import (
    PlaybackStatus,
    TransportState,
    format_time,
    index_after_removal,
    is_valid_duration,
    next_index,
    previous_index,
)


class TestTransportState:
    """Tests for TransportState."""

    def test_initial_state(self) -> None:
        """Test the default state has no selection."""
        state = TransportState()
        assert state.current_index == -1
        assert state.status == PlaybackStatus.NO_SELECTION
        assert state.is_playing is False
        assert state.active_backend is None

    def test_position_ratio_is_clamped(self) -> None:
        """Test position ratio stays within 0..1."""
        assert TransportState(elapsed_seconds=30, duration_seconds=60).position_ratio == 0.5
        assert TransportState(elapsed_seconds=90, duration_seconds=60).position_ratio == 1.0
        assert TransportState(elapsed_seconds=30, duration_seconds=0).position_ratio == 0.0


class TestDurationGuard:
    """Tests for is_valid_duration."""

    @pytest.mark.parametrize("value", [1, 0.5, 3600.0])
    def test_valid(self, value) -> None:
        assert is_valid_duration(value) is True

    @pytest.mark.parametrize("value", [0, -1, math.nan, math.inf, None, "120", True])
    def test_invalid(self, value) -> None:
        assert is_valid_duration(value) is False


class TestNavigation:
    """Tests for cyclic navigation."""

    def test_next_wraps(self) -> None:
        assert next_index(0, 3) == 1
        assert next_index(2, 3) == 0

    def test_next_from_no_selection(self) -> None:
        """Test next with no selection starts at 0."""
        assert next_index(-1, 3) == 0

    def test_previous_wraps(self) -> None:
        assert previous_index(1, 3) == 0
        assert previous_index(0, 3) == 2

    def test_empty_playlist(self) -> None:
        """Test navigation on an empty playlist has no target."""
        assert next_index(0, 0) is None
        assert previous_index(0, 0) is None


class TestIndexAfterRemoval:
    """Tests for index_after_removal."""

    def test_removed_before_current(self) -> None:
        assert index_after_removal(current=3, removed=1, new_length=4) == 2

    def test_removed_after_current(self) -> None:
        assert index_after_removal(current=1, removed=3, new_length=4) == 1

    def test_removed_current(self) -> None:
        """Test removing the selected track keeps its position."""
        assert index_after_removal(current=1, removed=1, new_length=3) == 1

    def test_removed_current_last(self) -> None:
        """Test removing the selected last track selects the new last track."""
        assert index_after_removal(current=2, removed=2, new_length=2) == 1

    def test_playlist_now_empty(self) -> None:
        assert index_after_removal(current=0, removed=0, new_length=0) == -1


class TestFormatTime:
    """Tests for format_time."""

    def test_formats_minutes_and_seconds(self) -> None:
        assert format_time(0) == "00:00"
        assert format_time(65.9) == "01:05"
        assert format_time(3600) == "60:00"

    def test_invalid_values(self) -> None:
        assert format_time(-5) == "00:00"
        assert format_time(math.nan) == "00:00"


class TestEventChannel:
    """Tests for EventChannel."""

    def test_fifo_order(self) -> None:
        """Test events come out in the order they were published."""
        channel = EventChannel()
        channel.publish(PlaybackEvent(kind=EventKind.STARTED, source=BackendKind.DIRECT, epoch=1))
        channel.publish(PlaybackEvent(kind=EventKind.PAUSED, source=BackendKind.DIRECT, epoch=1))

        assert len(channel) == 2
        assert [e.kind for e in channel.drain()] == [EventKind.STARTED, EventKind.PAUSED]
        assert len(channel) == 0

    def test_get_times_out(self) -> None:
        """Test get returns None when nothing arrives."""
        channel = EventChannel()
        assert channel.get(timeout=0.01) is None
        assert channel.get_nowait() is None
