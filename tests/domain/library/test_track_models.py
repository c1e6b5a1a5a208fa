"""Tests for track models."""

import pytest

from mixtape.domain.library.models import (
    BackendKind,
    Track,
    TrackType,
    backend_kind_for,
    track_label,
)


def make_track(track_type: TrackType, **fields) -> Track:
    return Track(id="t1", type=track_type, name="Track", **fields)


class TestBackendDispatch:
    """Tests for backend_kind_for."""

    @pytest.mark.parametrize(
        "track_type,expected",
        [
            (TrackType.DIRECT_LOCAL, BackendKind.DIRECT),
            (TrackType.DIRECT_REMOTE, BackendKind.DIRECT),
            (TrackType.EMBEDDED_VIDEO, BackendKind.EMBEDDED),
        ],
    )
    def test_dispatch(self, track_type, expected) -> None:
        assert backend_kind_for(track_type) == expected

    def test_unknown_type(self) -> None:
        with pytest.raises(ValueError):
            backend_kind_for("cassette")


class TestTrack:
    """Tests for Track."""

    def test_media_source(self) -> None:
        """Test the direct backend source depends on the track type."""
        assert make_track(TrackType.DIRECT_LOCAL, data_payload="data:,x").media_source == "data:,x"
        assert make_track(TrackType.DIRECT_REMOTE, remote_url="https://x/a.mp3").media_source == "https://x/a.mp3"
        assert make_track(TrackType.EMBEDDED_VIDEO, external_id="abc").media_source == ""

    def test_to_dict_uses_persisted_names(self) -> None:
        track = make_track(TrackType.EMBEDDED_VIDEO, external_id="abc", original_url="https://youtu.be/abc")
        assert track.to_dict() == {
            "id": "t1",
            "type": "embedded_video",
            "name": "Track",
            "dataPayload": "",
            "remoteUrl": "",
            "externalId": "abc",
            "originalUrl": "https://youtu.be/abc",
            "sourceTag": "",
        }


class TestTrackLabel:
    """Tests for track_label."""

    def test_labels(self) -> None:
        assert track_label(make_track(TrackType.EMBEDDED_VIDEO, external_id="a")) == "YOUTUBE"
        assert track_label(make_track(TrackType.DIRECT_REMOTE, source_tag="jukehost")) == "JUKEHOST"
        assert track_label(make_track(TrackType.DIRECT_REMOTE, source_tag="manual")) == "ONLINE"
        assert track_label(make_track(TrackType.DIRECT_LOCAL)) == "MP3"
