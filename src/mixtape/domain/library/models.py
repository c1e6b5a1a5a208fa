"""
Playlist domain models.

Contains the canonical track record and the enums used to route a track to
its playback backend.
"""

from enum import Enum
from typing import Any, Dict, NamedTuple


class TrackType(str, Enum):
    """Discriminant of the track payload."""

    DIRECT_LOCAL = "direct_local"
    DIRECT_REMOTE = "direct_remote"
    EMBEDDED_VIDEO = "embedded_video"


class BackendKind(str, Enum):
    """Playback backend that owns a track type."""

    DIRECT = "direct"
    EMBEDDED = "embedded"


class Track(NamedTuple):
    """Represents one playable reference plus its metadata.

    Exactly one payload field is meaningful per type:
    - direct_local: data_payload (self-contained data: URL)
    - direct_remote: remote_url
    - embedded_video: external_id (original_url kept for reference)
    """

    id: str
    type: TrackType
    name: str
    data_payload: str = ""
    remote_url: str = ""
    external_id: str = ""
    original_url: str = ""
    source_tag: str = ""  # Provenance marker, e.g. "manual" or "jukehost"

    @property
    def media_source(self) -> str:
        """Source handed to the direct backend (data URL or remote URL)."""
        if self.type == TrackType.DIRECT_LOCAL:
            return self.data_payload
        if self.type == TrackType.DIRECT_REMOTE:
            return self.remote_url
        return ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the persisted (camelCase) record shape."""
        return {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "dataPayload": self.data_payload,
            "remoteUrl": self.remote_url,
            "externalId": self.external_id,
            "originalUrl": self.original_url,
            "sourceTag": self.source_tag,
        }


def backend_kind_for(track_type: TrackType) -> BackendKind:
    """Return the backend that plays tracks of the given type."""
    match track_type:
        case TrackType.DIRECT_LOCAL | TrackType.DIRECT_REMOTE:
            return BackendKind.DIRECT
        case TrackType.EMBEDDED_VIDEO:
            return BackendKind.EMBEDDED
    raise ValueError(f"Unknown track type: {track_type!r}")


def track_label(track: Track) -> str:
    """Short tag shown next to a track in listings."""
    if track.type == TrackType.EMBEDDED_VIDEO:
        return "YOUTUBE"
    if track.source_tag == "jukehost":
        return "JUKEHOST"
    if track.type == TrackType.DIRECT_REMOTE:
        return "ONLINE"
    return "MP3"
