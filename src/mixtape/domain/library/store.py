"""
Track store - normalization and persistence of the playlist.

The playlist is persisted as a JSON array of canonical track records under a
single storage key. Older releases wrote other keys with a different record
shape; those are read once and migrated forward on load.
"""

import json
import uuid
from typing import Any, List, Optional, Protocol, Sequence

from loguru import logger

from .intake import extract_name_from_url
from .models import Track, TrackType

STORAGE_KEY = "playlist_v4"
LEGACY_KEYS = ("playlist_v3", "playlist_v2")

# Type names written by older releases
TYPE_ALIASES = {
    "direct_local": TrackType.DIRECT_LOCAL,
    "direct_remote": TrackType.DIRECT_REMOTE,
    "embedded_video": TrackType.EMBEDDED_VIDEO,
    "audio_local": TrackType.DIRECT_LOCAL,
    "audio_url": TrackType.DIRECT_REMOTE,
    "youtube": TrackType.EMBEDDED_VIDEO,
}


class KeyValueStorage(Protocol):
    """Storage the track store persists to (see mixtape.core.storage)."""

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _first_text(raw: dict, *keys: str) -> str:
    for key in keys:
        value = _text(raw.get(key))
        if value:
            return value
    return ""


def normalize_track(raw: Any, position_hint: int = 0) -> Optional[Track]:
    """Normalize a raw record (current or legacy shape) into a Track.

    Args:
        raw: Decoded record, usually a dict
        position_hint: Position of the record in its playlist, used for default names

    Returns:
        Canonical Track, or None if the record lacks its type's required field
    """
    if not isinstance(raw, dict):
        return None

    raw_type = raw.get("type")
    if isinstance(raw_type, str):
        track_type = TYPE_ALIASES.get(raw_type, TrackType.DIRECT_LOCAL)
    else:
        track_type = TrackType.DIRECT_LOCAL

    data_payload = ""
    remote_url = ""
    external_id = ""
    original_url = ""

    if track_type == TrackType.DIRECT_LOCAL:
        data_payload = _first_text(raw, "dataPayload", "dataUrl")
        if not data_payload:
            return None
    elif track_type == TrackType.DIRECT_REMOTE:
        remote_url = _first_text(raw, "remoteUrl", "url")
        if not remote_url:
            return None
    else:
        external_id = _first_text(raw, "externalId", "videoId")
        if not external_id:
            return None
        original_url = _first_text(raw, "originalUrl", "url")

    name = _text(raw.get("name"))
    if not name:
        if track_type == TrackType.EMBEDDED_VIDEO:
            name = f"YouTube Track {position_hint + 1}"
        elif track_type == TrackType.DIRECT_REMOTE:
            name = extract_name_from_url(remote_url) or f"Online Track {position_hint + 1}"
        else:
            name = f"MP3 Track {position_hint + 1}"

    raw_id = raw.get("id")
    track_id = str(raw_id) if raw_id not in (None, "") else uuid.uuid4().hex

    return Track(
        id=track_id,
        type=track_type,
        name=name,
        data_payload=data_payload,
        remote_url=remote_url,
        external_id=external_id,
        original_url=original_url,
        source_tag=_first_text(raw, "sourceTag", "source"),
    )


def decode_playlist(text: Optional[str]) -> Optional[list]:
    """Parse persisted text into a list of raw records.

    Returns:
        The decoded list, or None when text is empty, malformed or not a list
    """
    if not text:
        return None
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"Ignoring malformed playlist data: {e}")
        return None
    if not isinstance(parsed, list):
        logger.warning(f"Ignoring playlist data of type {type(parsed).__name__}")
        return None
    return parsed


class TrackStore:
    """Ordered, persisted playlist.

    The store only reads and writes the playlist; selection state belongs to
    the playback controller.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        storage_key: str = STORAGE_KEY,
        legacy_keys: Sequence[str] = LEGACY_KEYS,
    ):
        self.storage = storage
        self.storage_key = storage_key
        self.legacy_keys = tuple(legacy_keys)
        self._tracks: List[Track] = []

    @property
    def tracks(self) -> List[Track]:
        """Copy of the current playlist."""
        return list(self._tracks)

    def __len__(self) -> int:
        return len(self._tracks)

    def get(self, index: int) -> Optional[Track]:
        """Track at index, or None if index is out of range."""
        if 0 <= index < len(self._tracks):
            return self._tracks[index]
        return None

    def load(self) -> List[Track]:
        """Load the playlist, migrating from a legacy key if needed.

        Keys are tried in order: current key, then each legacy key. The first
        one yielding at least one valid track wins and is re-saved under the
        current key.
        """
        for key in (self.storage_key, *self.legacy_keys):
            records = decode_playlist(self.storage.get_item(key))
            if records is None:
                continue

            normalized = [normalize_track(item, i) for i, item in enumerate(records)]
            tracks = [t for t in normalized if t is not None]
            dropped = len(records) - len(tracks)
            if dropped:
                logger.debug(f"Dropped {dropped} invalid record(s) from {key}")

            if tracks:
                self._tracks = tracks
                self.save()
                if key != self.storage_key:
                    logger.info(f"Migrated {len(tracks)} track(s) from {key} to {self.storage_key}")
                return self.tracks

        self._tracks = []
        return self.tracks

    def save(self) -> None:
        """Persist the whole playlist under the current key."""
        payload = json.dumps([t.to_dict() for t in self._tracks])
        self.storage.set_item(self.storage_key, payload)

    def add(self, raw: Any) -> bool:
        """Normalize and append a record.

        Returns:
            True if the record was valid and stored
        """
        track = normalize_track(raw, len(self._tracks))
        if track is None:
            logger.debug(f"Rejected track input: {raw!r:.200}")
            return False
        self._tracks.append(track)
        self.save()
        logger.info(f"Added track: {track.name} ({track.type.value})")
        return True

    def remove_at(self, index: int) -> bool:
        """Remove the track at index if present.

        Returns:
            True if a track was removed
        """
        if not 0 <= index < len(self._tracks):
            return False
        removed = self._tracks.pop(index)
        self.save()
        logger.info(f"Removed track: {removed.name}")
        return True

    def clear(self) -> None:
        """Remove every track."""
        self._tracks = []
        self.save()
        logger.info("Playlist cleared")
