"""Library domain - the playlist and its tracks.

This domain handles:
- Track data models
- Normalization and persistence of the playlist
- Turning user input into track records
"""

# Models
from .models import BackendKind, Track, TrackType, backend_kind_for, track_label

# Persistence
from .store import LEGACY_KEYS, STORAGE_KEY, TrackStore, normalize_track

# Intake
from .intake import (
    extract_name_from_url,
    parse_video_id,
    resolve_prompt_name,
    validate_remote_audio_url,
)

__all__ = [
    # Models
    "BackendKind",
    "Track",
    "TrackType",
    "backend_kind_for",
    "track_label",
    # Persistence
    "LEGACY_KEYS",
    "STORAGE_KEY",
    "TrackStore",
    "normalize_track",
    # Intake
    "extract_name_from_url",
    "parse_video_id",
    "resolve_prompt_name",
    "validate_remote_audio_url",
]
