"""Exceptions shared across Mixtape."""


class MixtapeError(Exception):
    """Base exception for Mixtape operations."""

    pass


class StorageError(MixtapeError):
    """Raised when the key/value store cannot be read or written."""

    pass


class InvalidTrackInputError(MixtapeError):
    """Raised when user input cannot be turned into a track."""

    pass


class PlaybackError(MixtapeError):
    """Base exception for playback backends."""

    pass


class BackendLoadError(PlaybackError):
    """Raised when a backend cannot prepare a track for playback."""

    pass


class RuntimeBootstrapError(PlaybackError):
    """Raised when the embedded video runtime fails to start."""

    pass
